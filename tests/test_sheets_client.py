"""
Tests for the Apps Script gateway, using httpx.MockTransport in place of the
deployed web app.
"""

import asyncio
import json

import httpx
import pytest
from tenacity import wait_none

from src.models.enums import SheetAction
from src.models.match import Match
from src.models.player import Player
from src.models.team import Team
from src.storage.sheets_client import (
    SheetsActionError,
    SheetsClient,
    SheetsError,
)

WEB_APP_URL = "https://script.google.com/macros/s/test-deployment/exec"


def make_client(handler, max_attempts=3):
    transport = httpx.MockTransport(handler)
    http = httpx.AsyncClient(transport=transport, follow_redirects=True)
    return SheetsClient(
        WEB_APP_URL, client=http, max_attempts=max_attempts, retry_wait=wait_none()
    )


def run(coro):
    return asyncio.run(coro)


class Recorder:
    """Collects request bodies and replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(json.loads(request.content))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        # fresh copy so a queued response can be replayed
        return httpx.Response(
            response.status_code, headers=response.headers, content=response.content
        )


def ok(**body):
    return httpx.Response(200, json={"success": True, **body})


# ============================================================================
# ACTIONS
# ============================================================================

class TestActions:

    def test_get_players_parses_rows(self):
        recorder = Recorder(
            ok(
                data=[
                    {"id": "1", "name": "An", "position": "GK", "skillPoints": 8, "image": "", "createdAt": 1},
                    {"id": "2", "name": "Binh", "position": "Tiền vệ", "skillPoints": 6, "image": "", "createdAt": 2},
                ]
            )
        )
        players = run(make_client(recorder).get_players())

        assert recorder.requests == [{"action": "getPlayers"}]
        assert [p.name for p in players] == ["An", "Binh"]
        assert players[0].is_goalkeeper

    def test_empty_sheet(self):
        players = run(make_client(Recorder(ok(data=[]))).get_players())
        assert players == []

    def test_save_teams_sends_wire_format(self):
        recorder = Recorder(ok())
        team = Team(name="Team A")
        team.add_player(Player(id="1", name="An", skill_points=8))

        run(make_client(recorder).save_teams([team]))

        sent = recorder.requests[0]
        assert sent["action"] == "saveTeams"
        assert sent["data"][0]["name"] == "Team A"
        assert sent["data"][0]["totalPoints"] == 8
        assert sent["data"][0]["players"][0]["skillPoints"] == 8

    def test_save_teams_rejects_empty_list(self):
        with pytest.raises(ValueError):
            run(make_client(Recorder(ok())).save_teams([]))

    def test_save_player_returns_echoed_player(self):
        echoed = {"id": "9", "name": "An", "position": "GK", "skillPoints": 5, "image": "https://x/y.png", "createdAt": 3}
        recorder = Recorder(ok(player=echoed))

        saved = run(make_client(recorder).save_player(Player(id="9", name="An", position="GK")))

        assert saved.image == "https://x/y.png"

    def test_update_player_falls_back_to_submitted(self):
        player = Player(id="9", name="An", skill_points=6)
        updated = run(make_client(Recorder(ok())).update_player(player))
        assert updated == player

    def test_delete_match_sends_id(self):
        recorder = Recorder(ok())
        run(make_client(recorder).delete_match("m1"))
        assert recorder.requests == [{"action": "deleteMatch", "data": {"id": "m1"}}]

    def test_get_matches(self):
        recorder = Recorder(
            ok(
                data=[
                    {
                        "id": "m1",
                        "team1": "Team A",
                        "team2": "Team B",
                        "score1": 2,
                        "score2": 1,
                        "date": "2026-10-18",
                        "team1Players": [{"id": "1", "name": "An", "position": "", "skillPoints": 5}],
                        "createdAt": 5,
                    }
                ]
            )
        )
        matches = run(make_client(recorder).get_matches())

        assert isinstance(matches[0], Match)
        assert matches[0].description == "Team A 2 - 1 Team B (2026-10-18)"
        assert matches[0].team2_players is None


# ============================================================================
# ERRORS AND RETRIES
# ============================================================================

class TestErrors:

    def test_action_failure(self):
        recorder = Recorder(
            httpx.Response(
                200,
                json={"success": False, "error": "Player not found", "searchedIds": ["1", "2"]},
            )
        )
        with pytest.raises(SheetsActionError) as exc:
            run(make_client(recorder).update_player(Player(id="7", name="x")))

        assert exc.value.action is SheetAction.UPDATE_PLAYER
        assert exc.value.message == "Player not found"
        assert exc.value.searched_ids == ["1", "2"]
        assert len(recorder.requests) == 1

    def test_retries_server_errors(self):
        recorder = Recorder(
            httpx.Response(503),
            httpx.Response(502),
            ok(data=[]),
        )
        players = run(make_client(recorder, max_attempts=3).get_players())

        assert players == []
        assert len(recorder.requests) == 3

    def test_retries_network_errors(self):
        recorder = Recorder(httpx.ConnectError("boom"), ok(data=[]))
        run(make_client(recorder).get_players())
        assert len(recorder.requests) == 2

    def test_gives_up_after_max_attempts(self):
        recorder = Recorder(httpx.Response(500))
        with pytest.raises(SheetsError):
            run(make_client(recorder, max_attempts=2).get_players())
        assert len(recorder.requests) == 2

    def test_client_error_not_retried(self):
        recorder = Recorder(httpx.Response(404, text="Not Found"))
        with pytest.raises(SheetsError):
            run(make_client(recorder).get_players())
        assert len(recorder.requests) == 1

    def test_invalid_json(self):
        recorder = Recorder(httpx.Response(200, text="<html>Sign in</html>"))
        with pytest.raises(SheetsError, match="Invalid JSON"):
            run(make_client(recorder).get_players())

    def test_non_object_response(self):
        recorder = Recorder(httpx.Response(200, json=[1, 2, 3]))
        with pytest.raises(SheetsError, match="Invalid response format"):
            run(make_client(recorder).test_connection())

    def test_malformed_player_row(self):
        recorder = Recorder(
            ok(data=[{"id": "1", "name": "An", "skillPoints": 5}, {"id": "2", "name": "Binh", "skillPoints": 42}])
        )
        with pytest.raises(SheetsError, match="Invalid player row from getPlayers"):
            run(make_client(recorder).get_players())

    def test_malformed_match_row(self):
        recorder = Recorder(ok(data=[{"id": "m1", "score1": 1, "score2": 0}]))
        with pytest.raises(SheetsError, match="Invalid match row from getMatches"):
            run(make_client(recorder).get_matches())

    def test_malformed_echoed_player(self):
        recorder = Recorder(ok(player={"id": "9"}))
        with pytest.raises(SheetsError, match="Invalid player row from savePlayer"):
            run(make_client(recorder).save_player(Player(id="9", name="An")))
