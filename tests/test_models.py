"""
Tests for the sheet-backed models: wire field names, goalkeeper detection and
match derivation.
"""

import pytest
from pydantic import ValidationError

from src.balancing.errors import InsufficientTeamsError
from src.balancing.rating import adjust_skill_points, match_winner, skill_point_changes
from src.balancing.team_balancer import balance_teams
from src.models.match import Match
from src.models.player import Player
from src.models.team import Team


class TestPlayer:

    def test_parses_sheet_row(self):
        player = Player.model_validate(
            {
                "id": 1700000000123,
                "name": "Minh",
                "position": "Thủ Môn",
                "skillPoints": 7,
                "image": "",
                "createdAt": 1700000000123,
            }
        )
        assert player.id == "1700000000123"
        assert player.skill_points == 7
        assert player.created_at == 1700000000123

    def test_to_wire_uses_sheet_names(self):
        player = Player(id="p1", name="An", position="GK", skill_points=4)
        assert player.to_wire() == {
            "id": "p1",
            "name": "An",
            "position": "GK",
            "skillPoints": 4,
        }

    @pytest.mark.parametrize(
        "position",
        ["Thủ môn", "THỦ MÔN", "thu mon", "Goalkeeper", "gk", "Backup GK"],
    )
    def test_goalkeeper_positions(self, position):
        assert Player(id="p", name="x", position=position).is_goalkeeper

    @pytest.mark.parametrize("position", ["Tiền đạo", "Hậu vệ", "Striker", ""])
    def test_outfield_positions(self, position):
        assert not Player(id="p", name="x", position=position).is_goalkeeper

    @pytest.mark.parametrize("skill", [0, 11, -3])
    def test_skill_points_out_of_range(self, skill):
        with pytest.raises(ValidationError):
            Player(id="p", name="x", skill_points=skill)

    def test_default_skill_points(self):
        assert Player(id="p", name="x").skill_points == 5

    def test_for_match_drops_image_and_fills_created_at(self):
        player = Player(id="p", name="x", image="https://example.com/a.png")
        slim = player.for_match()
        assert slim.image is None
        assert slim.created_at is not None
        assert player.image == "https://example.com/a.png"


class TestTeam:

    def test_add_player_tracks_total(self):
        team = Team(name="Team A")
        team.add_player(Player(id="a", name="a", skill_points=7))
        team.add_player(Player(id="b", name="b", skill_points=3))
        assert team.total_points == 10
        assert team.to_wire()["totalPoints"] == 10

    def test_new_teams_do_not_share_players(self):
        first, second = Team(name="Team A"), Team(name="Team B")
        first.add_player(Player(id="a", name="a"))
        assert second.players == []


class TestMatchFromTeams:

    def test_first_two_teams_play(self, mixed_roster):
        teams = balance_teams(mixed_roster, 3)
        match = Match.from_teams(teams, match_id="m1")

        assert match.id == "m1"
        assert (match.team1, match.team2) == ("Team A", "Team B")
        assert (match.score1, match.score2) == (0, 0)
        assert [p.id for p in match.team1_players] == [p.id for p in teams[0].players]
        assert [p.id for p in match.team2_players] == [p.id for p in teams[1].players]
        assert len(match.date) == 10

    def test_generated_id_is_numeric_string(self, outfield_six):
        match = Match.from_teams(balance_teams(outfield_six, 2))
        assert match.id.isdigit()

    def test_needs_two_teams(self):
        with pytest.raises(InsufficientTeamsError):
            Match.from_teams([Team(name="Team A")])

    def test_wire_round_trip_keeps_players(self, outfield_six):
        match = Match.from_teams(balance_teams(outfield_six, 2), match_id="m1")
        wire = match.to_wire()
        assert "team1Players" in wire
        assert Match.model_validate(wire) == match


class TestRating:

    @pytest.mark.parametrize(
        "scores,winner", [((2, 1), 1), ((0, 3), 2), ((1, 1), 0), ((0, 0), 0)]
    )
    def test_match_winner(self, scores, winner):
        assert match_winner(*scores) == winner

    @pytest.mark.parametrize(
        "old,new,expected",
        [
            ((0, 0), (2, 1), (1, -1)),  # first result
            ((0, 0), (0, 1), (-1, 1)),
            ((2, 1), (3, 1), (0, 0)),  # same winner
            ((2, 1), (1, 1), (-1, 1)),  # win turned into draw
            ((2, 1), (1, 2), (-2, 2)),  # winner flipped
            ((1, 1), (2, 2), (0, 0)),
        ],
    )
    def test_skill_point_changes(self, old, new, expected):
        assert skill_point_changes(old, new) == expected

    def test_adjust_is_clamped(self):
        top = Player(id="a", name="a", skill_points=10)
        bottom = Player(id="b", name="b", skill_points=1)
        assert adjust_skill_points(top, 1).skill_points == 10
        assert adjust_skill_points(bottom, -2).skill_points == 1
        assert adjust_skill_points(top, -2).skill_points == 8
