# src/services/team_service.py
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Tuple

from loguru import logger

from src.balancing.rating import adjust_skill_points, skill_point_changes
from src.balancing.team_balancer import balance_teams, evaluate_spread, select_players
from src.models.enums import SheetAction
from src.models.match import Match
from src.models.player import DEFAULT_SKILL_POINTS, Player
from src.models.team import Team
from src.storage.local_cache import LocalCache
from src.storage.sheets_client import SheetsActionError, SheetsClient, SheetsError
from src.utils.misc_utils import generate_record_id, now_ms


@dataclass
class BalanceOutcome:
    """Result of one balancing run and what could be persisted."""

    teams: List[Team]
    match: Optional[Match] = None
    teams_saved: bool = False
    match_saved: bool = False

    @property
    def spread(self) -> int:
        return evaluate_spread(self.teams)


@dataclass
class ScoreOutcome:
    match: Match
    team1_delta: int = 0
    team2_delta: int = 0
    players_updated: int = 0


class SkillUpdateError(SheetsError):
    """Raised when a score was saved but some skill point changes could not be applied."""

    def __init__(self, match_id: str, pending: List[Tuple[str, int]], cause: Exception):
        self.match_id = match_id
        self.pending = pending
        super().__init__(
            f"Match {match_id} updated, but {len(pending)} players still need skill point changes: {cause}"
        )


class TeamService:
    """Roster fetch -> balance -> persist, on top of the sheets gateway."""

    def __init__(self, gateway: SheetsClient, cache: Optional[LocalCache] = None):
        self.gateway = gateway
        self.cache = cache

    async def load_roster(self) -> List[Player]:
        """Fetches the roster, falling back to the local cache if the sheet is unreachable."""
        try:
            players = await self.gateway.get_players()
        except SheetsError as e:
            if self.cache is None:
                raise
            cached = self.cache.load_players()
            if not cached:
                logger.error(f"Could not fetch players and no cached roster exists: {e}")
                raise
            logger.warning(
                f"Could not fetch players ({e}); using {len(cached)} cached players."
            )
            return cached

        self._write_cache("roster", lambda cache: cache.save_players(players))
        return players

    async def load_matches(self) -> List[Match]:
        """Fetches matches, falling back to the locally cached ones if the sheet is unreachable."""
        try:
            matches = await self.gateway.get_matches()
        except SheetsError as e:
            if self.cache is None:
                raise
            cached = self.cache.load_matches()
            if not cached:
                logger.error(f"Could not fetch matches and no cached matches exist: {e}")
                raise
            logger.warning(
                f"Could not fetch matches ({e}); using {len(cached)} cached matches."
            )
            return cached

        self._write_cache("matches", lambda cache: cache.save_matches(matches))
        return matches

    def _write_cache(self, what: str, write: Callable[[LocalCache], None]) -> None:
        if self.cache is None:
            return
        try:
            write(self.cache)
        except OSError as e:
            logger.warning(f"Could not update cached {what} in {self.cache.directory}: {e}")

    # --- Roster management ---
    async def add_player(
        self,
        name: str,
        position: str = "",
        skill_points: int = DEFAULT_SKILL_POINTS,
        image: Optional[str] = None,
    ) -> Player:
        name = name.strip()
        if not name:
            raise ValueError("Player name must not be empty")
        player = Player(
            id=generate_record_id(),
            name=name,
            position=position.strip(),
            skill_points=skill_points,
            image=image,
            created_at=now_ms(),
        )
        saved = await self.gateway.save_player(player)
        logger.success(f"Added player {saved.name} ({saved.id}).")
        await self._refresh_roster_cache()
        return saved

    async def update_player(self, player_id: str, **changes: Any) -> Player:
        """Applies the given field changes (name, position, skill_points, image) to a player."""
        changes = {k: v for k, v in changes.items() if v is not None}
        roster = await self.gateway.get_players()
        current = next((p for p in roster if p.id == player_id), None)
        if current is None:
            raise SheetsActionError(
                SheetAction.UPDATE_PLAYER,
                f"Player not found: {player_id}",
                [p.id for p in roster],
            )
        # re-validate so out-of-range skill points are rejected
        player = Player.model_validate({**current.model_dump(), **changes})
        saved = await self.gateway.update_player(player)
        logger.success(f"Updated player {saved.name} ({saved.id}).")
        await self._refresh_roster_cache()
        return saved

    async def delete_player(self, player_id: str) -> None:
        await self.gateway.delete_player(player_id)
        if self.cache is not None:
            remaining = [p for p in self.cache.load_players() if p.id != player_id]
            self._write_cache("roster", lambda cache: cache.save_players(remaining))

    async def delete_match(self, match_id: str) -> None:
        await self.gateway.delete_match(match_id)
        if self.cache is not None:
            remaining = [m for m in self.cache.load_matches() if m.id != match_id]
            self._write_cache("matches", lambda cache: cache.save_matches(remaining))

    async def _refresh_roster_cache(self) -> None:
        if self.cache is None:
            return
        try:
            await self.load_roster()
        except SheetsError as e:
            logger.warning(f"Could not refresh cached roster: {e}")

    async def balance(
        self,
        selected_ids: Optional[Iterable[str]] = None,
        team_count: int = 2,
        persist: bool = True,
    ) -> BalanceOutcome:
        roster = await self.load_roster()
        selected = roster if selected_ids is None else select_players(roster, selected_ids)
        logger.info(f"Balancing {len(selected)} of {len(roster)} players into {team_count} teams.")

        teams = balance_teams(selected, team_count)
        outcome = BalanceOutcome(teams=teams)
        logger.success(
            "Teams: " + ", ".join(f"{t.name}={t.total_points}" for t in teams)
            + f" (spread {outcome.spread})"
        )

        if not persist:
            logger.info("Dry run: teams and match not persisted.")
            return outcome

        try:
            await self.gateway.save_teams(teams)
            outcome.teams_saved = True
        except SheetsError as e:
            logger.error(f"Failed to save teams to Google Sheets: {e}")

        outcome.match = Match.from_teams(teams)
        if self.cache is not None:
            try:
                self.cache.add_match(outcome.match)
            except OSError as e:
                logger.warning(f"Could not cache match {outcome.match.id} locally: {e}")

        try:
            await self.gateway.save_match(outcome.match)
            outcome.match_saved = True
        except SheetsError as e:
            logger.error(f"Failed to save match {outcome.match.id} to Google Sheets: {e}")

        return outcome

    async def record_score(self, match_id: str, score1: int, score2: int) -> ScoreOutcome:
        """Stores a new score and moves the players' skill points if the result changed."""
        if score1 < 0 or score2 < 0:
            raise ValueError(f"Scores must be non-negative, got {score1}-{score2}")
        matches = await self.gateway.get_matches()
        match = next((m for m in matches if m.id == match_id), None)
        if match is None:
            raise SheetsActionError(
                SheetAction.UPDATE_MATCH,
                f"Match not found: {match_id}",
                [m.id for m in matches],
            )

        updated = match.model_copy(update={"score1": score1, "score2": score2})
        await self.gateway.update_match(updated)

        team1_delta, team2_delta = skill_point_changes(
            (match.score1, match.score2), (score1, score2)
        )
        outcome = ScoreOutcome(match=updated, team1_delta=team1_delta, team2_delta=team2_delta)
        if team1_delta == 0 and team2_delta == 0:
            logger.info("Result unchanged; no skill points to update.")
            return outcome
        if not match.team1_players or not match.team2_players:
            logger.warning(f"Match {match_id} has no player lists; skill points not updated.")
            return outcome

        changes = [(p, team1_delta) for p in match.team1_players] + [
            (p, team2_delta) for p in match.team2_players
        ]
        # the match already carries the new score, so a rerun will not retry these
        done = 0
        try:
            roster = {p.id: p for p in await self.gateway.get_players()}
            for listed, delta in changes:
                player = roster.get(listed.id)
                if player is None:
                    logger.warning(f"Player {listed.id} from match {match_id} is no longer on the roster.")
                    done += 1
                    continue
                adjusted = adjust_skill_points(player, delta)
                if adjusted.skill_points != player.skill_points:
                    await self.gateway.update_player(adjusted)
                    outcome.players_updated += 1
                else:
                    logger.debug(f"{player.name} already at the skill limit ({player.skill_points}).")
                done += 1
        except SheetsError as e:
            pending = changes[done:]
            logger.error(
                f"Match {match_id} was updated but skill points were not applied for: "
                + ", ".join(f"{p.name} ({p.id}) {d:+d}" for p, d in pending)
                + ". Adjust these players manually."
            )
            raise SkillUpdateError(match_id, [(p.id, d) for p, d in pending], e) from e

        logger.success(
            f"Updated skill points for {outcome.players_updated} players "
            f"({match.team1} {team1_delta:+d}, {match.team2} {team2_delta:+d})."
        )
        return outcome
