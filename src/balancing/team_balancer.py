# src/balancing/team_balancer.py
from collections import Counter
from typing import Iterable, List, Sequence

from loguru import logger

from src.models.enums import TeamName
from src.models.player import Player
from src.models.team import Team

from .errors import (
    DuplicateSelectionError,
    InsufficientPlayersError,
    InvalidTeamCountError,
    UnknownPlayerError,
)

SUPPORTED_TEAM_COUNTS = (2, 3)
TEAM_NAMES = tuple(name.value for name in TeamName)


# ---------------------------
# Helpers: selection and spread evaluation
# ---------------------------
def select_players(roster: Sequence[Player], selected_ids: Iterable[str]) -> List[Player]:
    """
    Returns the roster entries whose ids are in selected_ids, in roster order.

    Raises DuplicateSelectionError if an id is selected twice and
    UnknownPlayerError if an id is not on the roster.
    """
    selected_ids = list(selected_ids)
    repeated = [pid for pid, count in Counter(selected_ids).items() if count > 1]
    if repeated:
        raise DuplicateSelectionError(repeated)
    wanted = set(selected_ids)
    known = {p.id for p in roster}
    missing = wanted - known
    if missing:
        raise UnknownPlayerError(missing)
    return [p for p in roster if p.id in wanted]


def evaluate_spread(teams: Sequence[Team]) -> int:
    totals = [t.total_points for t in teams]
    if not totals:
        return 0
    return max(totals) - min(totals)


def validate_selection(players: Sequence[Player], team_count: int) -> None:
    if team_count not in SUPPORTED_TEAM_COUNTS:
        raise InvalidTeamCountError(team_count, SUPPORTED_TEAM_COUNTS)

    # minimum is one player per team
    if len(players) < team_count:
        raise InsufficientPlayersError(len(players), team_count)

    id_counts = Counter(p.id for p in players)
    duplicates = [pid for pid, count in id_counts.items() if count > 1]
    if duplicates:
        raise DuplicateSelectionError(duplicates)


# ---------------------------
# Master: goalkeepers first, then greedy lowest-total assignment
# ---------------------------
def balance_teams(players: Iterable[Player], team_count: int = 2) -> List[Team]:
    """
    Splits the selected players into team_count teams with totals as even as possible.

    When there are at least as many goalkeepers as teams, the best goalkeepers are
    handed out one per team before anyone else. Every remaining player, spare
    goalkeepers first and then outfield players, each group strongest first, goes
    to the team with the lowest running total (earliest team on ties).

    The result depends only on the input order, so identical calls return
    identical teams.

    Raises:
        InvalidTeamCountError: team_count is not 2 or 3.
        InsufficientPlayersError: fewer players than teams.
        DuplicateSelectionError: a player id appears more than once.
    """
    players = list(players)
    validate_selection(players, team_count)

    # sorted() is stable, so equal scores keep their input order
    goalkeepers = sorted(
        (p for p in players if p.is_goalkeeper), key=lambda p: -p.skill_points
    )
    others = sorted(
        (p for p in players if not p.is_goalkeeper), key=lambda p: -p.skill_points
    )
    logger.debug(
        f"Balancing {len(players)} players into {team_count} teams "
        f"({len(goalkeepers)} goalkeepers, {len(others)} outfield)"
    )

    teams = [Team(name=TEAM_NAMES[i]) for i in range(team_count)]

    if len(goalkeepers) >= team_count:
        for team, keeper in zip(teams, goalkeepers[:team_count]):
            team.add_player(keeper)
            logger.debug(f"Goalkeeper {keeper!r} -> {team.name}")
        remaining_goalkeepers = goalkeepers[team_count:]
    else:
        logger.debug(
            f"Only {len(goalkeepers)} goalkeepers for {team_count} teams; "
            "goalkeepers join the general pool"
        )
        remaining_goalkeepers = goalkeepers

    for player in remaining_goalkeepers + others:
        # min() returns the first minimum, i.e. the lowest team index on ties
        target = min(teams, key=lambda t: t.total_points)
        target.add_player(player)

    logger.debug(
        "Balanced teams: "
        + ", ".join(f"{t.name}={t.total_points} ({len(t.players)}p)" for t in teams)
        + f" | spread={evaluate_spread(teams)}"
    )
    return teams
