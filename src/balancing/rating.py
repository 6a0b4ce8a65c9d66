# src/balancing/rating.py
from typing import Tuple

from src.models.player import Player

MIN_SKILL_POINTS = 1
MAX_SKILL_POINTS = 10


def match_winner(score1: int, score2: int) -> int:
    """1 if team1 won, 2 if team2 won, 0 for a draw."""
    if score1 > score2:
        return 1
    if score2 > score1:
        return 2
    return 0


def skill_point_changes(
    old_scores: Tuple[int, int], new_scores: Tuple[int, int]
) -> Tuple[int, int]:
    """
    Net skill point change for (team1, team2) when a result is corrected.

    Each win is worth +1 to every winner and -1 to every loser. When the winner
    changes, the old result is reverted before the new one is applied; draws
    carry no points.
    """
    old_winner = match_winner(*old_scores)
    new_winner = match_winner(*new_scores)
    if old_winner == new_winner:
        return 0, 0

    team1_delta = team2_delta = 0
    if old_winner == 1:
        team1_delta, team2_delta = team1_delta - 1, team2_delta + 1
    elif old_winner == 2:
        team1_delta, team2_delta = team1_delta + 1, team2_delta - 1

    if new_winner == 1:
        team1_delta, team2_delta = team1_delta + 1, team2_delta - 1
    elif new_winner == 2:
        team1_delta, team2_delta = team1_delta - 1, team2_delta + 1

    return team1_delta, team2_delta


def adjust_skill_points(player: Player, delta: int) -> Player:
    """Returns a copy of player with skill points moved by delta, kept within 1-10."""
    new_points = max(MIN_SKILL_POINTS, min(MAX_SKILL_POINTS, player.skill_points + delta))
    return player.model_copy(update={"skill_points": new_points})
