"""
Shared fixtures: player factories and rosters used across the test suite.
"""

import itertools

import pytest

from src.models.player import Player


@pytest.fixture
def make_player():
    """Factory building players with sequential ids (p1, p2, ...)."""
    counter = itertools.count(1)

    def _make(skill_points=5, position="Tiền đạo", name=None, player_id=None):
        n = next(counter)
        return Player(
            id=player_id or f"p{n}",
            name=name or f"Player {n}",
            position=position,
            skill_points=skill_points,
        )

    return _make


@pytest.fixture
def outfield_six(make_player):
    """Six outfield players scored 10 down to 5."""
    return [make_player(skill_points=s) for s in (10, 9, 8, 7, 6, 5)]


@pytest.fixture
def mixed_roster(make_player):
    """Two goalkeepers and eight outfield players."""
    keepers = [
        make_player(skill_points=6, position="Thủ môn"),
        make_player(skill_points=8, position="Goalkeeper"),
    ]
    outfield = [
        make_player(skill_points=s, position=pos)
        for s, pos in [
            (9, "Tiền vệ"),
            (7, "Hậu vệ"),
            (7, "Tiền đạo"),
            (5, "Hậu vệ"),
            (4, "Tiền vệ"),
            (3, "Tiền đạo"),
            (2, "Hậu vệ"),
            (1, "Tiền vệ"),
        ]
    ]
    return keepers + outfield
