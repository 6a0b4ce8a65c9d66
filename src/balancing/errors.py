# src/balancing/errors.py
from typing import Iterable


class BalancingError(Exception):
    """Base exception for rejected balancing requests."""

    pass


class InvalidTeamCountError(BalancingError):
    """Raised when the requested number of teams is not supported."""

    def __init__(self, team_count: int, supported: Iterable[int]):
        self.team_count = team_count
        self.supported = tuple(supported)
        super().__init__(
            f"Unsupported team count {team_count}; expected one of {self.supported}"
        )


class InsufficientPlayersError(BalancingError):
    """Raised when fewer players are selected than teams requested."""

    def __init__(self, selected: int, required: int):
        self.selected = selected
        self.required = required
        super().__init__(
            f"Need at least {required} players, only {selected} selected"
        )


class DuplicateSelectionError(BalancingError):
    """Raised when the same player id is selected more than once."""

    def __init__(self, duplicate_ids: Iterable[str]):
        self.duplicate_ids = sorted(set(duplicate_ids))
        super().__init__(
            f"Duplicate players in selection: {', '.join(self.duplicate_ids)}"
        )


class UnknownPlayerError(BalancingError):
    """Raised when a selected id does not exist in the roster."""

    def __init__(self, unknown_ids: Iterable[str]):
        self.unknown_ids = sorted(set(unknown_ids))
        super().__init__(f"Unknown player ids: {', '.join(self.unknown_ids)}")


class InsufficientTeamsError(BalancingError):
    """Raised when a match is requested from fewer than two teams."""

    pass
