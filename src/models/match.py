# src/models/match.py
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.balancing.errors import InsufficientTeamsError
from src.utils.misc_utils import generate_record_id, now_ms, today_iso

from .player import Player
from .team import Team


class Match(BaseModel):
    """A head-to-head fixture as stored in the 'Matches' sheet."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    team1: str
    team2: str
    score1: int = Field(0, ge=0)
    score2: int = Field(0, ge=0)
    date: str = Field(default_factory=today_iso)  # YYYY-MM-DD
    team1_players: Optional[List[Player]] = Field(None, alias="team1Players")
    team2_players: Optional[List[Player]] = Field(None, alias="team2Players")
    created_at: int = Field(default_factory=now_ms, alias="createdAt")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @classmethod
    def from_teams(
        cls, teams: Sequence[Team], match_id: Optional[str] = None
    ) -> "Match":
        """Builds a 0-0 match between the first two teams.

        With three teams only ``teams[0]`` and ``teams[1]`` play; the third
        sits out.
        """
        if len(teams) < 2:
            raise InsufficientTeamsError(
                f"At least 2 teams are needed to create a match, got {len(teams)}"
            )
        home, away = teams[0], teams[1]
        return cls(
            id=match_id or generate_record_id(),
            team1=home.name,
            team2=away.name,
            team1_players=[p.for_match() for p in home.players],
            team2_players=[p.for_match() for p in away.players],
        )

    @property
    def description(self) -> str:
        return f"{self.team1} {self.score1} - {self.score2} {self.team2} ({self.date})"

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
