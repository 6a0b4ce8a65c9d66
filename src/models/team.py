# src/models/team.py
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .player import Player


class Team(BaseModel):
    """One side of a balanced split, with its running skill total."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    players: List[Player] = []
    total_points: int = Field(0, alias="totalPoints")
    created_at: Optional[int] = Field(None, alias="createdAt")

    def add_player(self, player: Player) -> None:
        self.players.append(player)
        self.total_points += player.skill_points

    @property
    def goalkeeper_count(self) -> int:
        return sum(1 for p in self.players if p.is_goalkeeper)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
