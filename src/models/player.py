# src/models/player.py
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.utils.misc_utils import now_ms

# Lower-cased position fragments that mark a goalkeeper (Vietnamese and English)
GOALKEEPER_TOKENS = ("thủ môn", "thu mon", "goalkeeper", "gk")

DEFAULT_SKILL_POINTS = 5


class Player(BaseModel):
    """A roster entry as stored in the 'Players' sheet."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    position: str = ""
    skill_points: int = Field(
        DEFAULT_SKILL_POINTS, alias="skillPoints", ge=1, le=10
    )
    image: Optional[str] = None
    created_at: Optional[int] = Field(None, alias="createdAt")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Sheet cells can come back as numbers
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value

    @property
    def is_goalkeeper(self) -> bool:
        position = self.position.lower()
        return any(token in position for token in GOALKEEPER_TOKENS)

    def for_match(self) -> "Player":
        """Returns the slimmed-down copy embedded in match records."""
        return self.model_copy(
            update={"image": None, "created_at": self.created_at or now_ms()}
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def __repr__(self):
        return f"{self.name}({self.skill_points})"
