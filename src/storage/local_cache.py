# src/storage/local_cache.py
import json
import os
from typing import Any, List, Optional

from loguru import logger
from pydantic import ValidationError

from src.config.settings import settings
from src.models.match import Match
from src.models.player import Player

PLAYERS_FILE = "football-players.json"
MATCHES_FILE = "football-matches.json"
MAX_LOCAL_MATCHES = 50


class LocalCache:
    """JSON files holding the last fetched roster and the most recent matches.

    Used as a fallback when the web app cannot be reached.
    """

    def __init__(self, directory: Optional[str] = None):
        self.directory = directory or settings.cache_dir

    def _path(self, filename: str) -> str:
        return os.path.join(self.directory, filename)

    def _read(self, filename: str) -> List[Any]:
        path = self._path(filename)
        if not os.path.exists(path):
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (IOError, ValueError) as e:
            logger.warning(f"Ignoring unreadable cache file {path}: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Ignoring cache file {path}: expected a list")
            return []
        return data

    def _write(self, filename: str, rows: List[Any]) -> None:
        os.makedirs(self.directory, exist_ok=True)
        path = self._path(filename)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(rows, f, ensure_ascii=False, indent=2)
        logger.debug(f"Wrote {len(rows)} records to {path}")

    def load_players(self) -> List[Player]:
        try:
            return [Player.model_validate(row) for row in self._read(PLAYERS_FILE)]
        except ValidationError as e:
            logger.warning(f"Cached players are invalid, ignoring cache: {e}")
            return []

    def save_players(self, players: List[Player]) -> None:
        self._write(PLAYERS_FILE, [p.to_wire() for p in players])

    def load_matches(self) -> List[Match]:
        try:
            return [Match.model_validate(row) for row in self._read(MATCHES_FILE)]
        except ValidationError as e:
            logger.warning(f"Cached matches are invalid, ignoring cache: {e}")
            return []

    def save_matches(self, matches: List[Match]) -> None:
        """Replaces the cached matches, keeping only the first MAX_LOCAL_MATCHES."""
        self._write(MATCHES_FILE, [m.to_wire() for m in matches[:MAX_LOCAL_MATCHES]])

    def add_match(self, match: Match) -> List[Match]:
        """Prepends the match and keeps only the newest MAX_LOCAL_MATCHES."""
        matches = [match] + [m for m in self.load_matches() if m.id != match.id]
        matches = matches[:MAX_LOCAL_MATCHES]
        self._write(MATCHES_FILE, [m.to_wire() for m in matches])
        return matches
