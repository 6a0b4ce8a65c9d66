# src/storage/sheets_client.py
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from src.config.settings import settings
from src.models.enums import SheetAction
from src.models.match import Match
from src.models.player import Player
from src.models.team import Team

# Define common HTTP status codes that warrant a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

ModelT = TypeVar("ModelT", bound=BaseModel)


class SheetsError(Exception):
    """Custom exception for errors talking to the Apps Script web app."""

    pass


class SheetsConfigurationError(SheetsError):
    """Raised when no web app URL is configured."""

    pass


class SheetsActionError(SheetsError):
    """Raised when the web app answers with success=false."""

    def __init__(
        self,
        action: SheetAction,
        message: str,
        searched_ids: Optional[List[str]] = None,
    ):
        self.action = action
        self.message = message
        self.searched_ids = searched_ids or []
        super().__init__(f"{action.value} failed: {message}")


class _RetryableStatusError(SheetsError):
    """Internal marker for responses worth another attempt."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}")


class SheetsClient:
    """Async client for the Football Manager Google Apps Script web app.

    Every call is a POST of ``{"action": ..., "data": ...}`` to the deployment URL.
    The script answers with an envelope ``{"success": bool, "data": ..., "error": ...}``.
    """

    def __init__(
        self,
        web_app_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        max_attempts: Optional[int] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        url = web_app_url or (
            str(settings.sheets_web_app_url) if settings.sheets_web_app_url else None
        )
        if not url:
            logger.error("Sheets web app URL is not set in environment variables.")
            raise SheetsConfigurationError("Missing SHEETS_WEB_APP_URL configuration.")
        self.web_app_url = url
        self.max_attempts = max_attempts or settings.sheets_max_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)
        self._owns_client = client is None
        # Apps Script answers with a redirect to googleusercontent.com
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.sheets_timeout_seconds),
            follow_redirects=True,
            headers={"Content-Type": "application/json"},
        )

    async def _call(self, action: SheetAction, data: Any = None) -> Dict[str, Any]:
        """Runs one action with retry logic and returns the successful envelope."""
        payload: Dict[str, Any] = {"action": action.value}
        if data is not None:
            payload["data"] = data

        logger.debug(f"Calling web app action {action.value} (has_data={data is not None})")
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=self.retry_wait,
                retry=retry_if_exception_type((httpx.RequestError, _RetryableStatusError)),
                reraise=False,
            ):
                with attempt:
                    response = await self._post(action, payload)
        except RetryError as e:
            last = e.last_attempt.exception()
            logger.error(
                f"Max retries exceeded for {action.value} after {self.max_attempts} attempts. Last exception: {last}"
            )
            raise SheetsError(
                f"{action.value} failed after {self.max_attempts} attempts"
            ) from last

        try:
            result = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from web app for {action.value}: {response.text[:200]}")
            raise SheetsError("Invalid JSON response from Google Script") from e

        if not isinstance(result, dict):
            raise SheetsError("Invalid response format from Google Script")

        if not result.get("success"):
            message = result.get("error") or "Unknown error from Google Script"
            searched_ids = result.get("searchedIds")
            logger.warning(f"Web app rejected {action.value}: {message}")
            if searched_ids:
                logger.debug(f"Searched IDs in sheet: {searched_ids}")
            raise SheetsActionError(action, message, searched_ids)

        return result

    async def _post(self, action: SheetAction, payload: Dict[str, Any]) -> httpx.Response:
        try:
            response = await self.client.post(self.web_app_url, json=payload)
        except httpx.RequestError as e:
            # Network errors, timeouts etc. are retryable
            logger.warning(f"Request error for {action.value}, retrying: {e}")
            raise

        if response.status_code in RETRYABLE_STATUS_CODES:
            logger.warning(f"Retrying {action.value} due to status {response.status_code}")
            raise _RetryableStatusError(response.status_code)

        if response.is_error:
            logger.error(
                f"HTTP error during {action.value}: {response.status_code} - {response.text[:200]}"
            )
            raise SheetsError(f"HTTP {response.status_code} for {action.value}")

        logger.debug(f"Request successful: {response.status_code} for {action.value}")
        return response

    @staticmethod
    def _parse_row(model: Type[ModelT], row: Any, action: SheetAction) -> ModelT:
        try:
            return model.model_validate(row)
        except ValidationError as e:
            logger.error(f"Invalid {model.__name__} row from {action.value}: {row!r}")
            raise SheetsError(f"Invalid {model.__name__.lower()} row from {action.value}: {e}") from e

    def _parse_rows(self, model: Type[ModelT], result: Dict[str, Any], action: SheetAction) -> List[ModelT]:
        rows = result.get("data") or []
        if not isinstance(rows, list):
            raise SheetsError(f"Invalid data for {action.value}: expected a list")
        return [self._parse_row(model, row, action) for row in rows]

    # --- Connection ---
    async def test_connection(self) -> Dict[str, Any]:
        return await self._call(SheetAction.TEST_CONNECTION)

    # --- Players ---
    async def get_players(self) -> List[Player]:
        result = await self._call(SheetAction.GET_PLAYERS)
        players = self._parse_rows(Player, result, SheetAction.GET_PLAYERS)
        logger.info(f"Fetched {len(players)} players from sheet.")
        return players

    async def save_player(self, player: Player) -> Player:
        result = await self._call(SheetAction.SAVE_PLAYER, player.to_wire())
        # Older script versions don't echo the player back
        if result.get("player"):
            return self._parse_row(Player, result["player"], SheetAction.SAVE_PLAYER)
        return player

    async def update_player(self, player: Player) -> Player:
        result = await self._call(SheetAction.UPDATE_PLAYER, player.to_wire())
        if result.get("player"):
            return self._parse_row(Player, result["player"], SheetAction.UPDATE_PLAYER)
        return player

    async def delete_player(self, player_id: str) -> None:
        await self._call(SheetAction.DELETE_PLAYER, {"id": player_id})
        logger.info(f"Deleted player {player_id}.")

    # --- Matches ---
    async def get_matches(self) -> List[Match]:
        result = await self._call(SheetAction.GET_MATCHES)
        matches = self._parse_rows(Match, result, SheetAction.GET_MATCHES)
        logger.info(f"Fetched {len(matches)} matches from sheet.")
        return matches

    async def save_match(self, match: Match) -> None:
        await self._call(SheetAction.SAVE_MATCH, match.to_wire())
        logger.info(f"Saved match {match.id}: {match.team1} vs {match.team2}")

    async def update_match(self, match: Match) -> None:
        await self._call(SheetAction.UPDATE_MATCH, match.to_wire())
        logger.info(f"Updated match {match.id}: {match.description}")

    async def delete_match(self, match_id: str) -> None:
        await self._call(SheetAction.DELETE_MATCH, {"id": match_id})
        logger.info(f"Deleted match {match_id}.")

    # --- Teams ---
    async def get_teams(self) -> List[Team]:
        result = await self._call(SheetAction.GET_TEAMS)
        return self._parse_rows(Team, result, SheetAction.GET_TEAMS)

    async def save_teams(self, teams: Sequence[Team]) -> None:
        """Replaces the 'Teams' sheet contents with the given teams."""
        if not teams:
            raise ValueError("Invalid teams data. Expected a non-empty list of teams.")
        await self._call(SheetAction.SAVE_TEAMS, [t.to_wire() for t in teams])
        logger.info(f"Saved {len(teams)} teams to sheet.")

    async def close(self):
        """Closes the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()
            logger.debug("Closed HTTP client for sheets web app")
