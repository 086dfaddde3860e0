"""Periodic read of the ranking list, independent of the game session."""

import asyncio
import contextlib
from http import HTTPStatus

import httpx
import structlog
from pydantic import ValidationError

from client.leaderboard.types import LeaderboardEntry, leaderboard_adapter

LEADERBOARD_POLL_SECONDS = 10.0
LEADERBOARD_ERROR_TEXT = "Failed to load leaderboard"

logger = structlog.get_logger()


class LeaderboardError(Exception):
    """Leaderboard could not be fetched or parsed."""


class LeaderboardClient:
    def __init__(self, api_url: str, timeout: float = 5.0) -> None:
        self._url = f"{api_url.rstrip('/')}/leaderboard"
        self._timeout = timeout

    @property
    def url(self) -> str:
        return self._url

    async def fetch(self) -> list[LeaderboardEntry]:
        """GET the ranking list. Raises LeaderboardError on any failure."""
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.get(self._url)
            except httpx.RequestError as e:
                raise LeaderboardError(f"request to {self._url} failed: {e}") from e
        if response.status_code != HTTPStatus.OK:
            raise LeaderboardError(f"leaderboard returned HTTP {response.status_code}")
        try:
            entries = leaderboard_adapter.validate_json(response.content)
        except ValidationError as e:
            raise LeaderboardError(f"invalid leaderboard body: {e.error_count()} validation error(s)") from e
        return entries or []


class LeaderboardPoller:
    """Refresh the leaderboard on a fixed interval.

    Keeps the last good entries when a refresh fails; `error` carries the
    user-facing text until the next successful fetch.
    """

    def __init__(self, client: LeaderboardClient, interval: float = LEADERBOARD_POLL_SECONDS) -> None:
        self._client = client
        self._interval = interval
        self._entries: list[LeaderboardEntry] = []
        self._loading = True
        self._error: str | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def entries(self) -> list[LeaderboardEntry]:
        return self._entries.copy()

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._poll_loop(), name="leaderboard-poller")

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def refresh(self) -> None:
        """Fetch once and record the outcome."""
        try:
            entries = await self._client.fetch()
        except LeaderboardError as e:
            logger.warning("leaderboard refresh failed", url=self._client.url, error=str(e))
            self._error = LEADERBOARD_ERROR_TEXT
        else:
            self._entries = entries
            self._error = None
        finally:
            self._loading = False

    async def _poll_loop(self) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(self._interval)
