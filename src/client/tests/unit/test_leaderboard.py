import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from client.leaderboard.poller import (
    LEADERBOARD_ERROR_TEXT,
    LeaderboardClient,
    LeaderboardError,
    LeaderboardPoller,
)
from client.leaderboard.types import LeaderboardEntry
from client.tests.helpers import wait_until

ROWS = [
    {"username": "Ada", "wins": 3, "losses": 1, "draws": 0},
    {"username": "Bob", "wins": 0, "losses": 0, "draws": 0},
]


def _response(status_code: int = 200, body: object = ROWS) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.content = json.dumps(body).encode()
    return response


@pytest.fixture
def http_client():
    """Patch httpx.AsyncClient and yield the instance used inside `async with`."""
    with patch("httpx.AsyncClient") as mock_client:
        mock_instance = AsyncMock()
        mock_client.return_value.__aenter__.return_value = mock_instance
        mock_instance.get.return_value = _response()
        yield mock_instance


class TestLeaderboardEntry:
    def test_win_rate(self):
        entry = LeaderboardEntry(username="Ada", wins=3, losses=1, draws=0)
        assert entry.total_games == 4
        assert entry.win_rate == 75.0

    def test_win_rate_without_games(self):
        assert LeaderboardEntry(username="Bob").win_rate == 0.0


class TestLeaderboardClient:
    async def test_fetch(self, http_client):
        client = LeaderboardClient("http://game.test/api/")
        entries = await client.fetch()

        http_client.get.assert_awaited_once_with("http://game.test/api/leaderboard")
        assert [e.username for e in entries] == ["Ada", "Bob"]
        assert entries[0].wins == 3

    async def test_null_body_is_empty(self, http_client):
        http_client.get.return_value = _response(body=None)
        assert await LeaderboardClient("http://game.test/api").fetch() == []

    async def test_http_error_status(self, http_client):
        http_client.get.return_value = _response(status_code=500, body="Failed to get leaderboard")
        with pytest.raises(LeaderboardError, match="500"):
            await LeaderboardClient("http://game.test/api").fetch()

    async def test_request_error(self, http_client):
        http_client.get.side_effect = httpx.ConnectError("refused")
        with pytest.raises(LeaderboardError, match="refused"):
            await LeaderboardClient("http://game.test/api").fetch()

    async def test_malformed_body(self, http_client):
        http_client.get.return_value = _response(body=[{"wins": "many"}])
        with pytest.raises(LeaderboardError, match="invalid leaderboard body"):
            await LeaderboardClient("http://game.test/api").fetch()


class TestLeaderboardPoller:
    async def test_refresh_success(self):
        client = AsyncMock(spec=LeaderboardClient)
        client.fetch.return_value = [LeaderboardEntry(username="Ada", wins=1)]
        poller = LeaderboardPoller(client)
        assert poller.loading

        await poller.refresh()

        assert not poller.loading
        assert poller.error is None
        assert poller.entries[0].username == "Ada"

    async def test_refresh_failure_keeps_last_entries(self):
        client = AsyncMock(spec=LeaderboardClient)
        client.url = "http://game.test/api/leaderboard"
        client.fetch.return_value = [LeaderboardEntry(username="Ada", wins=1)]
        poller = LeaderboardPoller(client)
        await poller.refresh()

        client.fetch.side_effect = LeaderboardError("down")
        await poller.refresh()

        assert poller.error == LEADERBOARD_ERROR_TEXT
        assert [e.username for e in poller.entries] == ["Ada"]

        client.fetch.side_effect = None
        await poller.refresh()
        assert poller.error is None

    async def test_polls_on_interval_until_stopped(self):
        client = AsyncMock(spec=LeaderboardClient)
        client.fetch.return_value = []
        poller = LeaderboardPoller(client, interval=0.01)

        poller.start()
        poller.start()
        assert poller.running
        await wait_until(lambda: client.fetch.await_count >= 3)
        await poller.stop()

        assert not poller.running
        count = client.fetch.await_count
        await asyncio.sleep(0.03)
        assert client.fetch.await_count == count

    async def test_stop_without_start(self):
        poller = LeaderboardPoller(AsyncMock(spec=LeaderboardClient))
        await poller.stop()
        assert not poller.running
