import pytest

from client.connection.mock import MockConnector
from client.session.manager import GameSession
from client.settings import ClientSettings


@pytest.fixture
def settings() -> ClientSettings:
    """Settings with short timers so scenario tests finish quickly."""
    return ClientSettings(
        ws_url="ws://game.test/ws",
        api_url="http://game.test/api",
        open_timeout_seconds=0.2,
        reconnect_delay_seconds=0.02,
        error_notice_seconds=0.05,
        invalid_move_notice_seconds=0.03,
    )


@pytest.fixture
def connector() -> MockConnector:
    return MockConnector()


@pytest.fixture
async def session(connector, settings):
    game_session = GameSession(connector, settings)
    yield game_session
    await game_session.aclose()
