import pytest
from pydantic import ValidationError

from client.settings import ClientSettings


class TestClientSettings:
    def test_defaults(self, monkeypatch):
        for name in ("CLIENT_WS_URL", "CLIENT_API_URL", "CLIENT_RECONNECT_DELAY_SECONDS"):
            monkeypatch.delenv(name, raising=False)
        settings = ClientSettings()
        assert settings.ws_url == "ws://localhost:8080/ws"
        assert settings.api_url == "http://localhost:8080/api"
        assert settings.reconnect_delay_seconds == 2.0
        assert settings.open_timeout_seconds == 10.0
        assert settings.error_notice_seconds == 5.0
        assert settings.invalid_move_notice_seconds == 3.0
        assert settings.leaderboard_poll_seconds == 10.0

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CLIENT_WS_URL", "wss://game.example/ws")
        monkeypatch.setenv("CLIENT_RECONNECT_DELAY_SECONDS", "0.5")
        settings = ClientSettings()
        assert settings.ws_url == "wss://game.example/ws"
        assert settings.reconnect_delay_seconds == 0.5

    def test_trailing_slash_stripped(self):
        settings = ClientSettings(api_url="https://game.example/api/")
        assert settings.api_url == "https://game.example/api"

    @pytest.mark.parametrize("url", ["http://game.example/ws", "", "ws://", "game.example"])
    def test_invalid_ws_url(self, url):
        with pytest.raises(ValidationError, match="ws_url"):
            ClientSettings(ws_url=url)

    def test_api_url_requires_http(self):
        with pytest.raises(ValidationError, match="api_url"):
            ClientSettings(api_url="ws://game.example/api")

    def test_open_timeout_must_be_positive(self):
        with pytest.raises(ValidationError, match="open_timeout_seconds"):
            ClientSettings(open_timeout_seconds=0)

    def test_reconnect_delay_may_be_zero(self):
        assert ClientSettings(reconnect_delay_seconds=0).reconnect_delay_seconds == 0

    def test_negative_reconnect_delay_rejected(self):
        with pytest.raises(ValidationError, match="reconnect_delay_seconds"):
            ClientSettings(reconnect_delay_seconds=-1)
