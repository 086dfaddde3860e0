"""Client configuration via environment variables."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from shared.validators import parse_endpoint_url

_WS_SCHEMES = frozenset({"ws", "wss"})
_HTTP_SCHEMES = frozenset({"http", "https"})


class ClientSettings(BaseSettings):
    model_config = {"env_prefix": "CLIENT_"}

    ws_url: str = "ws://localhost:8080/ws"
    api_url: str = "http://localhost:8080/api"

    open_timeout_seconds: float = Field(default=10.0, gt=0)
    reconnect_delay_seconds: float = Field(default=2.0, ge=0)
    error_notice_seconds: float = Field(default=5.0, gt=0)
    invalid_move_notice_seconds: float = Field(default=3.0, gt=0)

    leaderboard_poll_seconds: float = Field(default=10.0, gt=0)
    leaderboard_timeout_seconds: float = Field(default=5.0, gt=0)

    log_dir: str | None = None

    @field_validator("ws_url")
    @classmethod
    def validate_ws_url(cls, v: str) -> str:
        return parse_endpoint_url(v, schemes=_WS_SCHEMES)

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        return parse_endpoint_url(v, schemes=_HTTP_SCHEMES)
