"""
Pydantic models for the client session layer.
"""

import itertools
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from client.messaging.types import GameSnapshot

_notice_ids = itertools.count(1)


class SessionStatus(StrEnum):
    IDLE = "idle"
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


IN_FLIGHT_STATUSES = frozenset({SessionStatus.WAITING, SessionStatus.PLAYING})


class NoticeKind(StrEnum):
    INFO = "info"
    ERROR = "error"
    CONNECTION = "connection"  # transport trouble; cleared by the next successful open


class Notice(BaseModel):
    """User-visible text with an optional expiry, decoupled from session status."""

    model_config = ConfigDict(frozen=True)

    notice_id: int = Field(default_factory=lambda: next(_notice_ids))
    kind: NoticeKind
    text: str
    ttl_seconds: float | None = None  # None: shown until replaced or cleared


class Identity(BaseModel):
    """Who the local player is for the lifetime of one session."""

    model_config = ConfigDict(frozen=True)

    username: str
    player_id: str | None = None  # assigned by the server in game_start


class SessionContext(BaseModel):
    """Immutable session state; every transition returns a new instance."""

    model_config = ConfigDict(frozen=True)

    status: SessionStatus = SessionStatus.IDLE
    identity: Identity | None = None
    snapshot: GameSnapshot | None = None
    message: Notice | None = None
    error: Notice | None = None

    @property
    def game_id(self) -> str | None:
        return self.snapshot.id if self.snapshot is not None else None

    @property
    def is_in_flight(self) -> bool:
        return self.status in IN_FLIGHT_STATUSES
