"""
Pure session transitions.

Each function takes the current SessionContext and returns the next one
without touching the connection, timers, or the clock. GameSession applies
the side effects; these functions only decide the next state.
"""

import structlog

from client.messaging.types import (
    USERNAME_MAX_LENGTH,
    ErrorMessage,
    GameOverMessage,
    GameStartMessage,
    GameUpdateMessage,
    InvalidMoveMessage,
    OpponentLeftMessage,
    ServerMessage,
)
from client.session.exceptions import InvalidTransitionError, UsernameValidationError
from client.session.models import Identity, Notice, NoticeKind, SessionContext, SessionStatus
from client.session.turn_gate import player_number

logger = structlog.get_logger()

ERROR_NOTICE_SECONDS = 5.0
INVALID_MOVE_NOTICE_SECONDS = 3.0

WAITING_TEXT = "Waiting for opponent..."
RECONNECTING_TEXT = "Connection lost. Attempting to reconnect..."
CONNECTION_ERROR_TEXT = "Connection error. Please try again."
NOT_CONNECTED_TEXT = "Not connected to server"

_PLAYER_COLORS = {1: "Red", 2: "Yellow"}


def player_color(number: int) -> str:
    return _PLAYER_COLORS[number]


def validate_username(raw: str) -> str:
    """Return the trimmed username or raise UsernameValidationError."""
    username = raw.strip()
    if not username:
        raise UsernameValidationError("Please enter a username")
    if len(username) > USERNAME_MAX_LENGTH:
        raise UsernameValidationError(f"Username must be at most {USERNAME_MAX_LENGTH} characters")
    return username


def begin_join(context: SessionContext, raw_username: str) -> SessionContext:
    """Idle -> Waiting with a fresh identity. Notices from the last session are dropped."""
    if context.status is not SessionStatus.IDLE:
        raise InvalidTransitionError(intent="join", status=context.status)
    username = validate_username(raw_username)
    return SessionContext(
        status=SessionStatus.WAITING,
        identity=Identity(username=username),
        message=Notice(kind=NoticeKind.INFO, text=WAITING_TEXT),
    )


def fail_join(context: SessionContext, text: str = CONNECTION_ERROR_TEXT) -> SessionContext:
    """Return to Idle when the join connection never opened.

    Only applies while still waiting for matchmaking; later states are left alone.
    """
    if context.status is not SessionStatus.WAITING or context.snapshot is not None:
        return context
    return SessionContext(
        identity=None,
        error=Notice(kind=NoticeKind.CONNECTION, text=text),
    )


def reset(context: SessionContext) -> SessionContext:
    """Finished -> Idle (play again). Snapshot, identity and notices are cleared."""
    if context.status is not SessionStatus.FINISHED:
        raise InvalidTransitionError(intent="play_again", status=context.status)
    return SessionContext()


def abandon(context: SessionContext) -> SessionContext:
    """Any status -> Idle, used when the player leaves a session that cannot continue."""
    if context.status is SessionStatus.IDLE:
        return context
    return SessionContext()


def with_error(
    context: SessionContext,
    text: str,
    *,
    ttl_seconds: float | None = None,
    kind: NoticeKind = NoticeKind.ERROR,
) -> SessionContext:
    return context.model_copy(update={"error": Notice(kind=kind, text=text, ttl_seconds=ttl_seconds)})


def with_message(context: SessionContext, text: str) -> SessionContext:
    return context.model_copy(update={"message": Notice(kind=NoticeKind.INFO, text=text)})


def clear_notice(context: SessionContext, notice_id: int) -> SessionContext:
    """Remove the notice with notice_id if it is still displayed."""
    if context.error is not None and context.error.notice_id == notice_id:
        return context.model_copy(update={"error": None})
    if context.message is not None and context.message.notice_id == notice_id:
        return context.model_copy(update={"message": None})
    return context


def connection_lost(context: SessionContext, *, reconnecting: bool) -> SessionContext:
    text = RECONNECTING_TEXT if reconnecting else CONNECTION_ERROR_TEXT
    return with_error(context, text, kind=NoticeKind.CONNECTION)


def connection_restored(context: SessionContext) -> SessionContext:
    """Clear a persistent connection notice once a connection opens again."""
    if context.error is not None and context.error.kind is NoticeKind.CONNECTION:
        return context.model_copy(update={"error": None})
    return context


def apply_server_message(
    context: SessionContext,
    message: ServerMessage,
    *,
    error_ttl: float = ERROR_NOTICE_SECONDS,
    invalid_move_ttl: float = INVALID_MOVE_NOTICE_SECONDS,
) -> SessionContext:
    """
    Advance the session for one decoded server message.

    Messages that do not apply to the current status are logged and the
    context is returned unchanged.
    """
    status = context.status

    if isinstance(message, GameStartMessage) and status is SessionStatus.WAITING:
        return _start_game(context, message)

    if isinstance(message, GameUpdateMessage) and status is SessionStatus.PLAYING:
        update: dict[str, object] = {"snapshot": message.game}
        if message.message:
            update["message"] = Notice(kind=NoticeKind.INFO, text=message.message)
        return context.model_copy(update=update)

    if isinstance(message, GameOverMessage) and status is SessionStatus.PLAYING:
        return context.model_copy(
            update={
                "status": SessionStatus.FINISHED,
                "snapshot": message.game,
                "message": Notice(kind=NoticeKind.INFO, text=message.message),
            },
        )

    if isinstance(message, OpponentLeftMessage) and context.is_in_flight:
        return with_message(context, message.message)

    if isinstance(message, ErrorMessage) and context.is_in_flight:
        return with_error(context, message.message, ttl_seconds=error_ttl)

    if isinstance(message, InvalidMoveMessage) and status is SessionStatus.PLAYING:
        return with_error(context, message.message, ttl_seconds=invalid_move_ttl)

    logger.info("ignoring message for current status", message_type=message.type, status=status)
    return context


def _start_game(context: SessionContext, message: GameStartMessage) -> SessionContext:
    if context.identity is None:
        logger.warning("game_start without identity", game_id=message.game.id)
        return context
    identity = context.identity.model_copy(update={"player_id": message.your_player_id})
    number = player_number(message.game, message.your_player_id)
    text = f"Game started! You are Player {number} ({player_color(number)})" if number else "Game started!"
    return context.model_copy(
        update={
            "status": SessionStatus.PLAYING,
            "identity": identity,
            "snapshot": message.game,
            "message": Notice(kind=NoticeKind.INFO, text=text),
        },
    )
