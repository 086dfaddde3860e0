from __future__ import annotations

import contextlib
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from client.connection.exceptions import ClientConnectionError, ConnectionNotOpenError, HandleRetiredError
from client.connection.manager import ConnectionManager
from client.messaging.types import JoinQueueMessage, MoveMessage, ReconnectMessage
from client.session.exceptions import UsernameValidationError
from client.session.models import NoticeKind, SessionContext
from client.session.notices import NoticeExpiry
from client.session.reconnect import ReconnectionCoordinator, ReconnectTarget
from client.session.transitions import (
    NOT_CONNECTED_TEXT,
    abandon,
    apply_server_message,
    begin_join,
    clear_notice,
    connection_lost,
    connection_restored,
    fail_join,
    reset,
    with_error,
)
from client.session.turn_gate import can_move, is_your_turn, playable_columns
from client.settings import ClientSettings

if TYPE_CHECKING:
    from client.connection.manager import ConnectionHandle
    from client.connection.protocol import Connector
    from client.messaging.types import ServerMessage
    from client.session.models import Notice

logger = structlog.get_logger()

# Called with the new context after every change.
ContextListener = Callable[[SessionContext], None]


class GameSession:
    """
    Drive one client's session: join, play, finish, play again.

    Owns the SessionContext and the connection. State changes come only from
    user intents (join, move, play_again, leave) and decoded server messages;
    the decisions themselves live in the pure functions of
    client.session.transitions.
    """

    def __init__(self, connector: Connector, settings: ClientSettings | None = None) -> None:
        self._settings = settings or ClientSettings()
        self._context = SessionContext()
        self._connection = ConnectionManager(connector, listener=self)
        self._reconnection = ReconnectionCoordinator(
            attempt=self._reconnect,
            is_in_flight=lambda: self._context.is_in_flight,
            delay=self._settings.reconnect_delay_seconds,
        )
        self._notice_expiry = NoticeExpiry(on_expire=self._expire_notice)
        self._listeners: list[ContextListener] = []

    @property
    def context(self) -> SessionContext:
        return self._context

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    @property
    def reconnection(self) -> ReconnectionCoordinator:
        return self._reconnection

    @property
    def is_your_turn(self) -> bool:
        return is_your_turn(self._context)

    @property
    def playable_columns(self) -> list[int]:
        return playable_columns(self._context)

    def subscribe(self, listener: ContextListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    # User intents

    async def join(self, username: str) -> bool:
        """
        Join the matchmaking queue as username.

        The join_queue message is sent only after the connection reports open.
        Returns True once it was sent. Raises InvalidTransitionError if not idle.
        """
        try:
            context = begin_join(self._context, username)
        except UsernameValidationError as e:
            logger.info("join rejected", reason=str(e))
            self._set_context(with_error(self._context, str(e)))
            return False
        self._set_context(context)

        handle = self._connection.open(self._settings.ws_url)
        try:
            await self._connection.wait_open(handle, self._settings.open_timeout_seconds)
            await self._connection.send(handle, JoinQueueMessage(username=username.strip()))
        except HandleRetiredError:
            logger.info("join superseded before connection opened", generation=handle.generation)
            return False
        except ClientConnectionError as e:
            logger.warning("join failed", generation=handle.generation, error=str(e))
            if self._connection.is_current(handle):
                await self._connection.close(handle)
                self._set_context(fail_join(self._context))
            return False
        logger.info("joined queue", username=username.strip(), generation=handle.generation)
        return True

    async def move(self, column: int) -> bool:
        """Send a move for column if the turn gate allows it. Returns True if sent."""
        if not can_move(self._context, column):
            logger.debug("move dropped locally", column=column, status=self._context.status)
            return False
        try:
            await self._connection.send(self._connection.current, MoveMessage(column=column))
        except ConnectionNotOpenError as e:
            logger.warning("move not delivered", column=column, error=str(e))
            self._set_context(with_error(self._context, NOT_CONNECTED_TEXT, kind=NoticeKind.CONNECTION))
            return False
        return True

    async def play_again(self) -> None:
        """Finished -> Idle. Raises InvalidTransitionError from any other status."""
        context = reset(self._context)
        await self._teardown()
        self._set_context(context)

    async def leave(self) -> None:
        """Abandon the current session from any status and return to Idle."""
        context = abandon(self._context)
        await self._teardown()
        self._set_context(context)

    async def aclose(self) -> None:
        """Dispose: stop timers and close the connection without changing state."""
        await self._teardown()
        self._listeners.clear()

    # Connection events

    async def on_open(self, handle: ConnectionHandle) -> None:
        self._set_context(connection_restored(self._context))

    async def on_frame(self, handle: ConnectionHandle, message: ServerMessage) -> None:
        logger.debug("message received", message_type=message.type, generation=handle.generation)
        self._reconnection.confirm()
        self._set_context(
            apply_server_message(
                self._context,
                message,
                error_ttl=self._settings.error_notice_seconds,
                invalid_move_ttl=self._settings.invalid_move_notice_seconds,
            ),
        )

    async def on_closed(self, handle: ConnectionHandle, *, was_expected: bool) -> None:
        if was_expected:
            return
        context = self._context
        if not context.is_in_flight:
            logger.info("connection closed outside a session", status=context.status)
            return
        target = self._reconnect_target(context)
        # a closure during a running attempt is reported by the attempt itself
        reconnecting = self._reconnection.pending or (target is not None and self._reconnection.arm(target))
        self._set_context(connection_lost(context, reconnecting=reconnecting))

    # Internals

    @staticmethod
    def _reconnect_target(context: SessionContext) -> ReconnectTarget | None:
        if context.identity is None or context.game_id is None:
            return None
        return ReconnectTarget(username=context.identity.username, game_id=context.game_id)

    async def _reconnect(self, target: ReconnectTarget) -> None:
        handle = self._connection.open(self._settings.ws_url)
        try:
            await self._connection.wait_open(handle, self._settings.open_timeout_seconds)
            await self._connection.send(handle, ReconnectMessage(username=target.username, game_id=target.game_id))
        except HandleRetiredError:
            logger.info("reconnect superseded", generation=handle.generation)
            return
        except ClientConnectionError as e:
            logger.warning("reconnect failed", generation=handle.generation, error=str(e))
            if self._connection.is_current(handle):
                await self._connection.close(handle)
            self._set_context(connection_lost(self._context, reconnecting=False))
            return
        logger.info("reconnect sent", game_id=target.game_id, generation=handle.generation)

    async def _teardown(self) -> None:
        self._reconnection.cancel()
        self._notice_expiry.cancel_all()
        await self._connection.close()

    def _expire_notice(self, notice: Notice) -> None:
        self._set_context(clear_notice(self._context, notice.notice_id))

    def _set_context(self, context: SessionContext) -> None:
        previous = self._context
        if context is previous:
            return
        self._context = context
        if context.status is not previous.status:
            logger.info("session status changed", previous=previous.status, status=context.status)
        if context.error is not None and context.error is not previous.error:
            self._notice_expiry.schedule(context.error)
        for listener in list(self._listeners):
            try:
                listener(context)
            except Exception:
                logger.exception("session listener failed", status=context.status)
