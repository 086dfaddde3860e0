"""Own the single live connection to the game server."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

import structlog

from client.connection.exceptions import (
    ClientConnectionError,
    ConnectionFailedError,
    ConnectionNotOpenError,
    HandleRetiredError,
    OpenTimeoutError,
)
from client.messaging.codec import DecodeError, decode, encode

if TYPE_CHECKING:
    from client.connection.protocol import Connector, Transport
    from client.messaging.types import ClientMessage, ServerMessage

logger = structlog.get_logger()


class HandleState(StrEnum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class ConnectionListener(Protocol):
    """Receiver of lifecycle events for the current connection.

    Events from a superseded handle are never delivered.
    """

    async def on_open(self, handle: ConnectionHandle) -> None: ...

    async def on_frame(self, handle: ConnectionHandle, message: ServerMessage) -> None: ...

    async def on_closed(self, handle: ConnectionHandle, *, was_expected: bool) -> None: ...


@dataclass(eq=False)
class ConnectionHandle:
    """One connection attempt, tagged with a generation number.

    Lifecycle:
    - Created by ConnectionManager.open() in CONNECTING state
    - OPEN once the transport is established (settles the open signal)
    - CLOSING when closed or retired by the owner
    - CLOSED when the reader task finishes; never reused afterwards
    """

    generation: int
    endpoint: str
    state: HandleState = HandleState.CONNECTING
    close_requested: bool = False
    transport: Transport | None = field(default=None, repr=False)
    task: asyncio.Task[None] | None = field(default=None, repr=False)
    _settled: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    _failure: ClientConnectionError | None = field(default=None, repr=False)

    @property
    def is_open(self) -> bool:
        return self.state is HandleState.OPEN

    def settle(self, failure: ClientConnectionError | None = None) -> None:
        """Resolve the open signal exactly once; later calls are ignored."""
        if self._settled.is_set():
            return
        self._failure = failure
        self._settled.set()

    async def wait_settled(self) -> None:
        await self._settled.wait()
        if self._failure is not None:
            raise self._failure


class ConnectionManager:
    """
    Hold at most one live connection and report its lifecycle to a listener.

    Opening a new connection retires the previous one. Each handle runs a
    single reader task, so frames are delivered to the listener one at a
    time in arrival order.
    """

    def __init__(self, connector: Connector, listener: ConnectionListener) -> None:
        self._connector = connector
        self._listener = listener
        self._generation = 0
        self._current: ConnectionHandle | None = None

    @property
    def current(self) -> ConnectionHandle | None:
        return self._current

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, handle: ConnectionHandle) -> bool:
        return handle is self._current

    def open(self, endpoint: str) -> ConnectionHandle:
        """Start connecting to endpoint and return the new current handle."""
        previous = self._current
        self._generation += 1
        handle = ConnectionHandle(generation=self._generation, endpoint=endpoint)
        self._current = handle
        if previous is not None:
            self._retire(previous)
        logger.info("opening connection", generation=handle.generation, endpoint=endpoint)
        handle.task = asyncio.create_task(self._run(handle), name=f"connection-{handle.generation}")
        return handle

    async def wait_open(self, handle: ConnectionHandle, timeout: float) -> None:
        """
        Suspend until handle is open.

        Raises OpenTimeoutError, HandleRetiredError if the handle is superseded
        or closed first, or ConnectionFailedError if the transport failed.
        """
        try:
            await asyncio.wait_for(handle.wait_settled(), timeout)
        except TimeoutError:
            raise OpenTimeoutError(f"connection {handle.generation} did not open within {timeout}s") from None

    async def send(self, handle: ConnectionHandle | None, message: ClientMessage) -> None:
        """
        Send a message on handle.

        Raises ConnectionNotOpenError unless handle is the current open
        connection and the transport accepts the frame.
        """
        if handle is None or not self.is_current(handle) or not handle.is_open or handle.transport is None:
            state = handle.state if handle is not None else "missing"
            raise ConnectionNotOpenError(f"cannot send {message.type}: connection {state}")
        try:
            await handle.transport.send_frame(encode(message))
        except ConnectionError as e:
            raise ConnectionNotOpenError(f"cannot send {message.type}: {e}") from e
        logger.debug("message sent", message_type=message.type, generation=handle.generation)

    async def close(self, handle: ConnectionHandle | None = None) -> None:
        """Close handle (default: the current one) as an expected closure."""
        handle = handle or self._current
        if handle is None or handle.state is HandleState.CLOSED:
            return
        handle.close_requested = True
        handle.state = HandleState.CLOSING
        handle.settle(HandleRetiredError(f"connection {handle.generation} closed before opening"))
        task = handle.task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        # a task cancelled before its first step never reaches its finally block
        await self._finish(handle)

    def _retire(self, handle: ConnectionHandle) -> None:
        if handle.state is HandleState.CLOSED:
            return
        logger.debug("retiring connection", generation=handle.generation)
        handle.close_requested = True
        handle.state = HandleState.CLOSING
        handle.settle(HandleRetiredError(f"connection {handle.generation} was superseded"))
        if handle.task is not None and not handle.task.done() and handle.task is not asyncio.current_task():
            handle.task.cancel()

    async def _run(self, handle: ConnectionHandle) -> None:
        try:
            if await self._establish(handle):
                await self._read_frames(handle)
        except ConnectionError as e:
            logger.info("connection lost", generation=handle.generation, error=str(e))
        finally:
            await self._finish(handle)

    async def _establish(self, handle: ConnectionHandle) -> bool:
        try:
            transport = await self._connector(handle.endpoint)
        except OSError as e:
            logger.warning("connection failed", generation=handle.generation, error=str(e))
            handle.settle(ConnectionFailedError(str(e)))
            return False

        handle.transport = transport
        if handle.close_requested:
            return False

        handle.state = HandleState.OPEN
        handle.settle()
        logger.info("connection opened", generation=handle.generation)
        await self._listener.on_open(handle)
        return True

    async def _read_frames(self, handle: ConnectionHandle) -> None:
        transport = handle.transport
        if transport is None:
            return
        while not handle.close_requested:
            raw = await transport.receive_frame()
            try:
                message = decode(raw)
            except DecodeError as e:
                logger.warning("discarding undecodable frame", generation=handle.generation, error=str(e))
                continue
            if handle.close_requested:
                return
            await self._listener.on_frame(handle, message)

    async def _finish(self, handle: ConnectionHandle) -> None:
        if handle.state is HandleState.CLOSED:
            return
        handle.state = HandleState.CLOSED
        handle.settle(ConnectionFailedError(f"connection {handle.generation} closed before opening"))
        if handle.transport is not None:
            with contextlib.suppress(ConnectionError, RuntimeError):
                await handle.transport.close()

        if not self.is_current(handle):
            logger.debug("ignoring close of retired connection", generation=handle.generation)
            return
        logger.info("connection closed", generation=handle.generation, was_expected=handle.close_requested)
        await self._listener.on_closed(handle, was_expected=handle.close_requested)
