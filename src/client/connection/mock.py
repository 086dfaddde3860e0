import asyncio
import json
from typing import Any

from client.connection.protocol import Transport
from client.messaging.codec import encode
from client.messaging.types import ClientMessage, ServerMessage, parse_client_message

_SERVER_CLOSED = None


class MockTransport(Transport):
    """In-memory transport standing in for the game server."""

    def __init__(self, endpoint: str = "mock://server") -> None:
        self.endpoint = endpoint
        self._inbox: asyncio.Queue[str | bytes | None] = asyncio.Queue()
        self._outbox: list[dict[str, Any]] = []
        self._closed = False
        self._close_code: int | None = None

    @property
    def sent_frames(self) -> list[dict[str, Any]]:
        """Envelopes sent by the client, in order."""
        return self._outbox.copy()

    @property
    def sent_messages(self) -> list[ClientMessage]:
        return [parse_client_message({**frame["payload"], "type": frame["type"]}) for frame in self._outbox]

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def close_code(self) -> int | None:
        return self._close_code

    async def send_frame(self, data: str) -> None:
        if self._closed:
            raise ConnectionError("Connection is closed")
        self._outbox.append(json.loads(data))

    async def receive_frame(self) -> str | bytes:
        if self._closed:
            raise ConnectionError("Connection is closed")
        frame = await self._inbox.get()
        if frame is _SERVER_CLOSED:
            self._closed = True
            raise ConnectionError("Connection closed by server")
        return frame

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self._closed:
            return
        self._closed = True
        self._close_code = code
        self._inbox.put_nowait(_SERVER_CLOSED)

    def simulate_receive(self, message: ServerMessage | dict[str, Any]) -> None:
        """
        Queue a message from the server, either a model or a raw envelope dict.
        """
        if isinstance(message, dict):
            self._inbox.put_nowait(json.dumps(message))
        else:
            self._inbox.put_nowait(encode(message))

    def simulate_receive_raw(self, frame: str | bytes) -> None:
        """
        Queue an arbitrary frame, bypassing encoding.
        """
        self._inbox.put_nowait(frame)

    def simulate_server_close(self) -> None:
        self._inbox.put_nowait(_SERVER_CLOSED)


class MockConnector:
    """
    Connector that hands out MockTransports.

    hold() makes connection attempts wait until release(); fail_next() makes
    the next attempt raise instead of connecting.
    """

    def __init__(self) -> None:
        self.transports: list[MockTransport] = []
        self.endpoints: list[str] = []
        self._failures: list[OSError] = []
        self._gate: asyncio.Event | None = None

    @property
    def latest(self) -> MockTransport:
        return self.transports[-1]

    @property
    def attempts(self) -> int:
        return len(self.endpoints)

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()
            self._gate = None

    def fail_next(self, error: OSError | None = None) -> None:
        self._failures.append(error or ConnectionRefusedError("connection refused"))

    async def __call__(self, endpoint: str) -> MockTransport:
        self.endpoints.append(endpoint)
        gate = self._gate
        if gate is not None:
            await gate.wait()
        if self._failures:
            raise self._failures.pop(0)
        transport = MockTransport(endpoint)
        self.transports.append(transport)
        return transport

