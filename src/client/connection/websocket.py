import contextlib

import structlog
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from client.connection.exceptions import ConnectionFailedError
from client.connection.protocol import Transport

logger = structlog.get_logger()


class WebSocketTransport(Transport):
    def __init__(self, websocket: ClientConnection) -> None:
        self._websocket = websocket

    async def send_frame(self, data: str) -> None:
        try:
            await self._websocket.send(data)
        except ConnectionClosed:
            raise ConnectionError("WebSocket already closed") from None

    async def receive_frame(self) -> str | bytes:
        try:
            return await self._websocket.recv()
        except ConnectionClosed:
            raise ConnectionError("WebSocket closed by server") from None

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(ConnectionClosed):
            await self._websocket.close(code=code, reason=reason)


async def connect_websocket(url: str) -> WebSocketTransport:
    """Open a WebSocket to the game server.

    Keepalive pings stay on so a silently dead network surfaces as a close.
    """
    try:
        websocket = await connect(url)
    except (OSError, InvalidHandshake, InvalidURI, TimeoutError) as e:
        raise ConnectionFailedError(f"could not connect to {url}: {e}") from e
    logger.debug("websocket connected", url=url)
    return WebSocketTransport(websocket)
