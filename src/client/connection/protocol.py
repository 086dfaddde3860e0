"""Abstract transport interface for the game server connection."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable


class Transport(ABC):
    """
    One established bidirectional connection to the game server.

    This abstraction allows connection and session logic to be tested
    without a real WebSocket. Implementations raise ConnectionError from
    send_frame/receive_frame once the connection is gone.
    """

    @abstractmethod
    async def send_frame(self, data: str) -> None:
        """
        Send one text frame to the server.
        """
        ...

    @abstractmethod
    async def receive_frame(self) -> str | bytes:
        """
        Wait for the next frame from the server.
        """
        ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None:
        """
        Close the connection. Safe to call more than once.
        """
        ...


# Establishes a transport for an endpoint URL; raises OSError (usually a
# ConnectionError) when the server cannot be reached.
Connector = Callable[[str], Awaitable[Transport]]
