"""Connection-layer failures.

All subclass the builtin ConnectionError so transport code that already
catches ConnectionError keeps working. Every failure here is recoverable:
the session layer converts them into notices or reconnection attempts.
"""


class ClientConnectionError(ConnectionError):
    """Base class for failures raised by the ConnectionManager."""


class ConnectionFailedError(ClientConnectionError):
    """Transport could not be established, or closed before it opened."""


class ConnectionNotOpenError(ClientConnectionError):
    """Send attempted on a handle that is not the current open connection.

    The message was not delivered.
    """


class OpenTimeoutError(ClientConnectionError):
    """Handle did not open within the allowed time."""


class HandleRetiredError(ClientConnectionError):
    """Handle was superseded or closed before it opened."""
