"""Typed session errors.

Pure transition functions raise these; GameSession converts the expected
ones into notices at the intent boundary.
"""


class SessionError(Exception):
    """Base exception for rejected session intents."""


class UsernameValidationError(SessionError):
    """Username is empty after trimming or longer than the allowed maximum."""


class InvalidTransitionError(SessionError):
    """Intent is not applicable in the current session status.

    Attributes:
        intent: Name of the rejected intent (e.g. "join", "play_again").
        status: Session status at the time of the intent.

    """

    def __init__(self, *, intent: str, status: str) -> None:
        self.intent = intent
        self.status = status
        super().__init__(f"cannot {intent} while {status}")
