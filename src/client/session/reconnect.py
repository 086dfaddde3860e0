"""Decide whether and when to rebind a dropped connection to its session."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

RECONNECT_DELAY_SECONDS = 2.0

logger = structlog.get_logger()


@dataclass(frozen=True)
class ReconnectTarget:
    """Copy of the identity needed to rebind: who we are and which game."""

    username: str
    game_id: str


# Callback type: (target) -> Awaitable[None]; performs open -> wait -> send reconnect
AttemptCallback = Callable[[ReconnectTarget], Awaitable[None]]


class ReconnectionCoordinator:
    """
    Schedule at most one delayed reconnection attempt per connection drop.

    Lifecycle:
    - arm(): a drop happened mid-session; schedule one attempt after the delay
    - the attempt fires only if the token is unchanged and the session is
      still in flight
    - confirm(): the server answered on the new connection; arming is allowed again
    - cancel(): teardown; any pending attempt becomes a no-op

    An attempt that fired but was never confirmed blocks further arming,
    so a failed reconnect is surfaced to the user instead of retried.
    """

    def __init__(
        self,
        attempt: AttemptCallback,
        is_in_flight: Callable[[], bool],
        delay: float = RECONNECT_DELAY_SECONDS,
    ) -> None:
        self._attempt = attempt
        self._is_in_flight = is_in_flight
        self._delay = delay
        self._token = 0
        self._task: asyncio.Task[None] | None = None
        self._awaiting_confirmation = False

    @property
    def pending(self) -> bool:
        """True while an attempt is scheduled or running."""
        return self._task is not None and not self._task.done()

    @property
    def awaiting_confirmation(self) -> bool:
        return self._awaiting_confirmation

    def arm(self, target: ReconnectTarget) -> bool:
        """Schedule one attempt. Return False if one is already pending or unconfirmed."""
        if self.pending or self._awaiting_confirmation:
            logger.info(
                "reconnect not armed",
                game_id=target.game_id,
                pending=self.pending,
                awaiting_confirmation=self._awaiting_confirmation,
            )
            return False
        self._token += 1
        logger.info("reconnect armed", game_id=target.game_id, delay=self._delay, token=self._token)
        self._task = asyncio.create_task(self._fire_after_delay(self._token, target))
        return True

    def confirm(self) -> None:
        """Mark the last attempt successful."""
        if self._awaiting_confirmation:
            logger.info("reconnect confirmed", token=self._token)
        self._awaiting_confirmation = False

    def cancel(self) -> None:
        """Invalidate any scheduled or running attempt."""
        self._token += 1
        self._awaiting_confirmation = False
        task = self._task
        self._task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _fire_after_delay(self, token: int, target: ReconnectTarget) -> None:
        await asyncio.sleep(self._delay)
        if token != self._token:
            return
        if not self._is_in_flight():
            logger.info("skipping reconnect, session no longer in flight", game_id=target.game_id)
            return
        self._awaiting_confirmation = True
        logger.info("reconnecting", game_id=target.game_id, username=target.username)
        try:
            await self._attempt(target)
        except Exception:
            logger.exception("reconnect attempt failed", game_id=target.game_id)
