"""Expire transient notices after their display window."""

import asyncio
from collections.abc import Callable

import structlog

from client.session.models import Notice, NoticeKind

logger = structlog.get_logger()

# Callback type: (expired notice) -> None
ExpireCallback = Callable[[Notice], None]


class NoticeExpiry:
    """Run one expiry timer per notice kind.

    Scheduling a notice replaces the pending timer for the same kind, so a
    newer error is never cleared by an older error's timer. The callback
    decides whether the notice is still on screen.
    """

    def __init__(self, on_expire: ExpireCallback) -> None:
        self._on_expire = on_expire
        self._tasks: dict[NoticeKind, asyncio.Task[None]] = {}

    def schedule(self, notice: Notice) -> None:
        """Start the expiry timer for notice; notices without a ttl never expire."""
        self.cancel(notice.kind)
        if notice.ttl_seconds is None:
            return
        self._tasks[notice.kind] = asyncio.create_task(self._run_timer(notice))

    def cancel(self, kind: NoticeKind) -> None:
        task = self._tasks.pop(kind, None)
        if task is not None and not task.done():
            task.cancel()

    def cancel_all(self) -> None:
        for kind in list(self._tasks):
            self.cancel(kind)

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    async def _run_timer(self, notice: Notice) -> None:
        await asyncio.sleep(notice.ttl_seconds or 0)
        if self._tasks.get(notice.kind) is asyncio.current_task():
            del self._tasks[notice.kind]
        logger.debug("notice expired", notice_id=notice.notice_id, kind=notice.kind)
        try:
            self._on_expire(notice)
        except Exception:
            logger.exception("notice expiry callback failed", notice_id=notice.notice_id)
