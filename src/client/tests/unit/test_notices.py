import asyncio

import pytest

from client.session.models import Notice, NoticeKind
from client.session.notices import NoticeExpiry
from client.tests.helpers import wait_until


@pytest.fixture
def expired():
    return []


@pytest.fixture
def expiry(expired):
    notice_expiry = NoticeExpiry(on_expire=expired.append)
    yield notice_expiry
    notice_expiry.cancel_all()


class TestNoticeExpiry:
    async def test_expires_after_ttl(self, expiry, expired):
        notice = Notice(kind=NoticeKind.ERROR, text="boom", ttl_seconds=0.01)
        expiry.schedule(notice)
        assert expiry.pending_count == 1
        await wait_until(lambda: expired)
        assert expired == [notice]
        assert expiry.pending_count == 0

    async def test_persistent_notice_never_expires(self, expiry, expired):
        expiry.schedule(Notice(kind=NoticeKind.CONNECTION, text="lost"))
        assert expiry.pending_count == 0
        await asyncio.sleep(0.02)
        assert expired == []

    async def test_newer_notice_replaces_timer_of_same_kind(self, expiry, expired):
        first = Notice(kind=NoticeKind.ERROR, text="first", ttl_seconds=0.01)
        second = Notice(kind=NoticeKind.ERROR, text="second", ttl_seconds=0.05)
        expiry.schedule(first)
        expiry.schedule(second)
        await wait_until(lambda: expired)
        assert expired == [second]

    async def test_kinds_expire_independently(self, expiry, expired):
        error = Notice(kind=NoticeKind.ERROR, text="error", ttl_seconds=0.01)
        info = Notice(kind=NoticeKind.INFO, text="info", ttl_seconds=0.01)
        expiry.schedule(error)
        expiry.schedule(info)
        await wait_until(lambda: len(expired) == 2)
        assert {n.text for n in expired} == {"error", "info"}

    async def test_cancel_all(self, expiry, expired):
        expiry.schedule(Notice(kind=NoticeKind.ERROR, text="boom", ttl_seconds=0.01))
        expiry.cancel_all()
        await asyncio.sleep(0.02)
        assert expired == []
        assert expiry.pending_count == 0

    async def test_callback_failure_is_logged(self, caplog):
        def explode(_notice):
            raise RuntimeError("boom")

        expiry = NoticeExpiry(on_expire=explode)
        expiry.schedule(Notice(kind=NoticeKind.ERROR, text="x", ttl_seconds=0.001))
        await wait_until(lambda: expiry.pending_count == 0)
        await asyncio.sleep(0.005)
        assert "notice expiry callback failed" in caplog.text
