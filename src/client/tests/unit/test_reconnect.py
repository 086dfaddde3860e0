import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from client.session.reconnect import RECONNECT_DELAY_SECONDS, ReconnectionCoordinator, ReconnectTarget
from client.tests.helpers import wait_until

TARGET = ReconnectTarget(username="Ada", game_id="game1")


@pytest.fixture
def in_flight():
    return {"value": True}


@pytest.fixture
def attempt():
    return AsyncMock()


@pytest.fixture
def coordinator(attempt, in_flight):
    return ReconnectionCoordinator(attempt=attempt, is_in_flight=lambda: in_flight["value"], delay=0.01)


class TestArm:
    async def test_fires_once_after_delay(self, coordinator, attempt):
        assert coordinator.arm(TARGET)
        assert coordinator.pending
        attempt.assert_not_awaited()

        await wait_until(lambda: not coordinator.pending)
        attempt.assert_awaited_once_with(TARGET)
        assert coordinator.awaiting_confirmation

    async def test_second_arm_while_pending_is_rejected(self, coordinator, attempt):
        assert coordinator.arm(TARGET)
        assert not coordinator.arm(ReconnectTarget(username="Ada", game_id="other"))
        await wait_until(lambda: not coordinator.pending)
        attempt.assert_awaited_once_with(TARGET)

    async def test_unconfirmed_attempt_blocks_rearming(self, coordinator, attempt):
        coordinator.arm(TARGET)
        await wait_until(lambda: not coordinator.pending)
        assert not coordinator.arm(TARGET)
        assert attempt.await_count == 1

    async def test_confirm_allows_rearming(self, coordinator, attempt):
        coordinator.arm(TARGET)
        await wait_until(lambda: not coordinator.pending)
        coordinator.confirm()
        assert not coordinator.awaiting_confirmation

        assert coordinator.arm(TARGET)
        await wait_until(lambda: not coordinator.pending)
        assert attempt.await_count == 2

    async def test_default_delay(self, attempt):
        coordinator = ReconnectionCoordinator(attempt=attempt, is_in_flight=lambda: True)
        with patch("client.session.reconnect.asyncio.sleep", new=AsyncMock()) as sleep:
            coordinator.arm(TARGET)
            await coordinator._task
        sleep.assert_awaited_once_with(RECONNECT_DELAY_SECONDS)
        assert RECONNECT_DELAY_SECONDS == 2.0
        attempt.assert_awaited_once_with(TARGET)


class TestSkipAndCancel:
    async def test_skipped_when_session_left_flight(self, coordinator, attempt, in_flight):
        coordinator.arm(TARGET)
        in_flight["value"] = False
        await asyncio.sleep(0.03)
        attempt.assert_not_awaited()
        assert not coordinator.awaiting_confirmation

    async def test_cancel_prevents_attempt(self, coordinator, attempt):
        coordinator.arm(TARGET)
        coordinator.cancel()
        assert not coordinator.pending
        await asyncio.sleep(0.03)
        attempt.assert_not_awaited()

    async def test_cancel_resets_confirmation(self, coordinator, attempt):
        coordinator.arm(TARGET)
        await wait_until(lambda: not coordinator.pending)
        coordinator.cancel()
        assert not coordinator.awaiting_confirmation
        assert coordinator.arm(TARGET)

    async def test_failing_attempt_is_logged(self, coordinator, attempt, caplog):
        attempt.side_effect = RuntimeError("boom")
        coordinator.arm(TARGET)
        await wait_until(lambda: not coordinator.pending)
        assert "reconnect attempt failed" in caplog.text
