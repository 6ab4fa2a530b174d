"""Tests for MaintenanceScheduler."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from calidarr.infrastructure.maintenance import MaintenanceScheduler

_ASYNCIO = "calidarr.infrastructure.maintenance.scheduler.asyncio"


@pytest.fixture()
def sweepable() -> AsyncMock:
    store = AsyncMock()
    store.cleanup = AsyncMock(return_value={"expired_removed": 2, "movies": 1})
    return store


class TestRunOnce:
    async def test_returns_sweep_result(self, sweepable: AsyncMock) -> None:
        scheduler = MaintenanceScheduler(sweepable, interval_seconds=1)
        assert await scheduler.run_once() == {"expired_removed": 2, "movies": 1}
        sweepable.cleanup.assert_awaited_once()


class TestRunForever:
    async def test_failed_sweep_does_not_stop_loop(
        self, sweepable: AsyncMock
    ) -> None:
        sweepable.cleanup.side_effect = [RuntimeError("disk"), {"movies": 0}]
        sleeps = AsyncMock(side_effect=[None, None, asyncio.CancelledError()])
        scheduler = MaintenanceScheduler(sweepable, interval_seconds=60)

        with patch(_ASYNCIO) as m:
            m.sleep = sleeps
            m.CancelledError = asyncio.CancelledError
            with pytest.raises(asyncio.CancelledError):
                await scheduler.run_forever()

        assert sweepable.cleanup.await_count == 2
        sleeps.assert_awaited_with(60)

    async def test_cancel_running_task(self, sweepable: AsyncMock) -> None:
        scheduler = MaintenanceScheduler(sweepable, interval_seconds=3600)
        task = asyncio.create_task(scheduler.run_forever())
        await asyncio.sleep(0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        sweepable.cleanup.assert_not_awaited()
