"""Background maintenance: periodic sweep of expired store entries."""

from __future__ import annotations

import asyncio
from typing import Protocol

import structlog

log = structlog.get_logger(__name__)


class SweepableStore(Protocol):
    async def cleanup(self) -> dict[str, int]: ...


class MaintenanceScheduler:
    """Sweeps the persisted store every ``interval_seconds``.

    Call :meth:`run_forever` as an asyncio task during app lifespan.
    A failed sweep is logged and retried on the next tick.
    """

    def __init__(self, store: SweepableStore, interval_seconds: float = 300) -> None:
        self._store = store
        self._interval = interval_seconds

    async def run_forever(self) -> None:
        log.info("maintenance_scheduler_started", interval_seconds=self._interval)
        try:
            while True:
                await asyncio.sleep(self._interval)
                try:
                    await self.run_once()
                except Exception:
                    log.error("maintenance_sweep_error", exc_info=True)
        except asyncio.CancelledError:
            log.info("maintenance_scheduler_cancelled")
            raise

    async def run_once(self) -> dict[str, int]:
        result = await self._store.cleanup()
        log.info("maintenance_sweep_done", **result)
        return result
