"""Collapse concurrent identical calls into one in-flight task."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Per-key in-flight map.

    The first caller for a key starts the work; callers arriving while it
    runs await the same task. The key is released as soon as the task
    finishes, so later calls start fresh (caching is someone else's job).
    A cancelled waiter does not cancel the shared task.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Task[T]] = {}

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            task.add_done_callback(lambda _t, k=key: self._inflight.pop(k, None))
        else:
            log.debug("single_flight_joined", key=key)
        return await asyncio.shield(task)
