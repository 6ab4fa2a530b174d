"""Request-level cache over the persisted store's ``cache:`` namespace."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

from calidarr.domain.ports import MovieStorePort

log = structlog.get_logger(__name__)

DEFAULT_TTL_MINUTES = 30
_DEGRADED_ERROR_RATE = 0.1


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    sets: int = 0
    errors: int = 0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return round(self.hits / self.total_requests * 100, 2)


class CacheLayer:
    """CachePort implementation with hit/miss accounting.

    Store failures never propagate: a failed read is a miss, a failed
    write returns False. Both count towards ``errors``.
    """

    def __init__(
        self, store: MovieStorePort, default_ttl_minutes: int = DEFAULT_TTL_MINUTES
    ) -> None:
        self._store = store
        self.default_ttl_minutes = default_ttl_minutes
        self._stats = CacheStats()

    async def get(self, key: str) -> Any:
        try:
            value = await self._store.get_cache(key)
        except Exception as e:
            self._stats.errors += 1
            self._stats.misses += 1
            log.warning("cache_get_failed", key=key, error=str(e))
            return None

        if value is None:
            self._stats.misses += 1
            log.debug("cache_miss", key=key)
            return None

        self._stats.hits += 1
        log.debug("cache_hit", key=key)
        return value

    async def set(
        self, key: str, value: Any, *, ttl_minutes: int | None = None
    ) -> bool:
        ttl = self.default_ttl_minutes if ttl_minutes is None else ttl_minutes
        try:
            await self._store.set_cache(key, value, ttl)
        except Exception as e:
            self._stats.errors += 1
            log.warning("cache_set_failed", key=key, error=str(e))
            return False
        self._stats.sets += 1
        log.debug("cache_set", key=key, ttl_minutes=ttl)
        return True

    async def delete(self, key: str) -> bool:
        try:
            return await self._store.delete_cache(key)
        except Exception as e:
            self._stats.errors += 1
            log.warning("cache_delete_failed", key=key, error=str(e))
            return False

    async def get_or_set(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
        *,
        ttl_minutes: int | None = None,
    ) -> Any:
        """Cached value, or the producer's result (stored unless None).

        Producer exceptions propagate unchanged.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await producer()
        if value is not None:
            await self.set(key, value, ttl_minutes=ttl_minutes)
        return value

    def stats(self) -> dict[str, Any]:
        return {
            "hits": self._stats.hits,
            "misses": self._stats.misses,
            "sets": self._stats.sets,
            "errors": self._stats.errors,
            "total_requests": self._stats.total_requests,
            "hit_rate": self._stats.hit_rate,
        }

    def reset_stats(self) -> None:
        self._stats = CacheStats()

    def health(self) -> dict[str, Any]:
        total = self._stats.total_requests
        degraded = total > 0 and self._stats.errors > total * _DEGRADED_ERROR_RATE
        return {
            "status": "degraded" if degraded else "healthy",
            "stats": self.stats(),
        }
