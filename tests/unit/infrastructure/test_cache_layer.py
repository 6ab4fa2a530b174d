"""Tests for CacheLayer accounting and degradation."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest

from calidarr.infrastructure.cache import CacheLayer

if TYPE_CHECKING:
    from tests.conftest import InMemoryMovieStore


class TestGetSet:
    async def test_miss_then_hit(
        self, cache: CacheLayer, store: InMemoryMovieStore
    ) -> None:
        assert await cache.get("k") is None
        assert await cache.set("k", {"a": 1}) is True
        assert await cache.get("k") == {"a": 1}

        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["sets"] == 1
        assert stats["hit_rate"] == 50.0

    async def test_default_ttl(
        self, cache: CacheLayer, store: InMemoryMovieStore
    ) -> None:
        await cache.set("k", 1)
        await cache.set("j", 1, ttl_minutes=5)
        assert store.ttls == {"k": 30, "j": 5}

    async def test_delete(self, cache: CacheLayer) -> None:
        await cache.set("k", 1)
        assert await cache.delete("k") is True
        assert await cache.delete("k") is False

    def test_empty_hit_rate(self, cache: CacheLayer) -> None:
        assert cache.stats()["hit_rate"] == 0.0


# ---------------------------------------------------------------------------
# Store failures
# ---------------------------------------------------------------------------


class TestDegradation:
    async def test_failed_read_is_a_miss(
        self, cache: CacheLayer, store: InMemoryMovieStore
    ) -> None:
        store.fail = True
        assert await cache.get("k") is None
        assert cache.stats()["errors"] == 1
        assert cache.stats()["misses"] == 1

    async def test_failed_write_returns_false(
        self, cache: CacheLayer, store: InMemoryMovieStore
    ) -> None:
        store.fail = True
        assert await cache.set("k", 1) is False
        assert await cache.delete("k") is False
        assert cache.stats()["errors"] == 2

    async def test_health_degraded_on_error_rate(
        self, cache: CacheLayer, store: InMemoryMovieStore
    ) -> None:
        assert cache.health()["status"] == "healthy"
        store.fail = True
        await cache.get("k")
        assert cache.health()["status"] == "degraded"

    async def test_reset_stats(
        self, cache: CacheLayer, store: InMemoryMovieStore
    ) -> None:
        store.fail = True
        await cache.get("k")
        cache.reset_stats()
        assert cache.health()["status"] == "healthy"


# ---------------------------------------------------------------------------
# get_or_set
# ---------------------------------------------------------------------------


class TestGetOrSet:
    async def test_producer_called_once(self, cache: CacheLayer) -> None:
        producer = AsyncMock(return_value=[1, 2])

        assert await cache.get_or_set("k", producer) == [1, 2]
        assert await cache.get_or_set("k", producer) == [1, 2]
        producer.assert_awaited_once()

    async def test_none_not_stored(
        self, cache: CacheLayer, store: InMemoryMovieStore
    ) -> None:
        assert await cache.get_or_set("k", AsyncMock(return_value=None)) is None
        assert "k" not in store.cache

    async def test_producer_errors_propagate(self, cache: CacheLayer) -> None:
        with pytest.raises(ValueError):
            await cache.get_or_set("k", AsyncMock(side_effect=ValueError("x")))
