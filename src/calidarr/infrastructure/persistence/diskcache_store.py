"""Persisted movie store - SQLite via diskcache, no daemon process."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import structlog
from diskcache import Cache as DiskCache

from calidarr.domain.entities import DatabaseError, MovieRecord, TorrentInfo
from calidarr.infrastructure.persistence.records import (
    deserialize_record,
    deserialize_torrent,
    serialize_record,
    serialize_torrent,
)

log = structlog.get_logger(__name__)

T = TypeVar("T")

MOVIE_PREFIX = "movie:"
TORRENT_PREFIX = "torrent:"
CACHE_PREFIX = "cache:"

_SECONDS_PER_DAY = 86_400


class DiskcacheMovieStore:
    """Async wrapper over one diskcache.Cache holding three namespaces.

    - ``movie:{id}`` JSON MovieRecord, expires ``movie_retention_days``
      after the last save.
    - ``torrent:{key}`` JSON TorrentInfo, never expires.
    - ``cache:{key}`` JSON value with a per-entry TTL in minutes.

    Sync disk I/O runs in ``asyncio.to_thread`` under a semaphore (SQLite
    lock contention). Every backend failure surfaces as ``DatabaseError``.
    Use as ``async with DiskcacheMovieStore(...) as store:``.
    """

    def __init__(
        self,
        directory: str | Path = "./data",
        movie_retention_days: int = 7,
        max_concurrent: int = 10,
    ) -> None:
        self.directory = Path(directory)
        self.movie_retention_seconds = movie_retention_days * _SECONDS_PER_DAY
        self._cache: DiskCache | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

    # --- Context Manager ---
    async def __aenter__(self) -> DiskcacheMovieStore:
        if self._cache is None:
            try:
                self._cache = await asyncio.to_thread(
                    DiskCache, str(self.directory), eviction_policy="none"
                )
            except Exception as e:
                raise DatabaseError(f"Failed to open store: {e}") from e
            log.info("store_opened", path=str(self.directory))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._cache is not None:
            await asyncio.to_thread(self._cache.close)
            self._cache = None
            log.info("store_closed", directory=str(self.directory))

    @property
    def is_open(self) -> bool:
        return self._cache is not None

    async def _run(self, op: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        if self._cache is None:
            raise DatabaseError("Store not initialized. Use 'async with store:'")
        async with self._semaphore:
            try:
                return await asyncio.to_thread(fn, *args, **kwargs)
            except DatabaseError:
                raise
            except Exception as e:
                log.warning("store_operation_failed", op=op, error=str(e))
                raise DatabaseError(f"{op} failed: {e}") from e

    # --- Movies ---
    async def get_movie(self, movie_id: str) -> MovieRecord | None:
        raw = await self._run("get_movie", self._cache_get, f"{MOVIE_PREFIX}{movie_id}")
        if raw is None:
            log.debug("store_movie_miss", id=movie_id)
            return None
        try:
            return deserialize_record(raw)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise DatabaseError(f"Corrupt movie record {movie_id!r}: {e}") from e

    async def save_movie(self, movie_id: str, record: MovieRecord) -> None:
        await self._run(
            "save_movie",
            self._cache_set,
            f"{MOVIE_PREFIX}{movie_id}",
            serialize_record(record),
            self.movie_retention_seconds,
        )
        log.debug("store_movie_saved", id=movie_id)

    async def find_movie_by_original_id(
        self, fragment: str
    ) -> tuple[str, MovieRecord] | None:
        def matches(record: MovieRecord) -> bool:
            release_id = record.release.id if record.release else None
            details_id = record.movie_details.id if record.movie_details else None
            return fragment in (release_id, details_id)

        found = await self._run("find_movie", self._scan_movies, matches)
        log.debug("store_movie_scan", fragment=fragment, found=found is not None)
        return found

    async def find_movie_by_imdb_id(
        self, imdb_id: str
    ) -> tuple[str, MovieRecord] | None:
        def matches(record: MovieRecord) -> bool:
            details = record.movie_details
            return details is not None and details.imdb_id == imdb_id

        found = await self._run("find_movie_imdb", self._scan_movies, matches)
        log.debug("store_movie_imdb_scan", imdb_id=imdb_id, found=found is not None)
        return found

    def _scan_movies(
        self, matches: Callable[[MovieRecord], bool]
    ) -> tuple[str, MovieRecord] | None:
        assert self._cache is not None
        for key in self._cache.iterkeys():
            if not isinstance(key, str) or not key.startswith(MOVIE_PREFIX):
                continue
            raw = self._cache.get(key)
            if raw is None:
                continue
            try:
                record = deserialize_record(raw)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                log.warning("store_movie_corrupt", key=key)
                continue
            if matches(record):
                return key[len(MOVIE_PREFIX) :], record
        return None

    # --- Torrents ---
    async def get_torrent(self, key: str) -> TorrentInfo | None:
        raw = await self._run("get_torrent", self._cache_get, f"{TORRENT_PREFIX}{key}")
        if raw is None:
            return None
        try:
            return deserialize_torrent(raw)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise DatabaseError(f"Corrupt torrent record: {e}") from e

    async def save_torrent(self, key: str, info: TorrentInfo) -> None:
        await self._run(
            "save_torrent",
            self._cache_set,
            f"{TORRENT_PREFIX}{key}",
            serialize_torrent(info),
            None,
        )
        log.debug("store_torrent_saved", info_hash=info.info_hash)

    # --- Generic cache namespace ---
    async def get_cache(self, key: str) -> Any:
        raw = await self._run("get_cache", self._cache_get, f"{CACHE_PREFIX}{key}")
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise DatabaseError(f"Corrupt cache entry {key!r}: {e}") from e

    async def set_cache(self, key: str, value: Any, ttl_minutes: int) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise DatabaseError(f"Value for {key!r} is not JSON-serializable") from e
        await self._run(
            "set_cache",
            self._cache_set,
            f"{CACHE_PREFIX}{key}",
            payload,
            max(0, ttl_minutes) * 60,
        )

    async def delete_cache(self, key: str) -> bool:
        return await self._run(
            "delete_cache", self._cache_delete, f"{CACHE_PREFIX}{key}"
        )

    # --- Maintenance ---
    async def clear_expired_cache(self) -> int:
        """Remove every expired entry (cache and movie namespaces)."""
        removed = await self._run("clear_expired", self._cache_expire)
        log.debug("store_expired_cleared", removed=removed)
        return removed

    async def cleanup(self) -> dict[str, int]:
        removed = await self.clear_expired_cache()
        stats = await self.stats()
        return {"expired_removed": removed, **stats}

    async def stats(self) -> dict[str, int]:
        return await self._run("stats", self._count_namespaces)

    def _count_namespaces(self) -> dict[str, int]:
        assert self._cache is not None
        counts = {"movies": 0, "torrents": 0, "cache_entries": 0}
        for key in self._cache.iterkeys():
            if not isinstance(key, str):
                continue
            if key.startswith(MOVIE_PREFIX):
                counts["movies"] += 1
            elif key.startswith(TORRENT_PREFIX):
                counts["torrents"] += 1
            elif key.startswith(CACHE_PREFIX):
                counts["cache_entries"] += 1
        return counts

    # --- Sync primitives (run in worker threads) ---
    def _cache_get(self, key: str) -> Any:
        assert self._cache is not None
        return self._cache.get(key, default=None)

    def _cache_set(self, key: str, value: str, expire: float | None) -> None:
        assert self._cache is not None
        self._cache.set(key, value, expire=expire)

    def _cache_delete(self, key: str) -> bool:
        assert self._cache is not None
        return bool(self._cache.delete(key))

    def _cache_expire(self) -> int:
        assert self._cache is not None
        return int(self._cache.expire())
