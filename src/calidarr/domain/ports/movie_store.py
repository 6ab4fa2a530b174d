"""Port for the persisted movie / torrent / cache store."""

from __future__ import annotations

from typing import Any, Protocol

from calidarr.domain.entities import MovieRecord, TorrentInfo


class MovieStorePort(Protocol):
    """Durable storage contract.

    Single-key operations only; last write wins. Implementations raise
    ``DatabaseError`` on backend failures.
    """

    async def get_movie(self, movie_id: str) -> MovieRecord | None: ...

    async def save_movie(self, movie_id: str, record: MovieRecord) -> None: ...

    async def find_movie_by_original_id(
        self, fragment: str
    ) -> tuple[str, MovieRecord] | None:
        """Scan records for ``release.id`` or ``movie_details.id`` == fragment."""
        ...

    async def find_movie_by_imdb_id(
        self, imdb_id: str
    ) -> tuple[str, MovieRecord] | None:
        """Scan records whose ``movie_details.imdb_id`` equals ``imdb_id``."""
        ...

    async def get_torrent(self, key: str) -> TorrentInfo | None: ...

    async def save_torrent(self, key: str, info: TorrentInfo) -> None: ...

    async def get_cache(self, key: str) -> Any: ...

    async def set_cache(self, key: str, value: Any, ttl_minutes: int) -> None: ...

    async def delete_cache(self, key: str) -> bool: ...

    async def clear_expired_cache(self) -> int: ...
