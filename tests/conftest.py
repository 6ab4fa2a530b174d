"""Shared test fixtures for the calidarr test suite."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from calidarr.domain.entities import (
    DatabaseError,
    DownloadLink,
    ExternalMetadata,
    MovieDetails,
    MovieRecord,
    Release,
    TorrentFile,
    TorrentInfo,
)
from calidarr.infrastructure.cache import CacheLayer

MAGNET_1080 = (
    "magnet:?xt=urn:btih:0123456789abcdef0123456789abcdef01234567"
    "&dn=Dune.2021.1080p.BluRay.x264-GROUP&xl=4700000000"
    "&tr=udp%3A%2F%2Ftracker.example.org%3A1337"
)
MAGNET_4K = (
    "magnet:?xt=urn:btih:89abcdef0123456789abcdef0123456789abcdef"
    "&dn=Dune.2021.2160p.WEB-DL.x265"
)


@pytest.fixture()
def magnet_1080() -> str:
    return MAGNET_1080


@pytest.fixture()
def magnet_4k() -> str:
    return MAGNET_4K


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class InMemoryMovieStore:
    """MovieStorePort backed by dicts; ``fail`` makes every call raise."""

    def __init__(self) -> None:
        self.movies: dict[str, MovieRecord] = {}
        self.torrents: dict[str, TorrentInfo] = {}
        self.cache: dict[str, Any] = {}
        self.ttls: dict[str, int] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise DatabaseError("store unavailable")

    async def get_movie(self, movie_id: str) -> MovieRecord | None:
        self._check()
        return self.movies.get(movie_id)

    async def save_movie(self, movie_id: str, record: MovieRecord) -> None:
        self._check()
        self.movies[movie_id] = record

    async def find_movie_by_original_id(
        self, fragment: str
    ) -> tuple[str, MovieRecord] | None:
        self._check()
        for movie_id, record in self.movies.items():
            if record.release is not None and record.release.id == fragment:
                return movie_id, record
            if record.movie_details is not None and record.movie_details.id == fragment:
                return movie_id, record
        return None

    async def find_movie_by_imdb_id(
        self, imdb_id: str
    ) -> tuple[str, MovieRecord] | None:
        self._check()
        for movie_id, record in self.movies.items():
            details = record.movie_details
            if details is not None and details.imdb_id == imdb_id:
                return movie_id, record
        return None

    async def get_torrent(self, key: str) -> TorrentInfo | None:
        self._check()
        return self.torrents.get(key)

    async def save_torrent(self, key: str, info: TorrentInfo) -> None:
        self._check()
        self.torrents[key] = info

    async def get_cache(self, key: str) -> Any:
        self._check()
        return self.cache.get(key)

    async def set_cache(self, key: str, value: Any, ttl_minutes: int) -> None:
        self._check()
        self.cache[key] = value
        self.ttls[key] = ttl_minutes

    async def delete_cache(self, key: str) -> bool:
        self._check()
        return self.cache.pop(key, None) is not None

    async def clear_expired_cache(self) -> int:
        self._check()
        return 0


@pytest.fixture()
def store() -> InMemoryMovieStore:
    return InMemoryMovieStore()


@pytest.fixture()
def cache(store: InMemoryMovieStore) -> CacheLayer:
    return CacheLayer(store, default_ttl_minutes=30)


# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def release() -> Release:
    return Release(
        id="dune-2021",
        title="Dune (2021)",
        original_title="Dune",
        year="2021",
        poster="https://img.example.com/dune.jpg",
        details_link="https://www.cinecalidad.rs/pelicula/dune-2021/",
        quality="1080p",
    )


@pytest.fixture()
def external_meta() -> ExternalMetadata:
    return ExternalMetadata(
        imdb="tt1160419",
        title="Dune",
        original_title="Dune: Part One",
        year=2021,
        poster="https://images.metahub.space/poster/tt1160419.jpg",
        background="https://images.metahub.space/background/tt1160419.jpg",
        description="Paul Atreides leads nomadic tribes in a battle for Arrakis.",
        genres=["Science Fiction", "Adventure"],
        cast=["Timothée Chalamet", "Rebecca Ferguson"],
        director=["Denis Villeneuve"],
        writer="Jon Spaihts, Denis Villeneuve, Eric Roth",
        imdb_rating="8.0",
    )


@pytest.fixture()
def details() -> MovieDetails:
    return MovieDetails(
        title="Dune",
        id="dune-2021",
        imdb_id="tt1160419",
        year="2021",
        source_url="https://www.cinecalidad.rs/pelicula/dune-2021/",
        download_links=(
            DownloadLink(name="1080p Torrent", url=MAGNET_1080, type="magnet"),
            DownloadLink(
                name="4K Mega",
                url="https://mega.nz/file/abc",
                type="download",
            ),
        ),
    )


@pytest.fixture()
def torrent_info() -> TorrentInfo:
    movie = TorrentFile(
        name="Dune.2021.1080p.mkv", size=4_700_000_000, index=0, size_label="4.38 GB"
    )
    return TorrentInfo(
        info_hash="0123456789abcdef0123456789abcdef01234567",
        display_name="Dune.2021.1080p.BluRay.x264-GROUP",
        total_size=4_700_000_000,
        size_label="4.38 GB",
        files=(movie,),
        main_video_file=movie,
        trackers=("udp://tracker.example.org:1337",),
        quality="1080p",
        source="BluRay",
        codec="H.264",
        language="Spanish",
        group="GROUP",
    )


# ---------------------------------------------------------------------------
# Collaborator mocks
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_lister() -> AsyncMock:
    lister = AsyncMock()
    lister.query = AsyncMock(return_value=[])
    lister.get_details = AsyncMock(return_value=None)
    return lister


@pytest.fixture()
def mock_metadata() -> AsyncMock:
    metadata = AsyncMock()
    metadata.get_movie_metadata = AsyncMock(return_value=None)
    return metadata


@pytest.fixture()
def mock_inspector() -> AsyncMock:
    inspector = AsyncMock()
    inspector.get_torrent_info = AsyncMock(return_value=None)
    return inspector
