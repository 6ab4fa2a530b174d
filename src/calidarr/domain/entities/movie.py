"""Domain entities for movie resolution.

Pure value objects. No framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .meta import CanonicalMeta

DownloadLinkType = Literal["magnet", "download"]


@dataclass(frozen=True)
class Release:
    """A candidate entry discovered by listing or searching the site."""

    id: str  # site slug, e.g. "oppenheimer" or "oppenheimer-4k"
    title: str = ""
    original_title: str = ""
    year: str | None = None
    poster: str | None = None
    details_link: str = ""
    quality: str = "1080p"
    category: str = "movie"
    size: int | None = None  # bytes, rarely known from listings
    imdb_id: str | None = None


@dataclass(frozen=True)
class ReleaseQuery:
    """Listing request: empty search means "latest releases"."""

    search: str = ""
    skip: int = 0
    limit: int = 20

    @property
    def is_search(self) -> bool:
        return bool(self.search.strip())


@dataclass(frozen=True)
class DownloadLink:
    name: str
    url: str
    type: DownloadLinkType = "magnet"

    @property
    def is_magnet(self) -> bool:
        return self.url.startswith("magnet:")


@dataclass(frozen=True)
class ExternalMetadata:
    """Canonical metadata fetched from the external metadata provider.

    ``cast``, ``director`` and ``writer`` keep whatever shape the provider
    returned (list or comma-separated string); the metadata builder
    normalizes them.
    """

    imdb: str | None = None
    title: str | None = None
    original_title: str | None = None
    year: int | str | None = None
    poster: str | None = None
    background: str | None = None
    description: str | None = None
    genres: list[str] | str | None = None
    cast: list[str] | str | None = None
    director: list[str] | str | None = None
    writer: list[str] | str | None = None
    imdb_rating: float | str | None = None


@dataclass(frozen=True)
class MovieDetails:
    """Data scraped from a release's detail page."""

    title: str
    id: str | None = None  # site slug of the detail page
    imdb_id: str | None = None
    year: str | None = None
    poster: str | None = None
    description: str | None = None
    source_url: str = ""
    download_links: tuple[DownloadLink, ...] = ()
    external_meta: ExternalMetadata | None = None


@dataclass(frozen=True)
class MovieRecord:
    """Persisted union of everything observed while resolving one id.

    Partial records (only ``release``) are valid and are completed later.
    """

    release: Release | None = None
    movie_details: MovieDetails | None = None
    external_meta: ExternalMetadata | None = None
    meta: CanonicalMeta | None = None
    last_updated: str = ""
