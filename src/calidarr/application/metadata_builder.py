"""Merge external, scraped and listing data into one CanonicalMeta.

All builders share one field discipline: first non-empty candidate wins,
every value is validated, invalid values are dropped (never substituted),
and empty fields are omitted from the protocol output.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

import structlog

from calidarr.domain.entities import (
    CanonicalMeta,
    ExternalMetadata,
    MovieDetails,
    MovieRecord,
    Release,
)

log = structlog.get_logger(__name__)

UNKNOWN_TITLE = "Unknown Title"

_MIN_YEAR = 1900
_MAX_YEAR_AHEAD = 5
_MAX_DESCRIPTION = 1000
_MIN_DESCRIPTION = 10
_MAX_GENRES = 10
_MAX_CAST = 8
_MAX_CREW = 3

_WHITESPACE_RE = re.compile(r"\s+")
_BYTES_PER_GB = 1024**3


def _current_year() -> int:
    return datetime.now(timezone.utc).year


# ---------------------------------------------------------------------------
# Field validators
# ---------------------------------------------------------------------------


def select_best_title(*candidates: str | None) -> str:
    """First non-empty title, preferring one without a parenthetical."""
    valid = [c.strip() for c in candidates if isinstance(c, str) and c.strip()]
    if not valid:
        return UNKNOWN_TITLE
    for title in valid:
        if "(" not in title:
            return title
    return valid[0]


def clean_url(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    url = value.strip()
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return url


def first_valid_url(*candidates: Any) -> str | None:
    for candidate in candidates:
        url = clean_url(candidate)
        if url:
            return url
    return None


def parse_year(value: Any) -> int | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        year = int(str(value).strip()[:4]) if isinstance(value, str) else int(value)
    except (TypeError, ValueError):
        return None
    if year < _MIN_YEAR or year > _current_year() + _MAX_YEAR_AHEAD:
        return None
    return year


def clean_description(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = _WHITESPACE_RE.sub(" ", value.strip())[:_MAX_DESCRIPTION]
    return cleaned if len(cleaned) > _MIN_DESCRIPTION else None


def _fallback_description(release: Release | None) -> str | None:
    if release is None or not release.quality:
        return None
    description = f"Película disponible en calidad {release.quality}"
    if release.size:
        description += f" | Tamaño: {round(release.size / _BYTES_PER_GB, 2)}GB"
    return description


def build_description(
    external: ExternalMetadata | None, release: Release | None
) -> str | None:
    if external is not None and external.description:
        return clean_description(external.description)
    return _fallback_description(release)


def _as_items(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split(",")
    if isinstance(value, Iterable):
        return list(value)
    return [value]


def normalize_list(value: Any, *, limit: int) -> list[str]:
    """Accept a list or comma-separated string; trim, drop empties, cap."""
    items = [str(item).strip() for item in _as_items(value) if item is not None]
    return [item for item in items if item][:limit]


def normalize_genres(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    return normalize_list(value, limit=_MAX_GENRES)


def parse_rating(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    if rating != rating or rating < 0 or rating > 10:  # NaN check
        return None
    return round(rating, 1)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_from_external(movie_id: str, external: ExternalMetadata) -> CanonicalMeta:
    """Build meta for an IMDb id, trusting the provider fully."""
    meta = CanonicalMeta(
        id=movie_id,
        name=select_best_title(external.original_title, external.title),
        poster=clean_url(external.poster),
        background=first_valid_url(external.background, external.poster),
        year=parse_year(external.year),
        description=clean_description(external.description),
        genres=normalize_genres(external.genres),
        cast=normalize_list(external.cast, limit=_MAX_CAST),
        director=normalize_list(external.director, limit=_MAX_CREW),
        writer=normalize_list(external.writer, limit=_MAX_CREW),
        imdb_rating=parse_rating(external.imdb_rating),
        imdb_id=movie_id,
    )
    log.debug(
        "meta_built",
        id=movie_id,
        source="external",
        title=meta.name,
        genres=len(meta.genres),
        cast=len(meta.cast),
    )
    return meta


def _merge(
    movie_id: str,
    release: Release,
    details: MovieDetails | None,
    external: ExternalMetadata | None,
) -> CanonicalMeta:
    ext = external or ExternalMetadata()

    year_source = ext.year if ext.year not in (None, "") else release.year
    genres_source = ext.genres or ([release.category] if release.category else None)

    return CanonicalMeta(
        id=movie_id,
        name=select_best_title(
            ext.original_title, ext.title, release.original_title, release.title
        ),
        poster=first_valid_url(ext.poster, release.poster),
        background=first_valid_url(ext.background, ext.poster, release.poster),
        year=parse_year(year_source),
        description=build_description(external, release),
        genres=normalize_genres(genres_source),
        cast=normalize_list(ext.cast, limit=_MAX_CAST),
        director=normalize_list(ext.director, limit=_MAX_CREW),
        writer=normalize_list(ext.writer, limit=_MAX_CREW),
        imdb_rating=parse_rating(ext.imdb_rating),
        imdb_id=details.imdb_id if details is not None else None,
        release_info=release.quality or None,
    )


def build_from_catalog_data(record: MovieRecord, movie_id: str) -> CanonicalMeta:
    """Complete a persisted record that so far only holds listing data."""
    if record.release is None:
        raise ValueError("record has no release data")
    meta = _merge(movie_id, record.release, record.movie_details, record.external_meta)
    log.debug(
        "meta_built",
        id=movie_id,
        source="catalog",
        title=meta.name,
        has_imdb=meta.imdb_id is not None,
    )
    return meta


def build_from_scraped_data(
    *,
    movie_id: str,
    release: Release,
    movie_details: MovieDetails | None,
    external_meta: ExternalMetadata | None,
) -> CanonicalMeta:
    meta = _merge(movie_id, release, movie_details, external_meta)
    log.debug(
        "meta_built",
        id=movie_id,
        source="scraped",
        title=meta.name,
        has_imdb=meta.imdb_id is not None,
        quality=release.quality,
    )
    return meta
