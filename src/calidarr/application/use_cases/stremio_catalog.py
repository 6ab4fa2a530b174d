"""Stremio catalog use case: listing/search pages as MetaPreviews."""

from __future__ import annotations

from typing import Any, Mapping

import structlog

from calidarr.application.metadata_builder import parse_year
from calidarr.domain.entities import MetaPreview, Release, ReleaseQuery
from calidarr.domain.identifiers import parse_catalog_extra, stremio_id_for
from calidarr.domain.ports import CachePort, ReleaseListerPort

log = structlog.get_logger(__name__)

LATEST_CATALOG_ID = "cinecalidad-latest"
SEARCH_CATALOG_ID = "cinecalidad-search"
SUPPORTED_CATALOGS: frozenset[str] = frozenset({LATEST_CATALOG_ID, SEARCH_CATALOG_ID})

_BYTES_PER_GB = 1024**3


def _https_poster(value: str | None) -> str | None:
    if not value or not value.startswith("https://"):
        return None
    return value


def _preview_description(release: Release) -> str:
    parts: list[str] = []
    if release.quality:
        parts.append(f"Quality: {release.quality}")
    if release.size and release.size > 0:
        parts.append(f"Size: {round(release.size / _BYTES_PER_GB, 2)}GB")
    return " | ".join(parts) or "Movie from CineCalidad"


def release_to_preview(release: Release) -> MetaPreview | None:
    """Catalog entry for a release, or None when it has no usable id."""
    stremio_id = stremio_id_for(release.id, release.imdb_id)
    if stremio_id is None:
        return None
    return MetaPreview(
        id=stremio_id,
        name=release.original_title or release.title or "Unknown Title",
        poster=_https_poster(release.poster),
        year=parse_year(release.year),
        description=_preview_description(release),
        genres=[release.category] if release.category else [],
    )


class StremioCatalogUseCase:
    def __init__(
        self,
        *,
        lister: ReleaseListerPort,
        cache: CachePort,
        ttl_minutes: int = 30,
    ) -> None:
        self._lister = lister
        self._cache = cache
        self._ttl_minutes = ttl_minutes

    async def catalog(
        self,
        content_type: str,
        catalog_id: str,
        extra: Mapping[str, Any] | None = None,
    ) -> list[MetaPreview]:
        if content_type != "movie" or catalog_id not in SUPPORTED_CATALOGS:
            log.debug(
                "catalog_unsupported",
                content_type=content_type,
                catalog_id=catalog_id,
            )
            return []

        search, skip, limit = parse_catalog_extra(extra)
        cache_key = f"catalog_{search}_{skip}_{limit}"

        try:
            cached = await self._cache.get(cache_key)
            if isinstance(cached, list):
                log.debug("catalog_cache_hit", key=cache_key)
                return [MetaPreview.from_dict(item) for item in cached]

            releases = await self._lister.query(
                ReleaseQuery(search=search, skip=skip, limit=limit)
            )
        except Exception:
            log.warning(
                "catalog_fetch_failed",
                catalog_id=catalog_id,
                search=search,
                exc_info=True,
            )
            return []

        previews: list[MetaPreview] = []
        for release in releases:
            preview = release_to_preview(release)
            if preview is None:
                log.debug("catalog_release_without_id", title=release.title)
                continue
            previews.append(preview)

        await self._cache.set(
            cache_key, [p.to_dict() for p in previews], ttl_minutes=self._ttl_minutes
        )
        log.info(
            "catalog_served",
            catalog_id=catalog_id,
            search=search or None,
            skip=skip,
            count=len(previews),
        )
        return previews
