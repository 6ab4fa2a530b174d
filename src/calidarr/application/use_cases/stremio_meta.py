"""Stremio meta use case: the identifier resolver.

Site ids (``cc_<slug>``) walk a fixed fallback chain, short-circuiting on
the first hit:

1. request cache (``meta:<id>``)
2. persisted record with a built ``meta``
3. catalog scan: a persisted record whose release/detail id is the slug
4. live scrape: search the site, match the release, fetch details,
   enrich via the metadata provider, normalize

IMDb ids (``tt…``) go straight to the metadata provider.

Every successful resolution is written through to the store and the
cache. Nothing raises past ``resolve()``; failures read as ``None``.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone

import structlog

from calidarr.application.metadata_builder import (
    build_from_catalog_data,
    build_from_external,
    build_from_scraped_data,
)
from calidarr.application.release_matcher import extract_search_title, match_release
from calidarr.application.single_flight import SingleFlight
from calidarr.domain.entities import (
    CanonicalMeta,
    ExternalMetadata,
    MovieDetails,
    MovieRecord,
    ReleaseQuery,
)
from calidarr.domain.identifiers import (
    IdKind,
    classify_id,
    sanitize_id,
    strip_site_prefix,
)
from calidarr.domain.ports import (
    CachePort,
    MetadataProviderPort,
    MovieStorePort,
    ReleaseListerPort,
)

log = structlog.get_logger(__name__)

META_CACHE_PREFIX = "meta:"
SCRAPE_QUERY_LIMIT = 100


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class StremioMetaUseCase:
    """Resolves ``tt``/``cc_`` ids into CanonicalMeta."""

    def __init__(
        self,
        *,
        store: MovieStorePort,
        cache: CachePort,
        lister: ReleaseListerPort,
        metadata: MetadataProviderPort,
        ttl_minutes: int = 30,
    ) -> None:
        self._store = store
        self._cache = cache
        self._lister = lister
        self._metadata = metadata
        self._ttl_minutes = ttl_minutes
        self._flight: SingleFlight[CanonicalMeta | None] = SingleFlight()

    async def resolve(self, content_type: str, raw_id: str) -> CanonicalMeta | None:
        """Resolve an id; returns None for unsupported input or no data."""
        if content_type != "movie":
            log.debug("meta_unsupported_type", content_type=content_type, id=raw_id)
            return None

        kind = classify_id(raw_id) if isinstance(raw_id, str) else None
        if kind is None:
            log.info("meta_invalid_id", id=raw_id)
            return None

        movie_id = sanitize_id(raw_id)
        try:
            cached = await self._cached_meta(movie_id)
            if cached is not None:
                log.debug("meta_cache_hit", id=movie_id)
                return cached
            return await self._flight.do(
                movie_id, lambda: self._resolve_uncached(movie_id, kind)
            )
        except Exception:
            log.error("meta_resolve_failed", id=movie_id, exc_info=True)
            return None

    # ------------------------------------------------------------------
    # Cache + write-through
    # ------------------------------------------------------------------

    async def _cached_meta(self, movie_id: str) -> CanonicalMeta | None:
        cached = await self._cache.get(f"{META_CACHE_PREFIX}{movie_id}")
        if not isinstance(cached, dict):
            return None
        try:
            return CanonicalMeta.from_dict(cached)
        except (KeyError, TypeError):
            log.warning("meta_cache_entry_invalid", id=movie_id)
            return None

    async def _write_through(self, movie_id: str, record: MovieRecord) -> None:
        try:
            await self._store.save_movie(movie_id, record)
        except Exception:
            log.warning("meta_persist_failed", id=movie_id, exc_info=True)
        if record.meta is not None:
            await self._cache.set(
                f"{META_CACHE_PREFIX}{movie_id}",
                record.meta.to_dict(),
                ttl_minutes=self._ttl_minutes,
            )

    async def _resolve_uncached(
        self, movie_id: str, kind: IdKind
    ) -> CanonicalMeta | None:
        if kind == "external":
            meta = await self._resolve_external(movie_id)
        else:
            meta = await self._resolve_site(movie_id)

        if meta is None:
            log.info("meta_not_found", id=movie_id)
        else:
            log.info(
                "meta_resolved",
                id=movie_id,
                title=meta.name,
                has_imdb=meta.imdb_id is not None,
            )
        return meta

    # ------------------------------------------------------------------
    # External ids
    # ------------------------------------------------------------------

    async def _resolve_external(self, movie_id: str) -> CanonicalMeta | None:
        try:
            external = await self._metadata.get_movie_metadata(movie_id, "movie")
        except Exception:
            log.warning("meta_provider_failed", id=movie_id, exc_info=True)
            return None
        if external is None:
            return None

        meta = build_from_external(movie_id, external)
        await self._write_through(
            movie_id,
            MovieRecord(external_meta=external, meta=meta, last_updated=_now_iso()),
        )
        return meta

    # ------------------------------------------------------------------
    # Site ids
    # ------------------------------------------------------------------

    async def _resolve_site(self, movie_id: str) -> CanonicalMeta | None:
        fragment = strip_site_prefix(movie_id)

        meta = await self._from_store(movie_id)
        if meta is not None:
            return meta

        meta = await self._from_catalog_scan(movie_id, fragment)
        if meta is not None:
            return meta

        return await self._from_scrape(movie_id, fragment)

    async def _from_store(self, movie_id: str) -> CanonicalMeta | None:
        try:
            record = await self._store.get_movie(movie_id)
        except Exception:
            log.warning("meta_store_lookup_failed", id=movie_id, exc_info=True)
            return None
        if record is None or record.meta is None:
            return None

        log.debug("meta_store_hit", id=movie_id)
        await self._write_through(
            movie_id, dataclasses.replace(record, last_updated=_now_iso())
        )
        return record.meta

    async def _from_catalog_scan(
        self, movie_id: str, fragment: str
    ) -> CanonicalMeta | None:
        try:
            found = await self._store.find_movie_by_original_id(fragment)
        except Exception:
            log.warning("meta_catalog_scan_failed", id=movie_id, exc_info=True)
            return None
        if found is None:
            return None

        stored_id, record = found
        if record.meta is not None:
            meta = dataclasses.replace(record.meta, id=movie_id)
        elif record.release is not None:
            meta = build_from_catalog_data(record, movie_id)
        else:
            return None

        log.debug("meta_catalog_hit", id=movie_id, stored_id=stored_id)
        await self._write_through(
            movie_id,
            dataclasses.replace(record, meta=meta, last_updated=_now_iso()),
        )
        return meta

    async def _from_scrape(self, movie_id: str, fragment: str) -> CanonicalMeta | None:
        search = extract_search_title(fragment)
        log.debug("meta_scrape_started", id=movie_id, search=search)
        try:
            releases = await self._lister.query(
                ReleaseQuery(search=search, skip=0, limit=SCRAPE_QUERY_LIMIT)
            )
        except Exception:
            log.warning("meta_scrape_listing_failed", id=movie_id, exc_info=True)
            return None

        release = match_release(releases, fragment)
        if release is None:
            log.info(
                "meta_scrape_no_match",
                id=movie_id,
                search=search,
                candidates=len(releases),
            )
            return None

        details = await self._fetch_details(movie_id, release.details_link)
        external = await self._fetch_external(details)
        if details is not None and external is not None:
            details = dataclasses.replace(details, external_meta=external)

        meta = build_from_scraped_data(
            movie_id=movie_id,
            release=release,
            movie_details=details,
            external_meta=external,
        )
        await self._write_through(
            movie_id,
            MovieRecord(
                release=release,
                movie_details=details,
                external_meta=external,
                meta=meta,
                last_updated=_now_iso(),
            ),
        )
        return meta

    async def _fetch_details(
        self, movie_id: str, details_link: str
    ) -> MovieDetails | None:
        if not details_link:
            return None
        try:
            return await self._lister.get_details(details_link)
        except Exception:
            log.warning(
                "meta_scrape_details_failed",
                id=movie_id,
                url=details_link,
                exc_info=True,
            )
            return None

    async def _fetch_external(
        self, details: MovieDetails | None
    ) -> ExternalMetadata | None:
        if details is None or not (details.imdb_id or "").startswith("tt"):
            return None
        try:
            return await self._metadata.get_movie_metadata(details.imdb_id, "movie")
        except Exception:
            log.warning(
                "meta_enrichment_failed", imdb_id=details.imdb_id, exc_info=True
            )
            return None
