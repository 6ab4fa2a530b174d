"""Stremio stream use case.

Loads the movie record (persisted; for ``tt`` ids the stored record whose
scraped details carry that IMDb id; else rebuilt from the latest listing),
inspects every magnet concurrently and projects torrents and direct
download links into stream descriptors.
"""

from __future__ import annotations

import asyncio
import dataclasses
from datetime import datetime, timezone
from urllib.parse import quote, unquote

import structlog

from calidarr.application.single_flight import SingleFlight
from calidarr.application.stream_projector import project_download_link, project_torrent
from calidarr.domain.entities import (
    DownloadLink,
    ExternalMetadata,
    MovieRecord,
    Release,
    ReleaseQuery,
    StreamDescriptor,
    TorrentInfo,
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
    TorrentInspectorPort,
)

log = structlog.get_logger(__name__)

STREAM_CACHE_PREFIX = "stream_"
LATEST_SCAN_LIMIT = 100


def _same_slug(candidate: str, target: str) -> bool:
    return (
        candidate == target
        or candidate == quote(target, safe="")
        or unquote(candidate) == target
        or unquote(candidate) == unquote(target)
    )


def find_release(releases: list[Release], movie_id: str) -> Release | None:
    """Locate the listed release a ``cc_`` stream id refers to."""
    slug = strip_site_prefix(movie_id)
    for release in releases:
        if release.id and _same_slug(release.id, slug):
            return release
    return None


class StremioStreamUseCase:
    def __init__(
        self,
        *,
        store: MovieStorePort,
        cache: CachePort,
        lister: ReleaseListerPort,
        metadata: MetadataProviderPort,
        inspector: TorrentInspectorPort,
        ttl_minutes: int = 30,
    ) -> None:
        self._store = store
        self._cache = cache
        self._lister = lister
        self._metadata = metadata
        self._inspector = inspector
        self._ttl_minutes = ttl_minutes
        self._flight: SingleFlight[list[StreamDescriptor]] = SingleFlight()

    async def streams(self, content_type: str, raw_id: str) -> list[StreamDescriptor]:
        """Return stream descriptors; ``[]`` on bad input or any failure."""
        if content_type != "movie":
            log.debug("stream_unsupported_type", content_type=content_type, id=raw_id)
            return []

        kind = classify_id(raw_id) if isinstance(raw_id, str) else None
        if kind is None:
            log.info("stream_invalid_id", id=raw_id)
            return []

        movie_id = sanitize_id(raw_id)
        try:
            cached = await self._cached_streams(movie_id)
            if cached is not None:
                log.debug("stream_cache_hit", id=movie_id, streams=len(cached))
                return cached
            return await self._flight.do(
                movie_id, lambda: self._build_streams(movie_id, kind)
            )
        except Exception:
            log.error("stream_resolve_failed", id=movie_id, exc_info=True)
            return []

    async def _cached_streams(self, movie_id: str) -> list[StreamDescriptor] | None:
        cached = await self._cache.get(f"{STREAM_CACHE_PREFIX}{movie_id}")
        if not isinstance(cached, list):
            return None
        try:
            return [StreamDescriptor.from_dict(item) for item in cached]
        except (KeyError, TypeError, AttributeError):
            log.warning("stream_cache_entry_invalid", id=movie_id)
            return None

    async def _build_streams(
        self, movie_id: str, kind: IdKind
    ) -> list[StreamDescriptor]:
        record = await self._load_record(movie_id, kind)
        if record is None or record.movie_details is None:
            log.info("stream_movie_not_found", id=movie_id)
            return []

        streams = await self._project(record, movie_id)
        await self._cache.set(
            f"{STREAM_CACHE_PREFIX}{movie_id}",
            [s.to_dict() for s in streams],
            ttl_minutes=self._ttl_minutes,
        )
        log.info("stream_resolved", id=movie_id, streams=len(streams))
        return streams

    # ------------------------------------------------------------------
    # Movie data
    # ------------------------------------------------------------------

    async def _load_record(self, movie_id: str, kind: IdKind) -> MovieRecord | None:
        try:
            stored = await self._store.get_movie(movie_id)
        except Exception:
            log.warning("stream_store_lookup_failed", id=movie_id, exc_info=True)
            stored = None

        if stored is not None and stored.movie_details is not None:
            return stored
        if kind == "external":
            return await self._record_by_imdb_id(movie_id)
        return await self._fetch_record(movie_id, stored)

    async def _record_by_imdb_id(self, imdb_id: str) -> MovieRecord | None:
        # Listing rows carry no IMDb id; only scraped details link the two.
        try:
            found = await self._store.find_movie_by_imdb_id(imdb_id)
        except Exception:
            log.warning("stream_store_scan_failed", id=imdb_id, exc_info=True)
            return None
        if found is None:
            return None
        stored_id, record = found
        log.debug("stream_imdb_match", id=imdb_id, stored_id=stored_id)
        return record

    async def _fetch_record(
        self, movie_id: str, stored: MovieRecord | None
    ) -> MovieRecord | None:
        try:
            releases = await self._lister.query(
                ReleaseQuery(search="", skip=0, limit=LATEST_SCAN_LIMIT)
            )
        except Exception:
            log.warning("stream_listing_failed", id=movie_id, exc_info=True)
            return None

        release = find_release(releases, movie_id)
        if release is None:
            log.warning("stream_release_not_found", id=movie_id)
            return None

        try:
            details = await self._lister.get_details(release.details_link)
        except Exception:
            log.warning(
                "stream_details_failed",
                id=movie_id,
                url=release.details_link,
                exc_info=True,
            )
            return None
        if details is None:
            return None

        external: ExternalMetadata | None = None
        if (details.imdb_id or "").startswith("tt"):
            external = await self._enrich(details.imdb_id)
            if external is not None:
                details = dataclasses.replace(details, external_meta=external)

        record = MovieRecord(
            release=release,
            movie_details=details,
            external_meta=external,
            meta=stored.meta if stored is not None else None,
            last_updated=datetime.now(timezone.utc).isoformat(),
        )
        try:
            await self._store.save_movie(movie_id, record)
        except Exception:
            log.warning("stream_persist_failed", id=movie_id, exc_info=True)
        return record

    async def _enrich(self, imdb_id: str) -> ExternalMetadata | None:
        try:
            return await self._metadata.get_movie_metadata(imdb_id, "movie")
        except Exception:
            log.warning("stream_enrichment_failed", imdb_id=imdb_id, exc_info=True)
            return None

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    async def _project(
        self, record: MovieRecord, movie_id: str
    ) -> list[StreamDescriptor]:
        links = [link for link in record.movie_details.download_links if link.url]
        magnets = [link for link in links if link.is_magnet]
        direct = [link for link in links if not link.is_magnet]

        results = await asyncio.gather(
            *(self._magnet_streams(link, record, movie_id) for link in magnets),
            return_exceptions=True,
        )

        streams: list[StreamDescriptor] = []
        for link, result in zip(magnets, results):
            if isinstance(result, BaseException):
                log.warning(
                    "stream_magnet_failed",
                    id=movie_id,
                    link=link.name,
                    error=str(result),
                )
                continue
            streams.extend(result)

        streams.extend(project_download_link(link, record, movie_id) for link in direct)
        return streams

    async def _magnet_streams(
        self, link: DownloadLink, record: MovieRecord, movie_id: str
    ) -> list[StreamDescriptor]:
        info = await self._torrent_info(link.url)
        if info is None:
            return []
        return project_torrent(info, record, movie_id)

    async def _torrent_info(self, magnet_uri: str) -> TorrentInfo | None:
        try:
            stored = await self._store.get_torrent(magnet_uri)
        except Exception:
            log.warning("stream_torrent_lookup_failed", exc_info=True)
            stored = None
        if stored is not None:
            return stored

        info = await self._inspector.get_torrent_info(magnet_uri)
        if info is None:
            return None

        try:
            await self._store.save_torrent(magnet_uri, info)
        except Exception:
            log.warning(
                "stream_torrent_persist_failed",
                info_hash=info.info_hash,
                exc_info=True,
            )
        return info
