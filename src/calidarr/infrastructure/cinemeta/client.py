"""Cinemeta client - async httpx implementation with caching.

Implements ``MetadataProviderPort`` from domain.ports.metadata_provider.
"""

from __future__ import annotations

import dataclasses
import re
from typing import Any

import httpx
import structlog
from unidecode import unidecode

from calidarr.domain.entities import ExternalMetadata, ExternalServiceError
from calidarr.domain.ports import CachePort

log = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://v3-cinemeta.strem.io"
DEFAULT_TTL_MINUTES = 7 * 24 * 60

_SEPARATORS_RE = re.compile(r"[.,_+ -]+")
_DISALLOWED_RE = re.compile(r"[^\w\- ()]")


def escape_title(title: str | None) -> str:
    """Lower-cased, accent-folded title suitable for matching."""
    if not title:
        return ""
    text = unidecode(title).lower().replace("&", "and")
    text = _SEPARATORS_RE.sub(" ", text)
    return _DISALLOWED_RE.sub("", text).strip()


def _to_external(imdb_id: str, meta: dict[str, Any]) -> ExternalMetadata:
    return ExternalMetadata(
        imdb=imdb_id,
        title=escape_title(meta["name"]),
        original_title=meta["name"],
        year=meta.get("year"),
        poster=meta.get("poster"),
        background=meta.get("background"),
        description=meta.get("description"),
        genres=meta.get("genres"),
        cast=meta.get("cast"),
        director=meta.get("director"),
        writer=meta.get("writer"),
        imdb_rating=meta.get("imdbRating"),
    )


class CinemetaClient:
    """Fetches ``{base}/meta/{type}/{id}.json`` and caches the mapping."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        base_url: str = DEFAULT_BASE_URL,
        ttl_minutes: int = DEFAULT_TTL_MINUTES,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self.base_url = base_url.rstrip("/")
        self._ttl_minutes = ttl_minutes

    async def get_movie_metadata(
        self, imdb_id: str, content_type: str = "movie"
    ) -> ExternalMetadata | None:
        cache_key = f"metadata_{imdb_id}_{content_type}"
        cached = await self._cache.get(cache_key)
        if isinstance(cached, dict):
            try:
                return ExternalMetadata(**cached)
            except TypeError:
                log.warning("cinemeta_cache_entry_invalid", imdb_id=imdb_id)

        url = f"{self.base_url}/meta/{content_type}/{imdb_id}.json"
        try:
            resp = await self._http.get(url)
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"Cinemeta unreachable for {imdb_id}: {type(e).__name__}"
            ) from e

        if resp.status_code == 404:
            log.debug("cinemeta_not_found", imdb_id=imdb_id)
            return None
        if resp.status_code >= 400:
            raise ExternalServiceError(
                f"Cinemeta returned HTTP {resp.status_code} for {imdb_id}"
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise ExternalServiceError(
                f"Cinemeta sent invalid JSON for {imdb_id}"
            ) from e

        meta = data.get("meta") if isinstance(data, dict) else None
        if not isinstance(meta, dict) or not meta.get("name"):
            raise ExternalServiceError(f"Invalid response from Cinemeta for {imdb_id}")

        external = _to_external(imdb_id, meta)
        await self._cache.set(
            cache_key, dataclasses.asdict(external), ttl_minutes=self._ttl_minutes
        )
        log.debug("cinemeta_fetched", imdb_id=imdb_id, title=external.original_title)
        return external
