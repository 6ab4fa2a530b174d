"""Request id, catalog extra and magnet URI validation.

Pure functions, shared by the use cases and the site/torrent adapters.
"""

from __future__ import annotations

import re
from typing import Any, Literal, Mapping

SITE_PREFIX = "cc_"

IdKind = Literal["external", "site"]

_EXTERNAL_ID_RE = re.compile(r"^tt\d{7,}$")
_SITE_SLUG_RE = re.compile(r"^[a-z0-9-]+$")
_UNSAFE_CHARS_RE = re.compile(r"[<>'\"&]|[^\x20-\x7e]")
_INFO_HASH_RE = re.compile(
    r"xt=urn:btih:([a-fA-F0-9]{40}|[a-fA-F0-9]{32}|[a-zA-Z2-7]{32})(?![a-zA-Z0-9])"
)

MAX_ID_LENGTH = 100
MAX_SEARCH_LENGTH = 100
DEFAULT_CATALOG_LIMIT = 20
MAX_CATALOG_LIMIT = 100


def classify_id(raw_id: str) -> IdKind | None:
    """Return ``"external"`` for ``tt`` ids, ``"site"`` for ``cc_`` ids."""
    if _EXTERNAL_ID_RE.match(raw_id):
        return "external"
    if raw_id.startswith(SITE_PREFIX) and _SITE_SLUG_RE.match(
        raw_id[len(SITE_PREFIX) :]
    ):
        return "site"
    return None


def validate_movie_id(raw_id: Any) -> bool:
    return isinstance(raw_id, str) and classify_id(raw_id) is not None


def sanitize_id(raw_id: str) -> str:
    """Strip markup/quote characters and non-printable bytes, cap length."""
    return _UNSAFE_CHARS_RE.sub("", raw_id).strip()[:MAX_ID_LENGTH]


def strip_site_prefix(raw_id: str) -> str:
    return raw_id.removeprefix(SITE_PREFIX)


def site_id_for(release_id: str) -> str:
    return f"{SITE_PREFIX}{release_id}"


def extract_info_hash(uri: str | None) -> str | None:
    """Lower-cased btih hash from a magnet URI, or ``None``."""
    if not uri:
        return None
    match = _INFO_HASH_RE.search(uri)
    return match.group(1).lower() if match else None


def is_valid_magnet_uri(uri: Any) -> bool:
    if not isinstance(uri, str) or not uri.startswith("magnet:"):
        return False
    return extract_info_hash(uri) is not None


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_catalog_extra(extra: Mapping[str, Any] | None) -> tuple[str, int, int]:
    """Normalize Stremio catalog extras into ``(search, skip, limit)``."""
    extra = extra or {}
    search = str(extra.get("search") or "").strip()[:MAX_SEARCH_LENGTH]
    skip = max(0, _to_int(extra.get("skip"), 0))
    limit = _to_int(extra.get("limit"), DEFAULT_CATALOG_LIMIT)
    if limit <= 0:
        limit = DEFAULT_CATALOG_LIMIT
    return search, skip, min(MAX_CATALOG_LIMIT, limit)


def stremio_id_for(release_id: str | None, imdb_id: str | None = None) -> str | None:
    """Protocol id for a listed release: ``cc_<slug>``, else its IMDb id."""
    if release_id:
        return site_id_for(release_id)
    if imdb_id and imdb_id.startswith("tt"):
        return imdb_id
    return None
