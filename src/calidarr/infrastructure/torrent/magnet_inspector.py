"""Offline magnet URI inspector (no DHT, no metadata download).

Everything comes from the URI itself: the btih hash, ``dn`` display
name, ``xl`` exact length and ``tr`` trackers. Quality, source, codec,
language and release group are guessed from the display name.
"""

from __future__ import annotations

import html
from typing import Any
from urllib.parse import parse_qs, urlparse

import structlog
from guessit import guessit

from calidarr.domain.entities import TorrentInfo
from calidarr.domain.identifiers import extract_info_hash, is_valid_magnet_uri
from calidarr.infrastructure.common.size import format_bytes

log = structlog.get_logger(__name__)

DEFAULT_QUALITY = "1080p"
DEFAULT_LANGUAGE = "Multi"
_BYTES_PER_GB = 1024**3

# (substring of the resolution, estimated size label); first hit wins.
_SIZE_ESTIMATES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("4k", "2160p"), "~8-15 GB"),
    (("1440p", "2k"), "~4-8 GB"),
    (("1080p", "fhd"), "~2-4 GB"),
    (("720p", "hd"), "~1-2 GB"),
    (("480p", "sd"), "~0.5-1 GB"),
)
_DEFAULT_ESTIMATE = "~2-4 GB"


def estimate_size_label(resolution: str | None) -> str:
    if not resolution:
        return _DEFAULT_ESTIMATE
    res = resolution.lower()
    for needles, label in _SIZE_ESTIMATES:
        if any(n in res for n in needles):
            return label
    return _DEFAULT_ESTIMATE


def _language_label(value: Any) -> str:
    if not value:
        return DEFAULT_LANGUAGE
    items = value if isinstance(value, list) else [value]
    names = [str(getattr(item, "name", item)) for item in items]
    return ", ".join(n for n in names if n) or DEFAULT_LANGUAGE


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, list):
        value = value[0] if value else None
    return str(value) if value else None


def _parse_int(value: str | None) -> int:
    try:
        return max(0, int(value)) if value else 0
    except ValueError:
        return 0


class MagnetInspector:
    """TorrentInspectorPort implementation over the magnet URI alone."""

    async def get_torrent_info(self, magnet_uri: str) -> TorrentInfo | None:
        if not is_valid_magnet_uri(magnet_uri):
            log.debug("magnet_invalid", uri=str(magnet_uri)[:80])
            return None
        info_hash = extract_info_hash(magnet_uri)
        if info_hash is None:
            return None

        params = parse_qs(urlparse(html.unescape(magnet_uri)).query)
        display_name = (params.get("dn") or ["Unknown"])[0] or "Unknown"
        total_size = _parse_int((params.get("xl") or [None])[0])
        trackers = tuple(t for t in params.get("tr", []) if t.strip())

        guess = guessit(display_name) if display_name != "Unknown" else {}
        resolution = _as_text(guess.get("screen_size"))
        quality = resolution or DEFAULT_QUALITY

        if total_size > 0:
            size_label = f"{total_size / _BYTES_PER_GB:.2f} GB"
        else:
            size_label = estimate_size_label(resolution)

        info = TorrentInfo(
            info_hash=info_hash,
            display_name=display_name,
            total_size=total_size,
            size_label=size_label,
            trackers=trackers,
            quality=quality,
            source=_as_text(guess.get("source")),
            codec=_as_text(guess.get("video_codec")),
            language=_language_label(guess.get("language")),
            group=_as_text(guess.get("release_group")),
        )
        log.debug(
            "magnet_inspected",
            info_hash=info_hash,
            quality=info.quality,
            size=info.size_label,
            exact_size=format_bytes(total_size) if total_size else None,
            trackers=len(trackers),
        )
        return info
