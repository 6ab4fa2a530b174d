"""Map a site-native id fragment back to one release from a listing.

Exact id first, then a normalized prefix/substring check. First match
wins in list order; there is no similarity scoring.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

import structlog

from calidarr.domain.entities import Release

log = structlog.get_logger(__name__)

_FUZZY_PREFIX_LENGTH = 15
_NORMALIZE_RE = re.compile(r"[-\s_]")

# Trailing slug words that describe the upload, not the movie.
_NOISE_SUFFIXES: frozenset[str] = frozenset(
    {
        "online",
        "descarga",
        "descargar",
        "gratis",
        "hd",
        "full",
        "latino",
        "dual",
        "subtitulado",
        "espanol",
        "español",
        "spanish",
    }
)


def _normalize_id(value: str) -> str:
    return _NORMALIZE_RE.sub("", value.lower())


def extract_search_title(fragment: str) -> str:
    """Derive a search phrase from a slug like ``dune-2021-online-latino``.

    Trailing noise tokens are stripped; if every token is noise the first
    70% of tokens (at least one) are kept so the phrase is never empty.
    """
    parts = [p for p in fragment.split("-") if p]
    end = len(parts)
    for i in range(len(parts) - 1, -1, -1):
        if parts[i].lower() in _NOISE_SUFFIXES:
            end = i
        else:
            break

    if end == 0:
        end = max(1, int(len(parts) * 0.7))

    return " ".join(parts[:end])


def _fuzzy_matches(normalized_target: str, candidate_id: str) -> bool:
    normalized_candidate = _normalize_id(candidate_id)
    min_length = min(
        _FUZZY_PREFIX_LENGTH, len(normalized_target), len(normalized_candidate)
    )
    if min_length == 0:
        return False
    target_prefix = normalized_target[:min_length]
    return (
        normalized_candidate[:min_length] == target_prefix
        or target_prefix in normalized_candidate
    )


def match_release(releases: Sequence[Release], target: str) -> Release | None:
    """Exact-then-fuzzy release lookup. Returns None for an empty target."""
    if not target:
        return None

    for release in releases:
        if release.id == target:
            log.debug("release_match_exact", target=target)
            return release

    normalized_target = _normalize_id(target)
    if not releases or not normalized_target:
        return None

    for release in releases:
        if release.id and _fuzzy_matches(normalized_target, release.id):
            log.debug(
                "release_match_fuzzy",
                target=target,
                matched=release.id,
            )
            return release

    log.debug("release_match_none", target=target, candidates=len(releases))
    return None
