"""Stremio addon API endpoints (manifest, catalog, meta, stream)."""

from __future__ import annotations

from typing import Any, cast
from urllib.parse import parse_qsl

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from calidarr.application.use_cases.stremio_catalog import (
    LATEST_CATALOG_ID,
    SEARCH_CATALOG_ID,
)
from calidarr.domain.identifiers import SITE_PREFIX
from calidarr.infrastructure.config import AddonConfig
from calidarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stremio"])

_LOGO_URL = "https://www.stremio.com/website/stremio-logo-small.png"

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
}


def build_manifest(addon: AddonConfig) -> dict[str, Any]:
    """Build the Stremio addon manifest."""
    return {
        "id": addon.id,
        "version": addon.version,
        "name": addon.name,
        "description": addon.description,
        "logo": _LOGO_URL,
        "resources": ["catalog", "meta", "stream"],
        "types": ["movie"],
        "catalogs": [
            {
                "type": "movie",
                "id": LATEST_CATALOG_ID,
                "name": f"{addon.name} Latest Movies",
                "extra": [
                    {"name": "search", "isRequired": False},
                    {"name": "skip", "isRequired": False},
                ],
            },
            {
                "type": "movie",
                "id": SEARCH_CATALOG_ID,
                "name": f"{addon.name} Search",
                "extra": [
                    {"name": "search", "isRequired": True},
                    {"name": "skip", "isRequired": False},
                ],
            },
        ],
        "idPrefixes": [SITE_PREFIX, "tt"],
        "behaviorHints": {
            "adult": False,
            "configurable": False,
        },
    }


def parse_extra(raw: str) -> dict[str, str]:
    """Parse the ``search=foo&skip=20`` path segment Stremio appends."""
    return dict(parse_qsl(raw, keep_blank_values=True))


def _json(content: dict[str, Any]) -> JSONResponse:
    return JSONResponse(content=content, headers=CORS_HEADERS)


@router.get("/manifest.json")
async def stremio_manifest(request: Request) -> JSONResponse:
    """Serve the Stremio addon manifest."""
    state = cast(AppState, request.app.state)
    return _json(build_manifest(state.config.addon))


async def _serve_catalog(
    state: AppState,
    content_type: str,
    catalog_id: str,
    extra: dict[str, str] | None,
) -> JSONResponse:
    previews = await state.catalog_uc.catalog(content_type, catalog_id, extra)
    return _json({"metas": [p.to_dict() for p in previews]})


@router.get("/catalog/{content_type}/{catalog_id}.json")
async def stremio_catalog(
    request: Request,
    content_type: str,
    catalog_id: str,
) -> JSONResponse:
    """Serve a catalog page without extras (latest releases)."""
    state = cast(AppState, request.app.state)
    return await _serve_catalog(state, content_type, catalog_id, None)


@router.get("/catalog/{content_type}/{catalog_id}/{extra}.json")
async def stremio_catalog_extra(
    request: Request,
    content_type: str,
    catalog_id: str,
    extra: str,
) -> JSONResponse:
    """Serve a catalog page with search/skip extras."""
    state = cast(AppState, request.app.state)
    return await _serve_catalog(state, content_type, catalog_id, parse_extra(extra))


@router.get("/meta/{content_type}/{movie_id}.json")
async def stremio_meta(
    request: Request,
    content_type: str,
    movie_id: str,
) -> JSONResponse:
    """Serve movie metadata; ``{"meta": null}`` when it cannot be resolved."""
    state = cast(AppState, request.app.state)
    meta = await state.meta_uc.resolve(content_type, movie_id)
    if meta is None:
        log.info("stremio_meta_not_found", content_type=content_type, id=movie_id)
        return _json({"meta": None})
    return _json({"meta": meta.to_dict()})


@router.get("/stream/{content_type}/{movie_id}.json")
async def stremio_stream(
    request: Request,
    content_type: str,
    movie_id: str,
) -> JSONResponse:
    """Serve torrent and direct-download streams for one movie."""
    state = cast(AppState, request.app.state)
    streams = await state.stream_uc.streams(content_type, movie_id)
    log.info(
        "stremio_stream_served",
        content_type=content_type,
        id=movie_id,
        streams=len(streams),
    )
    return _json({"streams": [s.to_dict() for s in streams]})
