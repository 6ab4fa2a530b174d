"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, cast

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from calidarr.infrastructure.config import AppConfig
from calidarr.interfaces.app_state import AppState
from calidarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration only, no resource initialization.

    Resources (store, HTTP client, use cases) are created in lifespan().
    """
    app = FastAPI(
        title="Calidarr",
        description="Stremio movie addon for CineCalidad releases",
        version=config.addon.version,
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config
    app.state.ready = False

    from calidarr.interfaces.api.stremio.router import router as stremio_router

    app.include_router(stremio_router)

    @app.get("/health")
    async def health() -> JSONResponse:
        """Liveness plus cache and store statistics."""
        state = cast(AppState, app.state)
        body: dict[str, Any] = {
            "status": "healthy",
            "version": config.addon.version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        cache = getattr(state, "cache", None)
        if cache is not None:
            body["cache"] = cache.health()
        store = getattr(state, "store", None)
        if store is not None and store.is_open:
            try:
                body["store"] = await store.stats()
            except Exception:
                log.warning("health_store_stats_failed", exc_info=True)
                body["status"] = "degraded"
        return JSONResponse(body)

    @app.get("/readyz")
    async def readyz() -> Response:
        """Readiness probe: 200 after startup complete, 503 otherwise."""
        if getattr(app.state, "ready", False):
            return JSONResponse({"status": "ready"}, status_code=200)
        return JSONResponse({"status": "not_ready"}, status_code=503)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            status_code = getattr(locals().get("response", None), "status_code", 500)

            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
