"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager, suppress
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from calidarr.application.use_cases import (
    StremioCatalogUseCase,
    StremioMetaUseCase,
    StremioStreamUseCase,
)
from calidarr.infrastructure.cache import CacheLayer
from calidarr.infrastructure.cinecalidad import CineCalidadClient
from calidarr.infrastructure.cinemeta import CinemetaClient
from calidarr.infrastructure.common import create_http_client
from calidarr.infrastructure.config import AppConfig
from calidarr.infrastructure.maintenance import MaintenanceScheduler
from calidarr.infrastructure.persistence import DiskcacheMovieStore
from calidarr.infrastructure.torrent import MagnetInspector
from calidarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def _wire_use_cases(state: AppState, config: AppConfig) -> None:
    state.catalog_uc = StremioCatalogUseCase(
        lister=state.lister,
        cache=state.cache,
        ttl_minutes=config.cache_catalog_ttl_minutes,
    )
    state.meta_uc = StremioMetaUseCase(
        store=state.store,
        cache=state.cache,
        lister=state.lister,
        metadata=state.metadata,
        ttl_minutes=config.cache_meta_ttl_minutes,
    )
    state.stream_uc = StremioStreamUseCase(
        store=state.store,
        cache=state.cache,
        lister=state.lister,
        metadata=state.metadata,
        inspector=state.inspector,
        ttl_minutes=config.cache_stream_ttl_minutes,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Persisted store (backs the request cache)
        2. Cache layer
        3. HTTP client (shared by the site and Cinemeta clients)
        4. Collaborators (site lister, metadata provider, magnet inspector)
        5. Use cases
        6. Maintenance sweep task
    """
    state = cast(AppState, app.state)
    config = state.config
    state.ready = False
    state._maintenance_task = None

    # Unwinds in reverse on shutdown or on a failed startup step.
    async with AsyncExitStack() as stack:
        # 1) Persisted store
        store = DiskcacheMovieStore(
            directory=config.store_dir,
            movie_retention_days=config.store_movie_retention_days,
            max_concurrent=config.store_max_concurrent,
        )
        state.store = await stack.enter_async_context(store)
        log.info("store_initialized", directory=str(config.store_dir))

        # 2) Request cache on top of the store
        state.cache = CacheLayer(
            store, default_ttl_minutes=config.cache_default_ttl_minutes
        )

        # 3) HTTP client with retry on 429/5xx and transport errors
        state.http_client = create_http_client(
            timeout_seconds=config.http_timeout_seconds,
            max_retries=config.http_retry_max_attempts,
            backoff_base=config.http_retry_backoff_base,
            user_agent=config.http_user_agent,
        )
        stack.push_async_callback(_close_http_client, state.http_client)
        log.info(
            "http_client_initialized",
            timeout_seconds=config.http_timeout_seconds,
            retry_max_attempts=config.http_retry_max_attempts,
        )

        # 4) Collaborators
        state.lister = CineCalidadClient(
            http_client=state.http_client,
            base_url=config.site_base_url,
            max_latest_pages=config.site_max_latest_pages,
            max_search_pages=config.site_max_search_pages,
            page_delay_seconds=config.site_page_delay_seconds,
        )
        state.metadata = CinemetaClient(
            http_client=state.http_client,
            cache=state.cache,
            base_url=config.cinemeta_url,
            ttl_minutes=config.cache_metadata_ttl_minutes,
        )
        state.inspector = MagnetInspector()
        log.info("collaborators_initialized", site=config.site_base_url)

        # 5) Use cases
        _wire_use_cases(state, config)

        # 6) Expired-entry sweep
        state.maintenance = MaintenanceScheduler(
            store, interval_seconds=config.cache_cleanup_interval_seconds
        )
        state._maintenance_task = asyncio.create_task(
            state.maintenance.run_forever()
        )
        stack.push_async_callback(_stop_maintenance, state._maintenance_task)

        state.ready = True
        log.info("app_startup_complete")

        try:
            yield
        finally:
            state.ready = False

    log.info("app_shutdown_complete")


async def _close_http_client(client: httpx.AsyncClient) -> None:
    await client.aclose()
    log.info("http_client_closed")


async def _stop_maintenance(task: asyncio.Task[None]) -> None:
    task.cancel()
    with suppress(asyncio.CancelledError):
        await task
    log.info("maintenance_scheduler_stopped")
