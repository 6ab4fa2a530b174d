"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from calidarr.infrastructure.config import AppConfig

if TYPE_CHECKING:
    import asyncio

    from calidarr.application.use_cases import (
        StremioCatalogUseCase,
        StremioMetaUseCase,
        StremioStreamUseCase,
    )
    from calidarr.infrastructure.cache import CacheLayer
    from calidarr.infrastructure.cinecalidad import CineCalidadClient
    from calidarr.infrastructure.cinemeta import CinemetaClient
    from calidarr.infrastructure.maintenance import MaintenanceScheduler
    from calidarr.infrastructure.persistence import DiskcacheMovieStore
    from calidarr.infrastructure.torrent import MagnetInspector


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    store: DiskcacheMovieStore
    cache: CacheLayer

    # Collaborators
    lister: CineCalidadClient
    metadata: CinemetaClient
    inspector: MagnetInspector

    # Use cases
    catalog_uc: StremioCatalogUseCase
    meta_uc: StremioMetaUseCase
    stream_uc: StremioStreamUseCase

    # Expired-entry sweep
    maintenance: MaintenanceScheduler
    _maintenance_task: asyncio.Task | None

    # Readiness flag for /readyz
    ready: bool
