"""Integration tests for the FastAPI lifespan composition root."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from calidarr.application.use_cases import StremioStreamUseCase
from calidarr.infrastructure.config import AppConfig
from calidarr.interfaces.app import create_app
from calidarr.interfaces.composition import lifespan

pytestmark = pytest.mark.integration


@pytest.fixture()
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(store_dir=tmp_path / "store", cache_cleanup_interval_seconds=3600)


class TestLifespan:
    def test_startup_and_shutdown(self, config: AppConfig) -> None:
        app = create_app(config)

        with TestClient(app) as client:
            assert client.get("/readyz").status_code == 200
            health = client.get("/health").json()
            assert health["status"] == "healthy"
            assert health["store"] == {"movies": 0, "torrents": 0, "cache_entries": 0}
            assert isinstance(app.state.stream_uc, StremioStreamUseCase)

        assert app.state.ready is False
        assert app.state.store.is_open is False
        assert app.state._maintenance_task.cancelled()

    def test_invalid_ids_served_without_network(self, config: AppConfig) -> None:
        with TestClient(create_app(config)) as client:
            assert client.get("/meta/movie/nope.json").json() == {"meta": None}
            assert client.get("/stream/movie/nope.json").json() == {"streams": []}
            catalog = client.get("/catalog/movie/unknown.json").json()
            assert catalog == {"metas": []}


class TestStartupFailure:
    async def test_store_closed_when_http_client_fails(
        self, config: AppConfig
    ) -> None:
        app = create_app(config)

        with patch(
            "calidarr.interfaces.composition.create_http_client",
            side_effect=RuntimeError("boom"),
        ):
            with pytest.raises(RuntimeError, match="boom"):
                async with lifespan(app):
                    pass

        assert app.state.store.is_open is False
        assert app.state.ready is False

    async def test_resources_closed_when_late_step_fails(
        self, config: AppConfig
    ) -> None:
        app = create_app(config)

        with patch(
            "calidarr.interfaces.composition.MaintenanceScheduler",
            side_effect=RuntimeError("boom"),
        ):
            with pytest.raises(RuntimeError, match="boom"):
                async with lifespan(app):
                    pass

        assert app.state.http_client.is_closed is True
        assert app.state.store.is_open is False
