"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "calidarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 10.0,
        "retry_max_attempts": 2,
        "retry_backoff_base": 0.5,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "store": {
        "dir": "./.data/calidarr",
        "movie_retention_days": 7,
        "max_concurrent": 10,
    },
    "cache": {
        "default_ttl_minutes": 30,
        "meta_ttl_minutes": 30,
        "stream_ttl_minutes": 30,
        "catalog_ttl_minutes": 30,
        "metadata_ttl_minutes": 7 * 24 * 60,
        "cleanup_interval_seconds": 300,
    },
    "site": {
        "base_url": "https://www.cinecalidad.rs",
        "max_latest_pages": 3,
        "max_search_pages": 6,
        "page_delay_seconds": 0.5,
    },
    "cinemeta_url": "https://v3-cinemeta.strem.io",
}
