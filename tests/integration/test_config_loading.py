"""Integration tests for configuration loading with layered precedence.

Exercises the real load_config() with YAML files, environment variables
and CLI overrides: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from calidarr.infrastructure.config import load_config

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("CALIDARR_"):
            monkeypatch.delenv(key)


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    config = {
        "app_name": "calidarr-test",
        "environment": "test",
        "http": {"timeout_seconds": 15.0, "user_agent": "TestAgent/1.0"},
        "logging": {"level": "DEBUG", "format": "console"},
        "store": {"dir": str(tmp_path / "store")},
        "cache": {"stream_ttl_minutes": 5},
        "site": {"base_url": "https://mirror.example.org"},
        "addon": {"name": "CineCalidad Test"},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "calidarr"
        assert config.environment == "dev"
        assert config.http_timeout_seconds == 10.0
        assert config.log_level == "INFO"
        assert config.log_format == "console"
        assert config.cache_metadata_ttl_minutes == 10080
        assert config.site_base_url == "https://www.cinecalidad.rs"
        assert config.addon.id == "org.cinecalidad.addon"

    def test_prod_derives_json_logs(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"

    def test_never_creates_store_dir(self, tmp_path: Path) -> None:
        target = tmp_path / "not-yet"
        load_config(cli_overrides={"store_dir": str(target)})
        assert not target.exists()


class TestYamlOverrides:
    def test_sectioned_yaml(self, yaml_config: Path, tmp_path: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "calidarr-test"
        assert config.http_timeout_seconds == 15.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.log_level == "DEBUG"
        assert config.store_dir == tmp_path / "store"
        assert config.cache_stream_ttl_minutes == 5
        assert config.cache_meta_ttl_minutes == 30
        assert config.site_base_url == "https://mirror.example.org"
        assert config.addon.name == "CineCalidad Test"
        assert config.addon.version == "1.0.0"

    def test_flat_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "flat.yaml"
        path.write_text(
            yaml.dump({"site_max_latest_pages": 5, "log_level": "WARNING"}),
            encoding="utf-8",
        )
        config = load_config(config_path=path)
        assert config.site_max_latest_pages == 5
        assert config.log_level == "WARNING"

    def test_empty_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).app_name == "calidarr"

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_invalid_value(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({"http": {"timeout_seconds": 0}}), encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(config_path=path)


class TestEnvOverrides:
    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CALIDARR_HTTP_TIMEOUT_SECONDS", "42")
        monkeypatch.setenv("CALIDARR_CACHE_STREAM_TTL_MINUTES", "9")
        config = load_config(config_path=yaml_config)
        assert config.http_timeout_seconds == 42.0
        assert config.cache_stream_ttl_minutes == 9
        assert config.log_level == "DEBUG"

    def test_dotenv_file(self, tmp_path: Path) -> None:
        dotenv = tmp_path / ".env"
        dotenv.write_text("CALIDARR_SITE_MAX_SEARCH_PAGES=2\n", encoding="utf-8")
        try:
            config = load_config(dotenv_path=dotenv)
        finally:
            os.environ.pop("CALIDARR_SITE_MAX_SEARCH_PAGES", None)
        assert config.site_max_search_pages == 2

    def test_missing_dotenv(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / ".env")


class TestCliOverrides:
    def test_cli_beats_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CALIDARR_LOG_LEVEL", "WARNING")
        config = load_config(
            config_path=yaml_config, cli_overrides={"log_level": "ERROR"}
        )
        assert config.log_level == "ERROR"

    def test_sectioned_dump_round_trips(self) -> None:
        config = load_config(cli_overrides={"site_page_delay_seconds": 0})
        dumped = config.to_sectioned_dict()
        assert dumped["site"]["page_delay_seconds"] == 0
        assert dumped["logging"]["format"] == "console"
