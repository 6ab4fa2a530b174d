"""Tests for the calidarr CLI entrypoint."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from calidarr.interfaces.cli.cli import _cli_overrides, _parse_args, start

_CLI = "calidarr.interfaces.cli.cli"


class TestParseArgs:
    def test_defaults(self) -> None:
        args = _parse_args([])
        assert args.host is None
        assert args.port is None
        assert _cli_overrides(args) == {}

    def test_log_overrides(self) -> None:
        args = _parse_args(["--log-level", "DEBUG", "--log-format", "json"])
        assert _cli_overrides(args) == {"log_level": "DEBUG", "log_format": "json"}

    def test_rejects_unknown_level(self) -> None:
        with pytest.raises(SystemExit):
            _parse_args(["--log-level", "TRACE"])


class TestStart:
    def test_runs_uvicorn_with_env_bind(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("HOST", "127.0.0.1")
        monkeypatch.setenv("PORT", "7100")
        with patch(f"{_CLI}.uvicorn.run") as run, patch(
            f"{_CLI}.configure_logging", return_value={"version": 1}
        ):
            start(["--log-level", "WARNING"])

        _, kwargs = run.call_args
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 7100
        assert kwargs["log_config"] == {"version": 1}

    def test_cli_port_beats_env(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("PORT", "7100")
        config_file = tmp_path / "config.yaml"
        config_file.write_text("site:\n  max_latest_pages: 1\n", encoding="utf-8")
        loaded = MagicMock()
        with patch(f"{_CLI}.uvicorn.run") as run, patch(
            f"{_CLI}.configure_logging", return_value={}
        ), patch(f"{_CLI}.load_config", return_value=loaded) as load, patch(
            f"{_CLI}.create_app"
        ) as factory:
            start(["--port", "8080", "--config", str(config_file)])

        assert run.call_args.kwargs["port"] == 8080
        assert load.call_args.kwargs["config_path"] == config_file
        factory.assert_called_once_with(loaded)
