"""Tests for the rendezvous root app and ``rendezvous config``."""

from __future__ import annotations

import json

from typer.testing import CliRunner

from rendezvous import __version__
from rendezvous.cli.app import app
from rendezvous.core.settings import reset_settings

runner = CliRunner()


class TestRootApp:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.strip() == f"rendezvous-core {__version__}"

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "barriers" in result.output
        assert "config" in result.output


class TestConfigShow:
    def test_json_format(self, tmp_path):
        result = runner.invoke(app, ["config", "show", "--format", "json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["store_backend"] == "json"
        assert payload["data_dir"] == str(tmp_path / "rendezvous")

    def test_env_format(self, monkeypatch):
        monkeypatch.setenv("RENDEZVOUS_STORE_BACKEND", "sqlite")
        reset_settings()
        result = runner.invoke(app, ["config", "show", "-f", "env"])
        assert result.exit_code == 0
        assert "RENDEZVOUS_STORE_BACKEND=sqlite" in result.output
        assert "RENDEZVOUS_LOG_LEVEL=INFO" in result.output

    def test_table_format(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "store_backend" in result.output
        assert "state_path" in result.output
