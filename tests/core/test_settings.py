"""Tests for rendezvous.core.settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from rendezvous.core.settings import (
    STATE_DOCUMENT_ID,
    RendezvousSettings,
    get_settings,
    reset_settings,
)


class TestRendezvousSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("RENDEZVOUS_DATA_DIR", raising=False)
        settings = RendezvousSettings(_env_file=None)
        assert settings.data_dir == Path.home() / ".rendezvous"
        assert settings.store_backend == "json"
        assert settings.log_level == "INFO"
        assert settings.json_logs is None

    def test_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("RENDEZVOUS_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("RENDEZVOUS_STORE_BACKEND", "sqlite")
        monkeypatch.setenv("RENDEZVOUS_LOG_LEVEL", "debug")
        monkeypatch.setenv("RENDEZVOUS_JSON_LOGS", "true")

        settings = RendezvousSettings(_env_file=None)
        assert settings.data_dir == tmp_path
        assert settings.store_backend == "sqlite"
        assert settings.log_level == "DEBUG"
        assert settings.json_logs is True

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            RendezvousSettings(store_backend="redis")

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            RendezvousSettings(log_level="LOUD")

    @pytest.mark.parametrize(
        ("backend", "suffix"),
        [("json", ".json"), ("sqlite", ".db")],
    )
    def test_state_path(self, tmp_path, backend, suffix):
        settings = RendezvousSettings(data_dir=tmp_path, store_backend=backend)
        assert settings.state_path == tmp_path / f"{STATE_DOCUMENT_ID}{suffix}"

    def test_memory_backend_has_no_state_path(self):
        assert RendezvousSettings(store_backend="memory").state_path is None


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_reset_rereads_environment(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("RENDEZVOUS_STORE_BACKEND", "memory")
        assert get_settings() is first

        reset_settings()
        assert get_settings().store_backend == "memory"
