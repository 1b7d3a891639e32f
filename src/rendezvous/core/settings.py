"""Settings for rendezvous-core.

Configuration is environment-driven and validated at startup.
``RendezvousSettings`` reads ``RENDEZVOUS_*`` variables and ``.env`` files
and decides where the barrier table is persisted.

Examples:
    >>> from rendezvous.core.settings import RendezvousSettings
    >>> settings = RendezvousSettings(store_backend="sqlite", data_dir="/var/lib/rdv")
    >>> settings.state_path
    PosixPath('/var/lib/rdv/rendezvous-barriers.db')

Environment::

    RENDEZVOUS_DATA_DIR=/var/lib/rendezvous
    RENDEZVOUS_STORE_BACKEND=json        # json | sqlite | memory
    RENDEZVOUS_LOG_LEVEL=DEBUG
    RENDEZVOUS_JSON_LOGS=true

Tags:
    settings, configuration, pydantic, environment, rendezvous-core
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Well-known identifier of the single persisted document.
STATE_DOCUMENT_ID = "rendezvous-barriers"

StoreBackend = Literal["json", "sqlite", "memory"]

_SUFFIXES: dict[str, str] = {"json": ".json", "sqlite": ".db", "memory": ""}


class RendezvousSettings(BaseSettings):
    """Settings shared by the registry, the stores and the CLI.

    Fields
    ──────
    data_dir       : Directory holding the persisted barrier document
    store_backend  : Document store implementation
    log_level      : Structlog log level
    json_logs      : Force JSON (True) or console (False) logs; None auto-detects
    """

    model_config = SettingsConfigDict(
        env_prefix="RENDEZVOUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".rendezvous",
        description="Directory holding the persisted barrier document",
    )
    store_backend: StoreBackend = "json"

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level

    @property
    def state_path(self) -> Path | None:
        """Location of the persisted document, or None for the memory backend."""
        if self.store_backend == "memory":
            return None
        return self.data_dir / f"{STATE_DOCUMENT_ID}{_SUFFIXES[self.store_backend]}"


@lru_cache(maxsize=1)
def get_settings() -> RendezvousSettings:
    """Return the process-wide settings (read once)."""
    return RendezvousSettings()


def reset_settings() -> None:
    """Forget cached settings (for testing)."""
    get_settings.cache_clear()


__all__ = [
    "STATE_DOCUMENT_ID",
    "RendezvousSettings",
    "StoreBackend",
    "get_settings",
    "reset_settings",
]
