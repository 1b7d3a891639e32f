"""
Shared pytest fixtures for rendezvous-core tests.

This module provides:
- Global-state isolation (default registry, cached settings, structlog config)
- In-memory stores and registries
- Handle factories that record progress messages
- Stores that fail on demand, for persistence error paths
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
import structlog

from rendezvous.barrier.handle import ThreadWaiterHandle
from rendezvous.barrier.models import BarrierTableDocument
from rendezvous.barrier.registry import BarrierRegistry, reset_default_registry
from rendezvous.barrier.store import InMemoryBarrierStore
from rendezvous.core.errors import StoreReadError, StoreWriteError
from rendezvous.core.settings import reset_settings


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if "integration" in str(test_path) or "concurrency" in str(test_path):
            item.add_marker(pytest.mark.integration)
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Global State Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolate_globals(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Point settings at a temp dir and drop process-wide singletons."""
    monkeypatch.setenv("RENDEZVOUS_DATA_DIR", str(tmp_path / "rendezvous"))
    reset_settings()
    reset_default_registry()
    yield
    reset_default_registry()
    reset_settings()
    structlog.reset_defaults()


# =============================================================================
# Stores, Registries and Handles
# =============================================================================


class RecordingStore(InMemoryBarrierStore):
    """In-memory store that counts calls and can be told to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.loads = 0
        self.saves = 0
        self.fail_load = False
        self.fail_save = False

    def load(self) -> BarrierTableDocument | None:
        self.loads += 1
        if self.fail_load:
            raise StoreReadError("simulated read failure").with_context(path="memory")
        return super().load()

    def save(self, document: BarrierTableDocument) -> None:
        self.saves += 1
        if self.fail_save:
            raise StoreWriteError("simulated write failure").with_context(path="memory")
        super().save(document)


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def registry(store: RecordingStore) -> BarrierRegistry:
    return BarrierRegistry(store)


class RecordingHandle(ThreadWaiterHandle):
    """ThreadWaiterHandle that keeps its progress lines and counts resolutions."""

    def __init__(self) -> None:
        self.messages: list[str] = []
        self.resolve_calls = 0
        super().__init__(output=self.messages.append)

    def resolve(self, outcome) -> None:
        self.resolve_calls += 1
        super().resolve(outcome)


@pytest.fixture
def make_handle() -> Callable[[], RecordingHandle]:
    """Factory for handles that record the messages sent to them."""
    return RecordingHandle
