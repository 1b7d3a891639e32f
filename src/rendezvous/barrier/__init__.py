"""Named rendezvous barriers.

Participants declare "I reached point X and need N of us here", are held
until N have arrived, and are then released together. Barrier membership is
persisted so that waiting participants survive a restart of the host.

Architecture::

    handle.py    WaiterHandle protocol, ThreadWaiterHandle, DetachedWaiterHandle
    models.py    Barrier entity, persisted BarrierRecord / BarrierTableDocument
    store.py     BarrierStore protocol + memory / JSON file / SQLite stores
    registry.py  BarrierRegistry (single lock, load → mutate → cleanup → save)
"""

from rendezvous.barrier.handle import (
    DetachedWaiterHandle,
    Outcome,
    ThreadWaiterHandle,
    WaiterHandle,
    WaiterState,
)
from rendezvous.barrier.models import (
    Barrier,
    BarrierRecord,
    BarrierTableDocument,
    validate_declaration,
)
from rendezvous.barrier.registry import (
    BarrierRegistry,
    get_default_registry,
    reset_default_registry,
    set_default_registry,
)
from rendezvous.barrier.store import (
    BarrierStore,
    InMemoryBarrierStore,
    JsonFileBarrierStore,
    SqliteBarrierStore,
    create_store,
)

__all__ = [
    # Handles
    "WaiterHandle",
    "WaiterState",
    "Outcome",
    "ThreadWaiterHandle",
    "DetachedWaiterHandle",
    # Models
    "Barrier",
    "BarrierRecord",
    "BarrierTableDocument",
    "validate_declaration",
    # Stores
    "BarrierStore",
    "InMemoryBarrierStore",
    "JsonFileBarrierStore",
    "SqliteBarrierStore",
    "create_store",
    # Registry
    "BarrierRegistry",
    "get_default_registry",
    "set_default_registry",
    "reset_default_registry",
]
