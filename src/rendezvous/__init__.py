"""
rendezvous-core: durable named rendezvous barriers.

Participants declare a rendezvous point and a quorum, block until that many
have arrived, and are released together. Who is waiting where is persisted,
so the barrier survives a restart of the hosting process.

Example:
    from rendezvous import BarrierRegistry, JsonFileBarrierStore, rendezvous

    registry = BarrierRegistry(JsonFileBarrierStore("/var/lib/rdv/barriers.json"))
    rendezvous("integration", 3, waiter_id="build-17", registry=registry)
"""

from rendezvous.barrier import (
    Barrier,
    BarrierRecord,
    BarrierRegistry,
    BarrierStore,
    BarrierTableDocument,
    DetachedWaiterHandle,
    InMemoryBarrierStore,
    JsonFileBarrierStore,
    Outcome,
    SqliteBarrierStore,
    ThreadWaiterHandle,
    WaiterHandle,
    WaiterState,
    create_store,
    get_default_registry,
    reset_default_registry,
    set_default_registry,
)
from rendezvous.core.errors import (
    ConfigError,
    InvalidConfigError,
    RendezvousAborted,
    RendezvousError,
    StorageError,
)
from rendezvous.core.settings import RendezvousSettings, get_settings
from rendezvous.orchestration import (
    RendezvousStep,
    RendezvousStepExecution,
    rendezvous,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Barrier
    "Barrier",
    "BarrierRecord",
    "BarrierTableDocument",
    "BarrierRegistry",
    "get_default_registry",
    "set_default_registry",
    "reset_default_registry",
    # Handles
    "WaiterHandle",
    "WaiterState",
    "Outcome",
    "ThreadWaiterHandle",
    "DetachedWaiterHandle",
    # Stores
    "BarrierStore",
    "InMemoryBarrierStore",
    "JsonFileBarrierStore",
    "SqliteBarrierStore",
    "create_store",
    # Steps
    "RendezvousStep",
    "RendezvousStepExecution",
    "rendezvous",
    # Errors
    "RendezvousError",
    "ConfigError",
    "InvalidConfigError",
    "StorageError",
    "RendezvousAborted",
    # Settings
    "RendezvousSettings",
    "get_settings",
]
