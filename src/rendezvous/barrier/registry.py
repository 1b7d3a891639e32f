"""Barrier registry — process-wide table of named rendezvous points.

Manifesto:
    Participants reach a rendezvous point at different times, from different
    threads, possibly across restarts of the hosting process. They all need
    one consistent view of "who is waiting where". The registry is that view:
    a single service object whose lock serialises every operation as one
    load → mutate → cleanup → save transaction.

    - **One lock:** membership changes are rare and cheap, so a single
      process-wide lock replaces any per-barrier locking or lock ordering.
    - **Exactly-once release:** the insert that reaches quorum resolves every
      holder in the same critical section, so no later arrival can be admitted
      to a barrier that is mid-release.
    - **Release now, prune later:** resolved holders stay in the table until a
      cleanup pass sees their handle report ready.
    - **Restart-safe release:** a waiter restored from disk and released
      before its host re-entered it is remembered as released; its next
      enter returns at once.
    - **Best-effort durability:** store failures are logged; the in-memory
      table stays authoritative.

ARCHITECTURE
────────────
::

    BarrierRegistry(store)
      ├── .enter(name, quorum, waiter_id, handle)
      │       lock
      │        ├─ load()            (once per registry lifetime)
      │        ├─ cleanup
      │        ├─ already released after restart ? resolve, save, return
      │        ├─ find-or-create Barrier, quorum = latest declaration
      │        ├─ Barrier.block(waiter_id, handle)
      │        ├─ held >= quorum ? Barrier.unblock()
      │        ├─ cleanup
      │        └─ save()
      ├── .stop(waiter_id)          lock: load → fail placeholder → cleanup → save
      ├── .cleanup()                lock: load → cleanup → save if changed
      └── .snapshot()               lock: copy of the table as records

    get_default_registry()  ─ lazily built from settings
    reset_default_registry() / set_default_registry(registry)

Example::

    registry = BarrierRegistry(JsonFileBarrierStore("/tmp/rdv.json"))
    handle = ThreadWaiterHandle(output=print)
    registry.enter("integration-tests", 3, "build-17", handle)
    handle.wait()

Related modules:
    models.py  — Barrier, persisted records
    store.py   — BarrierStore implementations
    handle.py  — WaiterHandle contract

Tags:
    rendezvous, barrier, concurrency, persistence, rendezvous-core
"""

from __future__ import annotations

import threading

from rendezvous.barrier.handle import Outcome, WaiterHandle
from rendezvous.barrier.models import (
    Barrier,
    BarrierRecord,
    BarrierTableDocument,
    validate_declaration,
)
from rendezvous.barrier.store import BarrierStore, InMemoryBarrierStore, create_store
from rendezvous.core.errors import InvalidConfigError, RendezvousAborted, StorageError
from rendezvous.core.logging import get_logger
from rendezvous.core.settings import get_settings

logger = get_logger(__name__)


def _notify(handle: WaiterHandle, message: str) -> None:
    """Send a progress line to the participant; never raises."""
    try:
        handle.notify(message)
    except Exception as e:
        logger.warning("registry.notify_failed", message=message, error=str(e))


class BarrierRegistry:
    """Injectable registry of rendezvous barriers.

    Pass an explicit instance in tests and in hosts that manage their own
    lifecycle; use :func:`get_default_registry` elsewhere.
    """

    def __init__(self, store: BarrierStore | None = None) -> None:
        self._store: BarrierStore = store if store is not None else InMemoryBarrierStore()
        self._lock = threading.RLock()
        self._table: dict[str, Barrier] | None = None
        self._released: dict[str, set[str]] = {}

    @property
    def store(self) -> BarrierStore:
        return self._store

    # ── Public operations ────────────────────────────────────────────

    def enter(self, name: str, quorum: int, waiter_id: str, handle: WaiterHandle) -> None:
        """Admit a waiter to ``name`` and release everyone once quorum is met.

        Re-entering with a waiter id that is already held replaces its handle
        without changing the count. A differing ``quorum`` overwrites the
        stored one. A waiter restored from disk that was released before its
        host re-entered it is resolved at once.

        Raises:
            InvalidConfigError: empty name or waiter id, or quorum below one
        """
        validate_declaration(name, quorum)
        if not waiter_id:
            raise InvalidConfigError("waiter_id", waiter_id, "must specify waiter id")

        with self._lock:
            logger.debug("registry.enter", barrier=name, waiter_id=waiter_id, quorum=quorum)
            _notify(handle, f"Reached rendezvous point {name}")
            table = self._load()
            self._cleanup(table)

            if waiter_id in self._released.get(name, ()):
                self._release_late(name, waiter_id, handle)
                self._save(table)
                return

            barrier = table.get(name)
            if barrier is None:
                barrier = Barrier(name=name, quorum=quorum)
                table[name] = barrier
            elif barrier.quorum != quorum:
                logger.debug(
                    "registry.quorum_changed",
                    barrier=name,
                    previous=barrier.quorum,
                    quorum=quorum,
                )
                barrier.quorum = quorum

            barrier.block(waiter_id, handle)
            if barrier.quorum_reached:
                _notify(handle, "Critical mass reached. Proceeding.")
                detached = barrier.detached_ids()
                released = barrier.unblock()
                late = [w for w in released if w in detached]
                if late:
                    self._released.setdefault(name, set()).update(late)
                logger.info(
                    "registry.released",
                    barrier=name,
                    quorum=barrier.quorum,
                    waiters=released,
                )
            else:
                _notify(handle, f"Waiting on rendezvous {barrier.held} of {barrier.quorum}")

            self._cleanup(table)
            self._save(table)

    def stop(self, waiter_id: str) -> None:
        """Reconcile the persisted table after a participant was torn down.

        The host must have resolved the participant's handle first; cleanup
        then drops it along with any other ready holders. A placeholder
        restored from disk under the same id is failed so it stops counting
        toward quorum.
        """
        with self._lock:
            logger.debug("registry.stop", waiter_id=waiter_id)
            table = self._load()
            for name in sorted(table):
                if waiter_id in table[name].detached_ids():
                    table[name].holding[waiter_id].resolve(
                        Outcome.fail(RendezvousAborted(name, waiter_id, "stopped"))
                    )
            for name in list(self._released):
                self._forget_released(name, waiter_id)
            self._cleanup(table)
            self._save(table)

    def cleanup(self) -> int:
        """Drop ready holders and empty barriers; persist if anything changed.

        Returns:
            Number of waiters removed
        """
        with self._lock:
            table = self._load()
            removed = self._cleanup(table)
            if removed:
                self._save(table)
            return removed

    def snapshot(self) -> dict[str, BarrierRecord]:
        """Current table as persisted records, keyed by barrier name."""
        with self._lock:
            table = self._load()
            return {name: table[name].to_record() for name in sorted(table)}

    def get(self, name: str) -> BarrierRecord | None:
        with self._lock:
            barrier = self._load().get(name)
            return barrier.to_record() if barrier is not None else None

    # ── Transaction steps (lock held) ────────────────────────────────

    def _load(self) -> dict[str, Barrier]:
        if self._table is not None:
            return self._table

        self._table = {}
        try:
            document = self._store.load()
        except StorageError as e:
            logger.warning("registry.load_failed", error=str(e), **e.context.to_dict())
            return self._table

        if document is not None:
            for name, record in document.barriers.items():
                if name and record.holding:
                    self._table[name] = Barrier.from_record(name, record)
            for name, waiter_ids in document.released.items():
                if name and waiter_ids:
                    self._released[name] = set(waiter_ids)
        logger.debug("registry.load", barriers=sorted(self._table))
        return self._table

    def _save(self, table: dict[str, Barrier]) -> None:
        document = BarrierTableDocument(
            barriers={name: table[name].to_record() for name in sorted(table)},
            released={name: sorted(ids) for name, ids in sorted(self._released.items())},
        )
        try:
            self._store.save(document)
        except StorageError as e:
            logger.warning("registry.save_failed", error=str(e), **e.context.to_dict())
            return
        logger.debug("registry.save", barriers=sorted(table))

    def _release_late(self, name: str, waiter_id: str, handle: WaiterHandle) -> None:
        """Resolve a re-entering waiter whose placeholder was already released."""
        self._forget_released(name, waiter_id)
        _notify(handle, "Critical mass reached. Proceeding.")
        try:
            handle.resolve(Outcome.ok())
        except Exception as e:
            logger.warning(
                "registry.resolve_failed", barrier=name, waiter_id=waiter_id, error=str(e)
            )
            return
        logger.info("registry.released_on_reentry", barrier=name, waiter_id=waiter_id)

    def _forget_released(self, name: str, waiter_id: str) -> None:
        ids = self._released.get(name)
        if ids is None:
            return
        ids.discard(waiter_id)
        if not ids:
            del self._released[name]

    def _cleanup(self, table: dict[str, Barrier]) -> int:
        removed = 0
        for name in sorted(table):
            barrier = table[name]
            pruned = barrier.prune_ready()
            if pruned:
                logger.debug("registry.pruned", barrier=name, waiters=pruned)
                removed += len(pruned)
            if not barrier.holding:
                del table[name]
        return removed


# ---------------------------------------------------------------------------
# Module-level default
# ---------------------------------------------------------------------------

_default_registry: BarrierRegistry | None = None
_default_lock = threading.Lock()


def get_default_registry() -> BarrierRegistry:
    """Get the process-wide registry (creates it from settings on first access)."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = BarrierRegistry(create_store(get_settings()))
        return _default_registry


def set_default_registry(registry: BarrierRegistry) -> None:
    """Install ``registry`` as the process-wide default."""
    global _default_registry
    with _default_lock:
        _default_registry = registry


def reset_default_registry() -> None:
    """Reset the process-wide registry (for testing)."""
    global _default_registry
    with _default_lock:
        _default_registry = None


__all__ = [
    "BarrierRegistry",
    "get_default_registry",
    "set_default_registry",
    "reset_default_registry",
]
