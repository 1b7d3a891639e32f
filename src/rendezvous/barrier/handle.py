"""Waiter handles — the suspension token of one blocked participant.

A handle is what the registry holds on behalf of a participant. The registry
only ever asks two things of it: *is it already resolved?* and *resolve it
now*. Everything else (how the participant is suspended, where progress
messages go) belongs to the host.

ARCHITECTURE
────────────
::

    WaiterHandle (protocol)
      ├── .is_ready()        ─ resolved through any path?
      ├── .resolve(outcome)  ─ release it (idempotent)
      └── .notify(message)   ─ human-readable progress line

    ThreadWaiterHandle    ─ suspends a thread on threading.Event
    DetachedWaiterHandle  ─ placeholder for a waiter loaded from disk

Lifecycle of a held waiter::

    HELD ──resolve(ok)──► RESOLVED ──next cleanup──► removed from table
      └───resolve(fail)──► CANCELLED ─next cleanup──► removed from table

Related modules:
    models.py    — Barrier.unblock() resolves handles
    registry.py  — cleanup prunes handles that report ready
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, TextIO, runtime_checkable

from rendezvous.core.logging import get_logger

logger = get_logger(__name__)


class WaiterState(str, Enum):
    """Where a handle is in its lifecycle."""

    HELD = "HELD"
    RESOLVED = "RESOLVED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class Outcome:
    """Result delivered to a waiter when it is resolved."""

    success: bool
    value: Any = None
    error: BaseException | None = None

    @classmethod
    def ok(cls, value: Any = None) -> Outcome:
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: BaseException) -> Outcome:
        return cls(success=False, error=error)


@runtime_checkable
class WaiterHandle(Protocol):
    """Capability the registry uses to query and release one waiter."""

    def is_ready(self) -> bool:
        """Return True once the waiter has been resolved through any path."""
        ...

    def resolve(self, outcome: Outcome) -> None:
        """Release the waiter. Calls after the first one are ignored."""
        ...

    def notify(self, message: str) -> None:
        """Deliver a progress line to the participant's output sink."""
        ...


OutputSink = TextIO | Callable[[str], Any]


class ThreadWaiterHandle:
    """Handle that parks the participant's thread until resolved.

    The participant calls :meth:`wait`; the registry calls :meth:`resolve`
    from whichever thread completes the quorum. Resolution only sets an event,
    so it returns immediately regardless of what the woken thread does next.

    Example:
        >>> handle = ThreadWaiterHandle(output=print)
        >>> registry.enter("deploy", 2, "build-42", handle)
        >>> outcome = handle.wait()
    """

    def __init__(self, output: OutputSink | None = None) -> None:
        self._output = output
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._outcome: Outcome | None = None

    def is_ready(self) -> bool:
        return self._event.is_set()

    def resolve(self, outcome: Outcome) -> None:
        with self._lock:
            if self._outcome is not None:
                logger.debug("handle.already_resolved", success=outcome.success)
                return
            self._outcome = outcome
        self._event.set()

    def cancel(self, cause: BaseException) -> None:
        """Resolve with a failure outcome (host-side abort)."""
        self.resolve(Outcome.fail(cause))

    def notify(self, message: str) -> None:
        if self._output is None:
            return
        if callable(self._output):
            self._output(message)
            return
        self._output.write(message + "\n")
        self._output.flush()

    def wait(self, timeout: float | None = None) -> Outcome | None:
        """Block until resolved. Returns None if ``timeout`` elapses first."""
        if not self._event.wait(timeout):
            return None
        return self._outcome

    @property
    def outcome(self) -> Outcome | None:
        return self._outcome

    @property
    def state(self) -> WaiterState:
        outcome = self._outcome
        if outcome is None:
            return WaiterState.HELD
        return WaiterState.RESOLVED if outcome.success else WaiterState.CANCELLED

    def __repr__(self) -> str:
        return f"ThreadWaiterHandle(state={self.state.value})"


class DetachedWaiterHandle:
    """Stand-in for a waiter that was loaded from the persisted document.

    Live handles do not survive a restart. The detached placeholder keeps the
    waiter counted toward quorum until the host re-enters with the same waiter
    id (which replaces it) or the barrier releases it.
    """

    def __init__(self, waiter_id: str) -> None:
        self.waiter_id = waiter_id
        self._outcome: Outcome | None = None

    def is_ready(self) -> bool:
        return self._outcome is not None

    def resolve(self, outcome: Outcome) -> None:
        if self._outcome is not None:
            return
        self._outcome = outcome
        logger.warning(
            "handle.detached_resolved",
            waiter_id=self.waiter_id,
            success=outcome.success,
        )

    def notify(self, message: str) -> None:
        logger.info("handle.detached_notify", waiter_id=self.waiter_id, message=message)

    @property
    def state(self) -> WaiterState:
        if self._outcome is None:
            return WaiterState.HELD
        return WaiterState.RESOLVED if self._outcome.success else WaiterState.CANCELLED

    def __repr__(self) -> str:
        return f"DetachedWaiterHandle({self.waiter_id!r})"


__all__ = [
    "WaiterState",
    "Outcome",
    "WaiterHandle",
    "OutputSink",
    "ThreadWaiterHandle",
    "DetachedWaiterHandle",
]
