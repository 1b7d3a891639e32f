"""Barrier entity and its persisted representation.

``Barrier`` is the in-memory state of one rendezvous point: the quorum it
needs and the handles currently held. ``BarrierRecord`` and
``BarrierTableDocument`` are the pydantic models written to the store; they
carry waiter ids only, since handles are process-local.

Both ``Barrier.block`` and ``Barrier.unblock`` must be called with the
owning registry's lock held. The registry is the only caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from rendezvous.barrier.handle import DetachedWaiterHandle, Outcome, WaiterHandle
from rendezvous.core.errors import InvalidConfigError
from rendezvous.core.logging import get_logger

logger = get_logger(__name__)

DOCUMENT_VERSION = 1


def validate_declaration(name: str, quorum: int) -> None:
    """Reject a barrier declaration before any state is touched.

    Raises:
        InvalidConfigError: empty name or quorum below one
    """
    if not name:
        raise InvalidConfigError("name", name, "must specify name")
    if isinstance(quorum, bool) or not isinstance(quorum, int) or quorum < 1:
        raise InvalidConfigError("minimum", quorum, "must specify minimum >= 1")


class BarrierRecord(BaseModel):
    """Persisted form of one barrier."""

    model_config = ConfigDict(extra="ignore")

    quorum: int = Field(ge=1)
    holding: list[str] = Field(default_factory=list)


class BarrierTableDocument(BaseModel):
    """The whole barrier table as one atomic document.

    ``released`` lists, per barrier name, waiters restored from disk that were
    released before their host re-entered them. Their next ``enter`` returns
    at once instead of joining a new occurrence.
    """

    model_config = ConfigDict(extra="ignore")

    version: int = DOCUMENT_VERSION
    barriers: dict[str, BarrierRecord] = Field(default_factory=dict)
    released: dict[str, list[str]] = Field(default_factory=dict)


@dataclass
class Barrier:
    """One named rendezvous point.

    Attributes:
        name: Unique key in the registry
        quorum: Holders required to release; the latest declaration wins
        holding: waiter id -> handle, iterated in sorted id order
    """

    name: str
    quorum: int
    holding: dict[str, WaiterHandle] = field(default_factory=dict)

    @property
    def held(self) -> int:
        return len(self.holding)

    @property
    def quorum_reached(self) -> bool:
        return self.held >= self.quorum

    def waiter_ids(self) -> list[str]:
        return sorted(self.holding)

    def detached_ids(self) -> list[str]:
        """Holders still represented by a placeholder restored from disk."""
        return [w for w in self.waiter_ids() if isinstance(self.holding[w], DetachedWaiterHandle)]

    def block(self, waiter_id: str, handle: WaiterHandle) -> None:
        """Hold ``handle`` under ``waiter_id``, replacing any previous handle."""
        self.holding[waiter_id] = handle

    def unblock(self) -> list[str]:
        """Resolve every held handle with success.

        Handles stay in ``holding`` until a later cleanup sees them ready.
        A handle that raises is logged and skipped so the rest are still
        released.

        Returns:
            Waiter ids that were resolved
        """
        released = []
        for waiter_id in self.waiter_ids():
            try:
                self.holding[waiter_id].resolve(Outcome.ok())
            except Exception as e:
                logger.warning(
                    "barrier.resolve_failed",
                    barrier=self.name,
                    waiter_id=waiter_id,
                    error=str(e),
                )
                continue
            released.append(waiter_id)
        return released

    def prune_ready(self) -> list[str]:
        """Drop holders whose handle reports ready. Returns the dropped ids."""
        removed = [w for w in self.waiter_ids() if self.holding[w].is_ready()]
        for waiter_id in removed:
            del self.holding[waiter_id]
        return removed

    def to_record(self) -> BarrierRecord:
        return BarrierRecord(quorum=self.quorum, holding=self.waiter_ids())

    @classmethod
    def from_record(cls, name: str, record: BarrierRecord) -> Barrier:
        """Rebuild a barrier from disk with detached placeholder handles."""
        barrier = cls(name=name, quorum=record.quorum)
        for waiter_id in sorted(set(record.holding)):
            barrier.block(waiter_id, DetachedWaiterHandle(waiter_id))
        return barrier


__all__ = [
    "DOCUMENT_VERSION",
    "validate_declaration",
    "BarrierRecord",
    "BarrierTableDocument",
    "Barrier",
]
