"""Rendezvous step — host-side adapter around the barrier registry.

A workflow engine declares ``rendezvous(name, minimum)`` as a step. The step
validates its declaration up front; its execution parks the participant on a
:class:`ThreadWaiterHandle`, hands it to the registry, and on teardown
cancels the handle so the registry can reclaim the slot.

ARCHITECTURE
────────────
::

    RendezvousStep(name, minimum)          ─ validated declaration
    RendezvousStepExecution(step, waiter_id)
      ├── .start()        ─ registry.enter(...)  → False (completes later)
      ├── .wait(timeout)  ─ park until resolved
      └── .stop(cause)    ─ cancel handle, registry.stop(waiter_id)

    rendezvous(name, minimum, ...)         ─ start + wait, raise on abort

Example::

    from rendezvous import rendezvous

    def integration_stage(build_id: str) -> None:
        rendezvous("integration", 3, waiter_id=build_id, output=print)
        run_integration_suite()
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import ClassVar

from rendezvous.barrier.handle import Outcome, OutputSink, ThreadWaiterHandle
from rendezvous.barrier.models import validate_declaration
from rendezvous.barrier.registry import BarrierRegistry, get_default_registry
from rendezvous.core.errors import RendezvousAborted
from rendezvous.core.logging import LogContext, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RendezvousStep:
    """Pause until ``minimum`` participants reach the point called ``name``.

    Raises:
        InvalidConfigError: empty name or minimum below one
    """

    name: str
    minimum: int

    function_name: ClassVar[str] = "rendezvous"
    display_name: ClassVar[str] = "Rendezvous"

    def __post_init__(self) -> None:
        validate_declaration(self.name, self.minimum)


class RendezvousStepExecution:
    """One participant occurrence at a rendezvous step."""

    def __init__(
        self,
        step: RendezvousStep,
        waiter_id: str,
        *,
        registry: BarrierRegistry | None = None,
        output: OutputSink | None = None,
    ) -> None:
        self.step = step
        self.waiter_id = waiter_id
        self.handle = ThreadWaiterHandle(output=output)
        self.labels: list[str] = []
        self._registry = registry

    @property
    def registry(self) -> BarrierRegistry:
        if self._registry is None:
            self._registry = get_default_registry()
        return self._registry

    def start(self) -> bool:
        """Enter the barrier. Always returns False: completion is asynchronous."""
        self.labels.append(self.step.name)
        with LogContext(barrier=self.step.name, waiter_id=self.waiter_id):
            self.registry.enter(self.step.name, self.step.minimum, self.waiter_id, self.handle)
        return False

    def wait(self, timeout: float | None = None) -> Outcome | None:
        return self.handle.wait(timeout)

    def stop(self, cause: BaseException) -> None:
        """Abort the participant and reconcile the registry."""
        logger.info(
            "step.stopped",
            barrier=self.step.name,
            waiter_id=self.waiter_id,
            cause=str(cause),
        )
        self.handle.cancel(cause)
        self.registry.stop(self.waiter_id)


def rendezvous(
    name: str,
    minimum: int,
    *,
    waiter_id: str | None = None,
    registry: BarrierRegistry | None = None,
    output: OutputSink | None = None,
    timeout: float | None = None,
) -> Outcome:
    """Block the calling thread until ``minimum`` participants reach ``name``.

    Args:
        name: Rendezvous point
        minimum: Participants required to proceed
        waiter_id: Identity of this participant (random if omitted)
        registry: Registry to use (process default if omitted)
        output: Where progress lines go (text stream or callable)
        timeout: Give up after this many seconds and withdraw from the barrier

    Returns:
        The success outcome delivered by the barrier

    Raises:
        InvalidConfigError: invalid declaration
        RendezvousAborted: the participant was cancelled or timed out
    """
    step = RendezvousStep(name, minimum)
    execution = RendezvousStepExecution(
        step, waiter_id or str(uuid.uuid4()), registry=registry, output=output
    )
    execution.start()

    outcome = execution.wait(timeout)
    if outcome is None:
        execution.stop(TimeoutError(f"gave up after {timeout}s"))
        outcome = execution.handle.outcome

    # cancel() may lose to a concurrent release; the first outcome wins
    if outcome is None or not outcome.success:
        reason = str(outcome.error) if outcome is not None and outcome.error else None
        raise RendezvousAborted(name, execution.waiter_id, reason)
    return outcome


__all__ = [
    "RendezvousStep",
    "RendezvousStepExecution",
    "rendezvous",
]
