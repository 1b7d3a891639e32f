"""Workflow-facing adapters for rendezvous barriers."""

from rendezvous.orchestration.step import (
    RendezvousStep,
    RendezvousStepExecution,
    rendezvous,
)

__all__ = [
    "RendezvousStep",
    "RendezvousStepExecution",
    "rendezvous",
]
