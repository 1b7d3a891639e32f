"""
Structured error types for rendezvous-core.

Every error raised by the package derives from :class:`RendezvousError`, which
carries a category, a retry flag, structured context and an optional chained
cause. Callers can catch one family (``StorageError``) or everything
(``RendezvousError``) with a single ``except`` clause.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     RendezvousError                          │
        │        (category, retryable, context, cause)                 │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ConfigError          StorageError        OrchestrationError │
        │  (CONFIG)             (STORAGE)           (ORCHESTRATION)    │
        │     │                    │                     │             │
        │  InvalidConfigError   StoreReadError      RendezvousAborted  │
        │                       StoreWriteError                        │
        └─────────────────────────────────────────────────────────────┘

Where errors surface:
    - **ConfigError:** raised synchronously when a rendezvous step is
      declared with an empty name or a quorum below one. Never reaches the
      registry.
    - **StorageError:** raised by barrier stores. The registry logs these at
      warning level and carries on with its in-memory table.
    - **OrchestrationError:** raised to a participant whose wait ended with a
      failure outcome (cancelled instead of released).

Examples:
    >>> error = StoreWriteError("disk full").with_context(path="/tmp/state.json")
    >>> error.to_dict()["context"]
    {'path': '/tmp/state.json'}

Tags:
    error-handling, exception-hierarchy, rendezvous-core
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and log routing."""

    CONFIG = "CONFIG"                # Invalid step declaration or settings
    STORAGE = "STORAGE"              # Persisted barrier document I/O
    ORCHESTRATION = "ORCHESTRATION"  # Participant lifecycle failures
    INTERNAL = "INTERNAL"            # Bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        barrier: Name of the rendezvous point involved
        waiter_id: Identifier of the participant occurrence
        path: Filesystem location of the persisted document
        metadata: Additional key-value pairs
    """

    barrier: str | None = None
    waiter_id: str | None = None
    path: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["barrier", "waiter_id", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RendezvousError(Exception):
    """
    Base exception for all rendezvous-core errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that each
    family gets sensible defaults without repeating them at every raise site.

    Examples:
        >>> error = RendezvousError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False

        Chaining the underlying exception:

        >>> try:
        ...     raise OSError("read-only file system")
        ... except OSError as e:
        ...     error = StoreWriteError("Cannot persist barriers", cause=e)
        >>> error.cause
        OSError('read-only file system')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RendezvousError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StoreReadError("Corrupt document").with_context(
                path="/var/lib/rendezvous/rendezvous-barriers.json"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(RendezvousError):
    """
    Configuration error.

    Never retryable - the declaration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class InvalidConfigError(ConfigError, ValueError):
    """Configuration value is invalid.

    Also a ``ValueError`` so hosts that only know about argument errors can
    catch it without importing this module.
    """

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class StorageError(RendezvousError):
    """Persisted barrier document could not be read or written."""

    default_category = ErrorCategory.STORAGE
    default_retryable = True


class StoreReadError(StorageError):
    """Document exists but could not be read or decoded."""

    pass


class StoreWriteError(StorageError):
    """Document could not be written."""

    pass


# =============================================================================
# ORCHESTRATION ERRORS
# =============================================================================


class OrchestrationError(RendezvousError):
    """Participant lifecycle error."""

    default_category = ErrorCategory.ORCHESTRATION
    default_retryable = False


class RendezvousAborted(OrchestrationError):
    """A participant was cancelled before the barrier released it."""

    def __init__(self, barrier: str, waiter_id: str, reason: str | None = None):
        self.barrier = barrier
        self.waiter_id = waiter_id
        self.reason = reason
        message = f"Rendezvous '{barrier}' aborted for {waiter_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, context=ErrorContext(barrier=barrier, waiter_id=waiter_id))


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RendezvousError",
    "ConfigError",
    "InvalidConfigError",
    "StorageError",
    "StoreReadError",
    "StoreWriteError",
    "OrchestrationError",
    "RendezvousAborted",
]
