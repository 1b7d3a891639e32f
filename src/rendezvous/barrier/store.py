"""
Barrier stores — durable load/save of the whole barrier table.

The registry treats persistence as one document read or written atomically.
Concurrency is the registry's problem: it serialises every access through its
own lock, so a store only needs single-writer atomicity.

Architecture:
    ::

        BarrierStore (protocol)
          ├── .load() -> BarrierTableDocument | None   (None = not found)
          └── .save(document)

        InMemoryBarrierStore   ─ JSON text kept in memory (tests, ephemeral)
        JsonFileBarrierStore   ─ one JSON file, temp-file + os.replace
        SqliteBarrierStore     ─ one row in core_rendezvous_documents

Errors:
    Implementations raise :class:`StoreReadError` when a document exists but
    cannot be read or decoded, and :class:`StoreWriteError` when it cannot be
    written. A missing document is not an error.

Examples:
    >>> store = JsonFileBarrierStore("/var/lib/rendezvous/rendezvous-barriers.json")
    >>> store.save(BarrierTableDocument())
    >>> store.load()
    BarrierTableDocument(version=1, barriers={})

Tags:
    persistence, atomic-write, sqlite, json, rendezvous-core
"""

from __future__ import annotations

import os
import sqlite3
import tempfile
from contextlib import closing
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from rendezvous.barrier.models import BarrierTableDocument
from rendezvous.core.errors import StoreReadError, StoreWriteError
from rendezvous.core.logging import get_logger
from rendezvous.core.settings import STATE_DOCUMENT_ID, RendezvousSettings

logger = get_logger(__name__)


@runtime_checkable
class BarrierStore(Protocol):
    """Atomic whole-document persistence for the barrier table."""

    def load(self) -> BarrierTableDocument | None:
        """Return the stored document, or None if nothing was saved yet."""
        ...

    def save(self, document: BarrierTableDocument) -> None:
        """Replace the stored document."""
        ...


def _decode(text: str, location: str) -> BarrierTableDocument:
    try:
        return BarrierTableDocument.model_validate_json(text)
    except ValidationError as e:
        raise StoreReadError(f"Corrupt barrier document: {e}", cause=e).with_context(
            path=location
        )


class InMemoryBarrierStore:
    """Keeps the encoded document in memory.

    The document is stored as JSON text rather than as live objects so that
    two registries sharing one store behave like two processes sharing a file.
    """

    def __init__(self) -> None:
        self._text: str | None = None

    def load(self) -> BarrierTableDocument | None:
        if self._text is None:
            return None
        return _decode(self._text, "memory")

    def save(self, document: BarrierTableDocument) -> None:
        self._text = document.model_dump_json()


class JsonFileBarrierStore:
    """Single JSON file, replaced atomically on every save."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> BarrierTableDocument | None:
        if not self.path.exists():
            return None
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreReadError(f"Cannot read {self.path}: {e}", cause=e).with_context(
                path=str(self.path)
            )
        return _decode(text, str(self.path))

    def save(self, document: BarrierTableDocument) -> None:
        payload = document.model_dump_json(indent=2)
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)  # Atomic on POSIX and Windows
            tmp_name = None
        except OSError as e:
            raise StoreWriteError(f"Cannot write {self.path}: {e}", cause=e).with_context(
                path=str(self.path)
            )
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)


class SqliteBarrierStore:
    """Document kept as one row of a SQLite table.

    Useful where a data directory already hosts SQLite state and a JSON file
    next to it is unwelcome. The row is keyed by the well-known document id.
    """

    TABLE = "core_rendezvous_documents"

    def __init__(self, path: str | Path, document_id: str = STATE_DOCUMENT_ID) -> None:
        self.path = Path(path)
        self.document_id = document_id

    def _connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.path))
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.TABLE} (
                document_id TEXT NOT NULL PRIMARY KEY,
                body TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        return conn

    def load(self) -> BarrierTableDocument | None:
        try:
            with closing(self._connect()) as conn:
                row = conn.execute(
                    f"SELECT body FROM {self.TABLE} WHERE document_id = ?",
                    (self.document_id,),
                ).fetchone()
        except (sqlite3.Error, OSError) as e:
            raise StoreReadError(f"Cannot read {self.path}: {e}", cause=e).with_context(
                path=str(self.path)
            )
        if row is None:
            return None
        return _decode(row[0], str(self.path))

    def save(self, document: BarrierTableDocument) -> None:
        now = datetime.now(UTC).isoformat()
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    f"""
                    INSERT INTO {self.TABLE} (document_id, body, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT (document_id) DO UPDATE SET
                        body = excluded.body,
                        updated_at = excluded.updated_at
                    """,
                    (self.document_id, document.model_dump_json(), now),
                )
        except (sqlite3.Error, OSError) as e:
            raise StoreWriteError(f"Cannot write {self.path}: {e}", cause=e).with_context(
                path=str(self.path)
            )


def create_store(settings: RendezvousSettings) -> BarrierStore:
    """Build the store selected by ``settings.store_backend``."""
    path = settings.state_path
    if settings.store_backend == "json":
        store: BarrierStore = JsonFileBarrierStore(path)
    elif settings.store_backend == "sqlite":
        store = SqliteBarrierStore(path)
    else:
        store = InMemoryBarrierStore()
    logger.debug("store.created", backend=settings.store_backend, path=str(path))
    return store


__all__ = [
    "BarrierStore",
    "InMemoryBarrierStore",
    "JsonFileBarrierStore",
    "SqliteBarrierStore",
    "create_store",
]
