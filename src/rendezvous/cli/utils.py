"""
CLI utility helpers — output formatting and registry access.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from rendezvous.barrier.models import BarrierRecord
from rendezvous.barrier.registry import BarrierRegistry
from rendezvous.barrier.store import create_store
from rendezvous.core.settings import RendezvousSettings, get_settings

console = Console()
err_console = Console(stderr=True)


# ── Registry helper ──────────────────────────────────────────────────────


def load_settings(data_dir: Path | None = None, backend: str | None = None) -> RendezvousSettings:
    """Effective settings with command-line overrides applied."""
    settings = get_settings()
    overrides: dict[str, Any] = {}
    if data_dir is not None:
        overrides["data_dir"] = data_dir
    if backend is not None:
        overrides["store_backend"] = backend
    if not overrides:
        return settings
    try:
        return RendezvousSettings.model_validate({**settings.model_dump(), **overrides})
    except ValidationError as e:
        fail(f"Invalid option: {e.errors()[0]['msg']}")


def open_registry(data_dir: Path | None = None, backend: str | None = None) -> BarrierRegistry:
    """A fresh registry over the persisted document (never the live default)."""
    return BarrierRegistry(create_store(load_settings(data_dir, backend)))


# ── Output helpers ───────────────────────────────────────────────────────


def record_row(name: str, record: BarrierRecord) -> dict[str, Any]:
    return {
        "name": name,
        "quorum": record.quorum,
        "held": len(record.holding),
        "waiters": list(record.holding),
    }


def output_barriers(
    barriers: dict[str, BarrierRecord],
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render barrier records to the terminal."""
    rows = [record_row(name, record) for name, record in barriers.items()]

    if as_json:
        console.print_json(json.dumps(rows))
        return

    if not rows:
        console.print("[dim]No barriers.[/dim]")
        return

    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in ("name", "quorum", "held", "waiters"):
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(
            row["name"],
            str(row["quorum"]),
            f"{row['held']}/{row['quorum']}",
            ", ".join(row["waiters"]),
        )
    console.print(table)


def fail(message: str) -> NoReturn:
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    raise typer.Exit(code=1)
