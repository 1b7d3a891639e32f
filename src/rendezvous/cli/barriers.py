"""
CLI: ``rendezvous barriers`` — inspect persisted rendezvous barriers.

Read-only: commands load the persisted document into a private registry and
never write it back.
"""

from __future__ import annotations

from pathlib import Path

import typer

from rendezvous.cli.utils import fail, open_registry, output_barriers

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_barriers(
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d"),
    backend: str | None = typer.Option(None, "--backend", "-b", help="json, sqlite or memory"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List barriers that still hold waiters."""
    registry = open_registry(data_dir, backend)
    output_barriers(registry.snapshot(), as_json=json_out, title="Barriers")


@app.command("show")
def show_barrier(
    name: str = typer.Argument(..., help="Rendezvous point name"),
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d"),
    backend: str | None = typer.Option(None, "--backend", "-b"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one barrier."""
    registry = open_registry(data_dir, backend)
    record = registry.get(name)
    if record is None:
        fail(f"No barrier named {name!r}")
    output_barriers({name: record}, as_json=json_out, title=name)
