"""
Root Typer application for the rendezvous CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from rendezvous.cli.barriers import app as barriers_app
from rendezvous.cli.config import app as config_app
from rendezvous.core.logging import configure_logging
from rendezvous.core.settings import get_settings

app = Typer(
    name="rendezvous",
    help="rendezvous — inspect durable rendezvous barriers.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from rendezvous import __version__

        typer.echo(f"rendezvous-core {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """rendezvous CLI — inspect barriers and configuration."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)


app.add_typer(barriers_app, name="barriers", help="Barrier inspection.")
app.add_typer(config_app, name="config", help="Configuration.")


if __name__ == "__main__":
    app()
