"""Command-line interface for rendezvous-core (typer + rich)."""
