"""CLI test fixtures."""

from __future__ import annotations

import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch: pytest.MonkeyPatch):
    """Keep structlog output out of captured command output."""
    monkeypatch.setattr("rendezvous.cli.app.configure_logging", lambda **_: None)
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL))
    yield
    structlog.reset_defaults()
