"""
Shared fixtures for the toolwire test suite.

Provides a recorder for retry waits, stub handlers and a clean environment so
individual test modules can focus on behavior rather than setup.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
import structlog

import toolwire.main
from toolwire.tools.registry import ToolRegistry
from toolwire.types import build_envelope


# ---------------------------------------------------------------------------
# Logging: route structlog through stdlib so nothing is printed to stdout
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True, scope="session")
def _structlog_via_stdlib():
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
    # The CLI would otherwise install its console renderer on first use.
    toolwire.main._logging_configured = True
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep TOOLWIRE_* variables from the developer's shell out of the tests."""
    import os

    for key in list(os.environ):
        if key.startswith("TOOLWIRE_"):
            monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# Retry helpers
# ---------------------------------------------------------------------------

@pytest.fixture()
def recorded_delays(monkeypatch) -> list[float]:
    """Replace the retry delay with a recorder; each entry is a delay in ms."""
    delays: list[float] = []

    async def _fake_delay(ms: float) -> None:
        delays.append(ms)

    monkeypatch.setattr("toolwire.harness.retry.delay", _fake_delay)
    return delays


# ---------------------------------------------------------------------------
# Handler / registry fixtures
# ---------------------------------------------------------------------------

def echo_handler(args, name):
    """Synchronous handler that echoes its arguments back as content."""
    return build_envelope(name, dict(args or {}), name=name)


@pytest.fixture()
def spy_handler() -> AsyncMock:
    """Async handler spy returning a fixed envelope."""
    return AsyncMock(side_effect=lambda args, name: build_envelope(name, "spied", name=name))


@pytest.fixture()
def echo_registry(spy_handler) -> ToolRegistry:
    return ToolRegistry.from_handlers({"echo": echo_handler, "spy": spy_handler})
