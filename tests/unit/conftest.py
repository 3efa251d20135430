"""Unit-test conftest — shared fixtures.

All fixtures here are available to every test under tests/unit/ without import.
Fake widget libraries and upstream helpers live in tests/unit/fakes.py.
"""

from __future__ import annotations

import pytest

from devrate.client.readiness import ReadinessOrchestrator
from devrate.client.widgets import LibraryRegistry, MountPoint, Window
from devrate.models.trace import TraceBus
from tests.unit.fakes import MockExecutor


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def registry():
    return LibraryRegistry()


@pytest.fixture
def window():
    return Window()


@pytest.fixture
def trace_bus():
    return TraceBus(persist=False)


@pytest.fixture
def make_orchestrator(registry, window, trace_bus):
    """Factory for an orchestrator with fast timings and a MockExecutor."""

    def _make(**kwargs) -> ReadinessOrchestrator:
        kwargs.setdefault("editor_mount", MountPoint("editor"))
        kwargs.setdefault("terminal_mount", MountPoint("terminal"))
        kwargs.setdefault("executor", MockExecutor())
        kwargs.setdefault("poll_interval", 0.01)
        kwargs.setdefault("settle_delay", 0.02)
        kwargs.setdefault("load_timeout", 1.0)
        kwargs.setdefault("trace", trace_bus)
        return ReadinessOrchestrator(registry, window, **kwargs)

    return _make

