"""Shared test fixtures for buildtray."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

import pytest

from buildtray.models.config import DISCONNECTED_FLAG, VisibilityConfig
from buildtray.models.snapshot import ProjectActivity, ProjectSnapshot, ProjectState
from buildtray.monitor.collection import Row, RowCollection


class RecordingCollection(RowCollection):
    """RowCollection that records every insert and remove call."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[str, str]] = []

    def insert(self, row: Row) -> None:
        self.calls.append(("insert", row.project_name))
        super().insert(row)

    def remove(self, row: Row) -> None:
        self.calls.append(("remove", row.project_name))
        super().remove(row)


@pytest.fixture
def collection() -> RecordingCollection:
    """Provide an empty collection that records membership calls."""
    return RecordingCollection()


@pytest.fixture
def visibility() -> VisibilityConfig:
    """Default rules: nothing hidden by state, disconnected hidden."""
    return VisibilityConfig()


@pytest.fixture
def show_disconnected() -> VisibilityConfig:
    """Rules that keep disconnected projects visible."""
    return VisibilityConfig(display_flags={DISCONNECTED_FLAG: True})


# ---------------------------------------------------------------------------
# Snapshot factory — shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_snapshot() -> Callable[..., ProjectSnapshot]:
    """Factory fixture: build a ProjectSnapshot with sensible defaults."""

    def _factory(
        project_name: str = "Proj1",
        server_display_name: str = "ServerA",
        **overrides: Any,
    ) -> ProjectSnapshot:
        defaults: dict[str, Any] = {
            "project_name": project_name,
            "server_display_name": server_display_name,
            "is_connected": True,
            "project_state": ProjectState.SUCCESS,
            "integrator_state": "Running",
            "activity": ProjectActivity.SLEEPING,
            "category": "backend",
            "queue_name": "default",
            "queue_priority": 3,
            "last_build_label": "1.0.42",
            "last_build_time": datetime(2026, 10, 1, 12, 30, 0),
            "web_url": "http://build.example.com:8080/server/local/project/Proj1",
        }
        defaults.update(overrides)
        return ProjectSnapshot(**defaults)

    return _factory


@pytest.fixture
def snapshot(make_snapshot: Callable[..., ProjectSnapshot]) -> ProjectSnapshot:
    """Convenience: a ready-made connected, successful snapshot."""
    return make_snapshot()
