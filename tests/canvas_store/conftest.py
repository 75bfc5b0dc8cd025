"""Fixtures for canvas persistence tests."""

import threading
import time
from collections.abc import Callable, Generator
from typing import Any

import pytest

from nexus_core.core.canvas_store import CanvasStore, shutdown_canvas_save_worker


class RecordingCanvasStore(CanvasStore):
    """CanvasStore that records every durable write it performs."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.writes: list[tuple[str, Any]] = []
        self._writes_lock = threading.Lock()

    def save_now(self, project_id: str, snapshot: Any):
        path = super().save_now(project_id, snapshot)
        with self._writes_lock:
            self.writes.append((project_id, snapshot))
        return path


def wait_for(predicate: Callable[[], bool], timeout: float = 3.0, interval: float = 0.01) -> bool:
    """Poll until predicate is true or timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def store(tmp_path) -> CanvasStore:
    """Store rooted in a temp dir."""
    return CanvasStore(tmp_path / "nexus-canvas")


@pytest.fixture
def recording_store(tmp_path) -> RecordingCanvasStore:
    """Recording store with a short debounce."""
    return RecordingCanvasStore(tmp_path / "nexus-canvas", debounce_ms=100)


@pytest.fixture
def waiter() -> Callable[..., bool]:
    """Polling helper for background writes."""
    return wait_for


@pytest.fixture(autouse=True)
def reset_save_worker() -> Generator[None, None, None]:
    """Stop the process-wide worker between tests."""
    shutdown_canvas_save_worker()
    yield
    shutdown_canvas_save_worker()
