"""Shared fixtures for tailer tests."""

import pytest
from pathlib import Path

from src.tailer.exceptions import BackendError
from src.tailer.fs_watcher import NotificationBackend


class FakeBackend(NotificationBackend):
    """In-memory notification backend recording subscriptions."""

    def __init__(self):
        super().__init__()
        self.subscribed = set()
        self.failing = set()
        self.subscribe_calls = []
        self.unsubscribe_calls = []
        self.closed = False

    def subscribe(self, path: Path) -> None:
        self.subscribe_calls.append(path)
        if path in self.failing:
            raise BackendError(f"permission denied: {path}")
        self.subscribed.add(path)

    def unsubscribe(self, path: Path) -> None:
        self.unsubscribe_calls.append(path)
        self.subscribed.discard(path)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.events.put(None)
        self.errors.put(None)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def root(tmp_path):
    """A canonical temporary directory."""
    return tmp_path.resolve()
