"""Tests for filesystem watcher module."""

import queue
import pytest
import time

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from src.tailer.exceptions import BackendError, BackendInitError, WatchLostError
from src.tailer.fs_watcher import ChangeEventHandler, WatchdogBackend
from src.tailer.models import ChangeKind


def collect(q, predicate, timeout=3.0):
    """Read from q until predicate matches an item or timeout expires."""
    items = []
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            item = q.get(timeout=0.05)
        except queue.Empty:
            continue
        items.append(item)
        if item is not None and predicate(item):
            break
    return items


class TestChangeEventHandler:
    """Tests for ChangeEventHandler class."""

    def test_file_created(self, root, backend):
        handler = ChangeEventHandler(backend, root)

        handler.dispatch(FileCreatedEvent(str(root / "a.log")))

        event = backend.events.get_nowait()
        assert event.kind == ChangeKind.CREATE
        assert event.path == root / "a.log"

    def test_file_deleted(self, root, backend):
        handler = ChangeEventHandler(backend, root)

        handler.dispatch(FileDeletedEvent(str(root / "a.log")))

        event = backend.events.get_nowait()
        assert event.kind == ChangeKind.REMOVE
        assert event.path == root / "a.log"

    def test_file_moved_within_directory(self, root, backend):
        handler = ChangeEventHandler(backend, root)

        handler.dispatch(FileMovedEvent(str(root / "a.log"), str(root / "a.log.1")))

        first = backend.events.get_nowait()
        second = backend.events.get_nowait()
        assert (first.kind, first.path) == (ChangeKind.RENAME, root / "a.log")
        assert (second.kind, second.path) == (ChangeKind.CREATE, root / "a.log.1")

    def test_file_moved_out_of_directory(self, root, backend):
        handler = ChangeEventHandler(backend, root)

        handler.dispatch(FileMovedEvent(str(root / "a.log"), str(root / "other" / "a.log")))

        event = backend.events.get_nowait()
        assert event.kind == ChangeKind.RENAME
        assert backend.events.empty()

    def test_modified_ignored(self, root, backend):
        handler = ChangeEventHandler(backend, root)

        handler.dispatch(FileModifiedEvent(str(root / "a.log")))

        assert backend.events.empty()

    def test_directory_created_ignored(self, root, backend):
        handler = ChangeEventHandler(backend, root)

        handler.dispatch(DirCreatedEvent(str(root / "sub")))

        assert backend.events.empty()

    def test_watched_directory_removed_reports_error(self, root, backend):
        handler = ChangeEventHandler(backend, root)

        handler.dispatch(DirDeletedEvent(str(root)))

        error = backend.errors.get_nowait()
        assert isinstance(error, WatchLostError)
        assert error.path == root
        assert str(root) in str(error)
        assert backend.events.empty()

    def test_child_directory_removed_ignored(self, root, backend):
        handler = ChangeEventHandler(backend, root)

        handler.dispatch(DirDeletedEvent(str(root / "sub")))

        assert backend.errors.empty()
        assert backend.events.empty()


class TestWatchdogBackend:
    """Tests for WatchdogBackend class."""

    def test_subscribe_and_unsubscribe(self, root):
        backend = WatchdogBackend()
        try:
            backend.subscribe(root)
            assert backend.is_subscribed(root)
            assert len(backend) == 1

            backend.unsubscribe(root)
            assert not backend.is_subscribed(root)
            assert len(backend) == 0
        finally:
            backend.close()

    def test_subscribe_twice_is_noop(self, root):
        backend = WatchdogBackend()
        try:
            backend.subscribe(root)
            backend.subscribe(root)
            assert len(backend) == 1
        finally:
            backend.close()

    def test_subscribe_missing_directory_raises(self, root):
        backend = WatchdogBackend()
        try:
            with pytest.raises(BackendError):
                backend.subscribe(root / "missing")
            assert len(backend) == 0
        finally:
            backend.close()

    def test_unsubscribe_unknown_directory(self, root):
        backend = WatchdogBackend()
        try:
            backend.unsubscribe(root)
        finally:
            backend.close()

    def test_close_sends_sentinels(self):
        backend = WatchdogBackend()
        backend.close()

        assert backend.events.get(timeout=1.0) is None
        assert backend.errors.get(timeout=1.0) is None

    def test_close_twice(self):
        backend = WatchdogBackend()
        backend.close()
        backend.close()

        assert backend.events.get(timeout=1.0) is None
        assert backend.events.empty()

    def test_subscribe_after_close_raises(self, root):
        backend = WatchdogBackend()
        backend.close()

        with pytest.raises(BackendError):
            backend.subscribe(root)

    def test_observer_start_failure(self):
        class BrokenObserver:
            def start(self):
                raise OSError("inotify instance limit reached")

        with pytest.raises(BackendInitError):
            WatchdogBackend(observer_factory=BrokenObserver)

    def test_detects_file_creation(self, root):
        backend = WatchdogBackend()
        try:
            backend.subscribe(root)
            time.sleep(0.2)

            (root / "test.log").write_text("hello")

            events = collect(
                backend.events,
                lambda e: e.kind == ChangeKind.CREATE and e.path.name == "test.log",
            )
        finally:
            backend.close()

        assert any(e is not None and e.kind == ChangeKind.CREATE for e in events)

    def test_detects_file_deletion(self, root):
        path = root / "test.log"
        path.write_text("hello")

        backend = WatchdogBackend()
        try:
            backend.subscribe(root)
            time.sleep(0.2)

            path.unlink()

            events = collect(
                backend.events,
                lambda e: e.kind == ChangeKind.REMOVE and e.path == path,
            )
        finally:
            backend.close()

        assert any(e is not None and e.kind == ChangeKind.REMOVE for e in events)

    def test_detects_rename(self, root):
        path = root / "app.log"
        path.write_text("hello")

        backend = WatchdogBackend()
        try:
            backend.subscribe(root)
            time.sleep(0.2)

            path.rename(root / "app.log.1")

            events = collect(
                backend.events,
                lambda e: e.kind == ChangeKind.CREATE and e.path.name == "app.log.1",
            )
        finally:
            backend.close()

        kinds = [(e.kind, e.path.name) for e in events if e is not None]
        assert (ChangeKind.RENAME, "app.log") in kinds
        assert (ChangeKind.CREATE, "app.log.1") in kinds

    def test_no_events_after_unsubscribe(self, root):
        backend = WatchdogBackend()
        try:
            backend.subscribe(root)
            backend.unsubscribe(root)
            time.sleep(0.2)

            (root / "test.log").write_text("hello")
            time.sleep(0.5)

            assert backend.events.empty()
        finally:
            backend.close()
