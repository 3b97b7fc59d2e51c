"""Directory change notifications using the watchdog library."""

import logging
import os
import queue
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from watchdog.events import (
    DirDeletedEvent,
    DirMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import ObservedWatch

from .exceptions import BackendError, BackendInitError, WatchLostError
from .models import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)


class NotificationBackend(ABC):
    """
    Abstract directory-level change notification source.

    Implementations deliver ChangeEvent objects on `events` and
    exceptions on `errors`. After close(), a None sentinel is put on
    both queues.
    """

    def __init__(self):
        self.events: "queue.Queue[Optional[ChangeEvent]]" = queue.Queue()
        self.errors: "queue.Queue[Optional[Exception]]" = queue.Queue()

    @abstractmethod
    def subscribe(self, path: Path) -> None:
        """
        Start receiving events for a directory.

        Calling it again for a subscribed directory is a no-op.

        Args:
            path: Canonical directory path

        Raises:
            BackendError: If the directory cannot be watched
        """
        pass

    @abstractmethod
    def unsubscribe(self, path: Path) -> None:
        """
        Stop receiving events for a directory.

        Args:
            path: Canonical directory path

        Raises:
            BackendError: If the watch could not be removed
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release all watches and signal the end of both streams."""
        pass


def _to_path(raw) -> Path:
    return Path(os.fsdecode(raw))


class ChangeEventHandler(FileSystemEventHandler):
    """Handler that converts watchdog events to ChangeEvent."""

    def __init__(self, backend: "WatchdogBackend", directory: Path):
        super().__init__()
        self.backend = backend
        self.directory = directory

    def _emit(self, kind: ChangeKind, path: Path) -> None:
        self.backend.events.put(ChangeEvent(kind=kind, path=path))

    def _watch_lost(self, path: Path) -> bool:
        """Report removal of the subscribed directory itself."""
        if path != self.directory:
            return False
        self.backend.errors.put(
            WatchLostError(f"Watched directory was removed: {self.directory}", self.directory)
        )
        return True

    def on_created(self, event: FileSystemEvent):
        if event.is_directory:
            return
        self._emit(ChangeKind.CREATE, _to_path(event.src_path))

    def on_deleted(self, event: FileSystemEvent):
        src_path = _to_path(event.src_path)
        if isinstance(event, DirDeletedEvent):
            self._watch_lost(src_path)
            return
        self._emit(ChangeKind.REMOVE, src_path)

    def on_moved(self, event: FileSystemEvent):
        src_path = _to_path(event.src_path)
        if isinstance(event, DirMovedEvent):
            self._watch_lost(src_path)
            return
        self._emit(ChangeKind.RENAME, src_path)
        if event.dest_path:
            dest_path = _to_path(event.dest_path)
            if dest_path.parent == self.directory:
                self._emit(ChangeKind.CREATE, dest_path)


class WatchdogBackend(NotificationBackend):
    """
    Notification backend backed by a single watchdog observer.

    Each subscribed directory gets its own non-recursive watch, so events
    are only delivered for direct children of directories that own a
    tracked file.
    """

    def __init__(self, observer_factory=Observer):
        """
        Initialize and start the observer.

        Args:
            observer_factory: Callable returning a watchdog observer

        Raises:
            BackendInitError: If the observer cannot be started
        """
        super().__init__()
        self._watches: Dict[Path, ObservedWatch] = {}
        self._lock = threading.Lock()
        self._closed = False

        try:
            self._observer = observer_factory()
            self._observer.daemon = True
            self._observer.start()
        except Exception as e:
            raise BackendInitError(f"Failed to start filesystem observer: {e}") from e

    def subscribe(self, path: Path) -> None:
        with self._lock:
            if self._closed:
                raise BackendError("Backend is closed")
            if path in self._watches:
                return

            handler = ChangeEventHandler(self, path)
            try:
                watch = self._observer.schedule(handler, str(path), recursive=False)
            except Exception as e:
                raise BackendError(f"Cannot watch {path}: {e}") from e
            self._watches[path] = watch

    def unsubscribe(self, path: Path) -> None:
        with self._lock:
            watch = self._watches.pop(path, None)
            if watch is None:
                return
            try:
                self._observer.unschedule(watch)
            except Exception as e:
                raise BackendError(f"Cannot unwatch {path}: {e}") from e

    def is_subscribed(self, path: Path) -> bool:
        with self._lock:
            return path in self._watches

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._watches.clear()

        self._observer.stop()
        self._observer.join(timeout=5.0)

        self.events.put(None)
        self.errors.put(None)

    def __len__(self) -> int:
        """Return the number of subscribed directories."""
        with self._lock:
            return len(self._watches)
