"""Incremental watch set updates from directory change notifications."""

import logging
import queue
from typing import Optional

from .exceptions import BackendError, WatchLostError
from .fs_watcher import NotificationBackend
from .models import ChangeEvent, ChangeKind, DirectoryStatus
from .reconciler import add_file, remove_file
from .resolver import PathResolver, canonicalize
from .watch_set import WatchSet

logger = logging.getLogger(__name__)


class EventListener:
    """
    Applies create/remove/rename notifications to the watch set without
    waiting for the next reconciliation pass.

    Runs until the backend closes its event stream.
    """

    def __init__(
        self,
        resolver: PathResolver,
        watch_set: WatchSet,
        backend: NotificationBackend,
        wait_timeout: float = 0.2,
    ):
        """
        Initialize the listener.

        Args:
            resolver: Resolver used to filter created files
            watch_set: Shared watch set
            backend: Source of change events and errors
            wait_timeout: Seconds to block on the event queue before
                checking the error queue
        """
        self.resolver = resolver
        self.watch_set = watch_set
        self.backend = backend
        self.wait_timeout = wait_timeout

    def handle_event(self, event: ChangeEvent) -> None:
        """
        Apply a single change event.

        Args:
            event: The change notification
        """
        if event.kind == ChangeKind.CREATE:
            real_path = canonicalize(str(event.path))
            if self.resolver.matches(real_path):
                add_file(self.watch_set, real_path)
        elif event.kind in (ChangeKind.REMOVE, ChangeKind.RENAME):
            remove_file(self.watch_set, event.path)

    def mark_lost(self, error: WatchLostError) -> None:
        """
        Drop the subscription of a directory that went away.

        The directory keeps its entry, marked failed, so the next
        reconciliation subscribes it again if it still owns files.

        Args:
            error: The lost-watch report naming the directory
        """
        try:
            self.backend.unsubscribe(error.path)
        except BackendError as e:
            logger.error("Error removing directory %s from watcher: %s", error.path, e)
        if self.watch_set.get_dir(error.path) is not None:
            self.watch_set.swap_dir(error.path, DirectoryStatus(error=error))

    def drain_errors(self) -> bool:
        """
        Log all pending backend errors.

        A lost directory watch is also marked for renewal.

        Returns:
            False once the error stream has been closed
        """
        while True:
            try:
                error = self.backend.errors.get_nowait()
            except queue.Empty:
                return True
            if error is None:
                return False
            logger.error("Directory watcher error: %s", error)
            if isinstance(error, WatchLostError):
                self.mark_lost(error)

    def next_event(self) -> Optional[ChangeEvent]:
        """Block briefly for the next event, raising queue.Empty on timeout."""
        return self.backend.events.get(timeout=self.wait_timeout)

    def run(self) -> None:
        """Consume events until the event stream is closed."""
        logger.debug("Event listener started")
        errors_open = True

        while True:
            if errors_open:
                errors_open = self.drain_errors()

            try:
                event = self.next_event()
            except queue.Empty:
                continue

            if event is None:
                break

            try:
                self.handle_event(event)
            except Exception as e:
                logger.error("Error handling %s event for %s: %s", event.kind.value, event.path, e)

        if errors_open:
            self.drain_errors()
        logger.debug("Event listener stopped")
