"""Periodic re-derivation of the watch set from the filesystem."""

import logging
import os
from pathlib import Path
from typing import Set

from .exceptions import BackendError
from .fs_watcher import NotificationBackend
from .models import DirectoryStatus, ReconcileResult
from .resolver import PathResolver
from .watch_set import WatchSet

logger = logging.getLogger(__name__)


def add_file(watch_set: WatchSet, path: Path) -> bool:
    """
    Track a file starting at its current size.

    Existing content is never delivered; only bytes appended after this
    call will be read.

    Args:
        watch_set: Shared watch set
        path: Canonical file path

    Returns:
        True if the file is tracked after the call
    """
    if watch_set.has_file(path):
        return True

    try:
        size = os.stat(path).st_size
    except OSError as e:
        logger.error("Error getting file info for %s: %s", path, e)
        return False

    if watch_set.add_file_if_absent(path, size):
        logger.info("Watching new file: %s", path)
    return True


def remove_file(watch_set: WatchSet, path: Path) -> bool:
    """
    Stop tracking a file.

    Args:
        watch_set: Shared watch set
        path: Canonical file path

    Returns:
        True if the file was tracked
    """
    if watch_set.remove_file(path):
        logger.info("Stopped watching file: %s", path)
        return True
    return False


class Reconciler:
    """
    Applies the difference between the glob matches on disk and the
    current watch set.

    Adds newly matching files and their parent directories, drops files
    that no longer match and directories that no longer own a file.
    """

    def __init__(
        self,
        resolver: PathResolver,
        watch_set: WatchSet,
        backend: NotificationBackend,
    ):
        """
        Initialize the reconciler.

        Args:
            resolver: Resolver for the configured glob patterns
            watch_set: Shared watch set
            backend: Notification backend used for directory subscriptions
        """
        self.resolver = resolver
        self.watch_set = watch_set
        self.backend = backend

    def subscribe_dir(self, directory: Path) -> bool:
        """
        Make sure a directory is subscribed with the backend.

        A directory that was subscribed successfully is left alone. A
        failed subscription is retried, and only the first failure for a
        directory is logged.

        Args:
            directory: Canonical directory path

        Returns:
            True if the directory is subscribed
        """
        previous = self.watch_set.get_dir(directory)
        if previous is not None and previous.ok:
            return True

        try:
            self.backend.subscribe(directory)
        except BackendError as e:
            self.watch_set.swap_dir(directory, DirectoryStatus(error=e))
            if previous is None:
                logger.error("Error adding directory %s to watcher: %s", directory, e)
            return False

        self.watch_set.swap_dir(directory, DirectoryStatus())
        logger.info("Watching directory: %s", directory)
        return True

    def unsubscribe_dir(self, directory: Path) -> None:
        """
        Remove a directory subscription.

        Args:
            directory: Canonical directory path
        """
        try:
            self.backend.unsubscribe(directory)
        except BackendError as e:
            logger.error("Error removing directory %s from watcher: %s", directory, e)
        self.watch_set.remove_dir(directory)
        logger.info("Stopped watching directory: %s", directory)

    def reconcile(self) -> ReconcileResult:
        """
        Run one reconciliation pass.

        Returns:
            Summary of the changes applied
        """
        result = ReconcileResult()
        seen_files: Set[Path] = set()

        def visit(path: Path) -> None:
            result.matched += 1

            had_file = self.watch_set.has_file(path)
            if not add_file(self.watch_set, path):
                return
            seen_files.add(path)
            if not had_file:
                result.files_added.append(path)

            directory = path.parent
            previous = self.watch_set.get_dir(directory)
            was_ok = previous is not None and previous.ok
            if self.subscribe_dir(directory) and not was_ok:
                result.dirs_added.append(directory)

        tracked_before = set(self.watch_set.file_paths())
        self.resolver.walk(visit)

        # Files the event listener added during the walk are left alone.
        for path in self.watch_set.file_paths():
            if path not in tracked_before or path in seen_files:
                continue
            if remove_file(self.watch_set, path):
                result.files_removed.append(path)

        # Only directories owning a tracked file stay subscribed.
        owned_dirs = {path.parent for path in self.watch_set.file_paths()}
        for directory, _ in self.watch_set.iter_dirs():
            if directory not in owned_dirs:
                self.unsubscribe_dir(directory)
                result.dirs_removed.append(directory)

        if result.changed:
            logger.debug(
                "Reconciled %d matches: +%d/-%d files, +%d/-%d dirs",
                result.matched,
                len(result.files_added),
                len(result.files_removed),
                len(result.dirs_added),
                len(result.dirs_removed),
            )
        return result
