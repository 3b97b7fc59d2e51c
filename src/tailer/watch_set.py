"""Thread-safe store of watched files and subscribed directories."""

import threading
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from .models import DirectoryStatus


class WatchSet:
    """
    Thread-safe mapping of canonical file paths to read offsets and of
    canonical directory paths to their subscription status.

    Every method takes the internal lock for the duration of a single
    operation only. Iteration works on a snapshot of the keys and reads
    each entry separately, so callers may mutate the set while iterating.
    """

    def __init__(self):
        """Initialize an empty watch set."""
        self._files: Dict[Path, int] = {}
        self._dirs: Dict[Path, DirectoryStatus] = {}
        self._lock = threading.Lock()

    # Files

    def add_file_if_absent(self, path: Path, offset: int) -> bool:
        """
        Track a file unless it is already tracked.

        Args:
            path: Canonical file path
            offset: Initial read offset

        Returns:
            True if the file was added, False if already tracked
        """
        with self._lock:
            if path in self._files:
                return False
            self._files[path] = offset
            return True

    def get_offset(self, path: Path) -> Optional[int]:
        """
        Get the stored offset for a file.

        Args:
            path: Canonical file path

        Returns:
            The offset, or None if the file is not tracked
        """
        with self._lock:
            return self._files.get(path)

    def set_offset(self, path: Path, offset: int) -> None:
        """
        Overwrite the stored offset for a file.

        Args:
            path: Canonical file path
            offset: New read offset
        """
        with self._lock:
            self._files[path] = offset

    def update_offset(self, path: Path, offset: int) -> bool:
        """
        Overwrite the offset only if the file is still tracked.

        Args:
            path: Canonical file path
            offset: New read offset

        Returns:
            True if the offset was stored
        """
        with self._lock:
            if path not in self._files:
                return False
            self._files[path] = offset
            return True

    def remove_file(self, path: Path) -> bool:
        """
        Stop tracking a file.

        Args:
            path: Canonical file path

        Returns:
            True if the file was tracked
        """
        with self._lock:
            return self._files.pop(path, None) is not None

    def has_file(self, path: Path) -> bool:
        with self._lock:
            return path in self._files

    def iter_files(self) -> Iterator[Tuple[Path, int]]:
        """
        Iterate over tracked files and their offsets.

        Files removed after the iteration started are skipped.

        Yields:
            (path, offset) tuples
        """
        for path in self.file_paths():
            offset = self.get_offset(path)
            if offset is not None:
                yield path, offset

    def file_paths(self) -> List[Path]:
        """Get a snapshot of the tracked file paths."""
        with self._lock:
            return list(self._files)

    def file_count(self) -> int:
        with self._lock:
            return len(self._files)

    # Directories

    def swap_dir(self, path: Path, status: DirectoryStatus) -> Optional[DirectoryStatus]:
        """
        Store the subscription status of a directory.

        Args:
            path: Canonical directory path
            status: New subscription status

        Returns:
            The previous status, or None if the directory was not tracked
        """
        with self._lock:
            previous = self._dirs.get(path)
            self._dirs[path] = status
            return previous

    def get_dir(self, path: Path) -> Optional[DirectoryStatus]:
        with self._lock:
            return self._dirs.get(path)

    def remove_dir(self, path: Path) -> Optional[DirectoryStatus]:
        """
        Stop tracking a directory.

        Args:
            path: Canonical directory path

        Returns:
            The removed status, or None if the directory was not tracked
        """
        with self._lock:
            return self._dirs.pop(path, None)

    def iter_dirs(self) -> Iterator[Tuple[Path, DirectoryStatus]]:
        """
        Iterate over tracked directories and their status.

        Yields:
            (path, status) tuples
        """
        with self._lock:
            paths = list(self._dirs)
        for path in paths:
            status = self.get_dir(path)
            if status is not None:
                yield path, status

    def dir_count(self) -> int:
        with self._lock:
            return len(self._dirs)

    def __len__(self) -> int:
        """Return the number of tracked files."""
        return self.file_count()

    def __contains__(self, path: Path) -> bool:
        """Check if a file is tracked."""
        return self.has_file(path)
