"""Timer-driven reading of newly appended file content."""

import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional

from .output import OutputWriter
from .reconciler import remove_file
from .watch_set import WatchSet

logger = logging.getLogger(__name__)


class Poller:
    """
    Reads bytes appended to every tracked file since its stored offset.

    Files are opened and closed on every tick, so no descriptors are held
    between ticks regardless of how many files are tracked.
    """

    def __init__(
        self,
        watch_set: WatchSet,
        writer: OutputWriter,
        quiet_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the poller.

        Args:
            watch_set: Shared watch set
            writer: Output writer for file content
            quiet_interval: Seconds without content before a single
                "no files changed" notice is logged (0 disables it)
            clock: Monotonic clock, injectable for tests
        """
        self.watch_set = watch_set
        self.writer = writer
        self.quiet_interval = quiet_interval
        self.clock = clock
        self.last_content_at = clock()

    def read_new(self, path: Path, offset: int) -> Optional[int]:
        """
        Deliver content appended to a file since offset.

        Args:
            path: Canonical file path
            offset: Stored read offset

        Returns:
            Number of bytes delivered, or None if the file was skipped
        """
        try:
            size = os.stat(path).st_size
        except FileNotFoundError:
            remove_file(self.watch_set, path)
            return None
        except OSError as e:
            logger.error("Error getting file info for %s: %s", path, e)
            return None

        truncated = size < offset
        if truncated:
            logger.info("File %s truncated, re-reading from start", path)
            offset = 0

        try:
            with open(path, "rb") as f:
                f.seek(offset)
                data = f.read()
        except FileNotFoundError:
            remove_file(self.watch_set, path)
            return None
        except OSError as e:
            logger.error("Error reading file %s: %s", path, e)
            return None

        if not data:
            if truncated:
                self.watch_set.update_offset(path, 0)
            return 0

        self.writer.write(path, data)
        self.watch_set.update_offset(path, offset + len(data))
        return len(data)

    def tick(self) -> int:
        """
        Visit every tracked file once.

        Returns:
            Total number of bytes delivered
        """
        total = 0
        for path, offset in self.watch_set.iter_files():
            delivered = self.read_new(path, offset)
            if delivered:
                total += delivered

        now = self.clock()
        if total:
            self.last_content_at = now
        elif self.quiet_interval > 0 and now - self.last_content_at > self.quiet_interval:
            logger.info("No files changed")
            self.last_content_at = now
        return total
