"""Main tailer process orchestrator."""

import logging
import sys
import threading
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, List, Optional

from .config import TailerConfig
from .event_listener import EventListener
from .exceptions import (
    NoPatternsError,
    TailerAlreadyRunningError,
)
from .fs_watcher import NotificationBackend, WatchdogBackend
from .models import DirectoryStatus, ReconcileResult
from .output import OutputWriter
from .poller import Poller
from .reconciler import Reconciler
from .resolver import PathResolver
from .watch_set import WatchSet

logger = logging.getLogger(__name__)


class TailerProcess:
    """
    Main orchestrator for following files matched by glob patterns.

    Owns the watch set and the notification backend, seeds the watch set
    with a synchronous reconciliation pass, then runs the reconciler,
    event listener and poller on their own threads.
    """

    def __init__(
        self,
        patterns: Iterable[str],
        config: Optional[TailerConfig] = None,
        sink: Optional[BinaryIO] = None,
        backend: Optional[NotificationBackend] = None,
    ):
        """
        Initialize the tailer process.

        Args:
            patterns: Glob patterns selecting the files to follow
            config: Tailer configuration
            sink: Binary stream receiving file content (defaults to stdout)
            backend: Notification backend (defaults to a watchdog observer)

        Raises:
            NoPatternsError: If no patterns were given
            BackendInitError: If the default backend cannot be started
        """
        self.config = config or TailerConfig()
        self.resolver = PathResolver(patterns)
        if len(self.resolver) == 0:
            raise NoPatternsError("At least one glob pattern is required")

        self.watch_set = WatchSet()
        self.backend = backend or WatchdogBackend()
        self.writer = OutputWriter(
            sink if sink is not None else sys.stdout.buffer,
            self.config.separator_format,
        )

        self._reconciler = Reconciler(self.resolver, self.watch_set, self.backend)
        self._listener = EventListener(self.resolver, self.watch_set, self.backend)
        self._poller = Poller(
            self.watch_set,
            self.writer,
            quiet_interval=self.config.quiet_interval,
        )

        self._running = False
        self._stop_event = threading.Event()
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()

    def reconcile(self) -> ReconcileResult:
        """Run one reconciliation pass immediately."""
        return self._reconciler.reconcile()

    def poll(self) -> int:
        """Run one poll tick immediately, returning the bytes delivered."""
        return self._poller.tick()

    def get_watched_files(self) -> Dict[Path, int]:
        """
        Get the tracked files and their offsets.

        Returns:
            Mapping of canonical path to read offset
        """
        return dict(self.watch_set.iter_files())

    def get_watched_dirs(self) -> Dict[Path, DirectoryStatus]:
        """
        Get the tracked directories and their subscription status.

        Returns:
            Mapping of canonical directory path to status
        """
        return dict(self.watch_set.iter_dirs())

    def _begin(self) -> None:
        with self._lock:
            if self._running:
                raise TailerAlreadyRunningError("Tailer is already running")

            self._running = True
            self._stop_event.clear()

        result = self._reconciler.reconcile()
        logger.info(
            "Following %d file(s) in %d directory(ies)",
            self.watch_set.file_count(),
            self.watch_set.dir_count(),
        )
        logger.debug("Initial scan matched %d path(s)", result.matched)

        self._threads = [
            threading.Thread(target=self._listener.run, name="EventListener"),
            threading.Thread(target=self._poll_loop, name="Poller"),
            threading.Thread(target=self._scan_loop, name="Reconciler"),
        ]

        for thread in self._threads:
            thread.daemon = True
            thread.start()

    def start(self) -> None:
        """
        Start the tailer (blocking).

        Seeds the watch set, starts all worker threads and blocks until
        stop() is called.

        Raises:
            TailerAlreadyRunningError: If already running
        """
        self._begin()

        try:
            while not self._stop_event.is_set():
                self._stop_event.wait(timeout=0.5)
        except KeyboardInterrupt:
            pass
        finally:
            self._shutdown()

    def start_async(self) -> None:
        """
        Start the tailer in the background.

        Returns immediately after the initial scan while the workers run
        in background threads.

        Raises:
            TailerAlreadyRunningError: If already running
        """
        self._begin()

    def stop(self) -> None:
        """
        Stop the tailer gracefully.

        Signals all threads to stop, closes the backend and waits for the
        threads to finish.
        """
        self._stop_event.set()
        self._shutdown()

    def _shutdown(self) -> None:
        """Internal shutdown procedure."""
        with self._lock:
            if not self._running:
                return

            self._running = False

        self._stop_event.set()
        self.backend.close()

        for thread in self._threads:
            if thread.is_alive():
                thread.join(timeout=2.0)

        self._threads.clear()

    def _poll_loop(self) -> None:
        """Worker loop that reads new content from tracked files."""
        logger.debug("Poll loop started, interval=%ss", self.config.poll_interval)

        while not self._stop_event.wait(timeout=self.config.poll_interval):
            try:
                self._poller.tick()
            except Exception as e:
                logger.error("Poll loop error: %s", e)

    def _scan_loop(self) -> None:
        """Worker loop that periodically reconciles the watch set."""
        logger.debug("Scan loop started, interval=%ss", self.config.scan_interval)

        while not self._stop_event.wait(timeout=self.config.scan_interval):
            try:
                self._reconciler.reconcile()
            except Exception as e:
                logger.error("Scan loop error: %s", e)

    @property
    def is_running(self) -> bool:
        """Check if the tailer is running."""
        return self._running

    def close(self) -> None:
        """Stop the tailer if needed and release the backend."""
        self.stop()
        self.backend.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
