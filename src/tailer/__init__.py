"""
Glob Tailer Package

Follows an evolving set of files selected by glob patterns and prints
newly appended bytes as they arrive, like `tail -F` for many files.

Features:
- Glob patterns with *, ?, [...], {a,b} alternation and recursive **
- Symlink resolution so every file is watched once
- Files are followed from their size at discovery, never re-read
- New matching files picked up from directory notifications
- Periodic rescan as a fallback for missed notifications
- Deleted and renamed files dropped, truncated files re-read from start
- Files opened only for the duration of each read
"""

from .models import (
    ChangeKind,
    ChangeEvent,
    DirectoryStatus,
    ReconcileResult,
)

from .config import TailerConfig, parse_duration

from .exceptions import (
    TailerError,
    ConfigError,
    NoPatternsError,
    BackendError,
    BackendInitError,
    WatchLostError,
    TailerAlreadyRunningError,
)

from .resolver import PathResolver, canonicalize, expand_braces, split_pattern
from .watch_set import WatchSet
from .fs_watcher import NotificationBackend, WatchdogBackend, ChangeEventHandler
from .reconciler import Reconciler
from .event_listener import EventListener
from .output import OutputWriter
from .poller import Poller
from .process import TailerProcess


__all__ = [
    # Models
    "ChangeKind",
    "ChangeEvent",
    "DirectoryStatus",
    "ReconcileResult",
    # Config
    "TailerConfig",
    "parse_duration",
    # Exceptions
    "TailerError",
    "ConfigError",
    "NoPatternsError",
    "BackendError",
    "BackendInitError",
    "WatchLostError",
    "TailerAlreadyRunningError",
    # Components
    "PathResolver",
    "canonicalize",
    "expand_braces",
    "split_pattern",
    "WatchSet",
    "NotificationBackend",
    "WatchdogBackend",
    "ChangeEventHandler",
    "Reconciler",
    "EventListener",
    "OutputWriter",
    "Poller",
    # Main Process
    "TailerProcess",
]

__version__ = "0.1.0"
