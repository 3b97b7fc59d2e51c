"""Data models for the tailer package."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional
import time


class ChangeKind(Enum):
    """Types of directory change notifications."""
    CREATE = "create"
    REMOVE = "remove"
    RENAME = "rename"


@dataclass(frozen=True)
class ChangeEvent:
    """
    A change notification for a single path inside a subscribed directory.
    
    Attributes:
        kind: The operation that happened (CREATE, REMOVE, RENAME)
        path: Absolute path affected by the operation. For RENAME this is
            the old name.
        timestamp: Unix timestamp when the event was observed
    """
    kind: ChangeKind
    path: Path
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self):
        if not self.path.is_absolute():
            raise ValueError(f"path must be absolute: {self.path}")


@dataclass(frozen=True)
class DirectoryStatus:
    """
    Outcome of the last subscription attempt for a directory.
    
    Attributes:
        error: The exception raised by the backend, or None on success
        updated_at: Unix timestamp of the attempt
    """
    error: Optional[Exception] = None
    updated_at: float = field(default_factory=time.time)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ReconcileResult:
    """
    Summary of one reconciliation pass.
    
    Attributes:
        matched: Number of canonical files the patterns resolved to
        files_added: Files newly tracked in this pass
        files_removed: Files dropped in this pass
        dirs_added: Directories newly subscribed in this pass
        dirs_removed: Directories unsubscribed in this pass
    """
    matched: int = 0
    files_added: list = field(default_factory=list)
    files_removed: list = field(default_factory=list)
    dirs_added: list = field(default_factory=list)
    dirs_removed: list = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(
            self.files_added or self.files_removed
            or self.dirs_added or self.dirs_removed
        )
