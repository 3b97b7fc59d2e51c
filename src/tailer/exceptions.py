"""Custom exceptions for the tailer package."""

from pathlib import Path


class TailerError(Exception):
    """Base exception for all tailer errors."""
    pass


class ConfigError(TailerError):
    """Invalid configuration value."""
    pass


class NoPatternsError(TailerError):
    """No glob patterns were supplied."""
    pass


class BackendError(TailerError):
    """Error related to the filesystem notification backend."""
    pass


class BackendInitError(BackendError):
    """Notification backend could not be started."""
    pass


class TailerAlreadyRunningError(TailerError):
    """Tailer process is already running."""
    pass


class WatchLostError(BackendError):
    """A subscribed directory was deleted or moved away."""
    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path
