"""Configuration for the tailer package."""

import math
import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import ConfigError


_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_UNIT_MS = {
    "ns": 1e-6,
    "us": 1e-3,
    "µs": 1e-3,
    "ms": 1.0,
    "s": 1000.0,
    "m": 60_000.0,
    "h": 3_600_000.0,
}


def parse_duration(value: str) -> int:
    """
    Parse a duration string into whole milliseconds.
    
    Accepts Go-style durations such as "250ms", "5s", "1m" or "1h30m",
    and bare numbers, which are taken as seconds.
    
    Args:
        value: Duration string
        
    Returns:
        Duration in milliseconds
        
    Raises:
        ConfigError: If the string is not a valid duration
    """
    text = value.strip()
    if not text:
        raise ConfigError("empty duration")
    
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ConfigError(f"invalid duration: {value}")
        if seconds < 0:
            raise ConfigError(f"negative duration: {value}")
        return int(round(seconds * 1000))
    
    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    
    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ConfigError(f"invalid duration: {value}")
        total += float(match.group(1)) * _UNIT_MS[match.group(2)]
        pos = match.end()
    
    if not math.isfinite(total):
        raise ConfigError(f"invalid duration: {value}")
    if sign < 0 and total > 0:
        raise ConfigError(f"negative duration: {value}")
    return int(round(total))


@dataclass(frozen=True)
class TailerConfig:
    """
    Configuration options for the tailer.
    
    Attributes:
        poll_interval_ms: Interval between reads of watched files
        scan_interval_ms: Interval between full rescans of the glob patterns
        quiet_interval_ms: Silence after which a single "no files changed"
            notice is logged (0 disables the notice)
        separator_format: Header written before output from a different file
    """
    poll_interval_ms: int = 500
    scan_interval_ms: int = 3000
    quiet_interval_ms: int = 60_000
    separator_format: str = "\n--- {path} ---\n"

    def __post_init__(self):
        if self.poll_interval_ms <= 0:
            raise ConfigError(f"poll interval must be positive: {self.poll_interval_ms}ms")
        if self.scan_interval_ms <= 0:
            raise ConfigError(f"scan interval must be positive: {self.scan_interval_ms}ms")
        if self.quiet_interval_ms < 0:
            raise ConfigError(f"quiet interval must not be negative: {self.quiet_interval_ms}ms")

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def scan_interval(self) -> float:
        return self.scan_interval_ms / 1000.0

    @property
    def quiet_interval(self) -> float:
        return self.quiet_interval_ms / 1000.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TailerConfig":
        """
        Build a config from GLOBTAIL_* environment variables.
        
        Unset variables keep their defaults.
        
        Args:
            environ: Mapping to read from (defaults to os.environ)
            
        Returns:
            TailerConfig instance
        """
        env = os.environ if environ is None else environ
        kwargs = {}
        for name, key in (
            ("GLOBTAIL_POLL_INTERVAL", "poll_interval_ms"),
            ("GLOBTAIL_SCAN_INTERVAL", "scan_interval_ms"),
            ("GLOBTAIL_QUIET_INTERVAL", "quiet_interval_ms"),
        ):
            raw = env.get(name)
            if raw:
                kwargs[key] = parse_duration(raw)
        return cls(**kwargs)
