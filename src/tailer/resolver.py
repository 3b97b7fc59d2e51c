"""Glob pattern expansion to canonical file paths."""

import glob
import logging
import os
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Tuple

logger = logging.getLogger(__name__)

_MAGIC_CHARS = frozenset("*?[")


def has_magic(segment: str) -> bool:
    """Check if a path segment contains glob metacharacters."""
    return any(c in _MAGIC_CHARS for c in segment)


def _brace_alternatives(pattern: str, start: int) -> Tuple[int, List[str]]:
    """Split the brace group opening at start, returning (-1, []) if unclosed."""
    depth = 0
    options = []
    last = start + 1
    for i in range(start + 1, len(pattern)):
        c = pattern[i]
        if c == "{":
            depth += 1
        elif c == "}":
            if depth == 0:
                options.append(pattern[last:i])
                return i, options
            depth -= 1
        elif c == "," and depth == 0:
            options.append(pattern[last:i])
            last = i + 1
    return -1, []


def expand_braces(pattern: str) -> List[str]:
    """
    Expand {a,b} alternation into separate patterns.

    Groups may be nested and combine left to right, so "{a,b}/{x,y}"
    yields four patterns. An unclosed brace is kept literally.

    Args:
        pattern: Glob pattern, e.g. "/var/log/{nginx,apache2}/*.log"

    Returns:
        Brace-free patterns in expansion order, without duplicates
    """
    start = pattern.find("{")
    while start != -1:
        end, options = _brace_alternatives(pattern, start)
        if end != -1:
            head, tail = pattern[:start], pattern[end + 1:]
            expanded: Dict[str, None] = {}
            for option in options:
                for sub in expand_braces(head + option + tail):
                    expanded.setdefault(sub)
            return list(expanded)
        start = pattern.find("{", start + 1)
    return [pattern]


def split_pattern(pattern: str) -> Tuple[str, str]:
    """
    Split a glob pattern into a literal base directory and a wildcard suffix.

    The base is made of the leading segments without metacharacters.
    A pattern without any metacharacters is split at its last separator.

    Args:
        pattern: Glob pattern, e.g. "/var/log/**/*.log"

    Returns:
        (base, suffix) tuple, e.g. ("/var/log", "**/*.log")
    """
    segments = pattern.split("/")

    for i, segment in enumerate(segments):
        if has_magic(segment):
            base = "/".join(segments[:i])
            if not base:
                base = "/" if pattern.startswith("/") else "."
            return base, "/".join(segments[i:])

    base, _, name = pattern.rpartition("/")
    if not base:
        base = "/" if pattern.startswith("/") else "."
    return base, name


def canonicalize(path: str) -> Path:
    """
    Resolve a path to its absolute, symlink-free form.

    Falls back to the absolute unresolved path when symlinks cannot be
    resolved (broken link, loop, permission denied).

    Args:
        path: Path to canonicalize

    Returns:
        Canonical path
    """
    absolute = Path(os.path.abspath(path))
    try:
        return absolute.resolve(strict=True)
    except (OSError, RuntimeError):
        return absolute


class PathResolver:
    """
    Resolves an ordered set of glob patterns to canonical file paths.

    Holds no state besides the immutable pattern set, so a single instance
    can be shared by every thread.
    """

    def __init__(self, patterns: Iterable[str]):
        """
        Initialize the resolver.

        Args:
            patterns: Glob patterns supporting *, ?, [...], {a,b} and
                recursive **
        """
        self.patterns: Tuple[str, ...] = tuple(patterns)
        self._expanded: List[str] = list(
            dict.fromkeys(sub for pattern in self.patterns for sub in expand_braces(pattern))
        )

    def _expand(self, pattern: str) -> List[str]:
        """Expand one pattern into matching paths, raising OSError on failure."""
        base, suffix = split_pattern(pattern)

        if not has_magic(suffix):
            literal = os.path.join(base, suffix)
            return [literal] if os.path.lexists(literal) else []

        # Surface an unreadable or missing base directory, which glob ignores.
        with os.scandir(base):
            pass

        return [
            os.path.join(base, match)
            for match in glob.iglob(
                suffix,
                root_dir=base,
                recursive=True,
                include_hidden=True,
            )
        ]

    def walk(self, action: Callable[[Path], None]) -> None:
        """
        Call action once for every canonical file matching any pattern.

        Args:
            action: Callback receiving each canonical path
        """
        seen = set()
        for pattern in self._expanded:
            try:
                matches = self._expand(pattern)
            except FileNotFoundError as e:
                logger.debug("Pattern %s has no base directory: %s", pattern, e)
                continue
            except OSError as e:
                logger.error("Error expanding glob pattern %s: %s", pattern, e)
                continue

            for match in matches:
                if os.path.isdir(match):
                    continue
                real_path = canonicalize(match)
                if real_path in seen:
                    continue
                seen.add(real_path)
                action(real_path)

    def resolve(self) -> List[Path]:
        """
        Resolve all patterns to a deduplicated list of canonical paths.

        Returns:
            Canonical paths in discovery order
        """
        found: Dict[Path, None] = {}
        self.walk(lambda path: found.setdefault(path))
        return list(found)

    def matches(self, path: Path) -> bool:
        """
        Check if a canonical path is matched by any pattern.

        Uses the same expansion as resolve() so both always agree.

        Args:
            path: Canonical path to test

        Returns:
            True if the path is in the resolved set
        """
        return path in set(self.resolve())

    def __len__(self) -> int:
        return len(self.patterns)

