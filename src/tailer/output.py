"""Primary output stream with per-file separators."""

from pathlib import Path
from typing import BinaryIO, Optional


class OutputWriter:
    """
    Writes file content to a binary sink.

    A separator naming the file is written before a chunk whenever the
    previous chunk came from a different file, or nothing was written yet.
    """

    def __init__(self, sink: BinaryIO, separator_format: str = "\n--- {path} ---\n"):
        """
        Initialize the writer.

        Args:
            sink: Binary stream receiving separators and file content
            separator_format: Header template, formatted with the file path
        """
        self.sink = sink
        self.separator_format = separator_format
        self._last_path: Optional[Path] = None

    @property
    def last_path(self) -> Optional[Path]:
        """Path of the most recently written chunk, or None before any output."""
        return self._last_path

    def write(self, path: Path, data: bytes) -> None:
        """
        Write a chunk of content read from path.

        Args:
            path: Canonical path the data was read from
            data: Raw bytes, passed through unchanged
        """
        if not data:
            return
        if path != self._last_path:
            self.sink.write(self.separator_format.format(path=path).encode("utf-8", "surrogateescape"))
            self._last_path = path
        self.sink.write(data)
        self.sink.flush()
