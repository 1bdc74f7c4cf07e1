"""Typed failures raised from construction and maintenance calls.

Per-write failures never surface here; see FileSink.log().
"""

from __future__ import annotations

from pathlib import Path


class FileSinkError(Exception):
    """Base class. ``path`` names the file or directory involved."""

    message = "file sink error"

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        if self.path is None:
            super().__init__(self.message)
        else:
            super().__init__(f"{self.message}: {self.path}")


class NotAFileError(FileSinkError):
    message = "destination is a directory, not a file"


class MissingDestinationError(FileSinkError):
    message = "no destination path to open"


class DirectoryCreationError(FileSinkError):
    message = "could not create directory"


class FileCreationError(FileSinkError):
    message = "could not create file"


class OpenForWritingError(FileSinkError):
    message = "could not open file for writing"


class DeletionError(FileSinkError):
    message = "could not delete"
