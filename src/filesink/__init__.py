"""filesink: append formatted log lines to a file on disk.

Public API:
    FileSink(label, path)                  — sink that owns its file
    FileSink.from_handle(label, handle)    — sink over a caller's handle
    FlushMode, LogLevel                    — flush policy, severities
    FileSinkConfig                         — env/YAML driven defaults

Diagnostics (swappable formatter):
    setup_logging(cfg) — wire structured diagnostics to stderr
    get_logger(name)   — get a structured logger
"""

from filesink.base import BaseLogger, LogSink
from filesink.config import FileSinkConfig
from filesink.errors import (
    DeletionError,
    DirectoryCreationError,
    FileCreationError,
    FileSinkError,
    MissingDestinationError,
    NotAFileError,
    OpenForWritingError,
)
from filesink.file_sink import Destination, ExternalHandle, FileSink, OwnedPath
from filesink.levels import FlushMode, LogLevel
from filesink.logging import get_logger, register_formatter, setup_logging
from filesink.queue import SerialQueue

__all__ = [
    # Sink
    "FileSink",
    "Destination",
    "OwnedPath",
    "ExternalHandle",
    "LogSink",
    "BaseLogger",
    "SerialQueue",
    "FlushMode",
    "LogLevel",
    # Config
    "FileSinkConfig",
    # Errors
    "FileSinkError",
    "NotAFileError",
    "MissingDestinationError",
    "DirectoryCreationError",
    "FileCreationError",
    "OpenForWritingError",
    "DeletionError",
    # Diagnostics
    "get_logger",
    "register_formatter",
    "setup_logging",
]
