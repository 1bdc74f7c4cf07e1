"""File sink: append CRLF-terminated UTF-8 lines to a file on disk.

Two ways to build one:

    FileSink(label, path)
        The sink owns the file. The parent directory chain and an empty file
        are created if missing; an existing file is never truncated. Every
        write seeks to end-of-file first so other writers (another sink,
        another process, an external rotator) can append to the same path.

    FileSink.from_handle(label, handle, caller_closes=True, seekable=True)
        The caller supplies an open binary handle. With caller_closes the
        handle survives close(); pass seekable=False for pipes.

Write path: [seek to end] -> write line + "\\r\\n" -> [fsync if ALWAYS].
Nothing on the write path raises: encoding failures drop the line, seek
failures are reported and the write goes to the current position, write
failures are reported and the line is dropped. Construction and delete()
raise FileSinkError subclasses.

Calls into one sink must be serialized by the caller; flush() and delete()
run on the sink's serial queue.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Union

from filesink.base import BaseLogger
from filesink.config import FileSinkConfig
from filesink.errors import (
    DeletionError,
    DirectoryCreationError,
    FileCreationError,
    MissingDestinationError,
    NotAFileError,
    OpenForWritingError,
)
from filesink.levels import FlushMode, LogLevel

LINE_TERMINATOR = "\r\n"


@dataclass(frozen=True)
class OwnedPath:
    """The sink created the file and owns the handle's lifetime."""

    path: Path


@dataclass(frozen=True)
class ExternalHandle:
    """The caller opened the handle; caller_closes decides who closes it."""

    handle: BinaryIO
    caller_closes: bool = True
    seekable: bool = True


Destination = Union[OwnedPath, ExternalHandle]


def _open_no_truncate(path: str, flags: int) -> int:
    # "wb" asks for O_TRUNC; existing content must survive reopening.
    return os.open(path, flags & ~os.O_TRUNC)


def _validate_path(path: str | os.PathLike[str]) -> Path:
    raw = os.fspath(path)
    if raw.endswith(("/", os.sep)) or Path(raw).is_dir():
        raise NotAFileError(raw)
    return Path(raw)


def _write_all(handle: BinaryIO, data: bytes) -> None:
    # Raw (unbuffered) handles may accept fewer bytes than offered.
    written = handle.write(data)
    while written is not None and 0 < written < len(data):
        data = data[written:]
        written = handle.write(data)


class FileSink(BaseLogger):
    def __init__(self, label: str, path: str | os.PathLike[str]) -> None:
        owned = _validate_path(path)
        super().__init__(label)
        self._flush_mode = FlushMode.ALWAYS
        self._destination: Destination = OwnedPath(owned)
        self._handle: BinaryIO | None = None
        self.debug("sink.destination", path=str(owned))
        try:
            self._open()
        except BaseException:
            self.queue.shutdown()
            raise

    @classmethod
    def from_handle(
        cls,
        label: str,
        handle: BinaryIO,
        caller_closes: bool = True,
        seekable: bool = True,
    ) -> FileSink:
        """Wrap an already-open binary handle. Never fails."""
        sink = cls.__new__(cls)
        BaseLogger.__init__(sink, label)
        sink._flush_mode = FlushMode.ALWAYS
        sink._destination = ExternalHandle(handle, caller_closes, seekable)
        sink._handle = handle
        return sink

    @classmethod
    def from_config(
        cls,
        label: str,
        path: str | os.PathLike[str],
        config: FileSinkConfig | None = None,
    ) -> FileSink:
        """Path-form sink using the configured flush mode."""
        cfg = config or FileSinkConfig()
        sink = cls(label, path)
        sink.flush_mode = cfg.flush_mode
        return sink

    @classmethod
    def handle_from_config(
        cls,
        label: str,
        handle: BinaryIO,
        caller_closes: bool = True,
        config: FileSinkConfig | None = None,
    ) -> FileSink:
        """Handle-form sink using the configured flush mode and seekable flag."""
        cfg = config or FileSinkConfig()
        sink = cls.from_handle(label, handle, caller_closes=caller_closes, seekable=cfg.seekable)
        sink.flush_mode = cfg.flush_mode
        return sink

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def destination(self) -> Destination:
        return self._destination

    @property
    def path(self) -> Path | None:
        if isinstance(self._destination, OwnedPath):
            return self._destination.path
        return None

    @property
    def seekable(self) -> bool:
        if isinstance(self._destination, ExternalHandle):
            return self._destination.seekable
        return True

    @property
    def closes_handle(self) -> bool:
        """Whether teardown closes the handle (False means the caller does)."""
        if isinstance(self._destination, ExternalHandle):
            return not self._destination.caller_closes
        return True

    @property
    def closed(self) -> bool:
        return self._handle is None

    @property
    def flush_mode(self) -> FlushMode:
        return self._flush_mode

    @flush_mode.setter
    def flush_mode(self, value: FlushMode | str) -> None:
        self._flush_mode = FlushMode.parse(value)

    # ------------------------------------------------------------------
    # Produced interface
    # ------------------------------------------------------------------

    def log(self, level: LogLevel, line: str) -> None:
        """Append ``line`` plus CRLF. Never raises."""
        handle = self._handle
        if handle is None:
            self._diag.error("sink.write_closed", severity=level)
            return

        if self.seekable:
            try:
                handle.seek(0, os.SEEK_END)
            except (OSError, ValueError) as err:
                self._diag.warning("sink.seek_failed", error=str(err))

        try:
            data = (line + LINE_TERMINATOR).encode("utf-8")
        except UnicodeEncodeError:
            return

        try:
            _write_all(handle, data)
        except (OSError, ValueError, TypeError) as err:
            self._diag.error("sink.write_failed", severity=level, error=str(err))
            return

        if self._flush_mode is FlushMode.ALWAYS:
            self._sync()

    def flush(self) -> None:
        """Drain buffers and fsync. Safe at any time, including after close()."""
        self.queue.sync(self._sync)

    def delete(self, path: str | os.PathLike[str]) -> None:
        """Remove the file (or empty directory) at ``path``.

        Raises:
            DeletionError: for any failure, the underlying error chained.
        """
        target = Path(path)

        def _remove() -> None:
            if target.is_dir() and not target.is_symlink():
                target.rmdir()
            else:
                target.unlink()

        try:
            self.queue.sync(_remove)
        except (OSError, ValueError) as err:
            raise DeletionError(target) from err
        self.debug("sink.deleted", path=str(target))

    def close(self) -> None:
        """Sync, close the handle if this sink owns it, release it. Idempotent."""
        self.queue.sync(self._close_handle)
        self.queue.shutdown()

    def __enter__(self) -> FileSink:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        target = self.path if self.path is not None else "<handle>"
        return f"FileSink(label={self.label!r}, destination={str(target)!r})"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _open(self) -> None:
        dest = self._destination
        if not isinstance(dest, OwnedPath):
            raise MissingDestinationError()
        self._close_handle()

        directory = dest.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError) as err:
            raise DirectoryCreationError(directory) from err
        self.debug("sink.directory_ready", directory=str(directory))

        if not dest.path.exists():
            try:
                dest.path.touch(exist_ok=True)
            except (OSError, ValueError) as err:
                raise FileCreationError(dest.path) from err
            self.debug("sink.file_created", path=str(dest.path))
        else:
            self.debug("sink.file_exists", path=str(dest.path))

        try:
            self._handle = open(dest.path, "wb", buffering=0, opener=_open_no_truncate)
        except (OSError, ValueError) as err:
            raise OpenForWritingError(dest.path) from err
        self.debug("sink.opened", path=str(dest.path))

    def _sync(self) -> None:
        handle = self._handle
        if handle is None:
            return
        try:
            handle.flush()
            os.fsync(handle.fileno())
        except (OSError, ValueError) as err:
            # pipes, in-memory buffers, handles the caller already closed
            self.debug("sink.sync_skipped", error=str(err))

    def _close_handle(self) -> None:
        handle = self._handle
        if handle is None:
            return
        self._sync()
        if self.closes_handle:
            try:
                handle.close()
            except OSError as err:
                self._diag.error("sink.close_failed", error=str(err))
        self._handle = None
        self.debug("sink.closed", closed_handle=self.closes_handle)
