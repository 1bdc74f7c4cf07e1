"""LogSink protocol and the BaseLogger every sink builds on."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from filesink.levels import LogLevel
from filesink.logging import get_logger
from filesink.queue import SerialQueue


@runtime_checkable
class LogSink(Protocol):
    """Where fully formatted log lines get written."""

    def log(self, level: LogLevel, line: str) -> None: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


class BaseLogger:
    """Label, diagnostic channel and serial queue shared by sinks.

    The label is opaque: it names the worker thread and is bound onto every
    diagnostic record, nothing more.
    """

    def __init__(self, label: str) -> None:
        self.label = label
        self.queue = SerialQueue(label)
        self._diag = get_logger("filesink", label=label)

    def debug(self, message: str, **kw: object) -> None:
        """Informational tracing. Never touches the sink's own output."""
        self._diag.debug(message, **kw)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(label={self.label!r})"
