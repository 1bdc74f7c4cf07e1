"""Structured diagnostics: swappable formatter, written to stderr.

setup_logging(config) picks a LogFormatter (structlog or stdlib),
hands its logging.Formatter to a stderr StreamHandler and attaches
that handler to the root logger.

This channel carries the sink's own tracing (opened, seek failures,
dropped writes). It never writes into the log file the sink manages.

Swapping:
    FILESINK_LOG_FORMATTER=structlog   (default)
    FILESINK_LOG_FORMATTER=stdlib
    FILESINK_LOG_FORMAT=json | console
"""

from __future__ import annotations

import json
import logging
import sys
import time
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from filesink.config import FileSinkConfig


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class LogFormatter(Protocol):
    """Strategy: how diagnostic records are structured.

    setup() configures the formatting pipeline and returns a
    logging.Formatter that handlers will use.

    get_logger() returns a logger that accepts key=value kwargs.
    """

    def setup(self, config: FileSinkConfig) -> logging.Formatter: ...

    def get_logger(self, name: str, **kwargs: Any) -> Any: ...


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class StructlogFormatter:
    """structlog processor pipeline + stdlib bridge."""

    def setup(self, config: FileSinkConfig) -> logging.Formatter:
        import structlog

        shared_processors: list = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]

        if config.log_format == "console":
            renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
        else:
            renderer = structlog.processors.JSONRenderer()

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *shared_processors,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        return structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )

    def get_logger(self, name: str, **kwargs: Any) -> Any:
        import structlog

        return structlog.get_logger(name, **kwargs)


class StdlibFormatter:
    """Pure stdlib logging with JSON formatting. No structlog at runtime."""

    def setup(self, config: FileSinkConfig) -> logging.Formatter:
        if config.log_format == "console":
            return logging.Formatter(
                "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        return _StdlibJsonFormatter()

    def get_logger(self, name: str, **kwargs: Any) -> Any:
        return _StructuredStdlibLogger(logging.getLogger(name), kwargs)


class _StdlibJsonFormatter(logging.Formatter):
    """JSON formatter for stdlib logging (no structlog dependency)."""

    converter = time.gmtime  # the Z suffix below means UTC

    def format(self, record: logging.LogRecord) -> str:
        d: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        if hasattr(record, "_structured"):
            d.update(record._structured)  # type: ignore[union-attr]
        if record.exc_info and record.exc_info[1]:
            d["exception"] = self.formatException(record.exc_info)
        return json.dumps(d, default=str)


class _StructuredStdlibLogger:
    """Gives stdlib loggers a structlog-like kwargs API.

    sink code does logger.warning("sink.seek_failed", path=..., error=...).
    Stdlib loggers don't take arbitrary kwargs, so the wrapper stores them
    on the LogRecord for the formatter. Bound context (label=...) is merged
    into every record.
    """

    def __init__(self, logger: logging.Logger, context: dict[str, Any] | None = None) -> None:
        self._logger = logger
        self._context = dict(context or {})

    def bind(self, **kwargs: Any) -> _StructuredStdlibLogger:
        return _StructuredStdlibLogger(self._logger, {**self._context, **kwargs})

    def _log(self, level: int, event: str, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        exc_info = kwargs.pop("exc_info", None)
        if exc_info is True:
            exc_info = sys.exc_info()
        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "(unknown)",
            0,
            event,
            (),
            exc_info or None,
        )
        record._structured = {**self._context, **kwargs}  # type: ignore[attr-defined]
        self._logger.handle(record)

    def debug(self, event: str, **kw: Any) -> None:
        self._log(logging.DEBUG, event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._log(logging.INFO, event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._log(logging.WARNING, event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._log(logging.ERROR, event, **kw)

    def critical(self, event: str, **kw: Any) -> None:
        self._log(logging.CRITICAL, event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        kw.setdefault("exc_info", True)
        self._log(logging.ERROR, event, **kw)


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------

_FORMATTERS: dict[str, type] = {
    "structlog": StructlogFormatter,
    "stdlib": StdlibFormatter,
}


def register_formatter(name: str, cls: type) -> None:
    """Register a custom log formatter. Call before setup_logging()."""
    _FORMATTERS[name] = cls


# ---------------------------------------------------------------------------
# Module state
# ---------------------------------------------------------------------------

_active_formatter: LogFormatter | None = None
_previous_root_level: int | None = None


def setup_logging(config: FileSinkConfig) -> None:
    """Build the configured formatter and wire a stderr handler to the root logger."""
    global _active_formatter, _previous_root_level

    formatter_cls = _FORMATTERS.get(config.log_formatter)
    if formatter_cls is None:
        raise ValueError(
            f"Unknown log formatter: {config.log_formatter!r}. "
            f"Available: {list(_FORMATTERS)}. "
            f"Register custom formatters with register_formatter()."
        )

    formatter = formatter_cls()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter.setup(config))

    # Only replace our own handler; keep external ones (pytest caplog etc.)
    handler._filesink_managed = True  # type: ignore[attr-defined]
    root_logger = logging.getLogger()
    root_logger.handlers = [
        h for h in root_logger.handlers
        if not getattr(h, "_filesink_managed", False)
    ]
    root_logger.addHandler(handler)
    if _previous_root_level is None:
        _previous_root_level = root_logger.level
    root_logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    _active_formatter = formatter


def get_logger(name: str = "filesink", **kwargs: Any) -> Any:
    """Get a logger from the active formatter.

    Falls back to a _StructuredStdlibLogger before setup_logging() is
    called, so structured kwargs work even pre-configuration.
    """
    if _active_formatter is not None:
        return _active_formatter.get_logger(name, **kwargs)
    return _StructuredStdlibLogger(logging.getLogger(name), kwargs)


def reset_logging() -> None:
    """Drop the managed handler and formatter. For tests."""
    global _active_formatter, _previous_root_level

    root_logger = logging.getLogger()
    root_logger.handlers = [
        h for h in root_logger.handlers
        if not getattr(h, "_filesink_managed", False)
    ]
    if _previous_root_level is not None:
        root_logger.setLevel(_previous_root_level)
    _active_formatter = None
    _previous_root_level = None
