"""Severity levels and flush policy."""

from __future__ import annotations

import enum


@enum.unique
class LogLevel(enum.IntEnum):
    """Ordered severities. The sink passes them through untouched."""

    TRACE = 1
    VERBOSE = 2
    DEBUG = 3
    INFO = 4
    NOTICE = 5
    WARNING = 6
    ERROR = 7
    CRITICAL = 8


class FlushMode(str, enum.Enum):
    """When the sink synchronizes to stable storage."""

    ALWAYS = "always"  # after every successful write
    MANUAL = "manual"  # only on flush()

    @classmethod
    def parse(cls, value: str | FlushMode) -> FlushMode:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as err:
            raise ValueError(
                f"Unknown flush mode: {value!r}. "
                f"Available: {[m.value for m in cls]}."
            ) from err
