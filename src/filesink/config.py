"""Sink configuration: YAML file + env var overrides.

All settings have safe defaults. Zero config required.

Priority: env var > YAML file > default.
Env vars use FILESINK_{FIELD_NAME} (e.g. FILESINK_FLUSH_MODE=manual).
YAML file default: ~/.filesink/config.yaml

Diagnostics:
    FILESINK_LOG_FORMATTER=structlog (default) | stdlib
    FILESINK_LOG_FORMAT=json (default) | console
    FILESINK_LOG_LEVEL=INFO
Sink defaults:
    FILESINK_FLUSH_MODE=always (default) | manual
    FILESINK_SEEKABLE=on (default) | off
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from filesink.levels import FlushMode

_TRUTHY = {"1", "true", "on", "yes"}
_FALSY = {"0", "false", "off", "no"}
_DEFAULT_PATH = Path("~/.filesink/config.yaml").expanduser()


def _bool_env(var: str, default: bool) -> bool:
    raw = os.environ.get(var)
    if raw is None:
        return default
    val = raw.lower()
    if val in _TRUTHY:
        return True
    if val in _FALSY:
        return False
    return default


@dataclass
class FileSinkConfig:
    """Sink defaults and diagnostic logging settings, env-var driven."""

    # --- Diagnostics: formatter x stderr ---
    log_formatter: str = field(
        default_factory=lambda: os.environ.get("FILESINK_LOG_FORMATTER", "structlog")
    )  # "structlog" | "stdlib"

    log_level: str = field(
        default_factory=lambda: os.environ.get("FILESINK_LOG_LEVEL", "INFO")
    )

    log_format: str = field(
        default_factory=lambda: os.environ.get("FILESINK_LOG_FORMAT", "json")
    )  # "json" | "console"

    # --- Sink defaults ---
    flush_mode: FlushMode = field(
        default_factory=lambda: FlushMode.parse(
            os.environ.get("FILESINK_FLUSH_MODE", "always")
        )
    )

    seekable: bool = field(
        default_factory=lambda: _bool_env("FILESINK_SEEKABLE", True)
    )

    def __post_init__(self) -> None:
        if not isinstance(self.flush_mode, FlushMode):
            self.flush_mode = FlushMode.parse(self.flush_mode)

    @classmethod
    def load(cls, path: Path | None = None) -> FileSinkConfig:
        """Load settings from a YAML file, then override with env vars."""
        file_path = path or _DEFAULT_PATH
        file_values: dict[str, Any] = {}

        if file_path.exists():
            raw = yaml.safe_load(file_path.read_text()) or {}
            if isinstance(raw, dict):
                known = {f.name for f in fields(cls)}
                file_values = {k: v for k, v in raw.items() if k in known}

        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            name = f.name
            if f"FILESINK_{name.upper()}" in os.environ:
                continue  # field default_factory reads the env var
            if name not in file_values:
                continue
            value = file_values[name]
            if value is None:
                continue  # "key:" with no value keeps the default
            if name == "seekable":
                value = value.lower() in _TRUTHY if isinstance(value, str) else bool(value)
            elif name != "flush_mode":
                value = str(value)
            kwargs[name] = value

        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        d["flush_mode"] = self.flush_mode.value
        return d
