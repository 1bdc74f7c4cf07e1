"""Shared fixtures: diagnostics reset, sink factory."""

from __future__ import annotations

import pytest

from filesink.logging import reset_logging


@pytest.fixture(autouse=True)
def _reset_diagnostics():
    """Start every test on the pre-configuration stdlib logger."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep FILESINK_* from the outer environment out of tests."""
    for var in (
        "FILESINK_LOG_FORMATTER",
        "FILESINK_LOG_LEVEL",
        "FILESINK_LOG_FORMAT",
        "FILESINK_FLUSH_MODE",
        "FILESINK_SEEKABLE",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture()
def make_sink():
    """Build path-form sinks and close whatever the test left open."""
    from filesink.file_sink import FileSink

    created: list[FileSink] = []

    def _make(path, label: str = "test") -> FileSink:
        sink = FileSink(label, path)
        created.append(sink)
        return sink

    yield _make
    for sink in created:
        sink.close()
