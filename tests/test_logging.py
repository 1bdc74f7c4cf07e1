"""Tests for the diagnostic logging layer: formatter x stderr composition."""

from __future__ import annotations

import io
import json
import logging

import pytest

from filesink.config import FileSinkConfig


def _managed_handlers() -> list[logging.Handler]:
    return [
        h for h in logging.getLogger().handlers
        if getattr(h, "_filesink_managed", False)
    ]


class TestFormatters:
    """Each formatter yields a logging.Formatter."""

    def test_structlog_formatter_setup(self):
        from filesink.logging import StructlogFormatter

        result = StructlogFormatter().setup(FileSinkConfig(log_format="json"))
        assert isinstance(result, logging.Formatter)

    def test_structlog_console_formatter(self):
        from filesink.logging import StructlogFormatter

        result = StructlogFormatter().setup(FileSinkConfig(log_format="console"))
        assert isinstance(result, logging.Formatter)

    def test_stdlib_formatter_setup(self):
        from filesink.logging import StdlibFormatter

        result = StdlibFormatter().setup(FileSinkConfig(log_format="json"))
        assert isinstance(result, logging.Formatter)

    def test_stdlib_console_formatter(self):
        from filesink.logging import StdlibFormatter

        result = StdlibFormatter().setup(FileSinkConfig(log_format="console"))
        assert isinstance(result, logging.Formatter)

    def test_stdlib_json_includes_structured_fields(self):
        from filesink.logging import _StdlibJsonFormatter, _StructuredStdlibLogger

        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(_StdlibJsonFormatter())
        lg = logging.getLogger("filesink.test.json")
        lg.addHandler(handler)
        lg.setLevel(logging.DEBUG)
        lg.propagate = False
        try:
            _StructuredStdlibLogger(lg, {"label": "app"}).warning(
                "sink.seek_failed", error="boom"
            )
        finally:
            lg.removeHandler(handler)
            lg.propagate = True

        d = json.loads(stream.getvalue())
        assert d["event"] == "sink.seek_failed"
        assert d["level"] == "warning"
        assert d["label"] == "app"
        assert d["error"] == "boom"

    def test_stdlib_json_timestamp_is_utc(self):
        from filesink.logging import _StdlibJsonFormatter

        record = logging.LogRecord("filesink", logging.INFO, __file__, 0, "sink.opened", (), None)
        record.created = 1_700_000_000.0  # 2023-11-14T22:13:20Z

        d = json.loads(_StdlibJsonFormatter().format(record))
        assert d["timestamp"] == "2023-11-14T22:13:20Z"


class TestGetLogger:
    """get_logger() before and after setup."""

    def test_before_setup_is_stdlib_wrapper(self):
        from filesink.logging import _StructuredStdlibLogger, get_logger

        lg = get_logger("filesink")
        assert isinstance(lg, _StructuredStdlibLogger)
        lg.info("anything", key="value")

    def test_bind_merges_context(self, caplog):
        from filesink.logging import get_logger

        lg = get_logger("filesink", label="a").bind(path="/tmp/x")
        with caplog.at_level(logging.WARNING, logger="filesink"):
            lg.warning("sink.event", extra_key=1)

        record = caplog.records[-1]
        assert record._structured == {"label": "a", "path": "/tmp/x", "extra_key": 1}

    def test_after_structlog_setup(self):
        from filesink.logging import get_logger, setup_logging

        setup_logging(FileSinkConfig(log_formatter="structlog", log_level="DEBUG"))
        lg = get_logger("filesink", label="x")
        assert lg is not None
        lg.debug("sink.traced", n=1)

    def test_after_stdlib_setup(self):
        from filesink.logging import _StructuredStdlibLogger, get_logger, setup_logging

        setup_logging(FileSinkConfig(log_formatter="stdlib"))
        assert isinstance(get_logger("filesink"), _StructuredStdlibLogger)


class TestSetupLogging:
    """setup_logging wires exactly one managed handler to the root logger."""

    def test_unknown_formatter(self):
        from filesink.logging import setup_logging

        with pytest.raises(ValueError, match="Unknown log formatter"):
            setup_logging(FileSinkConfig(log_formatter="loguru"))

    def test_repeat_setup_replaces_own_handler(self):
        from filesink.logging import setup_logging

        setup_logging(FileSinkConfig(log_formatter="stdlib"))
        setup_logging(FileSinkConfig(log_formatter="structlog"))
        assert len(_managed_handlers()) == 1

    def test_managed_handler_writes_to_stderr(self):
        import sys

        from filesink.logging import setup_logging

        setup_logging(FileSinkConfig(log_formatter="stdlib"))
        (handler,) = _managed_handlers()
        assert type(handler) is logging.StreamHandler
        assert handler.stream is sys.stderr
        assert isinstance(handler.formatter, logging.Formatter)

    def test_keeps_foreign_handlers(self):
        from filesink.logging import setup_logging

        foreign = logging.NullHandler()
        root = logging.getLogger()
        root.addHandler(foreign)
        try:
            setup_logging(FileSinkConfig(log_formatter="stdlib"))
            assert foreign in root.handlers
        finally:
            root.removeHandler(foreign)

    def test_sets_root_level(self):
        from filesink.logging import setup_logging

        root = logging.getLogger()
        previous = root.level
        try:
            setup_logging(FileSinkConfig(log_formatter="stdlib", log_level="error"))
            assert root.level == logging.ERROR
        finally:
            root.setLevel(previous)

    def test_reset_removes_managed_handler(self):
        from filesink.logging import reset_logging, setup_logging

        setup_logging(FileSinkConfig(log_formatter="stdlib"))
        reset_logging()
        assert _managed_handlers() == []

    def test_register_custom_formatter(self):
        from filesink.logging import _FORMATTERS, StdlibFormatter, register_formatter, setup_logging

        class _Custom(StdlibFormatter):
            pass

        register_formatter("custom", _Custom)
        try:
            setup_logging(FileSinkConfig(log_formatter="custom"))
            assert len(_managed_handlers()) == 1
        finally:
            _FORMATTERS.pop("custom", None)
