"""Tests for logging utilities."""

from __future__ import annotations

import json
import logging
import sys

from dreamloom.core.utils.logging import StructuredJSONFormatter, configure_logging, get_logger


def _record(message: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="dreamloom.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=12,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredJSONFormatter:
    def test_formats_json_line(self) -> None:
        entry = json.loads(StructuredJSONFormatter().format(_record("chunk empty")))

        assert entry["level"] == "WARNING"
        assert entry["message"] == "chunk empty"
        assert entry["context"]["logger_name"] == "dreamloom.test"
        assert entry["timestamp"].endswith("+00:00")

    def test_includes_extra_fields(self) -> None:
        entry = json.loads(StructuredJSONFormatter().format(_record("x", request_id="r-1")))

        assert entry["context"]["request_id"] == "r-1"

    def test_includes_exception(self) -> None:
        try:
            raise RuntimeError("bad chunk")
        except RuntimeError:
            record = _record("failed")
            record.exc_info = sys.exc_info()

        entry = json.loads(StructuredJSONFormatter().format(record))

        assert entry["context"]["error_type"] == "RuntimeError"
        assert entry["context"]["error_message"] == "bad chunk"


class TestConfigureLogging:
    def test_sets_level_and_quiets_sdk_loggers(self) -> None:
        configure_logging(level="debug")

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.ERROR
        assert logging.getLogger("google_genai").level == logging.ERROR

    def test_structured_handler(self) -> None:
        configure_logging(level="INFO", structured=True)

        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, StructuredJSONFormatter)


def test_get_logger_with_context() -> None:
    adapter = get_logger("dreamloom.test", request_id="r-1")

    assert isinstance(adapter, logging.LoggerAdapter)
    assert adapter.extra == {"request_id": "r-1"}
    assert isinstance(get_logger("dreamloom.test"), logging.Logger)
