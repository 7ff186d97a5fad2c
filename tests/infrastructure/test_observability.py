"""Structured Logging — JSONFormatter output and setup_logging idempotence."""

import json
import logging
import sys

from carbon_api.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "carbon_api.test", logging.WARNING, __file__, 1, "hello %s", ("world",), None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_base_fields():
    payload = json.loads(JSONFormatter().format(_record()))
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "carbon_api.test"
    assert payload["message"] == "hello world"
    assert "timestamp" in payload


def test_json_formatter_surfaces_known_extras_only():
    payload = json.loads(JSONFormatter().format(
        _record(error_code="ValidationError", path="/estimate", unrelated="x"),
    ))
    assert payload["error_code"] == "ValidationError"
    assert payload["path"] == "/estimate"
    assert "unrelated" not in payload


def test_json_formatter_includes_exception():
    try:
        raise ValueError("nope")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()
    payload = json.loads(JSONFormatter().format(record))
    assert "ValueError: nope" in payload["exception"]


def test_setup_logging_does_not_stack_handlers():
    before_handlers = len(logging.root.handlers)
    before_level = logging.root.level
    setup_logging("DEBUG", "json")
    setup_logging("INFO", "text")
    try:
        assert len(logging.root.handlers) == before_handlers + 1
        assert logging.root.level == logging.INFO
    finally:
        logging.root.removeHandler(logging.root.handlers[-1])
        logging.root.setLevel(before_level)
