"""Tests for logging configuration and formatters."""

import json
import logging
import sys

import pytest

from app.logging import ComponentLoggerAdapter, get_logger
from app.logging.config import (
    SERVICE_NAME,
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from app.logging.context import clear_log_context, log_context


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def logger():
    """Create a test logger with no handlers attached."""
    test_logger = logging.getLogger("test_logger")
    test_logger.setLevel(logging.DEBUG)
    test_logger.handlers.clear()

    yield test_logger

    test_logger.handlers.clear()


@pytest.fixture
def restore_root_logger():
    """configure_logging replaces root handlers; put them back afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _kv_formatter():
    return KeyValueFormatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def test_json_formatter_basic(logger):
    """JSONFormatter produces valid JSON with mandatory fields."""
    formatter = JSONFormatter()
    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)

    log_obj = json.loads(formatter.format(record))

    assert log_obj["level"] == "INFO"
    assert log_obj["message"] == "Test message"
    assert log_obj["logger"] == "test"
    assert "timestamp" in log_obj
    assert "thread" in log_obj


def test_json_formatter_with_extra_fields(logger):
    formatter = JSONFormatter()
    record = logger.makeRecord(
        "test",
        logging.INFO,
        "test.py",
        1,
        "Test message",
        (),
        None,
        extra={"event": "message.delivered", "delivery_tag": 42, "redelivered": True},
    )

    log_obj = json.loads(formatter.format(record))

    assert log_obj["event"] == "message.delivered"
    assert log_obj["delivery_tag"] == 42
    assert log_obj["redelivered"] is True


def test_json_formatter_includes_exception(logger):
    formatter = JSONFormatter()
    try:
        raise RuntimeError("smtp down")
    except RuntimeError:
        record = logger.makeRecord(
            "test", logging.ERROR, "test.py", 1, "Delivery failed", (), sys.exc_info()
        )

    log_obj = json.loads(formatter.format(record))

    assert "RuntimeError: smtp down" in log_obj["exc_info"]


def test_contextual_filter_adds_static_fields(logger):
    filter = ContextualFilter(service="test-service", environment="test")
    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)

    filter.filter(record)

    assert record.service == "test-service"
    assert record.environment == "test"


def test_contextual_filter_adds_context_fields(logger):
    filter = ContextualFilter()

    with log_context(delivery_tag=7, kind="password_reset"):
        record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)
        filter.filter(record)

    assert record.delivery_tag == 7
    assert record.kind == "password_reset"
    assert record.service == SERVICE_NAME


def test_contextual_filter_prefers_explicit_extra(logger):
    filter = ContextualFilter()

    with log_context(kind="user_welcome"):
        record = logger.makeRecord(
            "test", logging.INFO, "test.py", 1, "msg", (), None, extra={"kind": "override"}
        )
        filter.filter(record)

    assert record.kind == "override"


def test_json_formatter_with_context(logger):
    """Full pipeline: context + filter + JSON formatter."""
    formatter = JSONFormatter()
    filter = ContextualFilter(service=SERVICE_NAME, environment="test")

    with log_context(delivery_tag=3, recipient="ana@example.com"):
        record = logger.makeRecord(
            "test",
            logging.INFO,
            "test.py",
            1,
            "Message received",
            (),
            None,
            extra={"event": "message.received"},
        )
        filter.filter(record)
        log_obj = json.loads(formatter.format(record))

    assert log_obj["message"] == "Message received"
    assert log_obj["event"] == "message.received"
    assert log_obj["service"] == SERVICE_NAME
    assert log_obj["environment"] == "test"
    assert log_obj["delivery_tag"] == 3
    assert log_obj["recipient"] == "ana@example.com"


def test_key_value_formatter_basic(logger):
    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)

    output = _kv_formatter().format(record)

    assert "[INFO]" in output
    assert "Test message" in output


def test_key_value_formatter_with_extras(logger):
    record = logger.makeRecord(
        "test",
        logging.INFO,
        "test.py",
        1,
        "Test message",
        (),
        None,
        extra={"event": "broker.connect.failed", "attempt": 4, "requeue": False},
    )

    output = _kv_formatter().format(record)

    assert "event=broker.connect.failed" in output
    assert "attempt=4" in output
    assert "requeue=false" in output


def test_key_value_formatter_quotes_values_with_spaces(logger):
    record = logger.makeRecord(
        "test", logging.INFO, "test.py", 1, "msg", (), None, extra={"device": "Chrome on Mac"}
    )

    output = _kv_formatter().format(record)

    assert 'device="Chrome on Mac"' in output


def test_key_value_formatter_omits_service_fields(logger):
    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "msg", (), None)
    ContextualFilter(environment="prod").filter(record)

    output = _kv_formatter().format(record)

    assert "service=" not in output
    assert "environment=" not in output


def test_configure_logging_invalid_level():
    with pytest.raises(ValueError, match="Invalid log level"):
        configure_logging(level="INVALID")


def test_configure_logging_invalid_format():
    with pytest.raises(ValueError, match="Invalid log format"):
        configure_logging(format_type="invalid")


def test_configure_logging_json_format(restore_root_logger):
    configure_logging(level="INFO", format_type="json", environment="test")

    handler = logging.getLogger().handlers[0]
    assert isinstance(handler.formatter, JSONFormatter)


def test_configure_logging_key_value_format(restore_root_logger):
    configure_logging(level="INFO", format_type="key-value", environment="test")

    handler = logging.getLogger().handlers[0]
    assert isinstance(handler.formatter, KeyValueFormatter)


def test_configure_logging_quiets_pika(restore_root_logger):
    configure_logging(level="INFO", format_type="json")
    assert logging.getLogger("pika").level == logging.WARNING

    configure_logging(level="DEBUG", format_type="json")
    assert logging.getLogger("pika").level == logging.DEBUG


def test_timestamp_format_in_json(logger):
    """Timestamps are ISO-8601 UTC with millisecond precision."""
    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)

    timestamp = json.loads(JSONFormatter().format(record))["timestamp"]

    assert timestamp.endswith("Z")
    assert "T" in timestamp
    assert len(timestamp) == 24  # 2025-11-04T10:30:00.123Z


def test_get_logger_with_component_merges_extra(logger, caplog):
    adapter = get_logger("test_logger", component="consumer")
    assert isinstance(adapter, ComponentLoggerAdapter)

    with caplog.at_level(logging.INFO, logger="test_logger"):
        adapter.info("hello", extra={"event": "test.event"})

    record = caplog.records[-1]
    assert record.component == "consumer"
    assert record.event == "test.event"


def test_get_logger_without_component_returns_plain_logger():
    assert isinstance(get_logger("plain"), logging.Logger)
