"""Tests for logging configuration and formatters."""

import json
import logging
import sys

import pytest

from jobboard_events.logging import ComponentLoggerAdapter, get_logger
from jobboard_events.logging.config import (
    ContextFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from jobboard_events.logging.context import clear_log_context, log_context


@pytest.fixture(autouse=True)
def clean_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def logger():
    """A throwaway logger for building records."""
    test_logger = logging.getLogger("test_logger")
    test_logger.setLevel(logging.DEBUG)
    test_logger.handlers.clear()
    yield test_logger
    test_logger.handlers.clear()


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_formatter_basic(logger):
    """JSONFormatter emits the mandatory fields."""
    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)

    log_obj = json.loads(JSONFormatter().format(record))

    assert log_obj["level"] == "INFO"
    assert log_obj["message"] == "Test message"
    assert log_obj["logger"] == "test"
    assert log_obj["timestamp"].endswith("Z")


def test_json_formatter_with_extra_fields(logger):
    record = logger.makeRecord(
        "test",
        logging.INFO,
        "test.py",
        1,
        "Fan-out done",
        (),
        None,
        extra={"event": "fanout.completed", "notified": 2, "complete": True},
    )

    log_obj = json.loads(JSONFormatter().format(record))

    assert log_obj["event"] == "fanout.completed"
    assert log_obj["notified"] == 2
    assert log_obj["complete"] is True


def test_json_formatter_includes_exception(logger):
    try:
        raise RuntimeError("write failed")
    except RuntimeError:
        record = logger.makeRecord(
            "test", logging.ERROR, "test.py", 1, "Failure", (), sys.exc_info()
        )

    log_obj = json.loads(JSONFormatter().format(record))

    assert "RuntimeError: write failed" in log_obj["exc_info"]


def test_key_value_formatter_appends_sorted_pairs(logger):
    formatter = KeyValueFormatter("%(levelname)s %(message)s")
    record = logger.makeRecord(
        "test",
        logging.INFO,
        "test.py",
        1,
        "Message sent",
        (),
        None,
        extra={"receiver_id": "u2", "event": "message.sent", "service": "hidden"},
    )

    output = formatter.format(record)

    assert output == "INFO Message sent event=message.sent receiver_id=u2"


def test_key_value_formatter_quotes_values_with_spaces(logger):
    formatter = KeyValueFormatter("%(message)s")
    record = logger.makeRecord(
        "test", logging.INFO, "test.py", 1, "x", (), None, extra={"error": "disk full", "flag": None}
    )

    assert formatter.format(record) == 'x error="disk full" flag=null'


def test_context_filter_adds_service_and_context(logger):
    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "x", (), None)

    with log_context(event_id="evt-1"):
        assert ContextFilter(environment="test").filter(record)

    assert record.service == "jobboard-events"
    assert record.environment == "test"
    assert record.event_id == "evt-1"


def test_context_filter_keeps_explicit_extra(logger):
    """Fields passed via extra= win over context fields of the same name."""
    record = logger.makeRecord(
        "test", logging.INFO, "test.py", 1, "x", (), None, extra={"job_id": "explicit"}
    )

    with log_context(job_id="from-context"):
        ContextFilter().filter(record)

    assert record.job_id == "explicit"


def test_get_logger_with_component_tags_records(caplog):
    log = get_logger("jobboard_events.test", component="fanout")
    assert isinstance(log, ComponentLoggerAdapter)

    with caplog.at_level(logging.INFO, logger="jobboard_events.test"):
        log.info("hello", extra={"event": "test.event"})

    record = caplog.records[-1]
    assert record.component == "fanout"
    assert record.event == "test.event"


def test_get_logger_without_component_returns_plain_logger():
    assert isinstance(get_logger("jobboard_events.test"), logging.Logger)


def test_configure_logging_installs_single_handler(restore_root_logger):
    configure_logging(level="debug", format_type="json", environment="test")
    configure_logging(level="WARNING", format_type="key-value", environment="test")

    root = restore_root_logger
    assert len(root.handlers) == 1
    assert root.level == logging.WARNING
    assert isinstance(root.handlers[0].formatter, KeyValueFormatter)


def test_configure_logging_rejects_bad_values(restore_root_logger):
    with pytest.raises(ValueError, match="Invalid log level"):
        configure_logging(level="LOUD")

    with pytest.raises(ValueError, match="Invalid log format"):
        configure_logging(level="INFO", format_type="xml")
