"""Tests for logging configuration and formatters."""

import io
import json
import logging

import pytest

from notifier.logging import ComponentLoggerAdapter, get_logger, short_endpoint
from notifier.logging.config import (
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from notifier.logging.context import log_context


@pytest.fixture
def logger():
    test_logger = logging.getLogger("test_logger")
    test_logger.setLevel(logging.DEBUG)
    test_logger.handlers.clear()
    yield test_logger
    test_logger.handlers.clear()


@pytest.fixture
def restore_root_logger():
    """configure_logging replaces root handlers; put the originals back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(logger, message="Test message", **extra):
    return logger.makeRecord("test", logging.INFO, "test.py", 1, message, (), None, extra=extra or None)


def test_json_formatter_mandatory_fields(logger):
    log_obj = json.loads(JSONFormatter().format(make_record(logger)))

    assert log_obj["level"] == "INFO"
    assert log_obj["message"] == "Test message"
    assert log_obj["logger"] == "test"
    assert log_obj["timestamp"].endswith("Z")
    assert len(log_obj["timestamp"]) == 24  # 2025-11-04T10:30:00.123Z


def test_json_formatter_extra_fields(logger):
    record = make_record(logger, event="notify.completed", delivered=2, pruned=0, owner_id=None)
    log_obj = json.loads(JSONFormatter().format(record))

    assert log_obj["event"] == "notify.completed"
    assert log_obj["delivered"] == 2
    assert log_obj["owner_id"] is None
    assert "name" not in log_obj
    assert "levelno" not in log_obj


def test_json_formatter_keeps_non_ascii(logger):
    output = JSONFormatter().format(make_record(logger, "¡Nueva Contratación Disponible!"))

    assert "Contratación" in output


def test_json_formatter_stringifies_unknown_types(logger):
    log_obj = json.loads(JSONFormatter().format(make_record(logger, error_type=ValueError)))

    assert "ValueError" in log_obj["error_type"]


def test_contextual_filter_static_fields(logger):
    record = make_record(logger)
    ContextualFilter(service="notifier-test", environment="test").filter(record)

    assert record.service == "notifier-test"
    assert record.environment == "test"


def test_contextual_filter_context_fields(logger):
    with log_context(request_id="r-1", event_id="evt_1"):
        record = make_record(logger)
        ContextualFilter().filter(record)

    assert record.request_id == "r-1"
    assert record.event_id == "evt_1"


def test_explicit_extra_wins_over_context(logger):
    with log_context(user_id="from-context"):
        record = make_record(logger, user_id="explicit")
        ContextualFilter().filter(record)

    assert record.user_id == "explicit"


def test_key_value_formatter_extras(logger):
    formatter = KeyValueFormatter("%(levelname)s %(name)s: %(message)s")
    record = make_record(
        logger, event="registry.subscribed", removed=True, owner_id=None, reason="gone away"
    )
    ContextualFilter().filter(record)
    output = formatter.format(record)

    assert output.startswith("INFO test: Test message")
    assert "event=registry.subscribed" in output
    assert "removed=true" in output
    assert "owner_id=null" in output
    assert 'reason="gone away"' in output
    assert "service=" not in output


def test_configure_logging_rejects_invalid_level():
    with pytest.raises(ValueError, match="Invalid log level"):
        configure_logging(level="LOUD")


def test_configure_logging_rejects_invalid_format():
    with pytest.raises(ValueError, match="Invalid log format"):
        configure_logging(format_type="xml")


def test_configure_logging_json(restore_root_logger):
    stream = io.StringIO()
    configure_logging(level="DEBUG", format_type="json", environment="test", stream=stream)

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JSONFormatter)

    first_line = json.loads(stream.getvalue().splitlines()[0])
    assert first_line["event"] == "logging.configured"
    assert first_line["environment"] == "test"
    assert first_line["service"] == "jobpush-notifier"


def test_configure_logging_key_value_quiets_access_log(restore_root_logger):
    configure_logging(level="DEBUG", format_type="key-value", stream=io.StringIO())

    assert isinstance(logging.getLogger().handlers[0].formatter, KeyValueFormatter)
    assert logging.getLogger("uvicorn.access").level == logging.WARNING


def test_get_logger_with_component_merges_extras(logger):
    adapter = get_logger("test_logger", component="fanout")
    assert isinstance(adapter, ComponentLoggerAdapter)

    _, kwargs = adapter.process("msg", {"extra": {"event": "notify.started"}})
    assert kwargs["extra"] == {"component": "fanout", "event": "notify.started"}


def test_get_logger_without_component_returns_plain_logger():
    assert isinstance(get_logger("test_logger"), logging.Logger)


def test_short_endpoint():
    long_endpoint = "https://fcm.googleapis.com/fcm/send/" + "x" * 100

    assert short_endpoint(None) == ""
    assert short_endpoint("https://push.example/abc") == "https://push.example/abc"
    assert short_endpoint(long_endpoint) == long_endpoint[:60] + "..."
