import json
import logging

from edutrack.core.context import bind_principal, get_context_value, reset_context, set_context
from edutrack.core.logging import JsonFormatter, RequestContextFilter


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("edutrack.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_request_context_and_extras():
    token = set_context({"request_id": "req-42"})
    try:
        bind_principal("teacher-1", "teacher", "school-1")
        record = _record("Broadcast notification", created_count=3)
        RequestContextFilter().filter(record)
    finally:
        reset_context(token)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "Broadcast notification"
    assert payload["request_id"] == "req-42"
    assert payload["user_id"] == "teacher-1"
    assert payload["created_count"] == 3
    assert payload["level"] == "INFO"


def test_filter_without_request_context():
    record = _record("outside a request")
    RequestContextFilter().filter(record)

    assert record.request_id is None
    payload = json.loads(JsonFormatter().format(record))
    assert "request_id" not in payload
    assert "user_id" not in payload


def test_reset_context_restores_previous_values():
    outer = set_context({"request_id": "outer"})
    inner = set_context({"request_id": "inner"})
    bind_principal("student-1", "student", "school-1")
    assert get_context_value("user_id") == "student-1"

    reset_context(inner)
    assert get_context_value("request_id") == "outer"
    assert get_context_value("user_id") is None

    reset_context(outer)
    assert get_context_value("request_id") is None
