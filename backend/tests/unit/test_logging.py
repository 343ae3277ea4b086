"""
Tests for structured logging and request context propagation.
"""

import json
import logging

import pytest

from app.core.logging import (
    RequestFilter,
    SecurityLogger,
    StructuredFormatter,
    clear_request_context,
    set_request_context,
)


def make_record(message="hello", **extra):
    record = logging.LogRecord("app.test", logging.INFO, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def reset_context():
    yield
    clear_request_context()


class TestStructuredFormatter:
    def test_includes_request_context(self):
        set_request_context("req-123", "user-9")

        payload = json.loads(StructuredFormatter().format(make_record()))

        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["request_id"] == "req-123"
        assert payload["user_id"] == "user-9"

    def test_extra_fields_are_serialized(self):
        payload = json.loads(StructuredFormatter().format(make_record(event_type="login_attempt", when=object())))

        assert payload["event_type"] == "login_attempt"
        assert payload["when"].startswith("<object object")

    def test_no_context_outside_requests(self):
        payload = json.loads(StructuredFormatter().format(make_record()))

        assert "request_id" not in payload


class TestRequestFilter:
    def test_copies_context_onto_record(self):
        set_request_context("req-1")
        record = make_record()

        assert RequestFilter().filter(record) is True
        assert record.request_id == "req-1"
        assert not hasattr(record, "user_id")


class TestSecurityLogger:
    def test_failed_login_is_a_warning(self, caplog):
        with caplog.at_level(logging.INFO, logger="security"):
            SecurityLogger().log_login_attempt("a@example.com", False, "10.0.0.1", reason="bad password")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.event_type == "login_attempt"
        assert record.reason == "bad password"

    @pytest.mark.parametrize("outcome,level", [("verified", logging.INFO), ("expired", logging.WARNING)])
    def test_two_factor_levels(self, caplog, outcome, level):
        with caplog.at_level(logging.INFO, logger="security"):
            SecurityLogger().log_two_factor("a@example.com", outcome, "challenge-1")

        assert caplog.records[-1].levelno == level
        assert caplog.records[-1].getMessage() == f"Two-factor challenge {outcome}"
