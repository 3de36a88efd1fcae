"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

from kaji.core.logging import JsonFormatter, SensitiveDataFilter, clear_request_id, set_request_id


def _capturing_logger(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_credentials():
    logger, stream = _capturing_logger("test_redaction")

    logger.info(
        "user.login_failed",
        extra={
            "password": "hunter2-secret",
            "api_key": "sk-or-secret-123",
            "authorization": "Bearer eyJhbGciOi",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "hunter2-secret" not in output
    assert "sk-or-secret-123" not in output
    assert "eyJhbGciOi" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_chat_text():
    logger, stream = _capturing_logger("test_chat_redaction")

    logger.info(
        "chat.debug",
        extra={
            "prompt": "How do I bypass the ChromeOS verified boot?",
            "completion": "Step one is developer mode",
            "message_length": 42,
        },
    )

    output = stream.getvalue()

    assert "verified boot" not in output
    assert "developer mode" not in output
    assert "message_length" in output


def test_sensitive_filter_allows_safe_fields():
    logger, stream = _capturing_logger("test_safe_fields")

    logger.info(
        "rate_limit.exceeded",
        extra={
            "client": "203.0.113.9",
            "path": "/api/v1/exploits",
            "limit": 100,
            "retry_after_s": 12,
        },
    )

    record = json.loads(stream.getvalue())

    assert record["message"] == "rate_limit.exceeded"
    assert record["client"] == "203.0.113.9"
    assert record["path"] == "/api/v1/exploits"
    assert record["retry_after_s"] == 12
    assert "[REDACTED]" not in stream.getvalue()


def test_sensitive_filter_redacts_nested_dicts():
    logger, stream = _capturing_logger("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "authorization": "Bearer secret-token",
                "user-agent": "pytest",
            },
            "safe_data": {"count": 5},
        },
    )

    output = stream.getvalue()

    assert "secret-token" not in output
    assert "[REDACTED]" in output
    assert "pytest" in output


def test_json_formatter_includes_request_id_from_context():
    logger, stream = _capturing_logger("test_request_id")

    set_request_id("req-abc")
    try:
        logger.info("request.incoming")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-abc"
