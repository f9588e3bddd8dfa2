"""Tests for formatter output and request-scoped logging context."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest

from packages.error_pipeline.logging import (
    ContextFilter,
    JsonFormatter,
    PlainFormatter,
    bind_context,
    clear_context,
    configure_logging,
    current_request_id,
    get_context,
    log_context,
    request_scope,
)


@pytest.fixture(autouse=True)
def _clean_context() -> Iterator[None]:
    clear_context()
    yield
    clear_context()


def _record(message: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("test.logger", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    ContextFilter().filter(record)
    return record


def test_json_formatter_merges_context_and_fields() -> None:
    """Bound context and record fields both land at the top level."""
    with request_scope("01HZX3Y4Z5A6B7C8D9E0F1G2H3", operation_name="createTodo"):
        record = _record(fields={"event": "taxonomy_error", "note": "日本語"})

    rendered = JsonFormatter().format(record)
    payload = json.loads(rendered)

    assert payload["requestId"] == "01HZX3Y4Z5A6B7C8D9E0F1G2H3"
    assert payload["operationName"] == "createTodo"
    assert payload["event"] == "taxonomy_error"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert "日本語" in rendered


def test_plain_formatter_appends_sorted_fields() -> None:
    """Plain output keeps the message readable with key=value suffixes."""
    with log_context(service="api"):
        record = _record(fields={"status": "healthy"})
    line = PlainFormatter().format(record)
    assert line.endswith("hello service=api status=healthy")


def test_log_context_restores_previous_values() -> None:
    """Nested scopes do not leak once they exit."""
    bind_context(service="api")
    with log_context(requestId="r-1"):
        assert get_context() == {"service": "api", "requestId": "r-1"}
        assert current_request_id() == "r-1"
    assert get_context() == {"service": "api"}
    assert current_request_id() is None


def test_bind_context_skips_none_values() -> None:
    """Unset values are not bound as the string ``None``."""
    bind_context(service="api", environment=None)
    assert get_context() == {"service": "api"}


def test_configure_logging_is_idempotent(capsys: pytest.CaptureFixture[str]) -> None:
    """Reconfiguring replaces handlers instead of stacking them."""
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging(level="INFO", json_output=True, service="svc", environment="test")
        configure_logging(level="INFO", json_output=True, service="svc", environment="test")
        logging.getLogger("test.configure").info("once")
        lines = [line for line in capsys.readouterr().out.splitlines() if line]
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

    assert len(lines) == 1
    payload = json.loads(lines[0])
    assert payload["message"] == "once"
    assert payload["service"] == "svc"
    assert payload["environment"] == "test"
