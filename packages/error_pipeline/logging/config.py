"""Stdout logging configuration for the error pipeline.

Records are emitted to stdout either as one JSON object per line or as a plain
human-readable line. Structured payloads travel on the record under the
``fields`` attribute (pass ``extra={"fields": {...}}``) and are merged with the
request-scoped context from ``context.py``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from . import fields
from .context import bind_context, get_context


class ContextFilter(logging.Filter):
    """Attach the current request-scoped context to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = get_context()
        return True


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Return the structured payload attached to ``record``, if any."""
    payload = getattr(record, fields.FIELDS, None)
    return dict(payload) if isinstance(payload, dict) else {}


class JsonFormatter(logging.Formatter):
    """Emit newline-delimited JSON with stable core keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            payload.update(context)
        payload.update(record_fields(record))

        if record.exc_info:
            payload[fields.EXCEPTION] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, separators=(",", ":"), ensure_ascii=False)


class PlainFormatter(logging.Formatter):
    """Readable single-line formatter that appends structured fields."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extras: dict[str, Any] = {}
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            extras.update(context)
        extras.update(record_fields(record))
        if not extras:
            return message
        suffix = " ".join(
            f"{key}={json.dumps(value, default=str, ensure_ascii=False)}"
            if isinstance(value, (dict, list))
            else f"{key}={value}"
            for key, value in sorted(extras.items())
        )
        return f"{message} {suffix}"


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
) -> None:
    """Install a single stdout handler on the root logger.

    Calling this again replaces the existing root handlers, so repeated calls
    never duplicate output.
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level.upper())
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())
    root.addHandler(handler)

    bind_context(**{fields.SERVICE: service, fields.ENVIRONMENT: environment})


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger from the standard logging hierarchy."""
    return logging.getLogger(name)
