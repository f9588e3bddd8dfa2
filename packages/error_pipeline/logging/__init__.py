"""Logging configuration and request-scoped context helpers.

``StructuredLogger`` lives in ``packages.error_pipeline.logging.structured``
and is imported from there.
"""

from . import fields
from .config import (
    ContextFilter,
    JsonFormatter,
    PlainFormatter,
    configure_logging,
    get_logger,
    record_fields,
)
from .context import (
    bind_context,
    clear_context,
    current_request_id,
    get_context,
    log_context,
    request_scope,
)

__all__ = [
    "ContextFilter",
    "JsonFormatter",
    "PlainFormatter",
    "bind_context",
    "clear_context",
    "configure_logging",
    "current_request_id",
    "fields",
    "get_context",
    "get_logger",
    "log_context",
    "record_fields",
    "request_scope",
]
