"""Request-scoped logging context built on ``contextvars``.

Fields bound here ride along on every record emitted from the same thread or
asyncio task, so all lines written while one error moves through the pipeline
share its ``requestId``.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Mapping

from . import fields

_LOG_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("error_pipeline_log_context", default={})


def get_context() -> dict[str, str]:
    """Return a copy of the fields bound in the current context."""
    return dict(_LOG_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Merge stringified values into the current context; ``None`` is skipped."""
    updates = {str(key): str(value) for key, value in values.items() if value is not None}
    if updates:
        _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), **updates})


def clear_context() -> None:
    """Drop every bound field."""
    _LOG_CONTEXT.set({})


@contextmanager
def log_context(values: Mapping[str, object] | None = None, **extra: object) -> Iterator[None]:
    """Bind fields for the duration of a block and restore the prior context."""
    token = _LOG_CONTEXT.set(dict(_LOG_CONTEXT.get()))
    try:
        bind_context(**{**dict(values or {}), **extra})
        yield
    finally:
        _LOG_CONTEXT.reset(token)


@contextmanager
def request_scope(request_id: str, *, operation_name: str | None = None) -> Iterator[None]:
    """Bind ``requestId`` (and optionally ``operationName``) for a block."""
    with log_context({fields.REQUEST_ID: request_id, fields.OPERATION_NAME: operation_name}):
        yield


def current_request_id() -> str | None:
    """Return the request id bound in the current context, if any."""
    return _LOG_CONTEXT.get().get(fields.REQUEST_ID)
