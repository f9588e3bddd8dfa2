"""Structured logger for taxonomy errors and pipeline events.

Each call emits exactly one record through stdlib ``logging`` with its payload
under ``fields``. In production every error and every context mapping passes
through a masking security filter first, so the pre-masking payload never
reaches the log sink. Logging calls never raise.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any, Mapping

from packages.error_pipeline.errors import Severity, TaxonomyError, variant_details
from packages.error_pipeline.security import SecurityContext, SecurityFilter, SecurityPolicy

from . import fields
from .config import get_logger

DEFAULT_SLOW_OPERATION_MS = 5000.0

_SEVERITY_LEVEL = {
    Severity.LOW: logging.INFO,
    Severity.MEDIUM: logging.WARNING,
    Severity.HIGH: logging.ERROR,
    Severity.CRITICAL: logging.ERROR,
}


class StructuredLogger:
    """Leveled structured logging for the error pipeline."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        *,
        security_filter: SecurityFilter | None = None,
        is_production: bool = False,
        slow_operation_ms: float = DEFAULT_SLOW_OPERATION_MS,
    ) -> None:
        self._logger = logger or get_logger("error_pipeline")
        self._filter = security_filter
        self._is_production = is_production
        if is_production and (self._filter is None or not self._filter.policy.masks):
            policy = self._filter.policy if self._filter is not None else SecurityPolicy()
            self._filter = SecurityFilter(
                dataclasses.replace(policy, is_production=True, enable_data_masking=True)
            )
        self._slow_operation_ms = slow_operation_ms

    def info(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        """Emit an info record with optional context."""
        self._emit(logging.INFO, message, context=context)

    def warn(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        """Emit a warning record with optional context."""
        self._emit(logging.WARNING, message, context=context)

    def error(self, message: str, error: TaxonomyError | None = None) -> None:
        """Emit an error record including the normalized error, if given."""
        self._emit(logging.ERROR, message, error=error)

    def log_error(self, error: TaxonomyError, message: str | None = None) -> None:
        """Emit ``error`` at the level its severity maps to."""
        severity = error.severity or Severity.MEDIUM
        self._emit(_SEVERITY_LEVEL[severity], message, error=error)

    def log_security_event(
        self,
        event_type: str,
        *,
        severity: Severity = Severity.MEDIUM,
        details: Mapping[str, Any] | None = None,
        security_context: SecurityContext | None = None,
    ) -> None:
        """Record a security-relevant event such as a failed login."""
        context: dict[str, Any] = {
            fields.EVENT: fields.SECURITY_EVENT,
            "eventType": event_type,
            fields.SEVERITY: severity.value,
        }
        if security_context is not None:
            context.update(security_context.log_fields())
        if details:
            context["details"] = dict(details)
        level = logging.ERROR if severity.at_least(Severity.HIGH) else logging.WARNING
        self._emit(level, f"security event: {event_type}", context=context)

    def log_health_check(self, status: str, details: Mapping[str, Any] | None = None) -> None:
        """Record the outcome of a health evaluation."""
        context: dict[str, Any] = {fields.EVENT: fields.HEALTH_CHECK_EVENT, fields.STATUS: status}
        if details:
            context.update(details)
        level = {"healthy": logging.INFO, "degraded": logging.WARNING}.get(status, logging.ERROR)
        self._emit(level, f"health check: {status}", context=context)

    def log_performance(
        self,
        operation_name: str,
        duration_ms: float,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        """Record an operation duration, warning when it is slow."""
        slow = duration_ms > self._slow_operation_ms
        payload: dict[str, Any] = {
            fields.EVENT: fields.PERFORMANCE_EVENT,
            fields.OPERATION_NAME: operation_name,
            fields.DURATION_MS: round(duration_ms, 3),
            fields.SLOW: slow,
        }
        if context:
            payload.update(context)
        level = logging.WARNING if slow else logging.DEBUG
        self._emit(level, f"operation {operation_name} took {duration_ms:.1f}ms", context=payload)

    def log_high_severity(
        self,
        error: TaxonomyError,
        *,
        error_rate: float,
        operation_name: str | None = None,
    ) -> None:
        """Record that a HIGH or CRITICAL error entered the monitor window."""
        severity = error.severity or Severity.MEDIUM
        context: dict[str, Any] = {
            fields.EVENT: fields.HIGH_SEVERITY_EVENT,
            fields.ERROR_CODE: error.code.value,
            fields.REQUEST_ID: error.request_id,
            fields.SEVERITY: severity.value,
            fields.ERROR_RATE: error_rate,
        }
        if operation_name is not None:
            context[fields.OPERATION_NAME] = operation_name
        self._emit(logging.ERROR, f"high severity error detected: {error.code.value}", context=context)

    def _emit(
        self,
        level: int,
        message: str | None,
        *,
        context: Mapping[str, Any] | None = None,
        error: TaxonomyError | None = None,
    ) -> None:
        try:
            payload: dict[str, Any] = {}
            if error is not None:
                payload[fields.EVENT] = fields.ERROR_EVENT
                payload[fields.ERROR] = self._error_payload(error)
                # The line text falls back to the filtered message, never the raw one.
                message = message or payload[fields.ERROR]["message"]
            if context:
                safe = _serializable(dict(context))
                if safe is None:
                    payload[fields.CONTEXT_DROPPED] = True
                elif self._is_production and self._filter is not None:
                    payload[fields.CONTEXT] = self._filter.mask_mapping(safe)
                else:
                    payload[fields.CONTEXT] = safe
            self._logger.log(level, message, extra={fields.FIELDS: payload})
        except Exception:  # noqa: BLE001
            self._last_resort(level, message, error)

    def _error_payload(self, error: TaxonomyError) -> dict[str, Any]:
        visible = error
        if self._is_production and self._filter is not None:
            visible = self._filter.filter_error(error).filtered
        payload = visible.summary()
        payload["message"] = visible.message
        if not self._is_production:
            payload["details"] = variant_details(visible)
        if _serializable(payload) is None:
            # Context that cannot be encoded is dropped; the error itself is kept.
            payload.pop("context", None)
            payload.pop("details", None)
            payload[fields.CONTEXT_DROPPED] = True
        return payload

    def _last_resort(
        self,
        level: int,
        message: str | None,
        error: TaxonomyError | None,
    ) -> None:
        try:
            payload: dict[str, Any] = {fields.CONTEXT_DROPPED: True}
            if error is not None:
                payload[fields.ERROR] = {
                    "code": error.code.value,
                    "category": error.category.value,
                    fields.REQUEST_ID: error.request_id,
                }
            fallback = error.code.value if error is not None else "log record dropped"
            self._logger.log(level, message or fallback, extra={fields.FIELDS: payload})
        except Exception:  # noqa: BLE001
            # Nothing left to report to; the caller must not see logging failures.
            return


def _serializable(value: dict[str, Any]) -> dict[str, Any] | None:
    """Return ``value`` when it JSON-encodes cleanly, else ``None``."""
    try:
        json.dumps(value, default=str)
    except Exception:  # noqa: BLE001
        return None
    return value
