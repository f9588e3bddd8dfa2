"""Build the client-safe payload for a taxonomy error.

The formatter runs the security filter, resolves the localized message and
decides which diagnostic extensions may leave the process. INTERNAL errors
always hide internal details. A failure inside formatting degrades to a
generic INTERNAL payload instead of propagating.
"""

from __future__ import annotations

import dataclasses
import traceback
from dataclasses import dataclass
from typing import Any

from packages.error_pipeline.config import PipelineSettings
from packages.error_pipeline.errors import (
    ErrorCategory,
    ErrorCode,
    Severity,
    TaxonomyError,
    ValidationError,
    error_cause,
    exception_to_error,
    format_timestamp,
    http_status_for,
    utc_now_ms,
    variant_details,
)
from packages.error_pipeline.i18n import LocaleCatalog
from packages.error_pipeline.ids import generate_ulid_str
from packages.error_pipeline.logging import fields, get_logger
from packages.error_pipeline.security import SecurityContext, SecurityFilter, SecurityPolicy

from .payload import ErrorPayload, PayloadExtensions

_LOGGER = get_logger(__name__)

FALLBACK_MESSAGE = "An unexpected error occurred"


@dataclass(frozen=True)
class FormattingPolicy:
    """What the formatter may reveal to the caller."""

    is_production: bool = False
    include_stack_trace: bool = True
    hide_internal_details: bool = False
    sanitize_sensitive_data: bool = True
    localize_messages: bool = True

    @classmethod
    def development(cls) -> FormattingPolicy:
        return cls()

    @classmethod
    def production(cls) -> FormattingPolicy:
        return cls(
            is_production=True,
            include_stack_trace=False,
            hide_internal_details=True,
        )

    @classmethod
    def for_settings(cls, settings: PipelineSettings) -> FormattingPolicy:
        """Derive the policy from the environment plus explicit overrides."""
        base = cls.production() if settings.is_production else cls.development()
        overrides = settings.formatter
        return dataclasses.replace(
            base,
            include_stack_trace=(
                base.include_stack_trace
                if overrides.include_stack_trace is None
                else overrides.include_stack_trace
            ),
            hide_internal_details=(
                base.hide_internal_details
                if overrides.hide_internal_details is None
                else overrides.hide_internal_details
            ),
            sanitize_sensitive_data=overrides.sanitize_sensitive_data,
            localize_messages=overrides.localize_messages,
        )


class ResponseFormatter:
    """Orchestrate filtering and localization into an ``ErrorPayload``."""

    def __init__(
        self,
        policy: FormattingPolicy | None = None,
        *,
        security_filter: SecurityFilter | None = None,
        catalog: LocaleCatalog | None = None,
    ) -> None:
        self._policy = policy or FormattingPolicy()
        self._filter = security_filter or SecurityFilter(
            SecurityPolicy(is_production=self._policy.is_production)
        )
        self._catalog = catalog or LocaleCatalog()
        # Production output is only ever built from the masked projection.
        if self._policy.is_production and not self._filter.policy.masks:
            self._filter = SecurityFilter(
                dataclasses.replace(
                    self._filter.policy,
                    is_production=True,
                    enable_data_masking=True,
                )
            )

    @property
    def policy(self) -> FormattingPolicy:
        return self._policy

    def format_error(
        self,
        error: TaxonomyError,
        security_context: SecurityContext | None = None,
        locale: str | None = None,
    ) -> ErrorPayload:
        """Return the client payload for ``error``. Never raises."""
        try:
            return self._format(error, security_context, locale)
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error(
                "error formatting failed",
                exc_info=exc,
                extra={
                    fields.FIELDS: {
                        fields.EVENT: fields.FORMATTER_FAILURE_EVENT,
                        fields.REQUEST_ID: getattr(error, "request_id", None),
                    }
                },
            )
            return fallback_payload(error)

    def format_exception(
        self,
        exc: BaseException,
        security_context: SecurityContext | None = None,
        locale: str | None = None,
    ) -> ErrorPayload:
        """Normalize an arbitrary exception, then format it."""
        return self.format_error(exception_to_error(exc), security_context, locale)

    def http_status(self, error: TaxonomyError) -> int:
        """Return the HTTP status a transport should pair with the payload."""
        return http_status_for(error.code)

    def _format(
        self,
        error: TaxonomyError,
        security_context: SecurityContext | None,
        locale: str | None,
    ) -> ErrorPayload:
        policy = self._policy
        hide_internal = policy.hide_internal_details or error.category is ErrorCategory.INTERNAL

        visible = error
        if policy.sanitize_sensitive_data or policy.is_production:
            visible = self._filter.filter_error(error, security_context).filtered

        single_field = _single_field(visible)
        message = self._message(visible, single_field, locale)

        extensions: dict[str, Any] = {}
        if isinstance(visible, ValidationError):
            extensions["validation_details"] = {
                path: list(messages) for path, messages in visible.field_errors.items()
            }
            extensions["field"] = single_field

        if not policy.is_production or not hide_internal:
            extensions["internal_details"] = {
                "category": visible.category.value,
                "severity": (visible.severity or Severity.MEDIUM).value,
                "retryable": visible.retryable,
                "httpStatus": http_status_for(visible.code),
                "context": dict(visible.context),
                **variant_details(visible),
            }
            cause = error_cause(error)
            if policy.include_stack_trace and cause is not None and cause.__traceback__:
                extensions["stack_trace"] = _stack_lines(cause)

        rendered = PayloadExtensions(**extensions)
        return ErrorPayload(
            message=message,
            code=visible.code.value,
            timestamp=format_timestamp(visible.timestamp),
            request_id=visible.request_id,
            extensions=None if rendered.is_empty else rendered,
        )

    def _message(self, error: TaxonomyError, field_name: str | None, locale: str | None) -> str:
        hide_raw = self._policy.is_production and error.category is ErrorCategory.INTERNAL
        if not self._policy.localize_messages and not hide_raw:
            return error.message
        context = {"field_name": field_name} if field_name else None
        return self._catalog.get_category_message(
            error.category,
            error.severity or Severity.MEDIUM,
            context,
            locale,
        )


def fallback_payload(error: object = None) -> ErrorPayload:
    """Return the generic INTERNAL payload used when formatting fails."""
    request_id = getattr(error, "request_id", None)
    return ErrorPayload(
        message=FALLBACK_MESSAGE,
        code=ErrorCode.INTERNAL_ERROR.value,
        timestamp=format_timestamp(utc_now_ms()),
        request_id=request_id if isinstance(request_id, str) and request_id else generate_ulid_str(),
    )


def development_formatter(
    *,
    security_filter: SecurityFilter | None = None,
    catalog: LocaleCatalog | None = None,
) -> ResponseFormatter:
    """Formatter that exposes details and stack traces."""
    return ResponseFormatter(
        FormattingPolicy.development(),
        security_filter=security_filter,
        catalog=catalog,
    )


def production_formatter(
    *,
    security_filter: SecurityFilter | None = None,
    catalog: LocaleCatalog | None = None,
) -> ResponseFormatter:
    """Formatter that masks sensitive data and hides internals."""
    return ResponseFormatter(
        FormattingPolicy.production(),
        security_filter=security_filter,
        catalog=catalog,
    )


def _single_field(error: TaxonomyError) -> str | None:
    if isinstance(error, ValidationError) and len(error.field_errors) == 1:
        return next(iter(error.field_errors))
    return None


def _stack_lines(cause: BaseException) -> list[str]:
    lines: list[str] = []
    for chunk in traceback.format_exception(type(cause), cause, cause.__traceback__):
        lines.extend(line for line in chunk.rstrip("\n").split("\n") if line)
    return lines
