"""Factory helpers for creating consistent taxonomy errors."""

from __future__ import annotations

from typing import Any, Mapping

from .categories import Severity
from .codes import ErrorCode, is_retryable_code
from .types import (
    AuthenticationError,
    BusinessLogicError,
    DatabaseError,
    ExternalServiceError,
    InternalError,
    ValidationError,
)


def validation_error(
    message: str,
    *,
    field_errors: Mapping[str, Any] | None = None,
    code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    context: Mapping[str, Any] | None = None,
    severity: Severity | None = None,
) -> ValidationError:
    """Create a validation error; never retryable."""
    return ValidationError(
        message=message,
        code=code,
        field_errors=dict(field_errors or {}),
        context=dict(context or {}),
        severity=severity,
    )


def database_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.DATABASE_ERROR,
    operation: str = "",
    retryable: bool | None = None,
    cause: BaseException | None = None,
    context: Mapping[str, Any] | None = None,
    severity: Severity | None = None,
) -> DatabaseError:
    """Create a database error; retry hint defaults to the code's registry entry."""
    return DatabaseError(
        message=message,
        code=code,
        operation=operation,
        retryable=is_retryable_code(code) if retryable is None else retryable,
        cause=cause,
        context=dict(context or {}),
        severity=severity,
    )


def authentication_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.UNAUTHENTICATED,
    security_context: Mapping[str, Any] | None = None,
    context: Mapping[str, Any] | None = None,
    severity: Severity | None = None,
) -> AuthenticationError:
    """Create an authentication or authorization error."""
    return AuthenticationError(
        message=message,
        code=code,
        security_context=dict(security_context or {}),
        context=dict(context or {}),
        severity=severity,
    )


def business_logic_error(
    message: str,
    *,
    business_rule: str = "",
    code: ErrorCode = ErrorCode.BUSINESS_LOGIC_ERROR,
    operation_context: Mapping[str, Any] | None = None,
    context: Mapping[str, Any] | None = None,
    severity: Severity | None = None,
) -> BusinessLogicError:
    """Create a business-rule rejection; never retryable."""
    return BusinessLogicError(
        message=message,
        code=code,
        business_rule=business_rule,
        operation_context=dict(operation_context or {}),
        context=dict(context or {}),
        severity=severity,
    )


def external_service_error(
    message: str,
    *,
    service_name: str,
    status_code: int | None = None,
    code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR,
    retryable: bool | None = None,
    context: Mapping[str, Any] | None = None,
    severity: Severity | None = None,
) -> ExternalServiceError:
    """Create a dependency failure.

    Without an explicit ``retryable`` the hint follows the code registry, and
    5xx/429 status codes are treated as transient.
    """
    if retryable is None:
        retryable = is_retryable_code(code) or (
            status_code is not None and (status_code >= 500 or status_code == 429)
        )
    return ExternalServiceError(
        message=message,
        code=code,
        service_name=service_name,
        status_code=status_code,
        retryable=retryable,
        context=dict(context or {}),
        severity=severity,
    )


def internal_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    cause: BaseException | None = None,
    context: Mapping[str, Any] | None = None,
) -> InternalError:
    """Create an internal error; always CRITICAL."""
    return InternalError(
        message=message,
        code=code,
        cause=cause,
        context=dict(context or {}),
    )
