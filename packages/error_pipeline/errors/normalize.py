"""Exception normalization into the error taxonomy."""

from __future__ import annotations

from .codes import ErrorCode
from .factories import authentication_error, external_service_error, internal_error, validation_error
from .types import TaxonomyError, TaxonomyException


def exception_to_error(exc: BaseException) -> TaxonomyError:
    """Normalize a Python exception into a taxonomy error.

    This mapping is intentionally conservative and generic. Callers with more
    specific knowledge (storage engines, schema validators) should translate
    first and only fall back to this function. Never raises.
    """
    if isinstance(exc, TaxonomyException):
        return exc.error

    context = {"exceptionType": type(exc).__name__}

    if isinstance(exc, PermissionError):
        return authentication_error(
            str(exc) or "permission denied",
            code=ErrorCode.FORBIDDEN,
            context=context,
        )

    if isinstance(exc, TimeoutError):
        return external_service_error(
            str(exc) or "dependency timeout",
            service_name="unknown",
            code=ErrorCode.SERVICE_TIMEOUT,
            retryable=True,
            context=context,
        )

    if isinstance(exc, ConnectionError):
        return external_service_error(
            str(exc) or "dependency unavailable",
            service_name="unknown",
            code=ErrorCode.SERVICE_UNAVAILABLE,
            retryable=True,
            context=context,
        )

    if isinstance(exc, ValueError):
        return validation_error(str(exc) or "invalid value", context=context)

    return internal_error(str(exc) or "unexpected exception", cause=exc, context=context)
