"""Machine-readable error codes and their registry metadata.

Every ``ErrorCode`` belongs to exactly one ``ErrorCategory``. The registry also
records the HTTP status, log level and default retry hint for each code so
transports and loggers can stay consistent without duplicating tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Literal, Mapping

from .categories import ErrorCategory

LogLevel = Literal["debug", "info", "warning", "error", "critical"]


class ErrorCode(str, Enum):
    """Closed enumeration of codes emitted on the wire."""

    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DUPLICATE_VALUE = "DUPLICATE_VALUE"
    INVALID_RELATIONSHIP = "INVALID_RELATIONSHIP"

    # Database
    DATABASE_ERROR = "DATABASE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    QUERY_TIMEOUT = "QUERY_TIMEOUT"

    # Authentication / authorization
    UNAUTHENTICATED = "UNAUTHENTICATED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    FORBIDDEN = "FORBIDDEN"

    # Business logic
    BUSINESS_LOGIC_ERROR = "BUSINESS_LOGIC_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    INVALID_STATE_TRANSITION = "INVALID_STATE_TRANSITION"

    # External service
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    SERVICE_TIMEOUT = "SERVICE_TIMEOUT"

    # Internal
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


@dataclass(frozen=True)
class ErrorCodeInfo:
    """Static metadata registered for one error code."""

    category: ErrorCategory
    http_status: int
    log_level: LogLevel
    retryable: bool
    description: str


def _info(
    category: ErrorCategory,
    http_status: int,
    log_level: LogLevel,
    description: str,
    *,
    retryable: bool = False,
) -> ErrorCodeInfo:
    return ErrorCodeInfo(
        category=category,
        http_status=http_status,
        log_level=log_level,
        retryable=retryable,
        description=description,
    )


_V = ErrorCategory.VALIDATION
_D = ErrorCategory.DATABASE
_A = ErrorCategory.AUTH
_B = ErrorCategory.BUSINESS_LOGIC
_E = ErrorCategory.EXTERNAL_SERVICE
_I = ErrorCategory.INTERNAL

CODE_REGISTRY: Mapping[ErrorCode, ErrorCodeInfo] = MappingProxyType(
    {
        ErrorCode.VALIDATION_ERROR: _info(_V, 400, "info", "Input failed validation"),
        ErrorCode.DUPLICATE_VALUE: _info(_V, 409, "info", "Value violates a uniqueness rule"),
        ErrorCode.INVALID_RELATIONSHIP: _info(_V, 422, "info", "Referenced record does not exist"),
        ErrorCode.DATABASE_ERROR: _info(_D, 500, "error", "Database operation failed"),
        ErrorCode.CONNECTION_ERROR: _info(
            _D, 503, "error", "Database connection failed", retryable=True
        ),
        ErrorCode.QUERY_TIMEOUT: _info(_D, 503, "error", "Database query timed out", retryable=True),
        ErrorCode.UNAUTHENTICATED: _info(_A, 401, "warning", "Authentication is required"),
        ErrorCode.TOKEN_EXPIRED: _info(_A, 401, "info", "Authentication token has expired"),
        ErrorCode.TOKEN_INVALID: _info(_A, 401, "warning", "Authentication token is invalid"),
        ErrorCode.FORBIDDEN: _info(_A, 403, "warning", "Caller lacks permission"),
        ErrorCode.BUSINESS_LOGIC_ERROR: _info(_B, 422, "info", "Business rule rejected the operation"),
        ErrorCode.RESOURCE_NOT_FOUND: _info(_B, 404, "info", "Requested resource was not found"),
        ErrorCode.INVALID_STATE_TRANSITION: _info(
            _B, 409, "info", "Operation is not allowed in the current state"
        ),
        ErrorCode.EXTERNAL_SERVICE_ERROR: _info(_E, 502, "error", "External service call failed"),
        ErrorCode.SERVICE_UNAVAILABLE: _info(
            _E, 503, "error", "External service is unavailable", retryable=True
        ),
        ErrorCode.SERVICE_TIMEOUT: _info(
            _E, 504, "error", "External service timed out", retryable=True
        ),
        ErrorCode.INTERNAL_ERROR: _info(_I, 500, "critical", "Unexpected internal failure"),
        ErrorCode.CONFIGURATION_ERROR: _info(_I, 500, "critical", "Runtime configuration is invalid"),
    }
)


def code_info(code: ErrorCode) -> ErrorCodeInfo:
    """Return registry metadata for ``code``."""
    return CODE_REGISTRY[ErrorCode(code)]


def category_for(code: ErrorCode) -> ErrorCategory:
    """Return the category a code belongs to."""
    return code_info(code).category


def http_status_for(code: ErrorCode) -> int:
    """Return the HTTP status transports should use for ``code``."""
    return code_info(code).http_status


def is_retryable_code(code: ErrorCode) -> bool:
    """Return the default retry hint for ``code``."""
    return code_info(code).retryable


def codes_for(category: ErrorCategory) -> tuple[ErrorCode, ...]:
    """Return every code registered under ``category`` in declaration order."""
    return tuple(code for code, info in CODE_REGISTRY.items() if info.category is category)
