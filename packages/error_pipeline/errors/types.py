"""Closed error taxonomy used throughout the pipeline.

Each variant is an immutable dataclass carrying the shared envelope fields
(message, code, category, severity, context, timestamp, request id, retry hint)
plus its own payload. ``TaxonomyError`` is the closed union of variants; use
``variant_details`` or an exhaustive ``isinstance`` chain ending in
``assert_never`` when a consumer needs variant-specific data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, ClassVar, Mapping, Union, assert_never

from packages.error_pipeline.ids import generate_ulid_str

from .categories import DEFAULT_SEVERITY, ErrorCategory, Severity
from .codes import ErrorCode, category_for


def utc_now_ms() -> datetime:
    """Return the current UTC instant truncated to millisecond precision."""
    now = datetime.now(UTC)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def _freeze(values: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType({str(key): value for key, value in (values or {}).items()})


@dataclass(frozen=True, kw_only=True)
class BaseTaxonomyError:
    """Shared fields for every taxonomy variant. Not instantiable directly."""

    CATEGORY: ClassVar[ErrorCategory]

    message: str
    code: ErrorCode
    severity: Severity | None = None
    context: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now_ms)
    request_id: str = field(default_factory=generate_ulid_str)
    retryable: bool = False
    category: ErrorCategory = field(init=False)

    def __post_init__(self) -> None:
        if type(self) is BaseTaxonomyError:
            raise TypeError("BaseTaxonomyError is abstract; construct a concrete variant")
        if not isinstance(self.message, str) or not self.message.strip():
            raise ValueError(f"{type(self).__name__} requires a non-empty message")
        if not self.request_id:
            raise ValueError(f"{type(self).__name__} requires a request id")

        code = ErrorCode(self.code)
        if category_for(code) is not self.CATEGORY:
            raise ValueError(
                f"code {code.value} belongs to {category_for(code).value}, "
                f"not {self.CATEGORY.value}"
            )
        object.__setattr__(self, "code", code)
        object.__setattr__(self, "category", self.CATEGORY)
        object.__setattr__(self, "context", _freeze(self.context))
        if self.severity is None:
            object.__setattr__(self, "severity", self._default_severity())
        else:
            object.__setattr__(self, "severity", Severity(self.severity))

    def _default_severity(self) -> Severity:
        return DEFAULT_SEVERITY[self.CATEGORY]

    def summary(self) -> dict[str, Any]:
        """Return the normalized representation used by logs and alerts."""
        severity = self.severity or self._default_severity()
        return {
            "code": self.code.value,
            "category": self.category.value,
            "severity": severity.value,
            "requestId": self.request_id,
            "timestamp": format_timestamp(self.timestamp),
            "retryable": self.retryable,
            "context": dict(self.context),
        }


@dataclass(frozen=True, kw_only=True)
class ValidationError(BaseTaxonomyError):
    """Client-correctable input failure, keyed by field path."""

    CATEGORY: ClassVar[ErrorCategory] = ErrorCategory.VALIDATION

    code: ErrorCode = ErrorCode.VALIDATION_ERROR
    field_errors: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__post_init__()
        frozen = {
            str(path): (messages,) if isinstance(messages, str) else tuple(messages)
            for path, messages in self.field_errors.items()
        }
        object.__setattr__(self, "field_errors", MappingProxyType(frozen))


@dataclass(frozen=True, kw_only=True)
class DatabaseError(BaseTaxonomyError):
    """Storage-layer failure; ``operation`` holds the engine code or operation name."""

    CATEGORY: ClassVar[ErrorCategory] = ErrorCategory.DATABASE

    code: ErrorCode = ErrorCode.DATABASE_ERROR
    operation: str = ""
    cause: BaseException | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True, kw_only=True)
class AuthenticationError(BaseTaxonomyError):
    """Authentication or authorization failure."""

    CATEGORY: ClassVar[ErrorCategory] = ErrorCategory.AUTH

    code: ErrorCode = ErrorCode.UNAUTHENTICATED
    security_context: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "security_context", _freeze(self.security_context))


@dataclass(frozen=True, kw_only=True)
class BusinessLogicError(BaseTaxonomyError):
    """Domain rule rejection."""

    CATEGORY: ClassVar[ErrorCategory] = ErrorCategory.BUSINESS_LOGIC

    code: ErrorCode = ErrorCode.BUSINESS_LOGIC_ERROR
    business_rule: str = ""
    operation_context: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "operation_context", _freeze(self.operation_context))


@dataclass(frozen=True, kw_only=True)
class ExternalServiceError(BaseTaxonomyError):
    """Failure reported by a downstream dependency."""

    CATEGORY: ClassVar[ErrorCategory] = ErrorCategory.EXTERNAL_SERVICE

    code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR
    service_name: str = ""
    status_code: int | None = None

    def _default_severity(self) -> Severity:
        return Severity.MEDIUM if self.retryable else Severity.HIGH


@dataclass(frozen=True, kw_only=True)
class InternalError(BaseTaxonomyError):
    """Unclassified failure whose cause is not yet understood."""

    CATEGORY: ClassVar[ErrorCategory] = ErrorCategory.INTERNAL

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    cause: BaseException | None = field(default=None, compare=False, repr=False)


TaxonomyError = Union[
    ValidationError,
    DatabaseError,
    AuthenticationError,
    BusinessLogicError,
    ExternalServiceError,
    InternalError,
]

TAXONOMY_VARIANTS: tuple[type[BaseTaxonomyError], ...] = (
    ValidationError,
    DatabaseError,
    AuthenticationError,
    BusinessLogicError,
    ExternalServiceError,
    InternalError,
)


class TaxonomyException(Exception):
    """Carry a taxonomy error through code paths that must ``raise``."""

    def __init__(self, error: TaxonomyError) -> None:
        super().__init__(error.message)
        self.error = error


def format_timestamp(value: datetime) -> str:
    """Render an instant as ISO-8601 UTC with millisecond precision."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def variant_details(error: TaxonomyError) -> dict[str, Any]:
    """Return the variant-specific payload of ``error`` as a plain dict."""
    if isinstance(error, ValidationError):
        return {"fieldErrors": {path: list(msgs) for path, msgs in error.field_errors.items()}}
    if isinstance(error, DatabaseError):
        return {"operation": error.operation}
    if isinstance(error, AuthenticationError):
        return {"securityContext": dict(error.security_context)}
    if isinstance(error, BusinessLogicError):
        return {
            "businessRule": error.business_rule,
            "operationContext": dict(error.operation_context),
        }
    if isinstance(error, ExternalServiceError):
        return {"serviceName": error.service_name, "statusCode": error.status_code}
    if isinstance(error, InternalError):
        return {}
    assert_never(error)


def error_cause(error: TaxonomyError) -> BaseException | None:
    """Return the underlying exception for variants that keep one."""
    if isinstance(error, (DatabaseError, InternalError)):
        return error.cause
    return None
