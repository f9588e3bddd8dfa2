"""Public error taxonomy API."""

from .categories import DEFAULT_SEVERITY, ErrorCategory, Severity
from .codes import (
    CODE_REGISTRY,
    ErrorCode,
    ErrorCodeInfo,
    category_for,
    code_info,
    codes_for,
    http_status_for,
    is_retryable_code,
)
from .factories import (
    authentication_error,
    business_logic_error,
    database_error,
    external_service_error,
    internal_error,
    validation_error,
)
from .normalize import exception_to_error
from .types import (
    TAXONOMY_VARIANTS,
    AuthenticationError,
    BaseTaxonomyError,
    BusinessLogicError,
    DatabaseError,
    ExternalServiceError,
    InternalError,
    TaxonomyError,
    TaxonomyException,
    ValidationError,
    error_cause,
    format_timestamp,
    utc_now_ms,
    variant_details,
)

__all__ = [
    "CODE_REGISTRY",
    "DEFAULT_SEVERITY",
    "TAXONOMY_VARIANTS",
    "AuthenticationError",
    "BaseTaxonomyError",
    "BusinessLogicError",
    "DatabaseError",
    "ErrorCategory",
    "ErrorCode",
    "ErrorCodeInfo",
    "ExternalServiceError",
    "InternalError",
    "Severity",
    "TaxonomyError",
    "TaxonomyException",
    "ValidationError",
    "authentication_error",
    "business_logic_error",
    "category_for",
    "code_info",
    "codes_for",
    "database_error",
    "error_cause",
    "exception_to_error",
    "external_service_error",
    "format_timestamp",
    "http_status_for",
    "internal_error",
    "is_retryable_code",
    "utc_now_ms",
    "validation_error",
    "variant_details",
]
