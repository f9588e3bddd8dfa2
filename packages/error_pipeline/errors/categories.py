"""Category and severity enums shared by every error variant."""

from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    """Closed set of error categories; doubles as the recovery policy signal."""

    VALIDATION = "VALIDATION"
    DATABASE = "DATABASE"
    AUTH = "AUTH"
    BUSINESS_LOGIC = "BUSINESS_LOGIC"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    INTERNAL = "INTERNAL"


class Severity(str, Enum):
    """Ordered severity levels, lowest first."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        """Return ordinal position used for comparisons."""
        return _SEVERITY_RANK[self]

    def at_least(self, other: Severity) -> bool:
        """Return True when this severity is ``other`` or worse."""
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}

DEFAULT_SEVERITY: dict[ErrorCategory, Severity] = {
    ErrorCategory.VALIDATION: Severity.LOW,
    ErrorCategory.DATABASE: Severity.HIGH,
    ErrorCategory.AUTH: Severity.MEDIUM,
    ErrorCategory.BUSINESS_LOGIC: Severity.LOW,
    ErrorCategory.EXTERNAL_SERVICE: Severity.HIGH,
    ErrorCategory.INTERNAL: Severity.CRITICAL,
}
