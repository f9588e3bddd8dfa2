"""Security filtering of taxonomy errors."""

from .context import SecurityContext, SecurityLevel, create_security_context
from .filter import (
    FilterResult,
    RiskLevel,
    SecurityFilter,
    SecurityPolicy,
    SecurityViolation,
    ViolationKind,
    risk_level_for,
)
from .patterns import DEFAULT_SENSITIVE_KEYS, EMAIL_MASK, HASH_MASK, PATH_MASK, SECRET_MASK

__all__ = [
    "DEFAULT_SENSITIVE_KEYS",
    "EMAIL_MASK",
    "HASH_MASK",
    "PATH_MASK",
    "SECRET_MASK",
    "FilterResult",
    "RiskLevel",
    "SecurityContext",
    "SecurityFilter",
    "SecurityLevel",
    "SecurityPolicy",
    "SecurityViolation",
    "ViolationKind",
    "create_security_context",
    "risk_level_for",
]
