"""Client-safe projection of taxonomy errors plus risk scoring.

Detection always runs. Masking only runs when the policy is both production
and masking-enabled. Masking is a projection: filtering an already-filtered
error returns an equal error.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping

from packages.error_pipeline.errors import (
    AuthenticationError,
    BusinessLogicError,
    TaxonomyError,
    ValidationError,
)
from packages.error_pipeline.logging import fields as log_fields
from packages.error_pipeline.logging import get_logger

from .context import SecurityContext
from .patterns import (
    DEFAULT_SENSITIVE_KEYS,
    SECRET_ASSIGNMENT_RE,
    SECRET_MASK,
    contains_email,
    has_injection_indicator,
    is_sensitive_key,
    mask_text,
)

_LOGGER = get_logger(__name__)

_MIN_SECRET_LENGTH = 4


class RiskLevel(str, Enum):
    """Aggregate risk of one filter call."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ViolationKind(str, Enum):
    """Detection rules, declared in evaluation order."""

    CREDENTIAL_EXPOSURE = "credential_exposure"
    PII_EXPOSURE = "pii_exposure"
    POTENTIAL_INJECTION = "potential_injection"


@dataclass(frozen=True)
class SecurityViolation:
    """One detection rule that fired, and where."""

    kind: ViolationKind
    action: str
    description: str
    locations: tuple[str, ...] = ()


@dataclass(frozen=True)
class FilterResult:
    """Outcome of ``SecurityFilter.filter_error``."""

    filtered: TaxonomyError
    security_violations: tuple[SecurityViolation, ...]
    risk_level: RiskLevel


@dataclass(frozen=True)
class SecurityPolicy:
    """Masking policy; production plus masking enables redaction."""

    is_production: bool = False
    enable_data_masking: bool = True
    sensitive_keys: tuple[str, ...] = DEFAULT_SENSITIVE_KEYS

    @property
    def masks(self) -> bool:
        """Return True when this policy rewrites values."""
        return self.is_production and self.enable_data_masking


@dataclass
class _Scan:
    credential_locations: list[str] = field(default_factory=list)
    email_locations: list[str] = field(default_factory=list)
    secret_values: list[str] = field(default_factory=list)


class SecurityFilter:
    """Redact sensitive values from taxonomy errors and score the risk."""

    def __init__(self, policy: SecurityPolicy | None = None) -> None:
        self._policy = policy or SecurityPolicy()

    @property
    def policy(self) -> SecurityPolicy:
        return self._policy

    def filter_error(
        self,
        error: TaxonomyError,
        security_context: SecurityContext | None = None,
    ) -> FilterResult:
        """Return a client-safe copy of ``error`` with detected violations.

        Deterministic for a given input and policy; ``error`` is never mutated.
        """
        scan = _Scan()
        for location, mapping, keys_are_data in _maps(error):
            self._scan_mapping(mapping, location, scan, check_keys=keys_are_data)
        if _message_has_secret_assignment(error.message):
            scan.credential_locations.insert(0, "message")
        if contains_email(error.message):
            scan.email_locations.insert(0, "message")

        violations = self._violations(error, scan)
        risk = risk_level_for(violations)
        filtered = self._mask(error, tuple(scan.secret_values)) if self._policy.masks else error

        if violations:
            self._report(error, violations, risk, security_context)
        return FilterResult(filtered=filtered, security_violations=violations, risk_level=risk)

    def mask_mapping(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Return a copy of free-form ``values`` redacted under this policy.

        Used for log context that is not attached to an error. Detection is
        not reported here; only the masking projection applies.
        """
        if not self._policy.masks:
            return dict(values)
        scan = _Scan()
        self._scan_mapping(values, "context", scan, check_keys=True)
        return self._mask_value(values, _longest_first(scan.secret_values))

    def _violations(self, error: TaxonomyError, scan: _Scan) -> tuple[SecurityViolation, ...]:
        action = "masked" if self._policy.masks else "detected"
        found: list[SecurityViolation] = []
        if scan.credential_locations:
            found.append(
                SecurityViolation(
                    kind=ViolationKind.CREDENTIAL_EXPOSURE,
                    action=action,
                    description="Secret-bearing value present in error payload",
                    locations=tuple(dict.fromkeys(scan.credential_locations)),
                )
            )
        if scan.email_locations:
            found.append(
                SecurityViolation(
                    kind=ViolationKind.PII_EXPOSURE,
                    action=action,
                    description="Email address present in error payload",
                    locations=tuple(dict.fromkeys(scan.email_locations)),
                )
            )
        if has_injection_indicator(error.message):
            found.append(
                SecurityViolation(
                    kind=ViolationKind.POTENTIAL_INJECTION,
                    action="detected",
                    description="Script or SQL injection indicator in error message",
                    locations=("message",),
                )
            )
        return tuple(found)

    def _scan_mapping(
        self,
        mapping: Mapping[str, Any],
        location: str,
        scan: _Scan,
        *,
        check_keys: bool,
    ) -> None:
        sensitive_keys = self._policy.sensitive_keys if check_keys else ()
        for key, value, path in _walk(mapping, location, sensitive_keys):
            if key is not None and is_sensitive_key(key, sensitive_keys):
                if value is not None and value != SECRET_MASK:
                    scan.credential_locations.append(path)
                    if isinstance(value, str) and len(value) >= _MIN_SECRET_LENGTH:
                        scan.secret_values.append(value)
                continue
            if isinstance(value, str):
                if _message_has_secret_assignment(value):
                    scan.credential_locations.append(path)
                if contains_email(value):
                    scan.email_locations.append(path)

    def _mask(self, error: TaxonomyError, secret_values: tuple[str, ...]) -> TaxonomyError:
        ordered = _longest_first(secret_values)
        changes: dict[str, Any] = {
            "message": mask_text(error.message, ordered),
            "context": self._mask_value(error.context, ordered),
        }
        if isinstance(error, ValidationError):
            changes["field_errors"] = {
                path: tuple(mask_text(message, ordered) for message in messages)
                for path, messages in error.field_errors.items()
            }
        elif isinstance(error, AuthenticationError):
            changes["security_context"] = self._mask_value(error.security_context, ordered)
        elif isinstance(error, BusinessLogicError):
            changes["operation_context"] = self._mask_value(error.operation_context, ordered)
        return dataclasses.replace(error, **changes)

    def _mask_value(self, value: Any, secret_values: tuple[str, ...]) -> Any:
        if isinstance(value, Mapping):
            return {
                str(key): (
                    SECRET_MASK
                    if is_sensitive_key(key, self._policy.sensitive_keys) and item is not None
                    else self._mask_value(item, secret_values)
                )
                for key, item in value.items()
            }
        if isinstance(value, (list, tuple)):
            items = [self._mask_value(item, secret_values) for item in value]
            if hasattr(value, "_fields"):
                return type(value)(*items)
            return type(value)(items)
        if isinstance(value, str):
            return mask_text(value, secret_values)
        return value

    def _report(
        self,
        error: TaxonomyError,
        violations: tuple[SecurityViolation, ...],
        risk: RiskLevel,
        security_context: SecurityContext | None,
    ) -> None:
        payload: dict[str, Any] = {
            log_fields.EVENT: log_fields.SECURITY_VIOLATION_EVENT,
            log_fields.REQUEST_ID: error.request_id,
            log_fields.RISK_LEVEL: risk.value,
            log_fields.VIOLATIONS: [
                {"kind": item.kind.value, "action": item.action, "locations": list(item.locations)}
                for item in violations
            ],
        }
        if security_context is not None:
            payload.update(security_context.log_fields())
        injection = any(item.kind is ViolationKind.POTENTIAL_INJECTION for item in violations)
        log = _LOGGER.error if injection else _LOGGER.warning
        log("security violation detected", extra={"fields": payload})


def risk_level_for(violations: tuple[SecurityViolation, ...]) -> RiskLevel:
    """Map distinct violation kinds to a risk level: 0 low, 1 medium, 2+ high."""
    kinds = {violation.kind for violation in violations}
    if not kinds:
        return RiskLevel.LOW
    if len(kinds) == 1:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def _longest_first(secret_values: Iterable[str]) -> tuple[str, ...]:
    # A secret containing another must be replaced whole.
    return tuple(sorted(set(secret_values), key=lambda value: (-len(value), value)))


def _message_has_secret_assignment(text: str) -> bool:
    return SECRET_ASSIGNMENT_RE.search(text) is not None


def _maps(error: TaxonomyError) -> Iterator[tuple[str, Mapping[str, Any], bool]]:
    """Yield ``(location, mapping, keys_are_data)`` for every scanned map."""
    yield "context", error.context, True
    if isinstance(error, ValidationError):
        # Keys are field paths, so a ``password`` field is not itself a secret.
        yield "fieldErrors", {path: list(msgs) for path, msgs in error.field_errors.items()}, False
    elif isinstance(error, AuthenticationError):
        yield "securityContext", error.security_context, True
    elif isinstance(error, BusinessLogicError):
        yield "operationContext", error.operation_context, True


def _is_container(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _walk(
    value: Any,
    path: str,
    sensitive_keys: tuple[str, ...],
) -> Iterator[tuple[str | None, Any, str]]:
    """Yield ``(key, value, path)`` leaves; sensitive keys stop the descent."""
    if isinstance(value, Mapping):
        for child_key, child in value.items():
            child_path = f"{path}.{child_key}"
            if is_sensitive_key(child_key, sensitive_keys) or not _is_container(child):
                yield str(child_key), child, child_path
            else:
                yield from _walk(child, child_path, sensitive_keys)
    elif isinstance(value, (list, tuple)):
        for index, child in enumerate(value):
            child_path = f"{path}.{index}"
            if _is_container(child):
                yield from _walk(child, child_path, sensitive_keys)
            else:
                yield None, child, child_path
