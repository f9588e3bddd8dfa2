"""Caller security context attached to filter decisions and log lines."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from ipaddress import ip_address
from typing import Any

TRUSTED_ADDRESSES = frozenset({"127.0.0.1", "::1"})


class SecurityLevel(str, Enum):
    """Coarse trust classification of a caller."""

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    TRUSTED = "trusted"
    ADMIN = "admin"


@dataclass(frozen=True)
class SecurityContext:
    """Who is asking, as far as the pipeline needs to know."""

    user_id: str | None = None
    user_role: str | None = None
    ip_address: str | None = None
    is_authenticated: bool = False
    is_trusted_source: bool = False
    security_level: SecurityLevel = SecurityLevel.PUBLIC

    def log_fields(self) -> dict[str, Any]:
        """Return the subset of fields safe to put on a log line."""
        return {
            "userId": self.user_id,
            "userRole": self.user_role,
            "ipAddress": self.ip_address,
            "securityLevel": self.security_level.value,
        }


def create_security_context(
    *,
    user_id: str | None = None,
    user_role: str | None = None,
    ip: str | None = None,
    trusted_addresses: frozenset[str] = TRUSTED_ADDRESSES,
) -> SecurityContext:
    """Build a ``SecurityContext``, deriving trust and level from the inputs."""
    is_trusted = _is_trusted(ip, trusted_addresses)
    is_authenticated = user_id is not None

    if user_role == "admin":
        level = SecurityLevel.ADMIN
    elif is_trusted:
        level = SecurityLevel.TRUSTED
    elif is_authenticated:
        level = SecurityLevel.AUTHENTICATED
    else:
        level = SecurityLevel.PUBLIC

    return SecurityContext(
        user_id=user_id,
        user_role=user_role,
        ip_address=ip,
        is_authenticated=is_authenticated,
        is_trusted_source=is_trusted,
        security_level=level,
    )


def _is_trusted(ip: str | None, trusted_addresses: frozenset[str]) -> bool:
    if not ip:
        return False
    if ip in trusted_addresses:
        return True
    try:
        return ip_address(ip).is_loopback
    except ValueError:
        return False
