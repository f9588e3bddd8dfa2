"""Detection and masking patterns used by the security filter."""

from __future__ import annotations

import re

EMAIL_MASK = "***@***"
SECRET_MASK = "[REDACTED]"
PATH_MASK = "[PATH]"
HASH_MASK = "[HASH]"

DEFAULT_SENSITIVE_KEYS: tuple[str, ...] = (
    "password",
    "passwd",
    "secret",
    "token",
    "apikey",
    "credential",
    "privatekey",
    "authorization",
    "cookie",
    "sessionid",
)

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9\-]+(?:\.[A-Za-z0-9\-]+)*\.[A-Za-z]{2,}")

# ``password=hunter2``, ``api_key: abc``, ``"token":"xyz"``
SECRET_ASSIGNMENT_RE = re.compile(
    r"(?P<key>\b[\w\-]*?(?:password|passwd|secret|token|api[_\-]?key|credential)[\w\-]*)"
    r"(?P<sep>\"?\s*[:=]\s*\"?)"
    r"(?P<value>(?!\[REDACTED\])[^\s,;'\"]+)",
    re.IGNORECASE,
)

WINDOWS_PATH_RE = re.compile(r"[A-Z]:\\[^\\\s]*\\[\w\\.]+", re.IGNORECASE)
UNIX_PATH_RE = re.compile(r"/[\w/\-.]+/[\w\-.]+")
HASH_RE = re.compile(r"\b[a-f0-9]{32,}\b", re.IGNORECASE)

_SQL_VERBS = r"(?:select|union|insert|update|delete|drop|alter|exec|execute|truncate)"

INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"<\s*/?\s*script\b", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(rf"['\"]\s*;?\s*{_SQL_VERBS}\b", re.IGNORECASE),
    re.compile(rf"\b{_SQL_VERBS}\b\s*['\"]", re.IGNORECASE),
    re.compile(r"['\"]\s*(?:or|and)\s+['\"]?\w+['\"]?\s*=\s*['\"]?\w+", re.IGNORECASE),
    re.compile(r"['\"]\s*;?\s*--"),
)


def normalize_key(key: object) -> str:
    """Lowercase a key and strip ``_``/``-`` so ``API-Key`` matches ``apikey``."""
    return str(key).lower().replace("_", "").replace("-", "")


def is_sensitive_key(key: object, sensitive_keys: tuple[str, ...]) -> bool:
    """Return True when ``key`` names a secret-bearing field."""
    normalized = normalize_key(key)
    return any(marker in normalized for marker in sensitive_keys)


def has_injection_indicator(text: str) -> bool:
    """Return True when ``text`` contains a script or SQL injection indicator."""
    return any(pattern.search(text) for pattern in INJECTION_PATTERNS)


def contains_email(text: str) -> bool:
    """Return True when ``text`` contains an email-shaped token."""
    return EMAIL_RE.search(text) is not None


def mask_text(text: str, secret_values: tuple[str, ...] = ()) -> str:
    """Apply every text mask to ``text``; already-masked text is unchanged."""
    masked = text
    for value in secret_values:
        masked = masked.replace(value, SECRET_MASK)
    masked = SECRET_ASSIGNMENT_RE.sub(
        lambda match: f"{match.group('key')}{match.group('sep')}{SECRET_MASK}", masked
    )
    masked = EMAIL_RE.sub(EMAIL_MASK, masked)
    masked = WINDOWS_PATH_RE.sub(PATH_MASK, masked)
    masked = UNIX_PATH_RE.sub(PATH_MASK, masked)
    masked = HASH_RE.sub(HASH_MASK, masked)
    return masked
