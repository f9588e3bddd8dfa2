"""Locale-aware user-facing messages for error categories.

Messages live in ``messages.yaml`` beside this module. A message is
``[severity prefix] + base + suggestion``. The base can vary by politeness
level, and the suggestion names the offending field when one is known.
Unsupported locales resolve to the configured default locale.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from functools import lru_cache
from pathlib import Path
from string import Formatter
from typing import Any, Mapping

import yaml

from packages.error_pipeline.errors import ErrorCategory, Severity
from packages.error_pipeline.logging import get_logger

_LOGGER = get_logger(__name__)

MESSAGES_PATH = Path(__file__).with_name("messages.yaml")
DEFAULT_LOCALE = "en-US"
GENERIC_MESSAGE = "An error occurred."
MAX_VALUE_LENGTH = 50

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


class PolitenessLevel(str, Enum):
    """Register used for locales with politeness-dependent wording."""

    BUSINESS = "business"
    CASUAL = "casual"
    FORMAL = "formal"
    POLITE = "polite"


@dataclass(frozen=True)
class LocaleConfig:
    """Active locale settings for a catalog instance."""

    locale: str = DEFAULT_LOCALE
    fallback_locale: str = DEFAULT_LOCALE
    politeness: PolitenessLevel = PolitenessLevel.POLITE
    timezone: str = "UTC"


@lru_cache(maxsize=4)
def load_messages(path: Path = MESSAGES_PATH) -> Mapping[str, Any]:
    """Load and cache the message catalog from YAML."""
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict) or not isinstance(data.get("locales"), dict):
        raise ValueError(f"message catalog {path} must define a 'locales' mapping")
    return data


class _BlankMissing(dict):
    def __missing__(self, key: str) -> str:
        return ""


class LocaleCatalog:
    """Resolve ``(category, severity)`` to a localized message."""

    def __init__(
        self,
        config: LocaleConfig | None = None,
        *,
        messages: Mapping[str, Any] | None = None,
    ) -> None:
        self._messages = messages if messages is not None else load_messages()
        self._locales: Mapping[str, Any] = self._messages["locales"]
        requested = config or LocaleConfig()
        fallback = (
            requested.fallback_locale
            if requested.fallback_locale in self._locales
            else next(iter(self._locales))
        )
        self._config = replace(
            requested,
            fallback_locale=fallback,
            locale=self._match(requested.locale) or fallback,
        )

    def get_supported_locales(self) -> list[str]:
        """Return every locale tag this catalog can render."""
        return list(self._locales)

    def get_current_locale_config(self) -> LocaleConfig:
        """Return the active locale configuration."""
        return self._config

    def with_locale(
        self,
        locale: str,
        *,
        politeness: PolitenessLevel | None = None,
    ) -> LocaleCatalog:
        """Return a catalog sharing this one's data with a different locale."""
        config = replace(
            self._config,
            locale=locale,
            politeness=politeness or self._config.politeness,
        )
        return LocaleCatalog(config, messages=self._messages)

    def resolve_locale(self, locale: str | None = None) -> str:
        """Return the supported locale tag for ``locale``, or the fallback."""
        if locale is None:
            return self._config.locale
        return self._match(locale) or self._config.fallback_locale

    def get_category_message(
        self,
        category: ErrorCategory,
        severity: Severity,
        context: Mapping[str, Any] | None = None,
        locale: str | None = None,
    ) -> str:
        """Render the message for ``category``/``severity`` in ``locale``.

        Never raises: a broken template degrades to the untemplated base text,
        and a missing category degrades to a generic message.
        """
        tag = self.resolve_locale(locale)
        entry = self._category_entry(tag, ErrorCategory(category).value)
        if entry is None:
            return GENERIC_MESSAGE

        values = _interpolation_values(context)
        base = self._base_text(entry.get("base"))
        if values.get("field_name") and entry.get("field_suggestion"):
            suggestion = entry["field_suggestion"]
        else:
            suggestion = entry.get("suggestion", "")

        prefixes = self._locales[tag].get("severity_prefix") or {}
        prefix = prefixes.get(Severity(severity).value, "")
        template = f"{prefix}{base}{suggestion}"
        try:
            return Formatter().vformat(template, (), _BlankMissing(values))
        except (ValueError, IndexError, AttributeError, KeyError) as exc:
            _LOGGER.warning(
                "message template could not be rendered",
                extra={"fields": {"locale": tag, "category": category, "error": str(exc)}},
            )
            return f"{prefix}{base}"

    def _category_entry(self, tag: str, category: str) -> Mapping[str, Any] | None:
        for candidate in (tag, self._config.fallback_locale):
            categories = self._locales.get(candidate, {}).get("categories") or {}
            entry = categories.get(category)
            if isinstance(entry, Mapping):
                return entry
        return None

    def _base_text(self, base: object) -> str:
        if isinstance(base, Mapping):
            value = base.get(self._config.politeness.value) or base.get(
                PolitenessLevel.POLITE.value
            )
            return str(value) if value else ""
        return "" if base is None else str(base)

    def _match(self, locale: str | None) -> str | None:
        if not locale:
            return None
        wanted = locale.strip().replace("_", "-").lower()
        for tag in self._locales:
            if tag.lower() == wanted:
                return tag
        return None


def parse_accept_language(
    header: str | None,
    *,
    supported: list[str] | None = None,
    default: str = DEFAULT_LOCALE,
) -> str:
    """Pick the best supported locale for an ``Accept-Language`` header.

    Exact tags win over bare language prefixes; ``q`` weights are honoured.
    """
    tags = supported or list(load_messages()["locales"])
    if not header:
        return default

    weighted: list[tuple[float, int, str]] = []
    for index, part in enumerate(header.split(",")):
        token, _, params = part.strip().partition(";")
        quality = 1.0
        if params.strip().startswith("q="):
            try:
                quality = float(params.strip()[2:])
            except ValueError:
                quality = 0.0
        if token:
            weighted.append((-quality, index, token.strip()))

    lowered = {tag.lower(): tag for tag in tags}
    for neg_quality, _, token in sorted(weighted):
        if neg_quality >= 0:
            continue
        candidate = token.replace("_", "-").lower()
        if candidate in lowered:
            return lowered[candidate]
        language = candidate.split("-", 1)[0]
        for tag in tags:
            if tag.lower().split("-", 1)[0] == language:
                return tag
    return default


def _interpolation_values(context: Mapping[str, Any] | None) -> dict[str, str]:
    values: dict[str, str] = {}
    for key, value in (context or {}).items():
        if value is None:
            continue
        text = str(value)
        if len(text) > MAX_VALUE_LENGTH:
            text = f"{text[:47]}..."
        values[_CAMEL_RE.sub("_", str(key)).lower()] = text
    return values
