"""Localized user-facing error messages."""

from .catalog import (
    DEFAULT_LOCALE,
    GENERIC_MESSAGE,
    LocaleCatalog,
    LocaleConfig,
    PolitenessLevel,
    load_messages,
    parse_accept_language,
)

__all__ = [
    "DEFAULT_LOCALE",
    "GENERIC_MESSAGE",
    "LocaleCatalog",
    "LocaleConfig",
    "PolitenessLevel",
    "load_messages",
    "parse_accept_language",
]
