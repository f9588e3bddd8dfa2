"""Client-facing error payload formatting."""

from .formatter import (
    FALLBACK_MESSAGE,
    FormattingPolicy,
    ResponseFormatter,
    development_formatter,
    fallback_payload,
    production_formatter,
)
from .payload import ErrorPayload, PayloadExtensions

__all__ = [
    "FALLBACK_MESSAGE",
    "ErrorPayload",
    "FormattingPolicy",
    "PayloadExtensions",
    "ResponseFormatter",
    "development_formatter",
    "fallback_payload",
    "production_formatter",
]
