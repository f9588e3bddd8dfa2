"""Translators from foreign failure shapes into the error taxonomy."""

from .persistence import (
    CONNECTION_CODES,
    FOREIGN_KEY_VIOLATION,
    TIMEOUT_CODES,
    UNIQUE_VIOLATION,
    EngineError,
    EngineErrorMeta,
    coerce_engine_error,
    guard_persistence,
    translate_engine_error,
)
from .sql import engine_error_from_sqlalchemy, translate_sqlalchemy_error
from .validation import (
    EmptyIssueListError,
    join_path,
    transform_validation_issues,
    validation_summary,
)

__all__ = [
    "CONNECTION_CODES",
    "FOREIGN_KEY_VIOLATION",
    "TIMEOUT_CODES",
    "UNIQUE_VIOLATION",
    "EmptyIssueListError",
    "EngineError",
    "EngineErrorMeta",
    "coerce_engine_error",
    "engine_error_from_sqlalchemy",
    "guard_persistence",
    "join_path",
    "transform_validation_issues",
    "translate_engine_error",
    "translate_sqlalchemy_error",
    "validation_summary",
]
