"""Translate storage-engine failures into taxonomy errors.

Engine errors arrive as ``{code, meta?: {target?, field_name?}}`` in the
engine's own vocabulary. Translation is total: every input, including
malformed ones, yields a taxonomy error.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from packages.error_pipeline.errors import (
    DatabaseError,
    ErrorCode,
    TaxonomyError,
    ValidationError,
    database_error,
    validation_error,
)
from packages.error_pipeline.logging import get_logger
from packages.error_pipeline.result import Result, failure, success

_LOGGER = get_logger(__name__)

T = TypeVar("T")

UNIQUE_VIOLATION = "P2002"
FOREIGN_KEY_VIOLATION = "P2003"
CONNECTION_CODES = frozenset({"P1001", "P1002", "P1011", "P1017"})
TIMEOUT_CODES = frozenset({"P1008", "P2024"})
UNKNOWN_CODE = "UNKNOWN"

GENERIC_DATABASE_MESSAGE = "Database operation failed"


class EngineErrorMeta(BaseModel):
    """Optional engine metadata describing the failing target."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    target: list[str] | str | None = None
    field_name: str | None = None
    constraint: str | None = None
    model_name: str | None = Field(default=None, alias="modelName")


class EngineError(BaseModel):
    """Normalized storage-engine error shape."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    code: str = UNKNOWN_CODE
    message: str | None = None
    meta: EngineErrorMeta | None = None


def coerce_engine_error(raw: object) -> EngineError:
    """Coerce a mapping, model, or attribute-bearing object into ``EngineError``.

    Anything that cannot be interpreted becomes an ``UNKNOWN`` engine code.
    """
    if isinstance(raw, EngineError):
        return raw

    if isinstance(raw, Mapping):
        candidate: Mapping[str, Any] = raw
    else:
        candidate = {
            "code": getattr(raw, "code", None),
            "message": getattr(raw, "message", None),
            "meta": getattr(raw, "meta", None),
        }

    code = candidate.get("code")
    meta = candidate.get("meta")
    try:
        return EngineError(
            code=str(code) if code else UNKNOWN_CODE,
            message=_optional_str(candidate.get("message")),
            meta=_coerce_meta(meta),
        )
    except PydanticValidationError:
        return EngineError(code=str(code) if code else UNKNOWN_CODE)


def translate_engine_error(
    raw: object,
    *,
    operation_name: str | None = None,
    context: Mapping[str, Any] | None = None,
    cause: BaseException | None = None,
) -> TaxonomyError:
    """Translate one engine error into a taxonomy error. Never raises."""
    engine = coerce_engine_error(raw)
    merged: dict[str, Any] = dict(context or {})
    if operation_name:
        merged["operationName"] = operation_name
    if engine.meta is not None and engine.meta.model_name:
        merged["model"] = engine.meta.model_name

    if engine.code == UNIQUE_VIOLATION:
        return _unique_violation(engine, merged)
    if engine.code == FOREIGN_KEY_VIOLATION:
        return _foreign_key_violation(engine, merged)
    if engine.code in CONNECTION_CODES:
        return database_error(
            "Database connection failed",
            code=ErrorCode.CONNECTION_ERROR,
            operation=engine.code,
            retryable=True,
            cause=cause,
            context=merged,
        )
    if engine.code in TIMEOUT_CODES:
        return database_error(
            "Database operation timed out",
            code=ErrorCode.QUERY_TIMEOUT,
            operation=engine.code,
            retryable=True,
            cause=cause,
            context=merged,
        )
    return _generic(engine, merged, cause)


def guard_persistence(
    call: Callable[[], T],
    *,
    operation_name: str,
    translate: Callable[[BaseException], TaxonomyError] | None = None,
) -> Result[T]:
    """Run ``call`` and return its payload, or the translated failure.

    ``translate`` defaults to reading ``code``/``meta`` off the raised
    exception. Only ``Exception`` subclasses are caught.
    """
    try:
        return success(call())
    except Exception as exc:  # noqa: BLE001
        if translate is None:
            error = translate_engine_error(exc, operation_name=operation_name, cause=exc)
        else:
            error = translate(exc)
        _LOGGER.debug(
            "persistence call failed",
            extra={"fields": {"operationName": operation_name, "code": error.code.value}},
        )
        return failure(error)


def _unique_violation(engine: EngineError, context: dict[str, Any]) -> ValidationError:
    fields = _target_fields(engine)
    return validation_error(
        "A record with this value already exists",
        code=ErrorCode.DUPLICATE_VALUE,
        field_errors={name: [f"{name} already exists"] for name in fields},
        context=context,
    )


def _foreign_key_violation(engine: EngineError, context: dict[str, Any]) -> ValidationError:
    fields = _target_fields(engine)
    return validation_error(
        "Referenced record does not exist",
        code=ErrorCode.INVALID_RELATIONSHIP,
        field_errors={name: [f"referenced {name} does not exist"] for name in fields},
        context=context,
    )


def _generic(
    engine: EngineError,
    context: dict[str, Any],
    cause: BaseException | None,
) -> DatabaseError:
    return database_error(
        GENERIC_DATABASE_MESSAGE,
        code=ErrorCode.DATABASE_ERROR,
        operation=engine.code,
        retryable=False,
        cause=cause,
        context=context,
    )


def _target_fields(engine: EngineError) -> list[str]:
    meta = engine.meta
    if meta is None:
        return ["value"]
    if meta.field_name:
        return [_strip_index_suffix(meta.field_name)]
    if isinstance(meta.target, str) and meta.target:
        return [meta.target]
    if isinstance(meta.target, list) and meta.target:
        return [str(item) for item in meta.target]
    return ["value"]


def _strip_index_suffix(field_name: str) -> str:
    # Engines may report foreign keys as ``Todo_userId_fkey (index)``.
    name = field_name.split(" ", 1)[0]
    if name.endswith("_fkey"):
        return name[: -len("_fkey")].split("_", 1)[-1]
    return name


def _coerce_meta(meta: object) -> EngineErrorMeta | None:
    if isinstance(meta, EngineErrorMeta):
        return meta
    if isinstance(meta, Mapping):
        return EngineErrorMeta.model_validate(dict(meta))
    return None


def _optional_str(value: object) -> str | None:
    return None if value is None else str(value)
