"""Translate SQLAlchemy/DBAPI exceptions through the engine-error vocabulary."""

from __future__ import annotations

import re
from typing import Any

from sqlalchemy import exc as sa_exc

from packages.error_pipeline.errors import TaxonomyError

from .persistence import (
    FOREIGN_KEY_VIOLATION,
    UNIQUE_VIOLATION,
    translate_engine_error,
)

_SQLSTATE_TO_ENGINE = {
    "23505": UNIQUE_VIOLATION,
    "23503": FOREIGN_KEY_VIOLATION,
    "57014": "P1008",
    "08000": "P1001",
    "08003": "P1001",
    "08006": "P1001",
}

# Postgres: 'Key (email)=(a@b.c) already exists.'
_PG_KEY_RE = re.compile(r"Key \((?P<columns>[^)]+)\)=")
# SQLite: 'UNIQUE constraint failed: users.email, users.org_id'
_SQLITE_UNIQUE_RE = re.compile(r"UNIQUE constraint failed: (?P<columns>.+)$", re.MULTILINE)


def engine_error_from_sqlalchemy(exc: BaseException) -> dict[str, Any]:
    """Return the engine-error mapping describing a SQLAlchemy exception."""
    orig = getattr(exc, "orig", None)
    text = str(orig) if orig is not None else str(exc)
    sqlstate = _sqlstate(orig)

    if sqlstate in _SQLSTATE_TO_ENGINE:
        code = _SQLSTATE_TO_ENGINE[sqlstate]
        if code in (UNIQUE_VIOLATION, FOREIGN_KEY_VIOLATION):
            return {"code": code, "meta": _pg_meta(code, orig, text)}
        return {"code": code}

    if isinstance(exc, sa_exc.IntegrityError):
        match = _SQLITE_UNIQUE_RE.search(text)
        if match:
            columns = [part.strip().rsplit(".", 1)[-1] for part in match.group("columns").split(",")]
            return {"code": UNIQUE_VIOLATION, "meta": {"target": columns}}
        if "FOREIGN KEY constraint failed" in text:
            return {"code": FOREIGN_KEY_VIOLATION}

    if isinstance(exc, sa_exc.TimeoutError):
        return {"code": "P2024"}
    if isinstance(exc, (sa_exc.OperationalError, sa_exc.DisconnectionError)):
        return {"code": "P1001"}
    if isinstance(exc, sa_exc.DBAPIError) and exc.connection_invalidated:
        return {"code": "P1001"}

    return {"code": type(exc).__name__}


def translate_sqlalchemy_error(
    exc: BaseException,
    *,
    operation_name: str | None = None,
) -> TaxonomyError:
    """Translate a SQLAlchemy exception into a taxonomy error. Never raises."""
    return translate_engine_error(
        engine_error_from_sqlalchemy(exc),
        operation_name=operation_name,
        cause=exc,
    )


def _sqlstate(orig: object) -> str | None:
    # psycopg2 exposes ``pgcode``; psycopg 3 and asyncpg expose ``sqlstate``.
    for attribute in ("pgcode", "sqlstate"):
        value = getattr(orig, attribute, None)
        if isinstance(value, str) and value:
            return value
    return None


def _pg_meta(code: str, orig: object, text: str) -> dict[str, Any]:
    diag = getattr(orig, "diag", None)
    column = getattr(diag, "column_name", None)
    constraint = getattr(diag, "constraint_name", None)
    match = _PG_KEY_RE.search(text)
    columns = [part.strip() for part in match.group("columns").split(",")] if match else []
    if not columns and column:
        columns = [column]

    meta: dict[str, Any] = {"constraint": constraint}
    if code == FOREIGN_KEY_VIOLATION and columns:
        meta["field_name"] = columns[0]
    elif columns:
        meta["target"] = columns
    return meta
