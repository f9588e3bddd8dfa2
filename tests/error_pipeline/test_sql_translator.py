"""Tests for SQLAlchemy exception translation."""

from __future__ import annotations

from sqlalchemy import exc as sa_exc

from packages.error_pipeline.errors import DatabaseError, ErrorCode, ValidationError
from packages.error_pipeline.translators import engine_error_from_sqlalchemy, translate_sqlalchemy_error


class _Diag:
    def __init__(self, column_name: str | None = None, constraint_name: str | None = None) -> None:
        self.column_name = column_name
        self.constraint_name = constraint_name


class _PgError(Exception):
    """Synthetic psycopg-style driver exception."""

    def __init__(self, message: str, pgcode: str, diag: _Diag | None = None) -> None:
        super().__init__(message)
        self.pgcode = pgcode
        self.diag = diag or _Diag()


def test_postgres_unique_violation_maps_to_duplicate_value() -> None:
    """SQLSTATE 23505 becomes a validation error on the key column."""
    orig = _PgError(
        'duplicate key value violates unique constraint "users_email_key"\n'
        "DETAIL:  Key (email)=(a@example.com) already exists.",
        "23505",
        _Diag(constraint_name="users_email_key"),
    )
    error = translate_sqlalchemy_error(sa_exc.IntegrityError("INSERT", {}, orig))

    assert isinstance(error, ValidationError)
    assert error.code is ErrorCode.DUPLICATE_VALUE
    assert set(error.field_errors) == {"email"}


def test_postgres_foreign_key_violation_maps_to_invalid_relationship() -> None:
    """SQLSTATE 23503 names the referencing column."""
    orig = _PgError(
        'insert or update on table "todos" violates foreign key constraint\n'
        'DETAIL:  Key (user_id)=(42) is not present in table "users".',
        "23503",
    )
    error = translate_sqlalchemy_error(sa_exc.IntegrityError("INSERT", {}, orig))

    assert error.code is ErrorCode.INVALID_RELATIONSHIP
    assert "user_id" in error.field_errors


def test_sqlite_unique_violation_strips_table_prefix() -> None:
    """SQLite reports ``table.column``; only the column is kept."""
    orig = Exception("UNIQUE constraint failed: users.email")
    assert engine_error_from_sqlalchemy(sa_exc.IntegrityError("INSERT", {}, orig)) == {
        "code": "P2002",
        "meta": {"target": ["email"]},
    }


def test_operational_errors_are_retryable() -> None:
    """Lost connections and pool timeouts are transient."""
    lost = translate_sqlalchemy_error(sa_exc.OperationalError("SELECT 1", {}, Exception("gone")))
    pool = translate_sqlalchemy_error(sa_exc.TimeoutError("QueuePool limit reached"))

    assert isinstance(lost, DatabaseError)
    assert lost.retryable is True
    assert pool.code is ErrorCode.QUERY_TIMEOUT
    assert pool.retryable is True


def test_other_exceptions_fall_through_to_generic_database_error() -> None:
    """Unrecognized exceptions keep their class name as the operation."""
    error = translate_sqlalchemy_error(
        sa_exc.ProgrammingError("SELECT * FROM nope", {}, Exception("syntax")),
        operation_name="listTodos",
    )

    assert isinstance(error, DatabaseError)
    assert error.retryable is False
    assert error.operation == "ProgrammingError"
    assert error.context["operationName"] == "listTodos"
    assert isinstance(error.cause, sa_exc.ProgrammingError)
