"""Tests for storage-engine error translation into the taxonomy."""

from __future__ import annotations

import pytest

from packages.error_pipeline.errors import DatabaseError, ErrorCategory, ErrorCode, ValidationError
from packages.error_pipeline.translators import (
    CONNECTION_CODES,
    TIMEOUT_CODES,
    EngineError,
    coerce_engine_error,
    guard_persistence,
    translate_engine_error,
)


def test_unique_violation_maps_to_validation_already_exists() -> None:
    """Unique failures are client-correctable validation errors keyed by field."""
    error = translate_engine_error({"code": "P2002", "meta": {"target": ["email"]}})

    assert isinstance(error, ValidationError)
    assert error.category is ErrorCategory.VALIDATION
    assert error.code is ErrorCode.DUPLICATE_VALUE
    assert any("already exists" in message for message in error.field_errors["email"])


def test_unique_violation_with_composite_target_reports_each_field() -> None:
    """Every column of a composite unique key gets its own entry."""
    error = translate_engine_error({"code": "P2002", "meta": {"target": ["orgId", "slug"]}})
    assert set(error.field_errors) == {"orgId", "slug"}


def test_foreign_key_violation_maps_to_does_not_exist() -> None:
    """Foreign-key failures name the referencing field."""
    error = translate_engine_error({"code": "P2003", "meta": {"field_name": "Todo_userId_fkey (index)"}})

    assert isinstance(error, ValidationError)
    assert error.code is ErrorCode.INVALID_RELATIONSHIP
    assert error.field_errors["userId"] == ("referenced userId does not exist",)


@pytest.mark.parametrize("code", sorted(CONNECTION_CODES | TIMEOUT_CODES))
def test_connection_and_timeout_codes_are_retryable(code: str) -> None:
    """Transient engine failures are retryable database errors."""
    error = translate_engine_error({"code": code})
    assert isinstance(error, DatabaseError)
    assert error.retryable is True
    assert error.operation == code


def test_unknown_code_maps_to_generic_database_error() -> None:
    """Unmapped codes keep the raw code and a generic message."""
    error = translate_engine_error({"code": "P2034", "meta": {"target": ["secret_table"]}})

    assert isinstance(error, DatabaseError)
    assert error.retryable is False
    assert error.operation == "P2034"
    assert error.message == "Database operation failed"
    assert "secret_table" not in error.message


@pytest.mark.parametrize(
    "raw",
    [None, 42, "P2002", {}, {"code": None}, {"code": "P2002", "meta": "garbage"}, object()],
)
def test_translation_is_total_over_malformed_inputs(raw: object) -> None:
    """No input shape makes the translator raise."""
    error = translate_engine_error(raw)
    assert error.message


def test_objects_with_code_and_meta_attributes_are_accepted() -> None:
    """Driver exceptions exposing ``code``/``meta`` translate like mappings."""

    class KnownRequestError(Exception):
        """Synthetic engine exception."""

        def __init__(self) -> None:
            super().__init__("Unique constraint failed")
            self.code = "P2002"
            self.meta = {"target": "email"}

    error = translate_engine_error(KnownRequestError())
    assert set(error.field_errors) == {"email"}


def test_operation_name_is_carried_in_context() -> None:
    """The caller's operation name is attached for correlation."""
    error = translate_engine_error({"code": "P1001"}, operation_name="createTodo")
    assert error.context["operationName"] == "createTodo"


def test_coerce_engine_error_defaults_unknown_code() -> None:
    """Missing codes become ``UNKNOWN``."""
    assert coerce_engine_error({}) == EngineError(code="UNKNOWN")


def test_guard_persistence_returns_payload_or_translated_failure() -> None:
    """Expected persistence failures come back as values, not exceptions."""

    class EngineFailure(Exception):
        """Synthetic engine exception."""

        code = "P1001"

    def failing() -> None:
        raise EngineFailure("cannot reach server")

    assert guard_persistence(lambda: 5, operation_name="count").payload == 5

    result = guard_persistence(failing, operation_name="findMany")
    assert not result.ok
    assert result.error.retryable is True
    assert isinstance(result.error.cause, EngineFailure)
