"""Tests for the explicit success/failure result value."""

from __future__ import annotations

import pytest

from packages.error_pipeline.errors import BusinessLogicError, TaxonomyException
from packages.error_pipeline.result import Result, failure, success


def test_success_carries_payload() -> None:
    """A successful result is ok and unwraps to its payload."""
    result = success({"id": 1})
    assert result.ok
    assert result.has_payload
    assert result.unwrap() == {"id": 1}


def test_failure_unwrap_raises_taxonomy_exception() -> None:
    """Unwrapping a failure re-raises the carried error."""
    error = BusinessLogicError(message="limit reached")
    result = failure(error)

    assert not result.ok
    with pytest.raises(TaxonomyException) as caught:
        result.unwrap()
    assert caught.value.error is error


def test_map_only_applies_to_success() -> None:
    """Failures pass through ``map`` untouched."""
    assert success(2).map(lambda value: value * 3).payload == 6
    error = BusinessLogicError(message="nope")
    assert failure(error).map(lambda value: value).error is error


def test_payload_and_error_are_mutually_exclusive() -> None:
    """A result cannot be both a success and a failure."""
    with pytest.raises(ValueError):
        Result(payload=1, error=BusinessLogicError(message="x"))
