"""Explicit success/failure value for expected failure paths."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from packages.error_pipeline.errors import TaxonomyError, TaxonomyException

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a payload or a taxonomy error, never both."""

    payload: T | None = None
    error: TaxonomyError | None = None

    def __post_init__(self) -> None:
        if self.payload is not None and self.error is not None:
            raise ValueError("Result cannot carry both a payload and an error")

    @property
    def ok(self) -> bool:
        """Return True when no error is present."""
        return self.error is None

    @property
    def has_payload(self) -> bool:
        """Return True when payload is present."""
        return self.payload is not None

    def unwrap(self) -> T | None:
        """Return the payload, raising ``TaxonomyException`` on failure."""
        if self.error is not None:
            raise TaxonomyException(self.error)
        return self.payload

    def map(self, fn: Callable[[T], object]) -> Result[object]:
        """Apply ``fn`` to a successful payload; failures pass through."""
        if self.error is not None or self.payload is None:
            return Result(error=self.error)
        return Result(payload=fn(self.payload))


def success(payload: T | None = None) -> Result[T]:
    """Build a successful result."""
    return Result(payload=payload)


def failure(error: TaxonomyError) -> Result[T]:
    """Build a failed result."""
    return Result(error=error)
