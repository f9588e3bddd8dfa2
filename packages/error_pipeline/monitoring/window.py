"""Bounded sliding windows for error and latency samples.

A window is limited both by count (a ``deque`` with ``maxlen``) and by age.
Each window keeps a running total of a per-item weight, updated on append,
on count eviction and on age pruning, so rates and averages are read in O(1)
no matter how many samples the window holds.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, TypeVar

from packages.error_pipeline.errors import ErrorCategory, Severity

T = TypeVar("T")


@dataclass(frozen=True)
class ErrorSample:
    """One recorded error occurrence."""

    code: str
    category: ErrorCategory
    severity: Severity
    request_id: str
    operation_name: str | None = None
    duration_ms: float | None = None

    @property
    def is_severe(self) -> bool:
        """Return True for HIGH and CRITICAL samples."""
        return self.severity.at_least(Severity.HIGH)


def _no_weight(item: object) -> float:
    return 0


class SlidingWindow(Generic[T]):
    """Count- and age-bounded window of timestamped items. Not thread-safe.

    ``weight`` maps an item to the amount it adds to ``total`` while retained.
    """

    def __init__(
        self,
        *,
        max_size: int,
        max_age_seconds: float,
        weight: Callable[[T], float] = _no_weight,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        if max_age_seconds <= 0:
            raise ValueError("max_age_seconds must be positive")
        self._entries: deque[tuple[float, T]] = deque(maxlen=max_size)
        self._max_age = max_age_seconds
        self._weight = weight
        self._total: float = 0

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    @property
    def total(self) -> float:
        """Return the summed weight of the retained items."""
        return self._total

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, timestamp: float, item: T) -> None:
        if len(self._entries) == self._entries.maxlen:
            self._evict_oldest()
        self._entries.append((timestamp, item))
        self._total += self._weight(item)

    def prune(self, now: float) -> None:
        """Drop entries older than the age horizon."""
        horizon = now - self._max_age
        while self._entries and self._entries[0][0] < horizon:
            self._evict_oldest()

    def items(self, now: float) -> list[T]:
        """Prune, then return the retained items oldest first."""
        self.prune(now)
        return [item for _, item in self._entries]

    def clear(self) -> None:
        self._entries.clear()
        self._total = 0

    def _evict_oldest(self) -> None:
        _, item = self._entries.popleft()
        if self._entries:
            self._total -= self._weight(item)
        else:
            # Reset instead of subtracting so float drift cannot accumulate.
            self._total = 0

    def __iter__(self) -> Iterator[T]:
        return (item for _, item in self._entries)
