"""Tests for ULID request-id generation."""

from __future__ import annotations

import pytest

from packages.error_pipeline.ids import generate_ulid_str, is_ulid_str, ulid_timestamp_ms


def test_generated_ids_are_canonical_ulids() -> None:
    """Generated ids are 26-char Crockford Base32 strings."""
    value = generate_ulid_str()
    assert len(value) == 26
    assert is_ulid_str(value)


def test_timestamp_is_recoverable_from_id() -> None:
    """The leading characters encode the creation millisecond."""
    value = generate_ulid_str(timestamp_ms=1_700_000_000_123)
    assert ulid_timestamp_ms(value) == 1_700_000_000_123


def test_ids_sort_by_creation_time() -> None:
    """Later timestamps always sort after earlier ones."""
    earlier = generate_ulid_str(timestamp_ms=1_700_000_000_000)
    later = generate_ulid_str(timestamp_ms=1_700_000_000_001)
    assert earlier < later


def test_out_of_range_timestamp_is_rejected() -> None:
    """Timestamps must fit the 48-bit field."""
    with pytest.raises(ValueError):
        generate_ulid_str(timestamp_ms=-1)


def test_non_ulid_values_are_rejected() -> None:
    """Lowercase letters outside the alphabet and wrong lengths fail."""
    assert not is_ulid_str("not-a-ulid")
    assert not is_ulid_str("I" * 26)
    with pytest.raises(ValueError):
        ulid_timestamp_ms("short")
