"""Identifier helpers for error instances."""

from .ulid import generate_ulid_str, is_ulid_str, ulid_timestamp_ms

__all__ = ["generate_ulid_str", "is_ulid_str", "ulid_timestamp_ms"]
