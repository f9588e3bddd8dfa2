"""Request-id generation using ULIDs.

Request ids are 26-character Crockford Base32 strings: a 48-bit millisecond
timestamp followed by 80 bits of ``secrets`` entropy. They sort by creation
time, which keeps log lines for a burst of errors in order.
"""

from __future__ import annotations

import secrets
import time

_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_DECODE = {char: index for index, char in enumerate(_ALPHABET)}
_ULID_LENGTH = 26
_TIMESTAMP_CHARS = 10


def _encode(number: int, width: int) -> str:
    chars: list[str] = []
    for _ in range(width):
        number, remainder = divmod(number, 32)
        chars.append(_ALPHABET[remainder])
    return "".join(reversed(chars))


def generate_ulid_str(*, timestamp_ms: int | None = None) -> str:
    """Generate a new ULID string, optionally pinned to ``timestamp_ms``."""
    ts_ms = int(time.time() * 1000) if timestamp_ms is None else int(timestamp_ms)
    if ts_ms < 0 or ts_ms >= (1 << 48):
        raise ValueError("timestamp_ms out of ULID 48-bit range")
    entropy = int.from_bytes(secrets.token_bytes(10), byteorder="big", signed=False)
    return _encode((ts_ms << 80) | entropy, _ULID_LENGTH)


def is_ulid_str(value: object) -> bool:
    """Return True when ``value`` is a canonical ULID string."""
    return (
        isinstance(value, str)
        and len(value) == _ULID_LENGTH
        and value[0] in "01234567"
        and all(char in _DECODE for char in value)
    )


def ulid_timestamp_ms(value: str) -> int:
    """Return the millisecond timestamp encoded in a ULID string."""
    if not is_ulid_str(value):
        raise ValueError(f"not a canonical ULID: {value!r}")
    number = 0
    for char in value[:_TIMESTAMP_CHARS]:
        number = (number << 5) | _DECODE[char]
    return number
