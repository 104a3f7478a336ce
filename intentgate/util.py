"""Identifiers, content hashes, and line counts shared by the ledger and the gate."""

from __future__ import annotations

import hashlib
import os
import time


_CROCKFORD32 = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

HASH_ALGORITHM = "sha256"


def _encode_crockford_base32(value: int, length: int) -> str:
    chars: list[str] = []
    for _ in range(length):
        chars.append(_CROCKFORD32[value & 31])
        value >>= 5
    return "".join(reversed(chars))


def new_ulid(*, timestamp_ms: int | None = None) -> str:
    """
    Generate a ULID (26 chars, Crockford base32).

    ULID = 48-bit millisecond timestamp + 80-bit randomness, so ids sort
    lexicographically by creation time.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    if not (0 <= timestamp_ms < (1 << 48)):
        raise ValueError("timestamp_ms out of range for ULID")

    randomness = int.from_bytes(os.urandom(10), "big")
    value = (timestamp_ms << 80) | randomness
    return _encode_crockford_base32(value, 26)


def content_hash(content: str | bytes) -> str:
    """Hash content as ``sha256:<hex>``."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(content)
    return f"{HASH_ALGORITHM}:{hasher.hexdigest()}"


def count_lines(content: str) -> int:
    """Number of lines in `content`; a trailing newline does not open a new line."""
    if not content:
        return 0
    lines = content.split("\n")
    if content.endswith("\n"):
        return len(lines) - 1
    return len(lines)
