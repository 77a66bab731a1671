"""Canonical JSON serialization of report documents.

Reports are serialized per RFC 8785/JCS (rfc8785 package): sorted keys,
no insignificant whitespace, one byte sequence per value. Two snapshots
with equal content therefore render to identical strings and identical
hashes, which lets a dashboard skip unchanged documents.

NOTE: JCS restricts integers to the IEEE-754 safe range (|n| < 2**53).
Byte counts and millisecond timestamps stay far below that.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from typing import Any

import rfc8785

# Version string published next to report hashes
CANONICAL_VERSION = "sha256-rfc8785-v1"


def _normalize_for_canonical(data: Any) -> Any:
    """Recursively convert mappings and sequences to plain dicts and lists.

    Raises:
        TypeError: If data contains a value JSON cannot represent.
    """
    if isinstance(data, Mapping):
        return {str(k): _normalize_for_canonical(v) for k, v in data.items()}
    if isinstance(data, list | tuple):
        return [_normalize_for_canonical(v) for v in data]
    if data is None or isinstance(data, str | int | bool):
        return data
    raise TypeError(f"Cannot canonicalize value of type {type(data).__name__}")


def canonical_json(obj: Any) -> str:
    """Produce canonical JSON (sorted keys, no whitespace).

    Raises:
        TypeError: If obj contains types that cannot be serialized.
        rfc8785.IntegerDomainError: If an integer is outside the JCS safe range.
    """
    normalized = _normalize_for_canonical(obj)
    result: bytes = rfc8785.dumps(normalized)
    return result.decode("utf-8")


def stable_hash(obj: Any) -> str:
    """SHA-256 hex digest of the canonical JSON of obj."""
    canonical = canonical_json(obj)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
