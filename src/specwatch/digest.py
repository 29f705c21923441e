"""Changelog fingerprints.

The fingerprint is a 32-bit polynomial rolling hash (``h * 31 + c``) over the
compact JSON form of ``changelogEntries``. It must stay bit-compatible with
caches produced by the JavaScript monitor, so the JSON form mirrors
``JSON.stringify`` and the hash walks UTF-16 code units rather than code
points.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from .models import ParsedChangelog

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _entries_of(value: ParsedChangelog | Mapping[str, Any]) -> Sequence[str]:
    if isinstance(value, ParsedChangelog):
        return value.changelog_entries
    entries = value.get("changelogEntries")
    if not isinstance(entries, (list, tuple)):
        raise ValueError("value has no changelogEntries list")
    return entries


def canonical_entries(value: ParsedChangelog | Mapping[str, Any]) -> str:
    return json.dumps(list(_entries_of(value)), ensure_ascii=False, separators=(",", ":"))


def _to_int32(value: int) -> int:
    value &= _INT32_MASK
    return value - (1 << 32) if value & _INT32_SIGN else value


def hash_string(text: str) -> str:
    data = text.encode("utf-16-le", "surrogatepass")
    acc = 0
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        acc = _to_int32((acc << 5) - acc + code)
    return str(acc)


def fingerprint(value: ParsedChangelog | Mapping[str, Any]) -> str:
    return hash_string(canonical_entries(value))


def equal(
    a: ParsedChangelog | Mapping[str, Any] | None,
    b: ParsedChangelog | Mapping[str, Any] | None,
) -> bool:
    """True when both values carry the same entries; ``None`` never matches."""
    if a is None or b is None:
        return False
    return fingerprint(a) == fingerprint(b)


__all__ = ["canonical_entries", "equal", "fingerprint", "hash_string"]
