"""Fingerprint of a record set, used only to detect corruption.

This is a 32-bit rolling hash, not a cryptographic digest.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _as_dict(record: Any) -> Mapping[str, Any]:
    if hasattr(record, "to_dict"):
        return record.to_dict()
    return record


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_DIGITS[rem])
    return sign + "".join(reversed(out))


def fingerprint(records: Iterable[Any]) -> str:
    items = sorted((_as_dict(r) for r in records), key=lambda r: str(r.get("id", "")))
    payload = json.dumps(items, separators=(",", ":"), ensure_ascii=False)

    h = 0
    for ch in payload:
        h = _to_int32((h << 5) - h + ord(ch))
    return _to_base36(h)
