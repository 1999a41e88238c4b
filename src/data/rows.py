"""
src/data/rows.py

Typed accessors over loosely shaped record rows.

Rows arrive from the caller as plain dicts (possibly nested, e.g. {"meta": {"createdAt": ...}}).
All field access goes through the pure functions below, so the engine never chases attributes ad hoc:
- get_path(row, "meta.createdAt") -> value or None
- coerce_number(value) -> number or None
- numeric_fields(rows) -> names of numeric fields observed in a sample
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from typing import Any, Iterable, List, Optional, Union

Number = Union[int, float]

# Everything that is not part of a plain decimal number ("$1,250.50" -> "1250.50")
_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def get_path(row: Any, path: str) -> Optional[Any]:
    """
    Returns the value found at a dotted path, or None if any step is missing.

    Mapping steps use the key, sequence steps accept an integer index ("items.0.price").
    A key containing dots is tried as-is first, so flat rows with dotted column names still work.
    """
    if row is None or not path:
        return None
    if isinstance(row, Mapping) and path in row:
        return row[path]

    current = row
    for part in path.split("."):
        if isinstance(current, Mapping):
            if part not in current:
                return None
            current = current[part]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not part.lstrip("-").isdigit():
                return None
            idx = int(part)
            if not -len(current) <= idx < len(current):
                return None
            current = current[idx]
        else:
            return None
    return current


def coerce_number(value: Any) -> Optional[Number]:
    """
    Converts a raw field value to a number.

    - ints/floats are returned unchanged (NaN and infinities are rejected)
    - booleans are rejected, they are flags and not quantities
    - strings are stripped of currency symbols, thousand separators, spaces... and parsed
    Returns None when nothing numeric is left.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value
    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value)
        if not cleaned or cleaned in {"-", ".", "-."}:
            return None
        try:
            return int(cleaned)
        except ValueError:
            pass
        try:
            number = float(cleaned)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def is_numeric_value(value: Any) -> bool:
    """
    True for real numbers only (no booleans, no numeric-looking strings).
    Used to discover which fields of a record can be summed.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, int)


def numeric_fields(rows: Iterable[Any], *, limit: int = 20) -> List[str]:
    """
    Lists the top-level fields holding numbers in the first `limit` rows, in first-seen order.
    """
    seen: List[str] = []
    for i, row in enumerate(rows):
        if i >= limit:
            break
        if not isinstance(row, Mapping):
            continue
        for key, value in row.items():
            if key not in seen and is_numeric_value(value):
                seen.append(str(key))
    return seen
