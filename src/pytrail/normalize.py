"""Normalization helpers.

Centralizes defensive parsing of host-delivered values.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def normalize_timestamp_ms(value: Any, *, seconds: bool = False) -> int | None:
    """Normalize an epoch timestamp to integer milliseconds.

    - Empty/missing/negative -> None
    - ``seconds=True`` scales the value up (OwnTracks ``tst`` style feeds)
    """

    ts = safe_float(value)
    if ts is None or ts < 0:
        return None
    if seconds:
        ts *= 1000.0
    return int(round(ts))
