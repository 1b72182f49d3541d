"""Helpers for safe debug logging.

Location fixes are personal data. Payloads pass through
:func:`redact_for_log` before they reach a log record: coordinates are
masked wherever they appear and long strings are truncated.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

_MASK = "<redacted>"
_MAX_DEPTH = 20

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "latitude",
        "longitude",
        "lat",
        "lon",
        "lng",
        "coords",
        "coordinates",
        "password",
        "authorization",
    }
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _looks_like_position(items: Sequence[Any]) -> bool:
    # [lon, lat] or [lon, lat, alt] as found in GeoJSON-style payloads
    return 2 <= len(items) <= 3 and all(_is_number(v) for v in items)


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a copy of *value* that is safe to put in a debug log.

    Mappings have values under coordinate or credential keys replaced,
    bare numeric pairs are masked as positions, and pydantic models are
    dumped first so fixes and points can be passed directly.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, bool) or _is_number(value):
        return value
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, BaseModel):
        value = value.model_dump()

    def nested(item: Any) -> Any:
        return redact_for_log(item, max_string=max_string, _depth=_depth + 1)

    if isinstance(value, Mapping):
        return {str(k): _MASK if str(k).lower() in _SENSITIVE_KEYS else nested(v) for k, v in value.items()}
    if isinstance(value, Sequence):
        if _looks_like_position(value):
            return _MASK
        return [nested(item) for item in value]
    return repr(value)
