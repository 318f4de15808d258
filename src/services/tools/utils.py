"""Argument coercion helpers shared by the scene tools."""
from __future__ import annotations

from typing import Any


def coerce_int(value: Any, default: int | None = None) -> int | None:
    """Accept ints, integral floats and numeric strings; anything else yields ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else default
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            return default
        return int(parsed) if parsed.is_integer() else default
    return default
