# pawhaven/utils/coercion.py
"""Helpers for loosely typed input coming from query strings and multipart forms."""

import re
from typing import Any, Optional

_NON_DIGITS = re.compile(r"\D")

TRUE_STRINGS = {"true", "1"}
FALSE_STRINGS = {"false", "0"}


def parse_bool(value: Any) -> Optional[bool]:
    """
    Interpret boolean-like input.

    Accepts real booleans, "true"/"false" in any case, "1"/"0" and 1/0.
    Anything else returns None so the caller can treat it as "not given".
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    return None


def parse_int(value: Any, default: int) -> int:
    """Integer coercion that falls back to ``default`` on junk input."""
    if isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def digits_only(value: Any) -> str:
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))
