# pawhaven/utils/__init__.py
"""
Shared helpers used across the backend.
"""

from .datetime_utils import DateTimeUtils
from .coercion import parse_bool, parse_int, digits_only, clamp

__all__ = [
    'DateTimeUtils',
    'parse_bool', 'parse_int', 'digits_only', 'clamp',
]
