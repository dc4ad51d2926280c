# pawhaven/utils/datetime_utils.py
"""
Centralised date/time helpers shared by the whole backend.

Goals of this module:
1. Every timestamp the backend produces is timezone-aware UTC
2. Values round-trip cleanly through Firestore
3. ISO-8601 parsing/formatting lives in one place
"""

import logging
from datetime import datetime, date, timezone, time, timedelta
from typing import Any, Optional
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """Date/time helpers used by services, repositories and the realtime gateway."""

    @staticmethod
    def now() -> datetime:
        """Current time as a UTC timezone-aware datetime."""
        return datetime.now(timezone.utc)

    @staticmethod
    def minutes_from_now(minutes: float) -> datetime:
        return DateTimeUtils.now() + timedelta(minutes=minutes)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        Parse an ISO-8601 string into a UTC datetime.

        Supported forms:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00.123456Z
        - 2024-01-15T10:30:00 (assumed UTC)
        """
        try:
            if not iso_string:
                raise ValueError("cannot parse an empty string")

            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'

            dt = dateutil_parser.isoparse(iso_string)

            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)

            return dt.astimezone(timezone.utc)

        except Exception as e:
            logger.debug(f"ISO datetime parse failed: {iso_string} - {e}")
            raise ValueError(f"Invalid ISO datetime: {iso_string}")

    @staticmethod
    def parse_iso_or_now(value: Optional[str]) -> datetime:
        """Lenient variant for client supplied timestamps: anything unparseable becomes now."""
        if not value or not isinstance(value, str):
            return DateTimeUtils.now()
        try:
            return DateTimeUtils.parse_iso_datetime(value)
        except ValueError:
            logger.info(f"Unparseable client timestamp {value!r}, using now")
            return DateTimeUtils.now()

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """datetime -> ISO string with a 'Z' suffix."""
        try:
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            else:
                dt = dt.astimezone(timezone.utc)

            return dt.isoformat().replace('+00:00', 'Z')

        except Exception as e:
            logger.error(f"ISO string conversion failed: {dt} - {e}")
            raise ValueError(f"Cannot convert datetime to ISO string: {dt}")

    @staticmethod
    def is_past(dt: Optional[datetime]) -> bool:
        if dt is None:
            return True
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt <= DateTimeUtils.now()

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Convert date/time values before writing to Firestore.

        Rules:
        - date -> datetime (00:00:00 UTC)
        - naive datetime -> aware datetime (UTC)
        - dicts and lists are converted recursively
        """
        try:
            if isinstance(obj, date) and not isinstance(obj, datetime):
                return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)

            elif isinstance(obj, datetime):
                if obj.tzinfo is None:
                    return obj.replace(tzinfo=timezone.utc)
                return obj.astimezone(timezone.utc)

            elif isinstance(obj, dict):
                return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}

            elif isinstance(obj, list):
                return [DateTimeUtils.for_firestore(item) for item in obj]

            else:
                return obj

        except Exception as e:
            logger.error(f"Firestore conversion failed: {obj} ({type(obj)}) - {e}")
            raise ValueError(f"Cannot convert value for Firestore: {obj}")

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Normalise values read back from Firestore.

        - Firestore timestamps -> aware datetime (UTC)
        - dicts and lists are converted recursively
        """
        try:
            if isinstance(obj, datetime):
                if obj.tzinfo is None:
                    return obj.replace(tzinfo=timezone.utc)
                return obj.astimezone(timezone.utc)

            elif hasattr(obj, 'timestamp') and callable(obj.timestamp):
                return datetime.fromtimestamp(obj.timestamp(), tz=timezone.utc)

            elif isinstance(obj, dict):
                return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}

            elif isinstance(obj, list):
                return [DateTimeUtils.from_firestore(item) for item in obj]

            else:
                return obj

        except Exception as e:
            logger.error(f"Firestore read conversion failed: {obj} ({type(obj)}) - {e}")
            return obj

    @staticmethod
    def to_timestamp_ms(dt: datetime) -> int:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)

