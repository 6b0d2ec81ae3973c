"""
Date and Time utilities

This module handles date/time parsing and the human-readable strings shown on a slide.
Centralizes all date parsing logic to maintain consistency across the application.
"""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo
import logging

logger = logging.getLogger(__name__)


class DateFormatError(ValueError):
    """Raised when date format is invalid"""
    pass


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _normalize_iso8601_string(date_str: str) -> str:
    """Normalize ISO8601 string by replacing 'Z' with '+00:00'

    Args:
        date_str: ISO8601 datetime string

    Returns:
        Normalized string with explicit timezone offset
    """
    return date_str.replace('Z', '+00:00') if date_str.endswith('Z') else date_str


def parse_iso8601_to_utc(date_str: str) -> datetime:
    """
    Parse ISO8601 date string and convert to UTC datetime

    Naive timestamps are taken to be UTC already.

    Args:
        date_str: ISO8601 datetime string (e.g., '2025-10-09T18:00:00Z' or '2025-10-09T18:00:00+01:00')

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        DateFormatError: If the date string format is invalid
    """
    try:
        normalized = _normalize_iso8601_string(date_str)
        dt = datetime.fromisoformat(normalized)
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, AttributeError, TypeError) as e:
        raise DateFormatError(f"Invalid ISO8601 datetime format: '{date_str}'") from e


def to_display_zone(dt: datetime, target_tz: str) -> datetime:
    """Convert an aware datetime to the display timezone (IANA name or 'UTC')."""
    if target_tz == "UTC":
        return dt.astimezone(timezone.utc)
    return dt.astimezone(ZoneInfo(target_tz))


def format_event_date(dt: datetime, target_tz: str = "UTC") -> str:
    """Long date, e.g. 'Saturday, March 08, 2025'."""
    return to_display_zone(dt, target_tz).strftime("%A, %B %d, %Y")


def format_clock_time(dt: datetime, target_tz: str = "UTC") -> str:
    """12-hour clock time without a leading zero, e.g. '9:30 AM'."""
    return to_display_zone(dt, target_tz).strftime("%I:%M %p").lstrip("0")
