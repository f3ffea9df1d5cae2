"""
Timezone utilities for Schedule Events.

Provides unified timezone conversion functions for the entire core.
Event instants are stored in UTC and converted to local time whenever
a calendar day matters (classification, floating iCalendar times).
"""

from datetime import datetime, date, timedelta
from typing import Optional
import time as _time
import pytz
from dateutil import parser as date_parser


# Default timezone - overridden by config
_local_timezone_name: str = "UTC"


def set_timezone(timezone_name: str):
    """Set the local timezone for the application."""
    global _local_timezone_name
    _local_timezone_name = timezone_name


def get_local_timezone():
    """
    Get the local timezone as a pytz timezone object.

    Returns:
        pytz timezone object for the configured local timezone.
    """
    try:
        return pytz.timezone(_local_timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback: try system timezone name
        try:
            return pytz.timezone(_time.tzname[0])
        except pytz.UnknownTimeZoneError:
            # Last resort: calculate offset and use fixed offset timezone
            is_dst = _time.localtime().tm_isdst
            if is_dst:
                offset_seconds = -_time.altzone
            else:
                offset_seconds = -_time.timezone
            return pytz.FixedOffset(offset_seconds // 60)


def localize(dt: datetime, tz=None) -> datetime:
    """Attach a timezone to a naive datetime (local timezone by default)."""
    if dt.tzinfo is not None:
        return dt
    tz = tz or get_local_timezone()
    if hasattr(tz, 'localize'):
        return tz.localize(dt)
    return dt.replace(tzinfo=tz)


def to_local_datetime(dt: datetime, tz=None) -> datetime:
    """
    Convert an aware datetime to the local timezone.

    Naive datetimes are assumed to already be local and get the
    timezone attached.
    """
    tz = tz or get_local_timezone()
    if dt.tzinfo is None:
        return localize(dt, tz)
    return dt.astimezone(tz)


def to_utc_datetime(dt: datetime, tz=None) -> datetime:
    """
    Convert a datetime to UTC.

    Args:
        dt: A datetime object. Naive values are read in local time.

    Returns:
        A timezone-aware datetime in UTC.
    """
    return localize(dt, tz).astimezone(pytz.UTC)


def local_date(dt: datetime, tz=None) -> date:
    """Calendar day of an instant in the local timezone."""
    return to_local_datetime(dt, tz).date()


def start_of_local_day(day: date, tz=None) -> datetime:
    """Midnight of a calendar day in the local timezone, as UTC."""
    return to_utc_datetime(datetime.combine(day, datetime.min.time()), tz)


def format_instant(dt: datetime) -> str:
    """
    Serialize an instant as ISO-8601 in UTC with millisecond precision.

    Example: 2024-01-15T09:00:00.000Z
    """
    utc = to_utc_datetime(dt)
    return utc.strftime('%Y-%m-%dT%H:%M:%S.') + f"{utc.microsecond // 1000:03d}Z"


def parse_instant(text: Optional[str], tz=None) -> Optional[datetime]:
    """
    Parse date text into an aware UTC datetime.

    ISO-8601 is tried first, then lenient free-form parsing. Text without
    an offset is read in the local timezone.

    Returns:
        Aware UTC datetime, or None if the text is empty or unparsable.
    """
    if text is None:
        return None
    text = str(text).strip()
    if not text:
        return None

    try:
        parsed = date_parser.isoparse(text)
    except (ValueError, OverflowError):
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError):
            return None

    return to_utc_datetime(parsed, tz)


def normalize_instant(text: Optional[str], tz=None) -> Optional[str]:
    """Parse date text and re-serialize it with format_instant()."""
    parsed = parse_instant(text, tz)
    return format_instant(parsed) if parsed else None


def time_until(target: datetime, now: Optional[datetime] = None) -> dict[str, int]:
    """
    Countdown from now to target.

    Returns:
        Dict with days, hours, minutes and seconds; all zero once
        the target has passed.
    """
    now = now or datetime.now(pytz.UTC)
    remaining = to_utc_datetime(target) - to_utc_datetime(now)
    if remaining <= timedelta(0):
        return {'days': 0, 'hours': 0, 'minutes': 0, 'seconds': 0}

    hours, rest = divmod(remaining.seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return {
        'days': remaining.days,
        'hours': hours,
        'minutes': minutes,
        'seconds': seconds,
    }
