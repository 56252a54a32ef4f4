"""
Standardized Date/Time Handling Utilities

Progression works at calendar-day granularity:
1. Timestamps (achievement unlocks) are stored in UTC
2. "Today" is decided in the user's configured timezone
3. Weekly quests roll over on ISO week boundaries (Monday)
4. Dates are exchanged with storage as ISO strings (YYYY-MM-DD)
"""

import logging
from datetime import datetime, date, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

# Default timezone if none is configured
DEFAULT_TIMEZONE = "UTC"


def get_timezone(tz_name: str) -> ZoneInfo:
    """
    Resolve an IANA timezone name, falling back to UTC

    Args:
        tz_name: IANA timezone (e.g. "Europe/Berlin")

    Returns:
        ZoneInfo object
    """
    if not tz_name:
        return ZoneInfo(DEFAULT_TIMEZONE)

    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error(f"Invalid timezone '{tz_name}': {e}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(ZoneInfo("UTC"))


def today_in_timezone(tz_name: str = DEFAULT_TIMEZONE) -> date:
    """
    Get today's calendar date in the given timezone

    Args:
        tz_name: IANA timezone name

    Returns:
        Today's date in that timezone
    """
    return datetime.now(get_timezone(tz_name)).date()


def previous_day(day: date) -> date:
    """Calendar day before `day`"""
    return day - timedelta(days=1)


def iso_week_key(day: date) -> str:
    """Get ISO week string e.g. '2026-W09'. Uses %G-W%V (ISO year + ISO week)."""
    return day.strftime("%G-W%V")
