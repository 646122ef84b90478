"""Date/time tokens for iCalendar DTSTART, DTEND and DTSTAMP.

Form input arrives as ISO dates (``YYYY-MM-DD``) and ``HH:MM`` times. No
timezone conversion happens here; the TZID is attached by the assembler.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone

logger = logging.getLogger(__name__)

_DATE_FMT = "%Y%m%d"
_STAMP_FMT = "%Y%m%dT%H%M%SZ"


def parse_date(value: str | None) -> date | None:
    """Return the calendar date for an ISO ``YYYY-MM-DD`` string, or None."""
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        logger.warning("Ignoring unparseable date %r", value)
        return None


def parse_time(value: str | None) -> time | None:
    """Return the time-of-day for ``HH:MM`` (seconds are tolerated), or None."""
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        logger.warning("Ignoring unparseable time %r", value)
        return None
    try:
        return time(int(parts[0]), int(parts[1]))
    except ValueError:
        logger.warning("Ignoring unparseable time %r", value)
        return None


def format_ical_datetime(date_str: str, time_str: str = "", all_day: bool = False) -> str:
    """Format a date plus optional time as an iCalendar token.

    All-day or missing time gives ``YYYYMMDD``; otherwise
    ``YYYYMMDDTHHMMSS`` with the seconds always ``00``.
    """
    day = parse_date(date_str)
    if day is None:
        return ""
    tod = None if all_day else parse_time(time_str)
    if tod is None:
        return day.strftime(_DATE_FMT)
    return f"{day.strftime(_DATE_FMT)}T{tod.hour:02d}{tod.minute:02d}00"


def next_day_token(date_str: str) -> str:
    """Date-only token for the day after ``date_str``."""
    day = parse_date(date_str)
    if day is None:
        return ""
    return (day + timedelta(days=1)).strftime(_DATE_FMT)


def event_tokens(
    start_date: str,
    start_time: str,
    end_date: str,
    end_time: str,
    all_day: bool,
) -> tuple[str, str]:
    """Return (DTSTART, DTEND) tokens.

    An all-day end date is exclusive, so a single-day all-day event ends on
    the following day.
    """
    dt_start = format_ical_datetime(start_date, start_time, all_day)
    dt_end = format_ical_datetime(end_date, end_time, all_day)
    if all_day and dt_start == dt_end:
        dt_end = next_day_token(end_date)
    return dt_start, dt_end


def utc_stamp(now: datetime | None = None) -> str:
    """DTSTAMP token ``YYYYMMDDTHHMMSSZ`` in UTC."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime(_STAMP_FMT)
