"""
Date Helpers
Lenient parsing of the ISO date and HH:MM strings stored on records
"""
from calendar import monthrange
from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Tuple


def parse_iso_date(value) -> Optional[date]:
    """Parse a YYYY-MM-DD value, returning None instead of raising"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def iso(day: date) -> str:
    return day.isoformat()


def previous_day(day: str) -> str:
    """ISO date of the day before `day`"""
    parsed = parse_iso_date(day)
    if parsed is None:
        raise ValueError(f"Invalid date: {day!r}")
    return iso(parsed - timedelta(days=1))


def parse_hhmm(value) -> Optional[int]:
    """Minutes since midnight for an HH:MM string, None when unparsable"""
    if not isinstance(value, str):
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours * 60 + minutes


def format_minutes(total: int) -> str:
    """Zero-padded HH:MM for a minutes-since-midnight value"""
    return f"{total // 60:02d}:{total % 60:02d}"


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of a month"""
    days = monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days)


def parse_month(value: str) -> Tuple[int, int]:
    """Split a YYYY-MM string into (year, month)"""
    try:
        year_str, month_str = value.strip().split("-")
        year, month = int(year_str), int(month_str)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid month: {value!r}, expected YYYY-MM")
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {value!r}, expected YYYY-MM")
    return year, month


def each_day(start: date, end: date) -> Iterator[date]:
    """Every calendar day from start to end, inclusive"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
