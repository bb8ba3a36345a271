"""
Attendance Rollup
Per-day status classification and monthly attendance summaries
"""
import logging
import math
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterable, List

from pydantic import BaseModel

from app.core.dates import each_day, format_minutes, iso, month_bounds, parse_hhmm
from app.core.records import AttendanceEntry, LeaveSpan

logger = logging.getLogger(__name__)


class DayStatus(str, Enum):
    """Calendar cell status"""
    LEAVE = "leave"
    PRESENT = "present"
    ABSENT = "absent"
    FUTURE = "future"
    NO_DATA = "no-data"


class CalendarDay(BaseModel):
    date: str
    status: DayStatus


class MonthlyAttendanceSummary(BaseModel):
    """Monthly attendance aggregate for one staff member"""
    year: int
    month: int
    total_days: int = 0
    present: int = 0
    absent: int = 0
    leave_days: int = 0
    no_data: int = 0
    future: int = 0
    uniform_compliance: int = 0
    shoe_compliance: int = 0
    total_sales: float = 0.0
    total_target: float = 0.0
    google_reviews_done: float = 0.0
    los_updates_done: float = 0.0
    target_achievement: float = 0.0


def _check_in_rank(record: AttendanceEntry):
    minutes = parse_hhmm(record.check_in)
    return (minutes is None, minutes or 0)


def dedupe_records(records: Iterable[AttendanceEntry]) -> List[AttendanceEntry]:
    """
    Keep one record per (staff, date).

    The earliest parseable check-in wins; a record without a check-in loses
    to one with it, and ties keep the record seen first. Records whose date
    cannot be parsed are dropped.
    """
    kept: Dict[tuple, AttendanceEntry] = {}
    for record in records:
        day = record.day
        if day is None:
            logger.debug("Skipping attendance with malformed date %r for %s", record.date, record.staff_email)
            continue
        key = (record.staff_email, day)
        current = kept.get(key)
        if current is None:
            kept[key] = record
            continue
        logger.debug("Duplicate attendance for %s on %s", record.staff_email, day)
        if _check_in_rank(record) < _check_in_rank(current):
            kept[key] = record
    return list(kept.values())


def index_by_day(records: Iterable[AttendanceEntry]) -> Dict[date, AttendanceEntry]:
    """Deduplicated records of a single staff member keyed by day"""
    return {record.day: record for record in dedupe_records(records)}


def classify_day(
    day: date,
    attendance: Dict[date, AttendanceEntry],
    leaves: Iterable[LeaveSpan],
    today: date,
) -> DayStatus:
    """Status of one day; leave beats attendance, attendance beats the calendar"""
    if any(leave.is_approved and leave.covers(day) for leave in leaves):
        return DayStatus.LEAVE
    record = attendance.get(day)
    if record is not None:
        return DayStatus.PRESENT if record.present else DayStatus.ABSENT
    if day > today:
        return DayStatus.FUTURE
    return DayStatus.NO_DATA


def month_calendar(
    year: int,
    month: int,
    records: Iterable[AttendanceEntry],
    leaves: Iterable[LeaveSpan],
    today: date,
) -> List[CalendarDay]:
    """One status per calendar day for a single staff member"""
    start, end = month_bounds(year, month)
    attendance = index_by_day(records)
    leaves = list(leaves)
    return [
        CalendarDay(date=iso(day), status=classify_day(day, attendance, leaves, today))
        for day in each_day(start, end)
    ]


def month_summary(
    year: int,
    month: int,
    records: Iterable[AttendanceEntry],
    leaves: Iterable[LeaveSpan],
    today: date,
) -> MonthlyAttendanceSummary:
    """Aggregate a month's calendar and the answers given on present days"""
    records = list(records)
    attendance = index_by_day(records)
    calendar_days = month_calendar(year, month, records, leaves, today)
    summary = MonthlyAttendanceSummary(year=year, month=month, total_days=len(calendar_days))

    for cell in calendar_days:
        if cell.status == DayStatus.LEAVE:
            summary.leave_days += 1
        elif cell.status == DayStatus.ABSENT:
            summary.absent += 1
        elif cell.status == DayStatus.FUTURE:
            summary.future += 1
        elif cell.status == DayStatus.NO_DATA:
            summary.no_data += 1
        else:
            summary.present += 1
            answers = attendance[date.fromisoformat(cell.date)].answers
            if answers is None:
                continue
            summary.total_sales += answers.yesterday_sale
            summary.total_target += answers.today_target
            summary.google_reviews_done += answers.google_reviews_done
            summary.los_updates_done += answers.los_updates_done
            if answers.uniform:
                summary.uniform_compliance += 1
            if answers.in_shoe:
                summary.shoe_compliance += 1

    if summary.total_target > 0:
        summary.target_achievement = round(summary.total_sales / summary.total_target * 100, 2)
    return summary


def average_check_in(records: Iterable[AttendanceEntry], today: date, lookback_days: int = 30) -> str:
    """Mean HH:MM arrival over present days in the lookback window, 00:00 if none"""
    since = today - timedelta(days=lookback_days)
    minutes = []
    for record in dedupe_records(records):
        if not record.present or not (since <= record.day <= today):
            continue
        value = parse_hhmm(record.check_in)
        if value is not None:
            minutes.append(value)
    if not minutes:
        return "00:00"
    # rounds half up
    return format_minutes(math.floor(sum(minutes) / len(minutes) + 0.5))
