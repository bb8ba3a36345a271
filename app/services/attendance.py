"""
Attendance Service
Staff calendars, month-to-date dashboards and attendance marking
"""
import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from pymongo.errors import PyMongoError

from app.config import settings
from app.core.dates import iso, month_bounds, parse_iso_date
from app.core.errors import CollaboratorUnavailable, ConflictError, NotFoundError, ValidationError
from app.core.records import AttendanceEntry, LeaveSpan
from app.core.rollup import average_check_in, month_calendar, month_summary
from app.models.attendance import AttendanceMark, AttendanceRecord, StaffCalendarResponse, StaffDashboardResponse
from app.models.leave import LeaveRequest
from app.models.staff import StaffProfile

logger = logging.getLogger(__name__)


async def _load(email: str, since: date, until: date) -> Tuple[StaffProfile, List[AttendanceEntry], List[LeaveSpan]]:
    email = email.strip().lower()
    try:
        staff = await StaffProfile.find_one({"email": email})
        if staff is None:
            raise NotFoundError(f"Staff member {email} not found")
        records = await AttendanceRecord.find(
            {"staff_email": email, "date": {"$gte": iso(since), "$lte": iso(until)}}
        ).to_list()
        leaves = await LeaveRequest.find({"staff_email": email}).to_list()
    except PyMongoError as exc:
        logger.error("Could not load attendance for %s: %s", email, exc)
        raise CollaboratorUnavailable("Attendance data is unavailable, try again shortly") from exc
    return staff, [record.entry() for record in records], [leave.span() for leave in leaves]


async def staff_calendar(email: str, year: int, month: int, today: Optional[date] = None) -> StaffCalendarResponse:
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month {month}")
    today = today or date.today()
    first, last = month_bounds(year, month)
    staff, records, leaves = await _load(email, first, last)
    return StaffCalendarResponse(
        email=staff.email,
        year=year,
        month=month,
        days=month_calendar(year, month, records, leaves, today),
        summary=month_summary(year, month, records, leaves, today),
    )


async def staff_dashboard(email: str, today: Optional[date] = None) -> StaffDashboardResponse:
    """Current month summary plus average arrival over the lookback window"""
    today = today or date.today()
    lookback = settings.CHECK_IN_LOOKBACK_DAYS
    first, last = month_bounds(today.year, today.month)
    since = min(first, today - timedelta(days=lookback))
    staff, records, leaves = await _load(email, since, max(last, today))
    return StaffDashboardResponse(
        email=staff.email,
        name=staff.name,
        today=iso(today),
        summary=month_summary(today.year, today.month, records, leaves, today),
        average_check_in=average_check_in(records, today, lookback),
    )


async def mark_attendance(mark: AttendanceMark) -> AttendanceRecord:
    """Record a day's attendance once; a second mark for the same day is a conflict"""
    day = parse_iso_date(mark.date)
    if day is None:
        raise ValidationError(f"Invalid date {mark.date!r}, expected YYYY-MM-DD")
    email = mark.staff_email.lower()
    record = AttendanceRecord(
        staff_email=email,
        store_id=mark.store_id,
        date=iso(day),
        present=mark.present,
        check_in=mark.check_in,
        answers=mark.answers.model_dump() if mark.answers else None,
    )
    document = record.model_dump(exclude={"id", "revision_id", "staff_email", "date"})
    try:
        result = await AttendanceRecord.get_motor_collection().update_one(
            {"staff_email": email, "date": record.date},
            {"$setOnInsert": document},
            upsert=True,
        )
    except PyMongoError as exc:
        logger.error("Could not mark attendance for %s on %s: %s", email, record.date, exc)
        raise CollaboratorUnavailable("Attendance data is unavailable, try again shortly") from exc
    if result.upserted_id is None:
        raise ConflictError(f"Attendance for {email} on {record.date} is already marked")
    record.id = result.upserted_id
    logger.info("Marked attendance for %s on %s (present=%s)", email, record.date, mark.present)
    return record
