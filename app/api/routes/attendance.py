"""
Attendance Routes
Attendance marking, staff calendars and dashboards
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Query, status

from app.api.errors import http_error
from app.core.errors import DomainError
from app.core.records import AttendanceEntry
from app.models.attendance import AttendanceMark, StaffCalendarResponse, StaffDashboardResponse
from app.services import attendance as attendance_service


router = APIRouter()


@router.post("/mark", response_model=AttendanceEntry, status_code=status.HTTP_201_CREATED)
async def mark_attendance(request: AttendanceMark):
    """
    Mark a staff member's attendance for a day
    """
    try:
        record = await attendance_service.mark_attendance(request)
        return record.entry()
    except DomainError as exc:
        raise http_error(exc)


@router.get("/{email}/calendar", response_model=StaffCalendarResponse)
async def get_staff_calendar(
    email: str,
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
):
    """
    Per-day attendance statuses and the month summary
    """
    today = date.today()
    try:
        return await attendance_service.staff_calendar(email, year or today.year, month or today.month)
    except DomainError as exc:
        raise http_error(exc)


@router.get("/{email}/dashboard", response_model=StaffDashboardResponse)
async def get_staff_dashboard(email: str):
    """
    Month-to-date summary and average reaching time
    """
    try:
        return await attendance_service.staff_dashboard(email)
    except DomainError as exc:
        raise http_error(exc)
