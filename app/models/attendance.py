"""
Attendance Model
Database schema for daily attendance records
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, EmailStr, Field
from beanie import Document

from app.core.records import AttendanceEntry, DailyAnswers
from app.core.rollup import CalendarDay, MonthlyAttendanceSummary


class AttendanceRecord(Document):
    """
    One attendance mark per staff member per day.

    Older writers stored `present` as a YES/NO string and free-form answers,
    so those fields stay loose here and are normalised by `entry()`.
    """

    staff_email: str = Field(..., index=True)
    store_id: Optional[str] = None
    date: str = Field(..., index=True)  # YYYY-MM-DD
    present: Any = False
    check_in: Optional[Any] = None  # HH:MM
    answers: Optional[Dict[str, Any]] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "attendance"
        indexes = [
            [("staff_email", 1), ("date", 1)],
            "store_id",
        ]

    def entry(self) -> AttendanceEntry:
        return AttendanceEntry(
            staff_email=self.staff_email,
            date=self.date,
            present=self.present,
            check_in=self.check_in,
            store_id=self.store_id,
            answers=self.answers,
        )


class AttendanceMark(BaseModel):
    """Attendance mark request schema"""
    staff_email: EmailStr
    store_id: Optional[str] = None
    date: str
    present: bool = True
    check_in: Optional[str] = None
    answers: Optional[DailyAnswers] = None


class StaffCalendarResponse(BaseModel):
    """Per-day statuses of one staff member for a month"""
    email: str
    year: int
    month: int
    days: List[CalendarDay]
    summary: MonthlyAttendanceSummary


class StaffDashboardResponse(BaseModel):
    """Month-to-date attendance dashboard"""
    email: str
    name: str
    today: str
    summary: MonthlyAttendanceSummary
    average_check_in: str
