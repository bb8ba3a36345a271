from datetime import date

import pytest

from app.core.errors import ConflictError, NotFoundError
from app.core.records import DailyAnswers
from app.core.rollup import DayStatus
from app.models.attendance import AttendanceMark, AttendanceRecord
from app.models.leave import LeaveRequest
from app.services.attendance import mark_attendance, staff_calendar, staff_dashboard


async def test_calendar_for_staff_member(db, staff):
    await AttendanceRecord(staff_email="ravi@example.com", date="2024-01-02", present="YES", check_in="10:00").insert()
    await AttendanceRecord(staff_email="ravi@example.com", date="2024-01-03", present="NO").insert()
    await LeaveRequest(staff_email="ravi@example.com", from_date="2024-01-03", to_date="2024-01-04",
                       status="Approved").insert()

    calendar = await staff_calendar("Ravi@Example.com", 2024, 1, today=date(2024, 1, 10))

    statuses = {day.date: day.status for day in calendar.days}
    assert statuses["2024-01-02"] == DayStatus.PRESENT
    assert statuses["2024-01-03"] == DayStatus.LEAVE
    assert statuses["2024-01-05"] == DayStatus.NO_DATA
    assert statuses["2024-01-11"] == DayStatus.FUTURE
    assert calendar.summary.present == 1
    assert calendar.summary.leave_days == 2


async def test_calendar_unknown_staff(db):
    with pytest.raises(NotFoundError):
        await staff_calendar("nobody@example.com", 2024, 1)


async def test_dashboard_month_to_date(db, staff):
    await AttendanceRecord(staff_email="asha@example.com", date="2024-01-09", present=True, check_in="10:10",
                           answers={"yesterday_sale": 3000, "today_target": 4000, "uniform": True}).insert()
    await AttendanceRecord(staff_email="asha@example.com", date="2024-01-10", present=True, check_in="09:50",
                           answers={"yesterday_sale": 1000, "today_target": 4000, "in_shoe": "YES"}).insert()
    await AttendanceRecord(staff_email="asha@example.com", date="2023-12-28", present=True,
                           check_in="10:30").insert()

    dashboard = await staff_dashboard("asha@example.com", today=date(2024, 1, 10))

    assert dashboard.name == "Asha"
    assert dashboard.summary.present == 2
    assert dashboard.summary.target_achievement == 50.0
    assert dashboard.summary.uniform_compliance == 1
    assert dashboard.summary.shoe_compliance == 1
    # lookback reaches into December
    assert dashboard.average_check_in == "10:10"


async def test_mark_attendance_once_per_day(db):
    mark = AttendanceMark(staff_email="Ravi@Example.com", store_id="S1", date="2024-01-02", check_in="10:05",
                          answers=DailyAnswers(yesterday_sale=100))
    record = await mark_attendance(mark)
    assert record.staff_email == "ravi@example.com"

    with pytest.raises(ConflictError):
        await mark_attendance(mark)

    stored = await AttendanceRecord.find({"staff_email": "ravi@example.com"}).to_list()
    assert len(stored) == 1
    assert stored[0].entry().answers.yesterday_sale == 100


async def test_dashboard_reads_camel_case_answers(db, staff):
    await AttendanceRecord(staff_email="ravi@example.com", date="2024-01-09", present="YES", check_in="10:00",
                           answers={"yesterdaySale": 3000, "todayTarget": 6000, "inShoe": True}).insert()

    dashboard = await staff_dashboard("ravi@example.com", today=date(2024, 1, 10))

    assert dashboard.summary.total_sales == 3000
    assert dashboard.summary.target_achievement == 50.0
    assert dashboard.summary.shoe_compliance == 1
