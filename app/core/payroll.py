"""
Payroll Engine
Monthly salary rows computed from attendance, leave requests and store shift rules
"""
from typing import Iterable, List, Optional

from pydantic import BaseModel, field_validator

from app.core.dates import each_day, month_bounds, parse_hhmm, parse_month
from app.core.records import AttendanceEntry, LeaveSpan
from app.core.rollup import dedupe_records


def _number(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


class PayrollPolicy(BaseModel):
    """Fixed payroll constants; defaults reproduce historical payroll totals"""
    assumed_working_days: int = 30
    salary_day_basis: int = 30
    unapproved_leave_fine: float = 200.0
    default_shift_start: str = "10:00"

    @classmethod
    def from_settings(cls, settings) -> "PayrollPolicy":
        return cls(
            assumed_working_days=settings.ASSUMED_WORKING_DAYS,
            salary_day_basis=settings.SALARY_DAY_BASIS,
            unapproved_leave_fine=settings.UNAPPROVED_LEAVE_FINE,
            default_shift_start=settings.DEFAULT_SHIFT_START,
        )


class StoreShiftConfig(BaseModel):
    shift_start: Optional[str] = None
    late_grace_minutes: float = 0.0
    late_penalty: float = 0.0

    @field_validator("late_grace_minutes", "late_penalty", mode="before")
    @classmethod
    def _lenient_number(cls, value):
        return _number(value)


class StaffTerms(BaseModel):
    """Salary terms of one staff member"""
    email: str
    name: str = ""
    salary: float = 0.0
    leave_days: float = 0.0
    lunch_allowance: float = 0.0
    extra_sunday_allowance: float = 0.0

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, value):
        return str(value or "").strip().lower()

    @field_validator("salary", "leave_days", "lunch_allowance", "extra_sunday_allowance", mode="before")
    @classmethod
    def _lenient_number(cls, value):
        return _number(value)


class SalaryRow(BaseModel):
    staff_email: str
    name: str
    base_salary: float
    days_present: int
    absences: int
    excess_leaves: float
    late_count: int
    leave_deduction: float
    late_deduction: float
    unapproved_leave_days: int
    unapproved_leave_deduction: float
    sundays_present: int
    lunch_addition: float
    sunday_addition: float
    total: float


def is_late(check_in: Optional[str], shift_start: Optional[str], grace_minutes: float) -> bool:
    """Arrival strictly after shift start plus grace; unparsable times are never late"""
    arrived = parse_hhmm(check_in)
    starts = parse_hhmm(shift_start)
    if arrived is None or starts is None:
        return False
    return arrived > starts + grace_minutes


def count_unapproved_leave_days(leaves: Iterable[LeaveSpan], staff_email: str, year: int, month: int) -> int:
    """Calendar days of the month covered by at least one non-approved request"""
    start, end = month_bounds(year, month)
    relevant = [
        leave for leave in leaves
        if leave.staff_email == staff_email and not leave.is_approved and leave.bounds is not None
    ]
    return sum(1 for day in each_day(start, end) if any(leave.covers(day) for leave in relevant))


def compute_staff_salary(
    staff: StaffTerms,
    records: Iterable[AttendanceEntry],
    leaves: Iterable[LeaveSpan],
    store: StoreShiftConfig,
    month: str,
    policy: Optional[PayrollPolicy] = None,
) -> SalaryRow:
    """Salary row for one staff member for a YYYY-MM month"""
    policy = policy or PayrollPolicy()
    year, month_number = parse_month(month)
    start, end = month_bounds(year, month_number)
    shift_start = store.shift_start or policy.default_shift_start

    present = [
        record for record in dedupe_records(records)
        if record.staff_email == staff.email and record.present and start <= record.day <= end
    ]
    days_present = len(present)
    late_count = sum(1 for record in present if is_late(record.check_in, shift_start, store.late_grace_minutes))
    sundays_present = sum(1 for record in present if record.day.weekday() == 6)

    absences = max(0, policy.assumed_working_days - days_present)
    excess_leaves = max(0, absences - staff.leave_days)
    per_day_salary = staff.salary / policy.salary_day_basis
    leave_deduction = excess_leaves * per_day_salary
    late_deduction = late_count * store.late_penalty

    unapproved_days = count_unapproved_leave_days(leaves, staff.email, year, month_number)
    unapproved_deduction = unapproved_days * policy.unapproved_leave_fine

    lunch_addition = staff.lunch_allowance * days_present
    sunday_addition = staff.extra_sunday_allowance * sundays_present

    total = max(
        0.0,
        staff.salary - leave_deduction - late_deduction - unapproved_deduction + lunch_addition + sunday_addition,
    )

    return SalaryRow(
        staff_email=staff.email,
        name=staff.name or staff.email,
        base_salary=staff.salary,
        days_present=days_present,
        absences=absences,
        excess_leaves=excess_leaves,
        late_count=late_count,
        leave_deduction=leave_deduction,
        late_deduction=late_deduction,
        unapproved_leave_days=unapproved_days,
        unapproved_leave_deduction=unapproved_deduction,
        sundays_present=sundays_present,
        lunch_addition=lunch_addition,
        sunday_addition=sunday_addition,
        total=total,
    )


def compute_store_payroll(
    staff: Iterable[StaffTerms],
    records: Iterable[AttendanceEntry],
    leaves: Iterable[LeaveSpan],
    store: StoreShiftConfig,
    month: str,
    policy: Optional[PayrollPolicy] = None,
) -> List[SalaryRow]:
    """One row per staff member, ordered by email"""
    records = list(records)
    leaves = list(leaves)
    return [
        compute_staff_salary(member, records, leaves, store, month, policy)
        for member in sorted(staff, key=lambda member: member.email)
    ]
