import pytest

from app.core.payroll import (
    PayrollPolicy,
    StaffTerms,
    StoreShiftConfig,
    compute_staff_salary,
    compute_store_payroll,
    count_unapproved_leave_days,
    is_late,
)
from app.core.records import AttendanceEntry, LeaveSpan

EMAIL = "asha@example.com"
STORE = StoreShiftConfig(shift_start="10:00", late_grace_minutes=10, late_penalty=50)


def present_days(days, check_in="10:00", email=EMAIL, month="2024-01"):
    return [
        AttendanceEntry(staff_email=email, date=f"{month}-{day:02d}", present=True, check_in=check_in)
        for day in days
    ]


def test_leave_deduction_for_excess_absences():
    staff = StaffTerms(email=EMAIL, name="Asha", salary=30000, leave_days=2)
    row = compute_staff_salary(staff, present_days(range(1, 26)), [], StoreShiftConfig(), "2024-01")

    assert row.days_present == 25
    assert row.absences == 5
    assert row.excess_leaves == 3
    assert row.leave_deduction == 3000
    assert row.total == 27000


def test_late_arrivals_are_fined_after_grace():
    records = present_days([2, 3], check_in="10:10") + present_days([4, 5, 6], check_in="10:11")
    row = compute_staff_salary(StaffTerms(email=EMAIL, salary=30000), records, [], STORE, "2024-01")

    assert row.late_count == 3
    assert row.late_deduction == 150


def test_default_shift_start_applies_when_store_has_none():
    records = present_days([2], check_in="10:01")
    row = compute_staff_salary(StaffTerms(email=EMAIL, salary=30000), records, [], StoreShiftConfig(late_penalty=100),
                               "2024-01")
    assert row.late_count == 1
    assert row.late_deduction == 100


def test_absent_days_are_never_late():
    records = [AttendanceEntry(staff_email=EMAIL, date="2024-01-02", present=False, check_in="13:00")]
    row = compute_staff_salary(StaffTerms(email=EMAIL, salary=30000), records, [], STORE, "2024-01")
    assert row.late_count == 0
    assert row.days_present == 0


@pytest.mark.parametrize("check_in, shift_start, grace, expected", [
    ("10:05", "10:00", 5, False),
    ("10:06", "10:00", 5, True),
    ("junk", "10:00", 0, False),
    ("11:00", None, 0, False),
])
def test_is_late(check_in, shift_start, grace, expected):
    assert is_late(check_in, shift_start, grace) is expected


def test_unapproved_leave_days_do_not_double_count():
    leaves = [
        LeaveSpan(staff_email=EMAIL, from_date="2024-01-30", to_date="2024-02-02", status="PENDING"),
        LeaveSpan(staff_email=EMAIL, from_date="2024-01-31", to_date="2024-01-31", status="rejected"),
        LeaveSpan(staff_email=EMAIL, from_date="2024-01-10", to_date="2024-01-12", status="approved"),
        LeaveSpan(staff_email=EMAIL, from_date="2024-01-20", to_date="2024-01-15", status="PENDING"),
        LeaveSpan(staff_email="other@example.com", from_date="2024-01-01", to_date="2024-01-05"),
    ]
    assert count_unapproved_leave_days(leaves, EMAIL, 2024, 1) == 2

    row = compute_staff_salary(StaffTerms(email=EMAIL, salary=30000), [], leaves, STORE, "2024-01")
    assert row.unapproved_leave_days == 2
    assert row.unapproved_leave_deduction == 400


def test_allowances_for_present_days_and_sundays():
    staff = StaffTerms(email=EMAIL, salary=30000, leave_days=30, lunch_allowance=30, extra_sunday_allowance=200)
    # 2024-01-07 and 2024-01-14 are Sundays
    row = compute_staff_salary(staff, present_days([6, 7, 8, 14]), [], STORE, "2024-01")

    assert row.sundays_present == 2
    assert row.lunch_addition == 120
    assert row.sunday_addition == 400
    assert row.total == 30520


def test_total_is_never_negative():
    staff = StaffTerms(email=EMAIL, salary=3000)
    leaves = [LeaveSpan(staff_email=EMAIL, from_date="2024-01-01", to_date="2024-01-31")]
    row = compute_staff_salary(staff, [], leaves, STORE, "2024-01")
    assert row.total == 0


def test_only_the_months_own_records_count():
    records = present_days([1, 2]) + present_days([1, 2, 3], month="2024-02") + present_days([5], email="x@example.com")
    row = compute_staff_salary(StaffTerms(email=EMAIL, salary=30000), records, [], STORE, "2024-01")
    assert row.days_present == 2


def test_duplicate_marks_count_once():
    records = present_days([2], check_in="10:30") + present_days([2], check_in="09:55")
    row = compute_staff_salary(StaffTerms(email=EMAIL, salary=30000), records, [], STORE, "2024-01")
    assert row.days_present == 1
    assert row.late_count == 0


def test_more_present_days_never_lower_the_total():
    staff = StaffTerms(email=EMAIL, salary=24000, leave_days=1, lunch_allowance=20, extra_sunday_allowance=100)
    totals = [
        compute_staff_salary(staff, present_days(range(1, count + 1)), [], STORE, "2024-01").total
        for count in range(0, 32)
    ]
    assert totals == sorted(totals)


def test_policy_constants_are_configurable():
    policy = PayrollPolicy(assumed_working_days=26, salary_day_basis=26, unapproved_leave_fine=100)
    staff = StaffTerms(email=EMAIL, salary=26000)
    row = compute_staff_salary(staff, present_days(range(1, 25)), [], STORE, "2024-01", policy)
    assert row.absences == 2
    assert row.leave_deduction == 2000


def test_store_payroll_orders_rows_by_email():
    staff = [StaffTerms(email="zed@example.com", salary=100), StaffTerms(email="amy@example.com", salary=100)]
    rows = compute_store_payroll(staff, [], [], STORE, "2024-01")
    assert [row.staff_email for row in rows] == ["amy@example.com", "zed@example.com"]
