"""
Payroll Service
Loads a store's staff, attendance and leave requests and runs the payroll engine
"""
import logging
from typing import List

from pydantic import BaseModel
from pymongo.errors import PyMongoError

from app.config import settings
from app.core.dates import iso, month_bounds, parse_month
from app.core.errors import CollaboratorUnavailable, NotFoundError, ValidationError
from app.core.payroll import PayrollPolicy, SalaryRow, compute_store_payroll
from app.models.attendance import AttendanceRecord
from app.models.leave import LeaveRequest
from app.models.staff import StaffProfile
from app.models.store import Store

logger = logging.getLogger(__name__)


class PayrollResponse(BaseModel):
    """Salary rows of one store for one month"""
    store_id: str
    month: str
    rows: List[SalaryRow]
    total_payable: float


async def compute_payroll(store_id: str, month: str) -> PayrollResponse:
    """Recompute every active staff member's salary for a YYYY-MM month"""
    try:
        year, month_number = parse_month(month)
    except ValueError as exc:
        raise ValidationError(f"Invalid month {month!r}, expected YYYY-MM") from exc
    first, last = month_bounds(year, month_number)

    try:
        store = await Store.get(store_id)
        if store is None:
            raise NotFoundError(f"Store {store_id} not found")
        staff = await StaffProfile.find({"assigned_store": store_id, "is_active": True}).to_list()
        emails = [member.email for member in staff]
        records = await AttendanceRecord.find(
            {"store_id": store_id, "staff_email": {"$in": emails}, "date": {"$gte": iso(first), "$lte": iso(last)}}
        ).to_list()
        leaves = await LeaveRequest.find({"store_id": store_id, "staff_email": {"$in": emails}}).to_list()
    except PyMongoError as exc:
        logger.error("Could not load payroll data for %s %s: %s", store_id, month, exc)
        raise CollaboratorUnavailable("Payroll data is unavailable, try again shortly") from exc

    rows = compute_store_payroll(
        [member.terms() for member in staff],
        [record.entry() for record in records],
        [leave.span() for leave in leaves],
        store.shift_config(),
        month,
        PayrollPolicy.from_settings(settings),
    )
    logger.info("Computed payroll for %s %s: %d staff", store_id, month, len(rows))
    return PayrollResponse(
        store_id=store_id,
        month=month,
        rows=rows,
        total_payable=sum(row.total for row in rows),
    )
