"""
Payroll Routes
Monthly salary computation per store
"""
from fastapi import APIRouter, Query

from app.api.errors import http_error
from app.core.errors import DomainError
from app.services.payroll import PayrollResponse, compute_payroll


router = APIRouter()


@router.get("/{store_id}", response_model=PayrollResponse)
async def get_store_payroll(store_id: str, month: str = Query(..., description="YYYY-MM")):
    """
    Salary rows for every active staff member of a store
    """
    try:
        return await compute_payroll(store_id, month)
    except DomainError as exc:
        raise http_error(exc)
