"""
Rokar Routes
Daily cash ledger entry, preview, save and admin opening balance
"""
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.api.errors import http_error, status_for
from app.core.errors import DomainError
from app.core.ledger import LedgerRecord
from app.models.rokar import EntryContext, OpeningBalanceUpdate, RokarSaveRequest, SaveResult
from app.services import rokar as rokar_service


router = APIRouter()


def _respond(result: SaveResult, success_code: int = status.HTTP_200_OK) -> JSONResponse:
    code = success_code if result.ok else status_for(result.error)
    return JSONResponse(status_code=code, content=result.model_dump(mode="json"))


@router.get("/{store_id}/{day}/context", response_model=EntryContext)
async def get_entry_context(store_id: str, day: str):
    """
    Prefill for the entry form: opening balance and its source, whether the
    slot is already taken, and the auto-imported expense and salary totals
    """
    try:
        return await rokar_service.load_entry_context(store_id, day)
    except DomainError as exc:
        raise http_error(exc)


@router.post("/preview", response_model=SaveResult)
async def preview_entry(request: RokarSaveRequest):
    """
    Compute totals without saving
    """
    result = await rokar_service.preview_entry(request.form)
    return _respond(result)


@router.post("/save", response_model=SaveResult)
async def save_entry(request: RokarSaveRequest):
    """
    Save a day's ledger; the closing balance shown on preview must be echoed back
    """
    result = await rokar_service.save_entry(request.form, request.confirm_closing_balance, request.actor)
    return _respond(result, status.HTTP_201_CREATED)


@router.put("/{store_id}/{day}/opening-balance", response_model=EntryContext)
async def set_opening_balance(store_id: str, day: str, request: OpeningBalanceUpdate):
    """
    Set the opening balance of a day that has no entry yet
    """
    try:
        return await rokar_service.set_opening_balance(store_id, day, request.amount, request.actor)
    except DomainError as exc:
        raise http_error(exc)


@router.get("/{store_id}/{day}", response_model=LedgerRecord)
async def get_entry(store_id: str, day: str):
    """
    Stored ledger for the read-only view
    """
    try:
        entry = await rokar_service.get_entry(store_id, day)
        return entry.record()
    except DomainError as exc:
        raise http_error(exc)
