"""
Rokar Service
Loads the collaborator data a ledger entry depends on and persists saved entries
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from app.config import settings
from app.core.dates import parse_iso_date, previous_day
from app.core.errors import CollaboratorUnavailable, ConflictError, DomainError, NotFoundError, ValidationError
from app.core.ledger import (
    LedgerForm,
    LedgerRecord,
    LedgerWorkflow,
    is_substantial,
    ledger_key,
    opening_placeholder,
    resolve_opening_balance,
)
from app.models.expense import APPROVED_STATUSES, OtherExpense, SalaryRequest
from app.models.rokar import EntryContext, RokarEntry, SaveResult

logger = logging.getLogger(__name__)


def _check_slot(store_id: str, day: str) -> None:
    if not store_id or not day:
        raise ValidationError("Select a store and a date")
    if parse_iso_date(day) is None:
        raise ValidationError(f"Invalid date {day!r}, expected YYYY-MM-DD")


async def _read_entry(key: str) -> Optional[RokarEntry]:
    return await RokarEntry.get(key)


async def _other_expense_total(store_id: str, day: str) -> float:
    expenses = await OtherExpense.find(
        {"store_id": store_id, "date": day, "status": {"$in": APPROVED_STATUSES}}
    ).to_list()
    return sum(expense.amount for expense in expenses)


async def _staff_salary_total(store_id: str, day: str) -> float:
    payouts = await SalaryRequest.find(
        {"store_id": store_id, "payment_date": day, "status": {"$in": APPROVED_STATUSES}}
    ).to_list()
    return sum(payout.amount for payout in payouts)


async def load_entry_context(store_id: str, day: str) -> EntryContext:
    """
    Prefill for one (store, date) slot.

    Reads the slot's own record, the previous day's record and the approved
    expense and salary totals for the day. Totals are always read fresh.
    """
    _check_slot(store_id, day)
    key = ledger_key(store_id, day)
    try:
        existing, previous, other_expense_total, staff_salary_total = await asyncio.gather(
            _read_entry(key),
            _read_entry(ledger_key(store_id, previous_day(day))),
            _other_expense_total(store_id, day),
            _staff_salary_total(store_id, day),
        )
    except PyMongoError as exc:
        logger.error("Could not load Rokar context for %s: %s", key, exc)
        raise CollaboratorUnavailable("Ledger data is unavailable, try again shortly") from exc

    return EntryContext(
        key=key,
        store_id=store_id,
        date=day,
        opening=resolve_opening_balance(existing, previous),
        blocked=is_substantial(existing),
        other_expense_total=other_expense_total,
        staff_salary_total=staff_salary_total,
        existing=existing.record() if existing else None,
        version=existing.version if existing else None,
        created_by=existing.created_by if existing else None,
        created_at=existing.created_at if existing else None,
    )


def _version_filter(key: str, version: int) -> dict:
    if version == 0:
        # records written before versioning carry no version field
        return {"_id": key, "$or": [{"version": 0}, {"version": {"$exists": False}}]}
    return {"_id": key, "version": version}


async def _persist(record: LedgerRecord, context: EntryContext, actor: Optional[str]) -> int:
    """Write the full record under compare-and-swap; returns the new version"""
    key = ledger_key(record.store_id, record.date)
    collection = RokarEntry.get_motor_collection()
    now = datetime.utcnow()
    document = record.model_dump()
    document.update(updated_by=actor, updated_at=now)

    try:
        if context.version is None:
            document.update(_id=key, version=1, created_by=actor, created_at=now)
            await collection.insert_one(document)
            return 1

        version = context.version + 1
        document.update(version=version, created_by=context.created_by, created_at=context.created_at)
        result = await collection.replace_one(_version_filter(key, context.version), document)
    except DuplicateKeyError as exc:
        raise ConflictError(f"Rokar entry {key} was saved by someone else, reload and try again") from exc
    except PyMongoError as exc:
        logger.error("Could not write Rokar entry %s: %s", key, exc)
        raise CollaboratorUnavailable("Ledger data is unavailable, try again shortly") from exc

    if result.matched_count == 0:
        raise ConflictError(f"Rokar entry {key} was saved by someone else, reload and try again")
    return version


def _result(workflow: LedgerWorkflow, version: Optional[int] = None) -> SaveResult:
    form = workflow.form
    error = workflow.error
    return SaveResult(
        ok=error is None,
        state=workflow.state.value,
        key=ledger_key(form.store_id, form.date) if form.store_id and form.date else None,
        error=error.kind if error else None,
        message=error.message if error else None,
        totals=workflow.totals,
        record=workflow.record,
        version=version,
    )


async def preview_entry(form: LedgerForm) -> SaveResult:
    """Compute totals for a form and stop at Validated, nothing is written"""
    workflow = LedgerWorkflow(form, settings.CASH_TOLERANCE)
    try:
        workflow.check_form()
        context = await load_entry_context(form.store_id, form.date)
        workflow.validate(context.ledger_context())
    except DomainError as exc:
        if workflow.error is not exc:
            workflow.fail(exc)
    return _result(workflow)


async def save_entry(
    form: LedgerForm,
    confirm_closing_balance: Optional[float],
    actor: Optional[str] = None,
) -> SaveResult:
    """
    Run a form through the whole save protocol.

    The caller must echo back the closing balance it was shown. Every
    failure comes back as a SaveResult in the Draft state.
    """
    workflow = LedgerWorkflow(form, settings.CASH_TOLERANCE)
    version = None
    try:
        workflow.check_form()
        context = await load_entry_context(form.store_id, form.date)
        workflow.validate(context.ledger_context())
        record = workflow.confirm(confirm_closing_balance)
        version = await _persist(record, context, actor)
        workflow.mark_persisted()
    except DomainError as exc:
        if workflow.error is not exc:
            workflow.fail(exc)
        if isinstance(exc, ConflictError):
            logger.warning("Rokar save refused for %s/%s: %s", form.store_id, form.date, exc.message)
        return _result(workflow)

    logger.info(
        "Saved Rokar %s v%s by %s, closing balance %.2f",
        ledger_key(form.store_id, form.date), version, actor or "unknown", workflow.totals.closing_balance,
    )
    return _result(workflow, version)


async def set_opening_balance(store_id: str, day: str, amount: float, actor: Optional[str] = None) -> EntryContext:
    """
    Create or update the opening-balance-only placeholder for a slot.

    Refused once the slot holds a substantial entry.
    """
    context = await load_entry_context(store_id, day)
    if context.blocked:
        raise ConflictError(
            f"A Rokar entry already exists for store {store_id} on {day}; its opening balance cannot be changed"
        )
    await _persist(opening_placeholder(store_id, day, amount), context, actor)
    logger.info("Opening balance for %s set to %.2f by %s", context.key, amount, actor or "unknown")
    return await load_entry_context(store_id, day)


async def get_entry(store_id: str, day: str) -> RokarEntry:
    """Stored record for the read-only ledger view"""
    _check_slot(store_id, day)
    key = ledger_key(store_id, day)
    try:
        entry = await _read_entry(key)
    except PyMongoError as exc:
        logger.error("Could not read Rokar entry %s: %s", key, exc)
        raise CollaboratorUnavailable("Ledger data is unavailable, try again shortly") from exc
    if entry is None:
        raise NotFoundError(f"No Rokar entry for store {store_id} on {day}")
    return entry
