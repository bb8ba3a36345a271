"""
Rokar Model
Database schema for the daily cash ledger and its request/response schemas
"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from beanie import Document

from app.core.ledger import (
    CashBreakdown,
    DuesLine,
    LedgerContext,
    LedgerForm,
    LedgerRecord,
    LedgerTotals,
    OpeningBalance,
    OPENING_NONE,
    Payments,
)


class RokarEntry(Document):
    """
    Daily ledger document keyed by `{store_id}_{date}`.

    The key is the document id, so one (store, date) can only ever hold one
    record. `version` guards every overwrite.
    """

    id: str = Field(..., description="{store_id}_{date}")
    store_id: str = Field(..., index=True)
    date: str = Field(..., index=True)

    # Opening
    opening_balance: Optional[float] = None
    opening_balance_source: str = OPENING_NONE

    # Sales
    computer_sale: float = 0.0
    manual_sale: float = 0.0
    manual_billed: float = 0.0
    total_sale: float = 0.0

    # Cash Out
    payments: Payments = Field(default_factory=Payments)
    total_cash_out: float = 0.0

    # Dues
    dues_given: float = 0.0
    customer_dues_paid: float = 0.0
    dues_given_details: List[DuesLine] = []
    dues_paid_details: List[DuesLine] = []

    # Expenses
    expense_breakup: Dict[str, float] = {}
    other_expense_total: float = 0.0
    expense_total: float = 0.0
    staff_salary_total: float = 0.0

    # Closing
    closing_balance: float = 0.0
    cash_breakdown: CashBreakdown = Field(default_factory=CashBreakdown)
    cash_total: float = 0.0
    cash_balance: float = 0.0

    is_admin_entry: bool = False

    # Metadata
    version: int = 0
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Settings:
        name = "rokar"
        indexes = [
            "store_id",
            "date",
        ]

    def record(self) -> LedgerRecord:
        data = self.model_dump(
            exclude={"id", "revision_id", "version", "created_by", "created_at", "updated_by", "updated_at"}
        )
        data["opening_balance"] = self.opening_balance or 0.0
        return LedgerRecord(**data)


class EntryContext(BaseModel):
    """Everything the entry form needs before the user types a number"""
    key: str
    store_id: str
    date: str
    opening: OpeningBalance
    blocked: bool = False
    other_expense_total: float = 0.0
    staff_salary_total: float = 0.0
    existing: Optional[LedgerRecord] = None
    version: Optional[int] = None  # None when no record is stored
    created_by: Optional[str] = Field(default=None, exclude=True)
    created_at: Optional[datetime] = Field(default=None, exclude=True)

    def ledger_context(self) -> LedgerContext:
        return LedgerContext(
            opening=self.opening,
            blocked=self.blocked,
            other_expense_total=self.other_expense_total,
            staff_salary_total=self.staff_salary_total,
        )


class RokarSaveRequest(BaseModel):
    """Rokar save/preview request schema"""
    form: LedgerForm
    confirm_closing_balance: Optional[float] = None
    actor: Optional[str] = None


class OpeningBalanceUpdate(BaseModel):
    """Admin opening balance request schema"""
    amount: float
    actor: Optional[str] = None


class SaveResult(BaseModel):
    """Outcome of a preview or save; failures are reported, never raised"""
    ok: bool
    state: str
    key: Optional[str] = None
    error: Optional[str] = None  # validation, conflict, unavailable
    message: Optional[str] = None
    totals: Optional[LedgerTotals] = None
    record: Optional[LedgerRecord] = None
    version: Optional[int] = None
