"""
Ledger Engine
Daily Rokar computation: opening balance, totals, closing balance and the
denomination-level cash check, plus the save workflow state machine.
"""
import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.core.dates import parse_iso_date
from app.core.errors import ConflictError, DomainError, ValidationError

logger = logging.getLogger(__name__)


EXPENSE_CATEGORIES = (
    "WATER",
    "TEA",
    "DISCOUNT",
    "ALTERATION",
    "STAFF LUNCH",
    "GENERATOR",
    "SHOP RENT",
    "ELECTRICITY",
    "HOME EXPENSE",
    "PETROL",
    "SUNDAY",
    "CASH RETURN",
    "TRANSPORT",
)

PAYMENT_CHANNELS = ("paytm", "phonepe", "gpay", "bank_deposit", "home")

NOTE_DENOMINATIONS = {
    "rs5": 5,
    "rs10": 10,
    "rs20": 20,
    "rs50": 50,
    "rs100": 100,
    "rs200": 200,
    "rs500": 500,
}

OPENING_FROM_EXISTING = "From existing entry"
OPENING_FROM_PREVIOUS = "Auto from previous day"
OPENING_NONE = "No previous day entry"

# closing balance echoed back on confirm must match to the paisa
CONFIRM_TOLERANCE = 0.01


def ledger_key(store_id: str, day: str) -> str:
    """Composite identity of a Rokar record"""
    return f"{store_id}_{day}"


def _number(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _field(source, name: str):
    if isinstance(source, dict):
        return source.get(name)
    return getattr(source, name, None)


class Payments(BaseModel):
    """Cash taken out of the till through each channel"""
    paytm: float = Field(default=0.0, ge=0)
    phonepe: float = Field(default=0.0, ge=0)
    gpay: float = Field(default=0.0, ge=0)
    bank_deposit: float = Field(default=0.0, ge=0)
    home: float = Field(default=0.0, ge=0)

    def total(self) -> float:
        return self.paytm + self.phonepe + self.gpay + self.bank_deposit + self.home


class CashBreakdown(BaseModel):
    """Physical cash counted at close"""
    rs5: int = Field(default=0, ge=0)
    rs10: int = Field(default=0, ge=0)
    rs20: int = Field(default=0, ge=0)
    rs50: int = Field(default=0, ge=0)
    rs100: int = Field(default=0, ge=0)
    rs200: int = Field(default=0, ge=0)
    rs500: int = Field(default=0, ge=0)
    coins: float = Field(default=0.0, ge=0)
    foreign_cash: float = Field(default=0.0, ge=0)

    def total(self) -> float:
        notes = sum(getattr(self, name) * face for name, face in NOTE_DENOMINATIONS.items())
        return notes + self.coins + self.foreign_cash


class DuesLine(BaseModel):
    """One itemised due given to, or collected from, a customer"""
    customer_id: Optional[str] = None
    name: str = ""
    mobile: str = ""
    amount: float = 0.0
    approver: str = ""
    date: Optional[str] = None


def validate_dues_line(line: DuesLine, label: str) -> None:
    if not line.name.strip():
        raise ValidationError(f"{label}: customer name is required")
    if line.amount <= 0:
        raise ValidationError(f"{label}: amount must be greater than 0")


class DuesBook:
    """
    Itemised dues for one ledger entry.

    Totals are always summed from the lines, so adding or removing a line
    can never leave the scalar total out of step with the details.
    """

    def __init__(self, given: Iterable[DuesLine] = (), paid: Iterable[DuesLine] = ()):
        self._given: List[DuesLine] = list(given)
        self._paid: List[DuesLine] = list(paid)

    @property
    def given(self) -> List[DuesLine]:
        return list(self._given)

    @property
    def paid(self) -> List[DuesLine]:
        return list(self._paid)

    @property
    def given_total(self) -> float:
        return sum(line.amount for line in self._given)

    @property
    def paid_total(self) -> float:
        return sum(line.amount for line in self._paid)

    def add_given(self, line: DuesLine) -> None:
        validate_dues_line(line, "Dues given")
        self._given.append(line)

    def add_paid(self, line: DuesLine) -> None:
        validate_dues_line(line, "Dues paid")
        self._paid.append(line)

    def remove_given(self, index: int) -> DuesLine:
        return self._given.pop(index)

    def remove_paid(self, index: int) -> DuesLine:
        return self._paid.pop(index)


class LedgerForm(BaseModel):
    """Values entered for one store's day"""
    store_id: str = ""
    date: str = ""
    computer_sale: float = Field(default=0.0, ge=0)
    manual_sale: float = Field(default=0.0, ge=0)
    manual_billed: float = Field(default=0.0, ge=0)
    payments: Payments = Field(default_factory=Payments)
    dues_given_details: List[DuesLine] = []
    dues_paid_details: List[DuesLine] = []
    expense_breakup: Dict[str, float] = {}
    cash_breakdown: CashBreakdown = Field(default_factory=CashBreakdown)

    @field_validator("expense_breakup")
    @classmethod
    def _known_categories(cls, value: Dict[str, float]) -> Dict[str, float]:
        unknown = sorted(set(value) - set(EXPENSE_CATEGORIES))
        if unknown:
            raise ValueError(f"Unknown expense categories: {', '.join(unknown)}")
        negative = sorted(name for name, amount in value.items() if amount < 0)
        if negative:
            raise ValueError(f"Expenses cannot be negative: {', '.join(negative)}")
        return {name: float(value.get(name, 0.0)) for name in EXPENSE_CATEGORIES}

    @property
    def dues_given(self) -> float:
        return sum(line.amount for line in self.dues_given_details)

    @property
    def customer_dues_paid(self) -> float:
        return sum(line.amount for line in self.dues_paid_details)

    def dues_book(self) -> DuesBook:
        return DuesBook(self.dues_given_details, self.dues_paid_details)

    def with_dues(self, book: DuesBook) -> "LedgerForm":
        return self.model_copy(update={"dues_given_details": book.given, "dues_paid_details": book.paid})


class OpeningBalance(BaseModel):
    amount: float = 0.0
    source: str = OPENING_NONE


class LedgerContext(BaseModel):
    """What the backing store says about the slot being entered"""
    opening: OpeningBalance = Field(default_factory=OpeningBalance)
    blocked: bool = False
    other_expense_total: float = 0.0
    staff_salary_total: float = 0.0


class LedgerTotals(BaseModel):
    total_sale: float
    total_cash_out: float
    manual_expense_total: float
    expense_total: float
    dues_given: float
    customer_dues_paid: float
    closing_balance: float
    cash_total: float
    cash_balance: float
    is_cash_balanced: bool


class LedgerRecord(BaseModel):
    """Full snapshot persisted for one (store, date)"""
    store_id: str
    date: str
    opening_balance: float = 0.0
    opening_balance_source: str = OPENING_NONE
    computer_sale: float = 0.0
    manual_sale: float = 0.0
    manual_billed: float = 0.0
    total_sale: float = 0.0
    payments: Payments = Field(default_factory=Payments)
    total_cash_out: float = 0.0
    dues_given: float = 0.0
    customer_dues_paid: float = 0.0
    dues_given_details: List[DuesLine] = []
    dues_paid_details: List[DuesLine] = []
    expense_breakup: Dict[str, float] = {}
    other_expense_total: float = 0.0
    expense_total: float = 0.0
    staff_salary_total: float = 0.0
    closing_balance: float = 0.0
    cash_breakdown: CashBreakdown = Field(default_factory=CashBreakdown)
    cash_total: float = 0.0
    cash_balance: float = 0.0
    is_admin_entry: bool = False


def resolve_opening_balance(existing=None, previous=None) -> OpeningBalance:
    """
    Opening balance for a slot, by ordered fallback:
    the slot's own stored opening balance, then the previous day's closing
    balance, then zero.
    """
    if existing is not None and _field(existing, "opening_balance") is not None:
        return OpeningBalance(amount=_number(_field(existing, "opening_balance")), source=OPENING_FROM_EXISTING)
    if previous is not None:
        return OpeningBalance(amount=_number(_field(previous, "closing_balance")), source=OPENING_FROM_PREVIOUS)
    return OpeningBalance(amount=0.0, source=OPENING_NONE)


def is_substantial(record) -> bool:
    """True when a stored record holds real business data and must not be re-entered"""
    if record is None or _field(record, "is_admin_entry"):
        return False
    scalars = (
        "total_sale",
        "computer_sale",
        "manual_sale",
        "expense_total",
        "staff_salary_total",
        "customer_dues_paid",
        "dues_given",
    )
    if any(_number(_field(record, name)) > 0 for name in scalars):
        return True
    payments = _field(record, "payments") or {}
    if any(_number(_field(payments, channel)) > 0 for channel in PAYMENT_CHANNELS):
        return True
    breakup = _field(record, "expense_breakup") or {}
    return any(_number(amount) > 0 for amount in breakup.values())


def compute_ledger(
    form: LedgerForm,
    opening_balance: float,
    other_expense_total: float = 0.0,
    staff_salary_total: float = 0.0,
    cash_tolerance: float = 1.0,
) -> LedgerTotals:
    """Derive every total of a day's ledger from the entered values"""
    total_sale = max(0.0, form.computer_sale + form.manual_sale - form.manual_billed)
    total_cash_out = form.payments.total()
    manual_expense_total = sum(form.expense_breakup.get(name, 0.0) for name in EXPENSE_CATEGORIES)
    expense_total = manual_expense_total + other_expense_total
    dues_given = form.dues_given
    customer_dues_paid = form.customer_dues_paid

    closing_balance = (
        opening_balance
        + total_sale
        + customer_dues_paid
        - dues_given
        - total_cash_out
        - expense_total
        - staff_salary_total
    )
    cash_total = form.cash_breakdown.total()
    cash_balance = closing_balance - cash_total

    return LedgerTotals(
        total_sale=total_sale,
        total_cash_out=total_cash_out,
        manual_expense_total=manual_expense_total,
        expense_total=expense_total,
        dues_given=dues_given,
        customer_dues_paid=customer_dues_paid,
        closing_balance=closing_balance,
        cash_total=cash_total,
        cash_balance=cash_balance,
        is_cash_balanced=abs(cash_balance) < cash_tolerance,
    )


def build_record(form: LedgerForm, context: LedgerContext, totals: LedgerTotals) -> LedgerRecord:
    return LedgerRecord(
        store_id=form.store_id,
        date=form.date,
        opening_balance=context.opening.amount,
        opening_balance_source=context.opening.source,
        computer_sale=form.computer_sale,
        manual_sale=form.manual_sale,
        manual_billed=form.manual_billed,
        total_sale=totals.total_sale,
        payments=form.payments,
        total_cash_out=totals.total_cash_out,
        dues_given=totals.dues_given,
        customer_dues_paid=totals.customer_dues_paid,
        dues_given_details=form.dues_given_details,
        dues_paid_details=form.dues_paid_details,
        expense_breakup={name: form.expense_breakup.get(name, 0.0) for name in EXPENSE_CATEGORIES},
        other_expense_total=context.other_expense_total,
        expense_total=totals.expense_total,
        staff_salary_total=context.staff_salary_total,
        closing_balance=totals.closing_balance,
        cash_breakdown=form.cash_breakdown,
        cash_total=totals.cash_total,
        cash_balance=totals.cash_balance,
        is_admin_entry=False,
    )


def opening_placeholder(store_id: str, day: str, amount: float) -> LedgerRecord:
    """Opening-balance-only record; it never counts as substantial"""
    return LedgerRecord(
        store_id=store_id,
        date=day,
        opening_balance=amount,
        opening_balance_source=OPENING_FROM_EXISTING,
        expense_breakup={name: 0.0 for name in EXPENSE_CATEGORIES},
        closing_balance=amount,
        cash_balance=amount,
        is_admin_entry=True,
    )


class LedgerState(str, Enum):
    """Save protocol states"""
    DRAFT = "draft"
    VALIDATED = "validated"
    CONFIRMED = "confirmed"
    PERSISTED = "persisted"


class LedgerWorkflow:
    """
    Draft -> Validated -> Confirmed -> Persisted.

    Any failure drops the workflow back to Draft and keeps the error. Totals
    computed before the failure stay available for display.
    """

    def __init__(self, form: LedgerForm, cash_tolerance: float = 1.0):
        self.form = form
        self.cash_tolerance = cash_tolerance
        self.state = LedgerState.DRAFT
        self.totals: Optional[LedgerTotals] = None
        self.record: Optional[LedgerRecord] = None
        self.error: Optional[DomainError] = None

    def fail(self, error: DomainError) -> DomainError:
        logger.debug(
            "Rokar %s back to draft (%s): %s",
            ledger_key(self.form.store_id, self.form.date), error.kind, error.message,
        )
        self.state = LedgerState.DRAFT
        self.record = None
        self.error = error
        return error

    def check_form(self) -> None:
        """Store, date and dues lines; needs no collaborator data"""
        if not self.form.store_id or not self.form.date:
            raise ValidationError("Select a store and a date before saving")
        if parse_iso_date(self.form.date) is None:
            raise ValidationError(f"Invalid date {self.form.date!r}, expected YYYY-MM-DD")
        for index, line in enumerate(self.form.dues_given_details, start=1):
            validate_dues_line(line, f"Dues given line {index}")
        for index, line in enumerate(self.form.dues_paid_details, start=1):
            validate_dues_line(line, f"Dues paid line {index}")

    def validate(self, context: LedgerContext) -> LedgerTotals:
        self.state = LedgerState.DRAFT
        self.totals = None
        self.error = None
        try:
            self.check_form()
            if context.blocked:
                raise ConflictError(
                    f"A Rokar entry already exists for store {self.form.store_id} on {self.form.date}. "
                    "Open the Rokar ledger to view it."
                )
            totals = compute_ledger(
                self.form,
                context.opening.amount,
                context.other_expense_total,
                context.staff_salary_total,
                self.cash_tolerance,
            )
            self.totals = totals
            if not totals.is_cash_balanced:
                raise ValidationError(
                    f"Cash mismatch of {totals.cash_balance:.2f}: counted cash {totals.cash_total:.2f} "
                    f"does not match closing balance {totals.closing_balance:.2f}"
                )
        except DomainError as exc:
            raise self.fail(exc)

        self.record = build_record(self.form, context, totals)
        self.state = LedgerState.VALIDATED
        return totals

    def confirm(self, closing_balance: Optional[float]) -> LedgerRecord:
        if self.state != LedgerState.VALIDATED:
            raise self.fail(ValidationError("Entry must be validated before it can be confirmed"))
        expected = self.totals.closing_balance
        if closing_balance is None or abs(closing_balance - expected) >= CONFIRM_TOLERANCE:
            raise self.fail(ValidationError(f"Confirm the closing balance of {expected:.2f} to save this entry"))
        self.state = LedgerState.CONFIRMED
        return self.record

    def mark_persisted(self) -> None:
        if self.state != LedgerState.CONFIRMED:
            raise self.fail(ValidationError("Entry must be confirmed before it is saved"))
        self.state = LedgerState.PERSISTED
