import pytest

from app.core.errors import ConflictError, ValidationError
from app.core.ledger import (
    EXPENSE_CATEGORIES,
    OPENING_FROM_EXISTING,
    OPENING_FROM_PREVIOUS,
    OPENING_NONE,
    CashBreakdown,
    DuesBook,
    DuesLine,
    LedgerContext,
    LedgerForm,
    LedgerState,
    LedgerWorkflow,
    OpeningBalance,
    Payments,
    compute_ledger,
    is_substantial,
    ledger_key,
    opening_placeholder,
    resolve_opening_balance,
)


def make_form(**kwargs):
    kwargs.setdefault("store_id", "S1")
    kwargs.setdefault("date", "2024-01-15")
    return LedgerForm(**kwargs)


def test_ledger_key_joins_store_and_date():
    assert ledger_key("S1", "2024-01-15") == "S1_2024-01-15"


def test_plain_sale_day_adds_to_opening():
    totals = compute_ledger(make_form(computer_sale=5000), opening_balance=1000)
    assert totals.total_sale == 5000
    assert totals.closing_balance == 6000


def test_total_sale_is_clamped_at_zero():
    totals = compute_ledger(make_form(computer_sale=5000, manual_billed=6000), opening_balance=1000)
    assert totals.total_sale == 0
    assert totals.closing_balance == 1000


@pytest.mark.parametrize("computer, manual, billed", [(0, 0, 0), (100, 0, 500), (0, 20, 21), (300, 200, 100)])
def test_total_sale_never_negative(computer, manual, billed):
    totals = compute_ledger(make_form(computer_sale=computer, manual_sale=manual, manual_billed=billed), 0)
    assert totals.total_sale >= 0


def test_closing_balance_identity():
    form = make_form(
        computer_sale=12000,
        manual_sale=800,
        manual_billed=300,
        payments=Payments(paytm=1500, phonepe=250, gpay=400, bank_deposit=5000, home=1000),
        dues_given_details=[DuesLine(name="Mohan", amount=700)],
        dues_paid_details=[DuesLine(name="Sita", amount=450), DuesLine(name="Gopal", amount=50)],
        expense_breakup={"WATER": 40, "TEA": 120, "SHOP RENT": 2000},
    )
    totals = compute_ledger(form, opening_balance=3210.5, other_expense_total=90, staff_salary_total=1000)

    assert totals.total_sale == 12500
    assert totals.total_cash_out == 8150
    assert totals.manual_expense_total == 2160
    assert totals.expense_total == 2250
    assert totals.closing_balance == 3210.5 + 12500 + 500 - 700 - 8150 - 2250 - 1000


def test_cash_total_counts_notes_at_face_value():
    breakdown = CashBreakdown(rs100=10, rs500=2, coins=50)
    assert breakdown.total() == 2050


def test_cash_check_within_tolerance():
    form = make_form(cash_breakdown=CashBreakdown(rs100=10, rs500=2, coins=50))
    assert compute_ledger(form, opening_balance=2050.4).is_cash_balanced is True
    assert compute_ledger(form, opening_balance=2052).is_cash_balanced is False


def test_cash_difference_of_exactly_one_is_unbalanced():
    form = make_form(cash_breakdown=CashBreakdown(rs50=1))
    assert compute_ledger(form, opening_balance=51).is_cash_balanced is False
    assert compute_ledger(form, opening_balance=49).is_cash_balanced is False
    assert compute_ledger(form, opening_balance=50.99).is_cash_balanced is True


def test_expense_breakup_fills_every_category():
    form = make_form(expense_breakup={"TEA": 10})
    assert set(form.expense_breakup) == set(EXPENSE_CATEGORIES)
    assert form.expense_breakup["TEA"] == 10
    assert form.expense_breakup["WATER"] == 0


def test_expense_breakup_rejects_unknown_category():
    with pytest.raises(ValueError):
        make_form(expense_breakup={"SNACKS": 10})


def test_opening_balance_prefers_the_slots_own_value():
    opening = resolve_opening_balance({"opening_balance": 500}, {"closing_balance": 900})
    assert opening == OpeningBalance(amount=500, source=OPENING_FROM_EXISTING)


def test_opening_balance_carries_previous_closing():
    opening = resolve_opening_balance(None, {"closing_balance": 900})
    assert opening == OpeningBalance(amount=900, source=OPENING_FROM_PREVIOUS)
    assert resolve_opening_balance({"opening_balance": None}, {"closing_balance": 900}).amount == 900


def test_opening_balance_defaults_to_zero():
    assert resolve_opening_balance(None, None) == OpeningBalance(amount=0, source=OPENING_NONE)


def test_admin_placeholder_is_not_substantial():
    assert is_substantial(None) is False
    assert is_substantial(opening_placeholder("S1", "2024-01-15", 500)) is False
    assert is_substantial({"is_admin_entry": True, "opening_balance": 500}) is False


@pytest.mark.parametrize("record", [
    {"computer_sale": 1},
    {"total_sale": 10},
    {"dues_given": 5},
    {"staff_salary_total": 100},
    {"payments": {"gpay": 20}},
    {"expense_breakup": {"TEA": 15}},
    {"is_admin_entry": False, "customer_dues_paid": 1},
])
def test_any_business_value_blocks_reentry(record):
    assert is_substantial(record) is True


def test_dues_totals_follow_the_lines():
    book = DuesBook()
    book.add_given(DuesLine(name="Mohan", amount=300))
    book.add_given(DuesLine(name="Sita", amount=200))
    book.add_paid(DuesLine(name="Gopal", amount=75))
    book.remove_given(0)
    book.add_given(DuesLine(name="Hari", amount=40))

    assert book.given_total == 240
    assert book.paid_total == 75

    form = make_form().with_dues(book)
    assert form.dues_given == sum(line.amount for line in form.dues_given_details) == 240
    assert form.customer_dues_paid == 75


@pytest.mark.parametrize("line", [DuesLine(name="", amount=10), DuesLine(name="Mohan", amount=0)])
def test_dues_line_needs_name_and_amount(line):
    with pytest.raises(ValidationError):
        DuesBook().add_given(line)


def balanced_form(**kwargs):
    return make_form(computer_sale=5000, cash_breakdown=CashBreakdown(rs500=12), **kwargs)


def test_workflow_reaches_persisted():
    workflow = LedgerWorkflow(balanced_form())
    context = LedgerContext(opening=OpeningBalance(amount=1000, source=OPENING_FROM_PREVIOUS))

    totals = workflow.validate(context)
    assert workflow.state == LedgerState.VALIDATED
    assert totals.closing_balance == 6000

    record = workflow.confirm(6000)
    assert workflow.state == LedgerState.CONFIRMED
    assert record.opening_balance == 1000
    assert record.opening_balance_source == OPENING_FROM_PREVIOUS
    assert record.is_admin_entry is False

    workflow.mark_persisted()
    assert workflow.state == LedgerState.PERSISTED


def test_workflow_requires_store_and_date():
    workflow = LedgerWorkflow(LedgerForm(computer_sale=10))
    with pytest.raises(ValidationError):
        workflow.validate(LedgerContext())
    assert workflow.state == LedgerState.DRAFT


def test_workflow_refuses_blocked_slot():
    workflow = LedgerWorkflow(balanced_form())
    with pytest.raises(ConflictError):
        workflow.validate(LedgerContext(blocked=True))
    assert workflow.state == LedgerState.DRAFT
    assert workflow.error.kind == "conflict"


def test_workflow_reports_cash_mismatch():
    workflow = LedgerWorkflow(balanced_form())
    with pytest.raises(ValidationError, match="Cash mismatch"):
        workflow.validate(LedgerContext(opening=OpeningBalance(amount=2000)))
    assert workflow.state == LedgerState.DRAFT
    assert workflow.totals.cash_balance == 1000


def test_workflow_confirm_must_echo_closing_balance():
    workflow = LedgerWorkflow(balanced_form())
    workflow.validate(LedgerContext(opening=OpeningBalance(amount=1000)))
    with pytest.raises(ValidationError):
        workflow.confirm(5999)
    assert workflow.state == LedgerState.DRAFT
    assert workflow.record is None


def test_workflow_cannot_skip_confirm():
    workflow = LedgerWorkflow(balanced_form())
    workflow.validate(LedgerContext(opening=OpeningBalance(amount=1000)))
    with pytest.raises(ValidationError):
        workflow.mark_persisted()
