"""
Expense Models
Approved other-expense and salary-request records imported into the Rokar
"""
from datetime import datetime
from typing import Optional
from pydantic import Field
from beanie import Document

# writers disagree on case
APPROVED_STATUSES = ["approved", "APPROVED", "Approved"]


class OtherExpense(Document):
    """Expense request raised outside the daily ledger"""

    store_id: str = Field(..., index=True)
    date: str = Field(..., index=True)  # YYYY-MM-DD
    category: str = ""
    amount: float = 0.0
    description: Optional[str] = None
    status: str = "pending"

    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "other_expenses"
        indexes = [
            [("store_id", 1), ("date", 1), ("status", 1)],
        ]


class SalaryRequest(Document):
    """Salary advance or payout paid from the till"""

    store_id: str = Field(..., index=True)
    staff_email: Optional[str] = None
    staff_name: str = ""
    amount: float = 0.0
    status: str = "PENDING"
    payment_date: Optional[str] = None  # YYYY-MM-DD, set on approval

    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "salary_requests"
        indexes = [
            [("store_id", 1), ("payment_date", 1), ("status", 1)],
        ]
