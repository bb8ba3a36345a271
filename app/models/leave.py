"""
Leave Model
Database schema for leave requests
"""
from datetime import datetime
from typing import Optional
from pydantic import Field, field_validator
from beanie import Document

from app.core.records import LeaveSpan, normalize_status


class LeaveRequest(Document):
    """Leave request document"""

    staff_email: str = Field(..., index=True)
    store_id: Optional[str] = None
    from_date: Optional[str] = None  # YYYY-MM-DD
    to_date: Optional[str] = None  # YYYY-MM-DD, inclusive
    status: str = "PENDING"  # PENDING, APPROVED, REJECTED
    reason: Optional[str] = None

    applied_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("staff_email", mode="before")
    @classmethod
    def _lower_email(cls, value):
        return str(value or "").strip().lower()

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, value):
        return normalize_status(value)

    class Settings:
        name = "leave_requests"
        indexes = [
            "staff_email",
            "store_id",
            "status",
        ]

    def span(self) -> LeaveSpan:
        return LeaveSpan(
            staff_email=self.staff_email,
            store_id=self.store_id,
            from_date=self.from_date,
            to_date=self.to_date,
            status=self.status,
        )
