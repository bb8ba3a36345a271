"""
Staff Model
Database schema for the staff directory
"""
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import EmailStr, Field, field_validator
from beanie import Document

from app.core.payroll import StaffTerms


class StaffRole(str, Enum):
    """Roles held in the staff directory"""
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    OWNER = "OWNER"
    MANAGER = "MANAGER"
    STAFF = "STAFF"
    OFFICE = "OFFICE"


class StaffProfile(Document):
    """Staff directory document"""

    # Basic Information
    email: EmailStr = Field(..., unique=True, index=True)
    name: str = ""
    role: StaffRole = StaffRole.STAFF
    assigned_store: Optional[str] = None

    # Salary Terms
    salary: float = 0.0
    leave_days: float = 0.0  # paid leave allowance per month
    lunch_allowance: float = 0.0  # per present day
    extra_sunday_allowance: float = 0.0  # per Sunday worked

    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, value):
        return str(value).strip().lower()

    @field_validator("role", mode="before")
    @classmethod
    def _upper_role(cls, value):
        if isinstance(value, StaffRole):
            return value
        return str(value).strip().upper()

    class Settings:
        name = "users"
        indexes = [
            "email",
            "assigned_store",
            "role",
        ]

    def terms(self) -> StaffTerms:
        return StaffTerms(
            email=self.email,
            name=self.name,
            salary=self.salary,
            leave_days=self.leave_days,
            lunch_allowance=self.lunch_allowance,
            extra_sunday_allowance=self.extra_sunday_allowance,
        )
