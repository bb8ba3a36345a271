"""
Store Model
Database schema for the store directory
"""
from typing import Optional
from pydantic import Field
from beanie import Document

from app.core.payroll import StoreShiftConfig


class Store(Document):
    """Store directory document"""

    # Identity
    id: str = Field(..., description="Store code, e.g. S1")
    brand: str = ""
    name: str = ""
    city: str = ""

    # Shift Rules
    shift_start: Optional[str] = None  # HH:MM, falls back to the default shift start
    late_grace_min: float = 0.0
    late_penalty: float = 0.0

    is_active: bool = True

    class Settings:
        name = "stores"
        indexes = [
            "brand",
            "city",
        ]

    def shift_config(self) -> StoreShiftConfig:
        return StoreShiftConfig(
            shift_start=self.shift_start,
            late_grace_minutes=self.late_grace_min,
            late_penalty=self.late_penalty,
        )

