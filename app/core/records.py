"""
Record Types
Plain inputs shared by the attendance rollup and the payroll engine
"""
import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.core.dates import parse_iso_date


def _number(value) -> float:
    try:
        result = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    # NaN never equals itself
    return result if result == result else 0.0


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().upper() in ("YES", "TRUE", "Y", "1")
    return bool(value)


class LeaveStatus(str, Enum):
    """Leave request status"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


def normalize_status(value) -> str:
    """Statuses are stored in mixed case by different writers"""
    if isinstance(value, Enum):
        value = value.value
    return str(value or "").strip().upper()


class DailyAnswers(BaseModel):
    """Daily check-in questionnaire; every missing answer counts as zero

    Older records spell the keys in camelCase.
    """
    yesterday_sale: float = Field(default=0.0, validation_alias=AliasChoices("yesterday_sale", "yesterdaySale"))
    today_target: float = Field(default=0.0, validation_alias=AliasChoices("today_target", "todayTarget"))
    google_reviews_done: float = Field(
        default=0.0, validation_alias=AliasChoices("google_reviews_done", "googleReviewsDone")
    )
    los_updates_done: float = Field(default=0.0, validation_alias=AliasChoices("los_updates_done", "losUpdatesDone"))
    uniform: bool = False
    in_shoe: bool = Field(default=False, validation_alias=AliasChoices("in_shoe", "inShoe"))

    @field_validator("yesterday_sale", "today_target", "google_reviews_done", "los_updates_done", mode="before")
    @classmethod
    def _lenient_number(cls, value):
        return _number(value)

    @field_validator("uniform", "in_shoe", mode="before")
    @classmethod
    def _lenient_flag(cls, value):
        return _flag(value)


class AttendanceEntry(BaseModel):
    """One staff member's attendance for one day"""
    staff_email: str = ""
    date: str = ""
    present: bool = False
    check_in: Optional[str] = None
    store_id: Optional[str] = None
    answers: Optional[DailyAnswers] = None

    @field_validator("staff_email", mode="before")
    @classmethod
    def _lower_email(cls, value):
        return str(value or "").strip().lower()

    @field_validator("present", mode="before")
    @classmethod
    def _lenient_present(cls, value):
        return _flag(value)

    @field_validator("check_in", mode="before")
    @classmethod
    def _lenient_check_in(cls, value):
        return value if isinstance(value, str) else None

    @field_validator("answers", mode="before")
    @classmethod
    def _lenient_answers(cls, value):
        return value if isinstance(value, (dict, DailyAnswers)) else None

    @property
    def day(self) -> Optional[dt.date]:
        return parse_iso_date(self.date)


class LeaveSpan(BaseModel):
    """A leave request reduced to who, where, when and its status"""
    staff_email: str = ""
    store_id: Optional[str] = None
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    status: str = LeaveStatus.PENDING.value

    @field_validator("staff_email", mode="before")
    @classmethod
    def _lower_email(cls, value):
        return str(value or "").strip().lower()

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, value):
        return normalize_status(value)

    @property
    def is_approved(self) -> bool:
        return self.status == LeaveStatus.APPROVED.value

    @property
    def bounds(self):
        """(start, end) dates, or None when the range is malformed"""
        start = parse_iso_date(self.from_date)
        end = parse_iso_date(self.to_date)
        if start is None or end is None or start > end:
            return None
        return start, end

    def covers(self, day: dt.date) -> bool:
        bounds = self.bounds
        return bounds is not None and bounds[0] <= day <= bounds[1]
