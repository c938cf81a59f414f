"""Ledger record data models.

A ledger holds two kinds of records, told apart by ``record_type``:
day records carrying trades, and deposit/withdrawal transactions that
the balance engine passes through untouched.
"""

import re
import uuid
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from daybook.exceptions import ValidationError
from daybook.models.trade import Trade

DAY_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_day_key(day: str) -> str:
    """Check that ``day`` is a real ``YYYY-MM-DD`` date.

    Raises:
        ValidationError: If the key is empty or malformed.
    """
    if not isinstance(day, str) or not DAY_KEY_PATTERN.match(day):
        raise ValidationError(f"Invalid day key {day!r}, expected YYYY-MM-DD")
    try:
        date_type.fromisoformat(day)
    except ValueError as e:
        raise ValidationError(f"Invalid day key {day!r}: {e}") from e
    return day


def day_key(value: date_type) -> str:
    """Format a date as a day key."""
    return value.isoformat()


class DailyRecord(BaseModel):
    """One calendar day of trades plus aggregates derived by recalibration."""

    record_type: Literal["day"] = "day"
    id: str = Field(..., description="Day key (YYYY-MM-DD)")
    brokerage_id: str = Field(..., description="Owning brokerage")
    trades: list[Trade] = Field(default_factory=list, description="Trades in insertion order")
    win_count: int = Field(default=0, ge=0)
    loss_count: int = Field(default=0, ge=0)
    net_profit: Decimal = Field(default=Decimal("0"))
    start_balance: Decimal = Field(default=Decimal("0"))
    end_balance: Decimal = Field(default=Decimal("0"))

    model_config = {"frozen": True}

    @field_validator("id")
    @classmethod
    def _check_day_key(cls, v: str) -> str:
        return validate_day_key(v)

    @property
    def sort_key(self) -> str:
        return self.id


class TransactionRecord(BaseModel):
    """A deposit or withdrawal entry."""

    record_type: Literal["deposit", "withdrawal"]
    id: str = Field(default_factory=lambda: f"trans_{uuid.uuid4().hex}")
    brokerage_id: str = Field(..., description="Owning brokerage")
    date: str = Field(..., description="Day key (YYYY-MM-DD)")
    amount: Decimal = Field(..., gt=0, description="Amount moved")
    notes: Optional[str] = Field(default=None)
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}

    @field_validator("date")
    @classmethod
    def _check_day_key(cls, v: str) -> str:
        return validate_day_key(v)

    @property
    def sort_key(self) -> str:
        return self.date


AppRecord = Annotated[
    Union[DailyRecord, TransactionRecord], Field(discriminator="record_type")
]
