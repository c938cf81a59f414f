"""Brokerage (account configuration) data model."""

import uuid
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class Brokerage(BaseModel):
    """Account settings that drive entry sizing and the risk gate."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Brokerage ID")
    name: str = Field(default="Main Account", min_length=1, description="Display name")
    initial_balance: Decimal = Field(default=Decimal("10"), ge=0, description="Starting balance")
    entry_mode: Literal["fixed", "percentage"] = Field(
        default="percentage", description="Entry sizing mode"
    )
    entry_value: Decimal = Field(
        default=Decimal("10"), ge=0, description="Fixed stake or percent of balance"
    )
    payout_percentage: Decimal = Field(
        default=Decimal("80"), ge=0, description="Payout percentage for a win"
    )
    stop_gain_trades: int = Field(default=3, ge=0, description="Wins per day before halting (0 = off)")
    stop_loss_trades: int = Field(default=2, ge=0, description="Losses per day before halting (0 = off)")
    currency: Literal["USD", "BRL"] = Field(default="USD", description="Display currency")

    model_config = {"frozen": True}

    @property
    def currency_symbol(self) -> str:
        return "R$" if self.currency == "BRL" else "$"
