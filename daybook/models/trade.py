"""Trade data model."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

HUNDRED = Decimal("100")


class Trade(BaseModel):
    """A single recorded win or loss."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Trade ID")
    result: Literal["win", "loss"] = Field(..., description="Trade outcome")
    entry_value: Decimal = Field(..., gt=0, description="Stake")
    payout_percentage: Decimal = Field(..., ge=0, description="Payout captured at trade time")
    timestamp: datetime = Field(default_factory=datetime.now, description="Creation time")

    model_config = {"frozen": True}

    @property
    def profit(self) -> Decimal:
        """Signed result of the trade: payout on a win, the stake on a loss."""
        if self.result == "win":
            return self.entry_value * self.payout_percentage / HUNDRED
        return -self.entry_value
