"""Goal data model."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class Goal(BaseModel):
    """A profit target for a period."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Goal ID")
    name: str = Field(default="Goal", description="Goal name")
    type: Literal["daily", "weekly", "monthly", "annual"] = Field(
        default="monthly", description="Goal period"
    )
    target_amount: Decimal = Field(..., ge=0, description="Target profit for the period")
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}
