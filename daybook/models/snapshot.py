"""Snapshot of everything persisted for one user."""

from typing import Optional

from pydantic import BaseModel, Field

from daybook.models.brokerage import Brokerage
from daybook.models.goal import Goal
from daybook.models.journal import AppRecord, DailyRecord


class Snapshot(BaseModel):
    """Brokerages, records and goals; the unit of load and save."""

    brokerages: list[Brokerage] = Field(default_factory=list)
    records: list[AppRecord] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def active_brokerage(self) -> Optional[Brokerage]:
        """The single active account: the first stored brokerage."""
        return self.brokerages[0] if self.brokerages else None

    @property
    def day_records(self) -> list[DailyRecord]:
        return [r for r in self.records if isinstance(r, DailyRecord)]
