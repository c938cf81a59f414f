"""Data models for Daybook."""

from daybook.models.brokerage import Brokerage
from daybook.models.goal import Goal
from daybook.models.journal import (
    AppRecord,
    DailyRecord,
    TransactionRecord,
    day_key,
    validate_day_key,
)
from daybook.models.snapshot import Snapshot
from daybook.models.trade import Trade

__all__ = [
    "AppRecord",
    "Brokerage",
    "DailyRecord",
    "Goal",
    "Snapshot",
    "Trade",
    "TransactionRecord",
    "day_key",
    "validate_day_key",
]
