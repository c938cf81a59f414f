"""Performance summaries and goal tracking over a recalibrated ledger."""

import calendar
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from daybook.models import AppRecord, DailyRecord, Goal, TransactionRecord

ZERO = Decimal("0")


class PeriodStats(BaseModel):
    """Aggregates for the day records inside a date range."""

    profit: Decimal = Field(default=ZERO, description="Net profit for the period")
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    total_trades: int = Field(default=0, ge=0)
    win_rate: float = Field(default=0.0, ge=0, le=100, description="Win rate percentage")
    start_balance: Decimal = Field(default=ZERO, description="Balance before the period")
    current_balance: Decimal = Field(default=ZERO, description="Start balance plus profit")
    transfers: Decimal = Field(default=ZERO, description="Deposits minus withdrawals in the period")
    account_balance: Decimal = Field(
        default=ZERO, description="Account balance, transfers included, at the end of the period"
    )

    model_config = {"frozen": True}


def _day_records(records: Iterable[AppRecord]) -> list[DailyRecord]:
    return sorted(
        (r for r in records if isinstance(r, DailyRecord)), key=lambda r: r.id
    )


def balance_up_to(day: str, records: Iterable[AppRecord], initial_balance: Decimal) -> Decimal:
    """Balance at the start of ``day``: the last earlier day's end balance."""
    balance = initial_balance
    for record in _day_records(records):
        if record.id >= day:
            break
        balance = record.end_balance
    return balance


def start_balance_for(day: str, records: Iterable[AppRecord], initial_balance: Decimal) -> Decimal:
    """Start balance of ``day``, whether or not it has a record yet."""
    records = list(records)
    for record in _day_records(records):
        if record.id == day:
            return record.start_balance
    return balance_up_to(day, records, initial_balance)


def net_transfers(
    records: Iterable[AppRecord], start: Optional[str] = None, end: Optional[str] = None
) -> Decimal:
    """Deposits minus withdrawals dated between ``start`` and ``end`` inclusive."""
    total = ZERO
    for record in records:
        if not isinstance(record, TransactionRecord):
            continue
        if (start is not None and record.date < start) or (end is not None and record.date > end):
            continue
        total += record.amount if record.record_type == "deposit" else -record.amount
    return total


def account_balance(
    records: Iterable[AppRecord], initial_balance: Decimal, through: Optional[str] = None
) -> Decimal:
    """Money in the account at the end of ``through`` (or after every record).

    Day records carry the trading balance only; deposits and withdrawals
    are applied on top of it here.

    Args:
        records: Recalibrated records.
        initial_balance: Brokerage initial balance.
        through: Last day key to include; None includes everything.

    Returns:
        Initial balance plus trading profit plus net transfers.
    """
    records = list(records)
    trading = initial_balance
    for record in _day_records(records):
        if through is not None and record.id > through:
            break
        trading = record.end_balance
    return trading + net_transfers(records, end=through)


def week_bounds(day: date) -> tuple[date, date]:
    """Monday and Sunday of the week containing ``day``."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def month_bounds(day: date) -> tuple[date, date]:
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def year_bounds(day: date) -> tuple[date, date]:
    return date(day.year, 1, 1), date(day.year, 12, 31)


def count_trading_days(start: date, end: date) -> int:
    """Count Monday-to-Friday days between ``start`` and ``end`` inclusive."""
    count = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            count += 1
        current += timedelta(days=1)
    return count


def period_stats(
    records: Iterable[AppRecord],
    start: date,
    end: date,
    initial_balance: Decimal,
) -> PeriodStats:
    """Summarize day records between ``start`` and ``end`` inclusive.

    Args:
        records: Recalibrated records.
        start: First day of the period.
        end: Last day of the period.
        initial_balance: Brokerage initial balance.

    Returns:
        PeriodStats for the range.
    """
    records = list(records)
    first, last = start.isoformat(), end.isoformat()
    in_range = [r for r in _day_records(records) if first <= r.id <= last]

    profit = sum((r.net_profit for r in in_range), ZERO)
    wins = sum(r.win_count for r in in_range)
    losses = sum(r.loss_count for r in in_range)
    total = wins + losses
    win_rate = (wins / total) * 100 if total > 0 else 0.0

    start_balance = balance_up_to(first, records, initial_balance)
    return PeriodStats(
        profit=profit,
        wins=wins,
        losses=losses,
        total_trades=total,
        win_rate=win_rate,
        start_balance=start_balance,
        current_balance=start_balance + profit,
        transfers=net_transfers(records, first, last),
        account_balance=account_balance(records, initial_balance, last),
    )


def goal_bounds(goal: Goal, day: date) -> tuple[date, date]:
    if goal.type == "daily":
        return day, day
    if goal.type == "weekly":
        return week_bounds(day)
    if goal.type == "monthly":
        return month_bounds(day)
    return year_bounds(day)


def dynamic_daily_goal(goal: Goal, records: Iterable[AppRecord], day: date) -> Decimal:
    """Profit still needed per remaining trading day to hit ``goal``.

    Profit from the start of the goal period through ``day`` counts toward
    the goal. The remainder is spread over the trading days from ``day``
    to the end of the period. With no trading days left the whole
    remainder is due.
    """
    if goal.target_amount <= 0:
        return ZERO

    period_start, period_end = goal_bounds(goal, day)
    first, today = period_start.isoformat(), day.isoformat()
    achieved = sum(
        (r.net_profit for r in _day_records(records) if first <= r.id <= today),
        ZERO,
    )
    remaining = goal.target_amount - achieved
    if remaining <= 0:
        return ZERO

    trading_days = count_trading_days(day, period_end)
    if trading_days <= 0:
        return remaining
    return remaining / trading_days
