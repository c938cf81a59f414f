"""Ledger mutation and balance recalibration.

Every structural change to the ledger (trades added, a trade or record
deleted, the initial balance edited) ends with a full recalibration pass
over the whole record collection. Derived fields on day records are never
patched in place.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, Literal, Optional, Union

from daybook.exceptions import ValidationError
from daybook.models import (
    AppRecord,
    Brokerage,
    DailyRecord,
    Trade,
    TransactionRecord,
    validate_day_key,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Smallest stake used when the suggested entry size falls below it
MIN_ENTRY_VALUE = Decimal("1")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number, field: str = "value") -> Decimal:
    """Convert user input to a Decimal without binary float artifacts.

    Raises:
        ValidationError: If the value is not a finite number.
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValidationError(f"{field} must be a number, got {value!r}") from e
    if not result.is_finite():
        raise ValidationError(f"{field} must be finite, got {value!r}")
    return result


def sort_records(records: Iterable[AppRecord]) -> list[AppRecord]:
    """Sort records chronologically by their day key (stable)."""
    return sorted(records, key=lambda r: r.sort_key)


def recalibrate(records: Iterable[AppRecord], initial_balance: Number) -> list[AppRecord]:
    """Rebuild every derived field from the trade history.

    Day records are folded in day-key order with a running balance seeded
    at ``initial_balance``. Transaction records are passed through as-is
    and do not move the running balance.

    Args:
        records: Records for one brokerage, in any order.
        initial_balance: The brokerage's starting balance.

    Returns:
        New, sorted record list. The input is not modified.
    """
    running = to_decimal(initial_balance, "initial_balance")
    recalibrated: list[AppRecord] = []

    for record in sort_records(records):
        if not isinstance(record, DailyRecord):
            recalibrated.append(record)
            continue

        win_count = sum(1 for t in record.trades if t.result == "win")
        loss_count = sum(1 for t in record.trades if t.result == "loss")
        net_profit = sum((t.profit for t in record.trades), ZERO)
        end_balance = running + net_profit

        recalibrated.append(
            record.model_copy(
                update={
                    "win_count": win_count,
                    "loss_count": loss_count,
                    "net_profit": net_profit,
                    "start_balance": running,
                    "end_balance": end_balance,
                }
            )
        )
        running = end_balance

    return recalibrated


def compute_entry_size(
    day: str, brokerage: Brokerage, records: Iterable[AppRecord]
) -> Decimal:
    """Suggest the stake for the next trade on ``day``.

    The current balance is the day's own end balance when it already has
    a record, otherwise the end balance of the latest earlier day with at
    least one trade, otherwise the initial balance.

    Args:
        day: Day key.
        brokerage: Active brokerage settings.
        records: Recalibrated records.

    Returns:
        Suggested stake (unrounded).
    """
    current_balance = brokerage.initial_balance
    today: Optional[DailyRecord] = None

    for record in sort_records(records):
        if not isinstance(record, DailyRecord):
            continue
        if record.id < day and record.trades:
            current_balance = record.end_balance
        elif record.id == day:
            today = record

    if today is not None:
        current_balance = today.end_balance

    if brokerage.entry_mode == "fixed":
        return brokerage.entry_value
    return current_balance * brokerage.entry_value / HUNDRED


class Ledger:
    """Records of the active brokerage plus the operations that mutate them."""

    def __init__(self, brokerage: Brokerage, records: Optional[Iterable[AppRecord]] = None):
        """Initialize the ledger and run the first recalibration.

        Args:
            brokerage: Active brokerage settings.
            records: Records belonging to ``brokerage``.
        """
        self._brokerage = brokerage
        self._records: list[AppRecord] = recalibrate(records or [], brokerage.initial_balance)

    @property
    def brokerage(self) -> Brokerage:
        return self._brokerage

    @property
    def records(self) -> list[AppRecord]:
        """All records, sorted by day key."""
        return list(self._records)

    @property
    def day_records(self) -> list[DailyRecord]:
        return [r for r in self._records if isinstance(r, DailyRecord)]

    def record_for(self, day: str) -> Optional[DailyRecord]:
        """Get the day record for ``day``, if any."""
        for record in self._records:
            if isinstance(record, DailyRecord) and record.id == day:
                return record
        return None

    def suggest_entry_size(self, day: str) -> Decimal:
        return compute_entry_size(day, self._brokerage, self._records)

    def build_trades(
        self,
        day: str,
        win_count: int,
        loss_count: int,
        stake: Optional[Number] = None,
        payout_percentage: Optional[Number] = None,
        now: Optional[datetime] = None,
    ) -> list[Trade]:
        """Validate a request and build its trades without touching the ledger.

        Args:
            day: Day key to record against.
            win_count: Number of wins to add.
            loss_count: Number of losses to add.
            stake: Explicit stake; defaults to the suggested entry size.
            payout_percentage: Explicit payout; defaults to the brokerage's.
            now: Timestamp for the new trades.

        Returns:
            The new trades, wins first.

        Raises:
            ValidationError: If any input is invalid.
        """
        validate_day_key(day)
        if isinstance(win_count, bool) or not isinstance(win_count, int) or win_count < 0:
            raise ValidationError(f"win_count must be a non-negative integer, got {win_count!r}")
        if isinstance(loss_count, bool) or not isinstance(loss_count, int) or loss_count < 0:
            raise ValidationError(f"loss_count must be a non-negative integer, got {loss_count!r}")
        if win_count + loss_count == 0:
            raise ValidationError("Nothing to record: win_count and loss_count are both zero")

        if stake is None:
            entry_value = max(MIN_ENTRY_VALUE, self.suggest_entry_size(day))
        else:
            entry_value = to_decimal(stake, "stake")
            if entry_value <= 0:
                raise ValidationError(f"stake must be positive, got {stake!r}")

        if payout_percentage is None:
            payout = self._brokerage.payout_percentage
        else:
            payout = to_decimal(payout_percentage, "payout_percentage")
            if payout < 0:
                raise ValidationError(f"payout_percentage must be >= 0, got {payout_percentage!r}")

        timestamp = now or datetime.now()
        return [
            Trade(result="win", entry_value=entry_value, payout_percentage=payout, timestamp=timestamp)
            for _ in range(win_count)
        ] + [
            Trade(result="loss", entry_value=entry_value, payout_percentage=payout, timestamp=timestamp)
            for _ in range(loss_count)
        ]

    def append_trades(self, day: str, trades: list[Trade]) -> None:
        """Append already-built trades to a day, creating its record if needed."""
        validate_day_key(day)
        existing = self.record_for(day)
        if existing is None:
            updated = DailyRecord(id=day, brokerage_id=self._brokerage.id, trades=list(trades))
            records = self._records + [updated]
        else:
            updated = existing.model_copy(update={"trades": existing.trades + list(trades)})
            records = [updated if r is existing else r for r in self._records]

        logger.debug("Appending %d trade(s) on %s", len(trades), day)
        self._set_records(records)

    def add_trades(
        self,
        day: str,
        win_count: int,
        loss_count: int,
        stake: Optional[Number] = None,
        payout_percentage: Optional[Number] = None,
        now: Optional[datetime] = None,
    ) -> list[Trade]:
        """Append win/loss outcomes to a day and recalibrate.

        See ``build_trades`` for the arguments. On a validation error the
        ledger is unchanged.
        """
        trades = self.build_trades(day, win_count, loss_count, stake, payout_percentage, now)
        self.append_trades(day, trades)
        return trades

    def delete_trade(self, trade_id: str, day: str) -> bool:
        """Remove a trade from a day and recalibrate.

        Returns:
            True if a trade was removed. An unknown id is a no-op.
        """
        existing = self.record_for(day)
        if existing is None or not any(t.id == trade_id for t in existing.trades):
            logger.debug("Trade %s not found on %s, nothing to delete", trade_id, day)
            return False

        updated = existing.model_copy(
            update={"trades": [t for t in existing.trades if t.id != trade_id]}
        )
        self._set_records([updated if r is existing else r for r in self._records])
        return True

    def delete_record(self, record_id: str) -> bool:
        """Remove a whole day or transaction record and recalibrate."""
        remaining = [r for r in self._records if r.id != record_id]
        if len(remaining) == len(self._records):
            return False
        self._set_records(remaining)
        return True

    def add_transaction(
        self,
        kind: Literal["deposit", "withdrawal"],
        day: str,
        amount: Number,
        notes: Optional[str] = None,
    ) -> TransactionRecord:
        """Record a deposit or withdrawal."""
        validate_day_key(day)
        value = to_decimal(amount, "amount")
        if value <= 0:
            raise ValidationError(f"amount must be positive, got {amount!r}")

        transaction = TransactionRecord(
            record_type=kind,
            brokerage_id=self._brokerage.id,
            date=day,
            amount=value,
            notes=notes,
        )
        self._set_records(self._records + [transaction])
        return transaction

    def update_transaction(
        self,
        record_id: str,
        kind: Optional[Literal["deposit", "withdrawal"]] = None,
        day: Optional[str] = None,
        amount: Optional[Number] = None,
        notes: Optional[str] = None,
    ) -> Optional[TransactionRecord]:
        """Edit a deposit or withdrawal in place, keeping its id.

        Arguments left as None keep their current value.

        Returns:
            The updated transaction, or None if ``record_id`` is not a
            transaction of this ledger.

        Raises:
            ValidationError: If a new value is invalid.
        """
        existing = next(
            (r for r in self._records if isinstance(r, TransactionRecord) and r.id == record_id),
            None,
        )
        if existing is None:
            return None

        changes: dict = {}
        if kind is not None:
            if kind not in ("deposit", "withdrawal"):
                raise ValidationError(f"kind must be deposit or withdrawal, got {kind!r}")
            changes["record_type"] = kind
        if day is not None:
            changes["date"] = validate_day_key(day)
        if amount is not None:
            value = to_decimal(amount, "amount")
            if value <= 0:
                raise ValidationError(f"amount must be positive, got {amount!r}")
            changes["amount"] = value
        if notes is not None:
            changes["notes"] = notes

        updated = existing.model_copy(update=changes)
        self._set_records([updated if r is existing else r for r in self._records])
        return updated

    def update_brokerage(self, brokerage: Brokerage) -> None:
        """Replace the active brokerage settings.

        Balances are recalibrated when the initial balance changed.
        """
        if brokerage.id != self._brokerage.id:
            raise ValidationError(
                f"Brokerage {brokerage.id!r} is not the active brokerage {self._brokerage.id!r}"
            )
        previous = self._brokerage
        self._brokerage = brokerage
        if previous.initial_balance != brokerage.initial_balance:
            self._set_records(self._records)

    def _set_records(self, records: list[AppRecord]) -> None:
        self._records = recalibrate(records, self._brokerage.initial_balance)
        logger.debug("Recalibrated %d record(s)", len(self._records))
