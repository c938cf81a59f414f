"""Tests for performance summaries and goal tracking.

**Feature: trade-journal**
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from daybook.engine.ledger import Ledger
from daybook.engine.stats import (
    account_balance,
    balance_up_to,
    count_trading_days,
    dynamic_daily_goal,
    month_bounds,
    net_transfers,
    period_stats,
    start_balance_for,
    week_bounds,
)
from daybook.models import Brokerage, Goal


def make_ledger() -> Ledger:
    ledger = Ledger(
        Brokerage(
            id="b1",
            initial_balance=Decimal("100"),
            entry_mode="fixed",
            entry_value=Decimal("10"),
            payout_percentage=Decimal("80"),
        )
    )
    # Wed 2024-05-01 .. Fri 2024-05-03, then Mon 2024-05-06
    ledger.add_trades("2024-05-01", 2, 1)  # +6
    ledger.add_trades("2024-05-02", 0, 1)  # -10
    ledger.add_trades("2024-05-03", 1, 0)  # +8
    ledger.add_trades("2024-05-06", 1, 0)  # +8
    return ledger


class TestPeriodBounds:
    @given(day=st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 12, 31)))
    @settings(max_examples=100)
    def test_week_is_monday_to_sunday(self, day):
        start, end = week_bounds(day)

        assert start.weekday() == 0
        assert end - start == timedelta(days=6)
        assert start <= day <= end

    @given(day=st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 12, 31)))
    @settings(max_examples=100)
    def test_month_covers_day(self, day):
        start, end = month_bounds(day)

        assert start.day == 1
        assert (end + timedelta(days=1)).day == 1
        assert start <= day <= end

    def test_leap_february(self):
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


class TestCountTradingDays:
    def test_full_week(self):
        assert count_trading_days(date(2024, 5, 6), date(2024, 5, 12)) == 5

    def test_weekend_only(self):
        assert count_trading_days(date(2024, 5, 4), date(2024, 5, 5)) == 0

    def test_reversed_range(self):
        assert count_trading_days(date(2024, 5, 10), date(2024, 5, 6)) == 0

    @given(
        start=st.dates(min_value=date(2020, 1, 1), max_value=date(2030, 1, 1)),
        length=st.integers(min_value=0, max_value=60),
    )
    @settings(max_examples=100)
    def test_never_exceeds_calendar_days(self, start, length):
        end = start + timedelta(days=length)
        assert 0 <= count_trading_days(start, end) <= length + 1


class TestBalances:
    def test_balance_up_to(self):
        ledger = make_ledger()

        assert balance_up_to("2024-05-01", ledger.records, Decimal("100")) == Decimal("100")
        assert balance_up_to("2024-05-02", ledger.records, Decimal("100")) == Decimal("106")
        assert balance_up_to("2024-05-05", ledger.records, Decimal("100")) == Decimal("104")

    def test_start_balance_for_recorded_and_empty_days(self):
        ledger = make_ledger()

        assert start_balance_for("2024-05-03", ledger.records, Decimal("100")) == Decimal("96")
        assert start_balance_for("2024-05-04", ledger.records, Decimal("100")) == Decimal("104")


class TestPeriodStats:
    def test_week_summary(self):
        ledger = make_ledger()
        summary = period_stats(
            ledger.records, date(2024, 4, 29), date(2024, 5, 5), Decimal("100")
        )

        assert summary.profit == Decimal("4")
        assert summary.wins == 3
        assert summary.losses == 2
        assert summary.total_trades == 5
        assert summary.win_rate == pytest.approx(60.0)
        assert summary.start_balance == Decimal("100")
        assert summary.current_balance == Decimal("104")

    def test_start_balance_comes_from_earlier_days(self):
        ledger = make_ledger()
        summary = period_stats(ledger.records, date(2024, 5, 6), date(2024, 5, 12), Decimal("100"))

        assert summary.start_balance == Decimal("104")
        assert summary.current_balance == Decimal("112")

    def test_empty_period(self):
        summary = period_stats([], date(2024, 5, 6), date(2024, 5, 12), Decimal("50"))

        assert summary.total_trades == 0
        assert summary.win_rate == 0.0
        assert summary.current_balance == Decimal("50")


class TestDynamicDailyGoal:
    def test_remaining_goal_spread_over_trading_days(self):
        ledger = make_ledger()
        goal = Goal(type="weekly", target_amount=Decimal("20"))

        # Week of Mon 2024-04-29: +6 on Wed counts, Wed..Fri = 3 trading days
        assert dynamic_daily_goal(goal, ledger.records, date(2024, 5, 1)) == Decimal("14") / 3

    def test_goal_met_returns_zero(self):
        ledger = make_ledger()
        goal = Goal(type="weekly", target_amount=Decimal("5"))

        assert dynamic_daily_goal(goal, ledger.records, date(2024, 5, 1)) == 0

    def test_no_trading_days_left_returns_remainder(self):
        ledger = make_ledger()
        goal = Goal(type="weekly", target_amount=Decimal("10"))

        # Saturday: week profit so far is +4
        assert dynamic_daily_goal(goal, ledger.records, date(2024, 5, 4)) == Decimal("6")

    def test_monthly_goal(self):
        ledger = make_ledger()
        goal = Goal(type="monthly", target_amount=Decimal("100"))

        # May 2024 from Mon 05-06: 20 trading days left, profit through 05-06 is +12
        assert dynamic_daily_goal(goal, ledger.records, date(2024, 5, 6)) == Decimal("88") / 20

    def test_zero_target(self):
        goal = Goal(type="monthly", target_amount=Decimal("0"))
        assert dynamic_daily_goal(goal, [], date(2024, 5, 6)) == 0


class TestAccountBalance:
    """
    *For any* deposits and withdrawals, the account balance moves by their
    net amount while the trading balances stay untouched.
    """

    def make_funded_ledger(self) -> Ledger:
        ledger = make_ledger()
        ledger.add_transaction("deposit", "2024-05-02", "20")
        ledger.add_transaction("withdrawal", "2024-05-06", "5")
        return ledger

    def test_transfers_apply_on_top_of_trading_balance(self):
        ledger = self.make_funded_ledger()

        assert account_balance(ledger.records, Decimal("100")) == Decimal("127")
        assert account_balance(ledger.records, Decimal("100"), "2024-05-01") == Decimal("106")
        assert account_balance(ledger.records, Decimal("100"), "2024-05-02") == Decimal("116")
        assert account_balance(ledger.records, Decimal("100"), "2024-04-01") == Decimal("100")

    def test_trading_balances_ignore_transfers(self):
        ledger = self.make_funded_ledger()

        assert ledger.record_for("2024-05-06").end_balance == Decimal("112")
        assert balance_up_to("2024-05-03", ledger.records, Decimal("100")) == Decimal("96")

    def test_period_stats_report_transfers(self):
        ledger = self.make_funded_ledger()
        week = period_stats(ledger.records, date(2024, 4, 29), date(2024, 5, 5), Decimal("100"))
        next_week = period_stats(ledger.records, date(2024, 5, 6), date(2024, 5, 12), Decimal("100"))

        assert week.transfers == Decimal("20")
        assert week.account_balance == Decimal("124")
        assert week.current_balance == Decimal("104")
        assert next_week.transfers == Decimal("-5")
        assert next_week.account_balance == Decimal("127")

    @given(
        amounts=st.lists(
            st.tuples(
                st.sampled_from(["deposit", "withdrawal"]),
                st.decimals(min_value=Decimal("0.01"), max_value=Decimal("1000"), places=2),
            ),
            max_size=10,
        )
    )
    @settings(max_examples=50, deadline=None)
    def test_account_minus_trading_is_net_transfers(self, amounts):
        ledger = make_ledger()
        for kind, amount in amounts:
            ledger.add_transaction(kind, "2024-05-04", amount)

        expected = sum(
            (a if kind == "deposit" else -a for kind, a in amounts), Decimal("0")
        )
        assert net_transfers(ledger.records) == expected
        assert account_balance(ledger.records, Decimal("100")) == Decimal("112") + expected
