"""Tests for the trading session facade.

**Feature: trade-journal**
"""

import tempfile
from decimal import Decimal
from pathlib import Path

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from daybook.db.base import SnapshotStore
from daybook.db.store import DataStore
from daybook.engine.session import TradingSession
from daybook.exceptions import DaybookError, PersistenceError, ValidationError
from daybook.models import Brokerage, DailyRecord, Goal, Snapshot, Trade
from daybook.sync.coordinator import SaveStatus

DAY = "2024-05-01"


class ManualTimer:
    """Timer that only fires when the test says so."""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.cancelled = False

    def start(self):
        pass

    def cancel(self):
        self.cancelled = True


class MemoryStore(SnapshotStore):
    def __init__(self, snapshot: Snapshot | None = None, fail_load: bool = False):
        self.snapshot = snapshot or Snapshot()
        self.fail_load = fail_load
        self.saves: list[Snapshot] = []

    def load(self, user_id: int) -> Snapshot:
        if self.fail_load:
            raise PersistenceError("database is locked")
        return self.snapshot

    def save(self, user_id: int, snapshot: Snapshot) -> None:
        self.saves.append(snapshot)
        self.snapshot = snapshot


def journal_brokerage(**overrides) -> Brokerage:
    values = dict(
        id="b1",
        initial_balance=Decimal("10"),
        entry_mode="fixed",
        entry_value=Decimal("1"),
        payout_percentage=Decimal("80"),
        stop_gain_trades=3,
        stop_loss_trades=2,
    )
    values.update(overrides)
    return Brokerage(**values)


def make_session(store: SnapshotStore) -> TradingSession:
    session = TradingSession(store, user_id=1, timer_factory=ManualTimer)
    session.load()
    return session


def win_trade() -> Trade:
    return Trade(result="win", entry_value=Decimal("1"), payout_percentage=Decimal("80"))


class TestLoading:
    def test_default_brokerage_when_none_stored(self):
        session = make_session(MemoryStore())

        assert session.loaded
        assert session.brokerage.name == "Main Account"
        assert session.brokerage.initial_balance == Decimal("10")
        assert session.records == []

    def test_loaded_records_are_recalibrated(self):
        store = MemoryStore(
            Snapshot(
                brokerages=[journal_brokerage()],
                records=[DailyRecord(id=DAY, brokerage_id="b1", trades=[win_trade(), win_trade()])],
            )
        )
        session = make_session(store)

        record = session.record_for(DAY)
        assert record.start_balance == Decimal("10")
        assert record.end_balance == Decimal("11.6")
        assert record.win_count == 2

    def test_orphan_records_are_adopted(self):
        store = MemoryStore(
            Snapshot(
                brokerages=[journal_brokerage()],
                records=[DailyRecord(id=DAY, brokerage_id="gone", trades=[win_trade()])],
            )
        )
        session = make_session(store)

        assert session.record_for(DAY).brokerage_id == "b1"

    def test_records_of_other_brokerages_are_kept_aside(self):
        other = DailyRecord(id=DAY, brokerage_id="b2", trades=[win_trade()])
        store = MemoryStore(
            Snapshot(
                brokerages=[journal_brokerage(), journal_brokerage(id="b2", name="Second")],
                records=[other],
            )
        )
        session = make_session(store)

        assert session.records == []
        snapshot = session.snapshot()
        assert [b.id for b in snapshot.brokerages] == ["b1", "b2"]
        assert snapshot.records == [other]

    def test_load_failure_is_reported(self):
        session = TradingSession(MemoryStore(fail_load=True), user_id=1, timer_factory=ManualTimer)

        with pytest.raises(PersistenceError):
            session.load()
        assert session.load_failed
        assert not session.loaded
        with pytest.raises(DaybookError):
            session.add_trades(DAY, 1, 0)


class TestAddTrades:
    def test_open_gate_records_and_schedules_save(self):
        store = MemoryStore(Snapshot(brokerages=[journal_brokerage()]))
        session = make_session(store)

        result = session.add_trades(DAY, 1, 1)

        assert result.admitted
        assert len(result.trades) == 2
        assert session.record_for(DAY).end_balance == Decimal("9.8")
        assert session.sync.pending
        assert store.saves == []

    def test_reaching_limit_reports_halted(self):
        session = make_session(MemoryStore(Snapshot(brokerages=[journal_brokerage()])))

        result = session.add_trades(DAY, 3, 0)

        assert result.admitted
        assert result.gate.halted
        assert result.gate.reason == "stop_gain"

    def test_declined_override_changes_nothing(self):
        session = make_session(MemoryStore(Snapshot(brokerages=[journal_brokerage()])))
        session.add_trades(DAY, 0, 2)
        before = session.records

        result = session.add_trades(DAY, 1, 0, confirm=lambda state: False)

        assert not result.admitted
        assert result.trades == []
        assert result.gate.reason == "stop_loss"
        assert session.records == before

    def test_confirmed_override_admits_rest_of_day(self):
        session = make_session(MemoryStore(Snapshot(brokerages=[journal_brokerage()])))
        session.add_trades(DAY, 0, 2)

        result = session.add_trades(DAY, 0, 1, confirm=lambda state: True)
        assert result.admitted
        assert result.gate.override_active

        again = session.add_trades(DAY, 0, 1)
        assert again.admitted
        assert session.record_for(DAY).loss_count == 4

    def test_invalid_request_does_not_engage_override(self):
        session = make_session(MemoryStore(Snapshot(brokerages=[journal_brokerage()])))
        session.add_trades(DAY, 3, 0)
        asked = []

        with pytest.raises(ValidationError):
            session.add_trades(DAY, 0, 0, confirm=lambda state: asked.append(state) or True)

        assert asked == []
        assert session.evaluate_gate(DAY).halted

    @given(
        wins=st.integers(min_value=0, max_value=5),
        losses=st.integers(min_value=0, max_value=5),
    )
    @settings(max_examples=30, deadline=None)
    def test_balance_follows_trades(self, wins, losses):
        assume(wins + losses > 0)
        session = make_session(
            MemoryStore(
                Snapshot(brokerages=[journal_brokerage(stop_gain_trades=0, stop_loss_trades=0)])
            )
        )
        session.add_trades(DAY, wins, losses)
        expected = Decimal("10") + wins * Decimal("0.8") - losses
        assert session.record_for(DAY).end_balance == expected


class TestMutationsRequestSaves:
    def test_noop_delete_does_not_schedule_save(self):
        session = make_session(MemoryStore(Snapshot(brokerages=[journal_brokerage()])))

        assert session.delete_trade("missing", DAY) is False
        assert session.delete_record("missing") is False
        assert not session.sync.pending

    def test_delete_trade_schedules_save(self):
        session = make_session(MemoryStore(Snapshot(brokerages=[journal_brokerage()])))
        trade = session.add_trades(DAY, 1, 0).trades[0]
        session.sync.cancel()

        assert session.delete_trade(trade.id, DAY)
        assert session.sync.pending

    def test_goals_and_brokerage_updates_schedule_saves(self):
        session = make_session(MemoryStore(Snapshot(brokerages=[journal_brokerage()])))

        session.set_goals([Goal(target_amount=Decimal("50"))])
        assert session.sync.pending
        session.sync.cancel()

        session.update_brokerage(session.brokerage.model_copy(update={"initial_balance": Decimal("20")}))
        assert session.sync.pending
        assert session.brokerage.initial_balance == Decimal("20")

    def test_close_flushes_pending_save(self):
        store = MemoryStore(Snapshot(brokerages=[journal_brokerage()]))
        session = make_session(store)
        session.add_trades(DAY, 1, 0)
        session.add_transaction("deposit", DAY, "5", notes="bonus")

        session.close()

        assert len(store.saves) == 1
        assert session.sync.status == SaveStatus.SAVED
        saved = store.saves[0]
        assert len(saved.records) == 2
        assert saved.goals == []


class TestPersistenceRoundTrip:
    def test_reload_from_database(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "journal.db")
            session = make_session(store)
            session.update_brokerage(journal_brokerage(id=session.brokerage.id))
            session.add_trades(DAY, 2, 1)
            session.add_trades("2024-05-02", 1, 0)
            session.close()
            session.sync.cancel()

            reloaded = make_session(store)

            assert reloaded.brokerage == session.brokerage
            assert reloaded.records == session.records
            assert reloaded.record_for("2024-05-02").start_balance == Decimal("10.6")

    def test_other_brokerage_trades_on_same_day_stay_out_of_ledger(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "journal.db")
            store.save(
                1,
                Snapshot(
                    brokerages=[journal_brokerage(), journal_brokerage(id="b2", name="Second")],
                    records=[
                        DailyRecord(id=DAY, brokerage_id="b1", trades=[win_trade()]),
                        DailyRecord(
                            id=DAY,
                            brokerage_id="b2",
                            trades=[Trade(result="loss", entry_value=Decimal("5"), payout_percentage=Decimal("80"))],
                        ),
                    ],
                ),
            )

            session = make_session(store)

            assert [t.result for t in session.record_for(DAY).trades] == ["win"]
            assert session.record_for(DAY).end_balance == Decimal("10.8")
            assert len(session.snapshot().day_records) == 2


class TestEditTransaction:
    def test_edit_transaction_schedules_save(self):
        session = make_session(MemoryStore(Snapshot(brokerages=[journal_brokerage()])))
        transaction = session.add_transaction("deposit", DAY, "5")
        session.sync.cancel()

        assert session.update_transaction("trans_missing", amount="9") is None
        assert not session.sync.pending

        updated = session.update_transaction(transaction.id, amount="9")
        assert updated.amount == Decimal("9")
        assert session.sync.pending
