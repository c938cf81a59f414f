"""Trading session: the entry point presentation code talks to.

A session owns the ledger of the active brokerage, its risk gate and the
sync coordinator. Intents flow gate -> ledger -> sync.
"""

import logging
import threading
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from daybook.db.base import SnapshotStore
from daybook.engine.gate import ConfirmCallback, GateState, RiskGate
from daybook.engine.ledger import Ledger, Number
from daybook.exceptions import DaybookError, PersistenceError
from daybook.models import (
    AppRecord,
    Brokerage,
    DailyRecord,
    Goal,
    Snapshot,
    Trade,
    TransactionRecord,
)
from daybook.sync.coordinator import (
    DEFAULT_DELAY_SECONDS,
    DEFAULT_SAVED_DISPLAY_SECONDS,
    SyncCoordinator,
    TimerFactory,
)

logger = logging.getLogger(__name__)


class AddResult(BaseModel):
    """Outcome of an add-trades request."""

    admitted: bool = Field(..., description="False when the gate refused the request")
    trades: list[Trade] = Field(default_factory=list, description="Trades recorded")
    gate: GateState = Field(..., description="Gate state after the request")

    model_config = {"frozen": True}


class TradingSession:
    """Single-user, single-active-brokerage journal session."""

    def __init__(
        self,
        store: SnapshotStore,
        user_id: int,
        sync_delay: float = DEFAULT_DELAY_SECONDS,
        saved_display: float = DEFAULT_SAVED_DISPLAY_SECONDS,
        timer_factory: TimerFactory = threading.Timer,
    ):
        """Initialize the session. Call ``load`` before using it.

        Args:
            store: Persistence collaborator.
            user_id: User whose snapshot is loaded and saved.
            sync_delay: Debounce window for saves, in seconds.
            saved_display: Seconds the SAVED status lingers.
            timer_factory: Timer constructor for the sync coordinator.
        """
        self._store = store
        self._user_id = user_id
        self._ledger: Optional[Ledger] = None
        self._gate: Optional[RiskGate] = None
        self._other_brokerages: list[Brokerage] = []
        self._foreign_records: list[AppRecord] = []
        self._goals: list[Goal] = []
        self.load_failed = False

        self.sync = SyncCoordinator(
            pull=self.snapshot,
            push=lambda snapshot: store.save(user_id, snapshot),
            delay=sync_delay,
            saved_display=saved_display,
            timer_factory=timer_factory,
        )

    # ==================== Loading ====================

    def load(self) -> None:
        """Load the user's snapshot and run the initial recalibration.

        A default brokerage is created when none is stored. Records that
        point at an unknown brokerage are adopted by the active one.

        Raises:
            PersistenceError: If the store fails. The session stays unloaded.
        """
        try:
            snapshot = self._store.load(self._user_id)
        except PersistenceError as e:
            self.load_failed = True
            logger.error("Load failed for user %s: %s", self._user_id, e)
            raise

        brokerages = list(snapshot.brokerages)
        if not brokerages:
            brokerages = [Brokerage()]
            logger.info("No brokerage stored for user %s, using defaults", self._user_id)

        active = brokerages[0]
        known = {b.id for b in brokerages}
        own: list[AppRecord] = []
        foreign: list[AppRecord] = []
        for record in snapshot.records:
            if record.brokerage_id == active.id:
                own.append(record)
            elif record.brokerage_id not in known:
                own.append(record.model_copy(update={"brokerage_id": active.id}))
            else:
                foreign.append(record)

        self._ledger = Ledger(active, own)
        self._gate = RiskGate(self._ledger)
        self._other_brokerages = brokerages[1:]
        self._foreign_records = foreign
        self._goals = list(snapshot.goals)
        self.load_failed = False
        logger.debug("Loaded %d record(s) for brokerage %s", len(own), active.id)

    @property
    def loaded(self) -> bool:
        return self._ledger is not None

    def _require_ledger(self) -> Ledger:
        if self._ledger is None:
            raise DaybookError("Session is not loaded")
        return self._ledger

    def _require_gate(self) -> RiskGate:
        self._require_ledger()
        return self._gate

    # ==================== Read accessors ====================

    @property
    def brokerage(self) -> Brokerage:
        return self._require_ledger().brokerage

    @property
    def records(self) -> list[AppRecord]:
        """Records of the active brokerage, sorted by day key."""
        return self._require_ledger().records

    @property
    def goals(self) -> list[Goal]:
        return list(self._goals)

    def record_for(self, day: str) -> Optional[DailyRecord]:
        return self._require_ledger().record_for(day)

    def suggest_entry_size(self, day: str) -> Decimal:
        return self._require_ledger().suggest_entry_size(day)

    def snapshot(self) -> Snapshot:
        """Current in-memory state in the shape the store persists."""
        ledger = self._require_ledger()
        return Snapshot(
            brokerages=[ledger.brokerage] + self._other_brokerages,
            records=ledger.records + self._foreign_records,
            goals=self._goals,
        )

    # ==================== Risk gate ====================

    def select_day(self, day: str) -> None:
        self._require_gate().select_day(day)

    def evaluate_gate(self, day: str) -> GateState:
        return self._require_gate().evaluate(day)

    def confirm_override(self, day: str) -> None:
        self._require_gate().confirm_override(day)

    # ==================== Mutations ====================

    def add_trades(
        self,
        day: str,
        win_count: int,
        loss_count: int,
        stake: Optional[Number] = None,
        payout_percentage: Optional[Number] = None,
        confirm: Optional[ConfirmCallback] = None,
        now: Optional[datetime] = None,
    ) -> AddResult:
        """Record outcomes on ``day`` if the risk gate admits them.

        The request is validated first, so a bad request never engages the
        override. If a stop limit is reached, ``confirm`` decides whether
        to override it.

        Raises:
            ValidationError: If the request is invalid.
        """
        ledger = self._require_ledger()
        gate = self._require_gate()

        trades = ledger.build_trades(day, win_count, loss_count, stake, payout_percentage, now)
        admitted, state = gate.admit(day, confirm)
        if not admitted:
            return AddResult(admitted=False, trades=[], gate=state)

        ledger.append_trades(day, trades)
        self.sync.request_save()
        return AddResult(admitted=True, trades=trades, gate=gate.evaluate(day))

    def delete_trade(self, trade_id: str, day: str) -> bool:
        removed = self._require_ledger().delete_trade(trade_id, day)
        if removed:
            self.sync.request_save()
        return removed

    def delete_record(self, record_id: str) -> bool:
        removed = self._require_ledger().delete_record(record_id)
        if removed:
            self.sync.request_save()
        return removed

    def add_transaction(
        self,
        kind: Literal["deposit", "withdrawal"],
        day: str,
        amount: Number,
        notes: Optional[str] = None,
    ) -> TransactionRecord:
        transaction = self._require_ledger().add_transaction(kind, day, amount, notes)
        self.sync.request_save()
        return transaction

    def update_transaction(
        self,
        record_id: str,
        kind: Optional[Literal["deposit", "withdrawal"]] = None,
        day: Optional[str] = None,
        amount: Optional[Number] = None,
        notes: Optional[str] = None,
    ) -> Optional[TransactionRecord]:
        updated = self._require_ledger().update_transaction(record_id, kind, day, amount, notes)
        if updated is not None:
            self.sync.request_save()
        return updated

    def update_brokerage(self, brokerage: Brokerage) -> None:
        self._require_ledger().update_brokerage(brokerage)
        self.sync.request_save()

    def set_goals(self, goals: list[Goal]) -> None:
        self._require_ledger()
        self._goals = list(goals)
        self.sync.request_save()

    def close(self) -> None:
        """Write any pending save now."""
        self.sync.flush()
