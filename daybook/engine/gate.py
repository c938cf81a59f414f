"""Stop-gain / stop-loss admission gate.

The gate tracks one selected day at a time. Once the user confirms an
override for that day, trades are admitted for the rest of the day no
matter how many more wins or losses pile up. Selecting a different day
resets the override.
"""

import logging
from typing import Callable, Optional

from pydantic import BaseModel

from daybook.engine.ledger import Ledger

logger = logging.getLogger(__name__)


class GateState(BaseModel):
    """Result of evaluating the gate for a day."""

    stop_gain_reached: bool = False
    stop_loss_reached: bool = False
    override_active: bool = False

    model_config = {"frozen": True}

    @property
    def limit_reached(self) -> bool:
        return self.stop_gain_reached or self.stop_loss_reached

    @property
    def halted(self) -> bool:
        """True when new trades need an explicit confirmation."""
        return self.limit_reached and not self.override_active

    @property
    def reason(self) -> Optional[str]:
        """Which limit to report; stop-gain wins when both are reached."""
        if self.stop_gain_reached:
            return "stop_gain"
        if self.stop_loss_reached:
            return "stop_loss"
        return None


ConfirmCallback = Callable[[GateState], bool]


class RiskGate:
    """Per-day admission state machine over a ledger."""

    def __init__(self, ledger: Ledger):
        self._ledger = ledger
        self._selected_day: Optional[str] = None
        self._override_active = False

    @property
    def selected_day(self) -> Optional[str]:
        return self._selected_day

    def select_day(self, day: str) -> None:
        """Make ``day`` the selected day, clearing the override if it changed."""
        if day != self._selected_day:
            self._selected_day = day
            self._override_active = False

    def evaluate(self, day: str) -> GateState:
        """Evaluate the stop limits for ``day``."""
        self.select_day(day)
        brokerage = self._ledger.brokerage
        record = self._ledger.record_for(day)
        win_count = record.win_count if record else 0
        loss_count = record.loss_count if record else 0

        return GateState(
            stop_gain_reached=(
                brokerage.stop_gain_trades > 0 and win_count >= brokerage.stop_gain_trades
            ),
            stop_loss_reached=(
                brokerage.stop_loss_trades > 0 and loss_count >= brokerage.stop_loss_trades
            ),
            override_active=self._override_active,
        )

    def confirm_override(self, day: str) -> None:
        """Engage the override for the rest of ``day``."""
        self.select_day(day)
        if not self._override_active:
            logger.info("Stop limit override engaged for %s", day)
        self._override_active = True

    def admit(self, day: str, confirm: Optional[ConfirmCallback] = None) -> tuple[bool, GateState]:
        """Decide whether a new batch of trades may be recorded on ``day``.

        When a limit is reached and no override is active, ``confirm`` is
        asked. Confirming engages the override; declining (or passing no
        callback) refuses admission.

        Returns:
            Tuple of (admitted, gate state after the decision).
        """
        state = self.evaluate(day)
        if not state.halted:
            return True, state

        if confirm is not None and confirm(state):
            self.confirm_override(day)
            return True, self.evaluate(day)

        logger.debug("Admission refused for %s (%s)", day, state.reason)
        return False, state
