"""Ledger engine: recalibration, risk gate, stats and the session facade."""

from daybook.engine.gate import GateState, RiskGate
from daybook.engine.ledger import (
    MIN_ENTRY_VALUE,
    Ledger,
    compute_entry_size,
    recalibrate,
)
from daybook.engine.session import AddResult, TradingSession

__all__ = [
    "AddResult",
    "GateState",
    "Ledger",
    "MIN_ENTRY_VALUE",
    "RiskGate",
    "TradingSession",
    "compute_entry_size",
    "recalibrate",
]
