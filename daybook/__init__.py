"""Daybook - a win/loss trading journal with stop-gain/stop-loss gating."""

__version__ = "0.1.0"
