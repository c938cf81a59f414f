"""CLI commands for Daybook.

This package provides the command-line interface for recording trades,
reviewing the ledger and editing account settings.
"""

from daybook.cli.main import cli, main

__all__ = ["cli", "main"]
