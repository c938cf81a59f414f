"""Helpers shared by the Daybook CLI commands."""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from daybook.config import get_db_path, get_sync_delays, get_user_id
from daybook.exceptions import DaybookError, PersistenceError
from daybook.models import Brokerage

console = Console()

CENT = Decimal("0.01")

DATE_OPTION_TYPE = click.DateTime(formats=["%Y-%m-%d"])


def date_option(help_text: str = "Day to use (YYYY-MM-DD, default: today)."):
    """Shared ``--date`` option."""
    return click.option("--date", "day", type=DATE_OPTION_TYPE, default=None, help=help_text)


def resolve_day(day: Optional[datetime]) -> str:
    """Day key for a ``--date`` value, defaulting to today."""
    return (day.date() if day else date.today()).isoformat()


def format_money(amount: Decimal, brokerage: Brokerage, signed: bool = False) -> str:
    """Round to cents for display only."""
    rounded = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    sign = "+" if signed and rounded >= 0 else ""
    if rounded < 0:
        return f"-{brokerage.currency_symbol}{abs(rounded):,.2f}"
    return f"{sign}{brokerage.currency_symbol}{rounded:,.2f}"


def colored_money(amount: Decimal, brokerage: Brokerage) -> str:
    color = "green" if amount >= 0 else "red"
    return f"[{color}]{format_money(amount, brokerage, signed=True)}[/{color}]"


def error_panel(message: str, title: str = "Error") -> None:
    console.print(Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))


def open_session(ctx: click.Context):
    """Build and load a session from the CLI context config.

    Exits with status 1 when the store cannot be loaded.
    """
    from daybook.db.store import DataStore
    from daybook.engine.session import TradingSession

    config = ctx.obj.get("config", {})
    delay, saved_display = get_sync_delays(config)

    try:
        store = DataStore(get_db_path(config))
        session = TradingSession(
            store,
            user_id=get_user_id(config),
            sync_delay=delay,
            saved_display=saved_display,
        )
        session.load()
    except PersistenceError as e:
        error_panel(f"Could not load your journal.\n\n{e}", title="Load Failed")
        raise SystemExit(1)

    return session


def finish(session) -> None:
    """Flush pending saves and report a failed write."""
    from daybook.sync.coordinator import SaveStatus

    session.close()
    if session.sync.status == SaveStatus.ERROR:
        error_panel(
            f"Your changes could not be saved.\n\n{session.sync.last_error}",
            title="Save Failed",
        )
        raise SystemExit(1)
    session.sync.cancel()


def fail(e: DaybookError) -> None:
    error_panel(str(e))
    raise SystemExit(1)
