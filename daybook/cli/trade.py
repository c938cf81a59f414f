"""Trade recording commands for Daybook CLI.

Handles win, loss, add and delete commands.
"""

from datetime import datetime
from typing import Optional

import click
from rich.panel import Panel

from daybook.cli.common import console, date_option, fail, finish, open_session, resolve_day
from daybook.cli.journal import render_day
from daybook.exceptions import ValidationError


def _limit_message(state, brokerage) -> str:
    if state.reason == "stop_gain":
        return f"You reached your stop gain ({brokerage.stop_gain_trades} wins) for today."
    return f"You reached your stop loss ({brokerage.stop_loss_trades} losses) for today."


def _record(
    ctx: click.Context,
    day: Optional[datetime],
    wins: int,
    losses: int,
    stake: Optional[str],
    payout: Optional[str],
    yes: bool,
) -> None:
    """Run a record request through the session and print the day."""
    session = open_session(ctx)
    day_key = resolve_day(day)

    def confirm(state) -> bool:
        console.print(Panel(
            f"[yellow]{_limit_message(state, session.brokerage)}[/yellow]",
            title="[bold yellow]Limit Reached[/bold yellow]",
            border_style="yellow",
        ))
        if yes:
            return True
        return click.confirm("Keep trading today anyway?", default=False)

    try:
        result = session.add_trades(
            day_key, wins, losses, stake=stake, payout_percentage=payout, confirm=confirm
        )
    except ValidationError as e:
        fail(e)

    if not result.admitted:
        console.print("[dim]Nothing recorded.[/dim]")
        return

    finish(session)
    console.print(f"[green]Recorded {len(result.trades)} trade(s) on {day_key}.[/green]\n")
    render_day(session, day_key)


def _trade_options(func):
    func = click.option("--yes", "-y", is_flag=True, help="Override a reached stop limit without asking.")(func)
    func = click.option("--payout", default=None, help="Payout percentage (default: account setting).")(func)
    func = click.option("--stake", default=None, help="Stake per trade (default: suggested entry size).")(func)
    func = date_option()(func)
    return func


@click.command()
@click.argument("count", type=int, default=1)
@_trade_options
@click.pass_context
def win(
    ctx: click.Context,
    count: int,
    day: Optional[datetime],
    stake: Optional[str],
    payout: Optional[str],
    yes: bool,
) -> None:
    """Record COUNT winning trades (default 1).

    \b
    Examples:
      daybook win                 # One win today
      daybook win 3 --stake 2.5   # Three wins at 2.50 each
    """
    _record(ctx, day, count, 0, stake, payout, yes)


@click.command()
@click.argument("count", type=int, default=1)
@_trade_options
@click.pass_context
def loss(
    ctx: click.Context,
    count: int,
    day: Optional[datetime],
    stake: Optional[str],
    payout: Optional[str],
    yes: bool,
) -> None:
    """Record COUNT losing trades (default 1).

    \b
    Examples:
      daybook loss
      daybook loss 2 --date 2024-05-02
    """
    _record(ctx, day, 0, count, stake, payout, yes)


@click.command()
@click.option("--wins", "-w", type=int, default=0, help="Number of wins.")
@click.option("--losses", "-l", type=int, default=0, help="Number of losses.")
@_trade_options
@click.pass_context
def add(
    ctx: click.Context,
    wins: int,
    losses: int,
    day: Optional[datetime],
    stake: Optional[str],
    payout: Optional[str],
    yes: bool,
) -> None:
    """Record a batch of wins and losses in one go.

    \b
    Examples:
      daybook add -w 2 -l 1
      daybook add -w 1 --stake 5 --payout 87
    """
    _record(ctx, day, wins, losses, stake, payout, yes)


@click.command()
@click.argument("trade_id")
@date_option("Day the trade belongs to (default: today).")
@click.pass_context
def delete(ctx: click.Context, trade_id: str, day: Optional[datetime]) -> None:
    """Delete the trade TRADE_ID from a day.

    Trade ids are shown by `daybook day`. Deleting a trade
    that does not exist changes nothing.
    """
    session = open_session(ctx)
    day_key = resolve_day(day)

    if not session.delete_trade(trade_id, day_key):
        console.print(f"[dim]No trade {trade_id} on {day_key}, nothing deleted.[/dim]")
        return

    finish(session)
    console.print(f"[green]Deleted trade {trade_id}.[/green]\n")
    render_day(session, day_key)
