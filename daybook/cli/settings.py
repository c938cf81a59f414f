"""Account settings and goal commands for Daybook CLI."""

from typing import Optional

import click
from pydantic import ValidationError as PydanticValidationError
from rich.panel import Panel

from daybook.cli.common import console, error_panel, fail, finish, format_money, open_session
from daybook.engine.ledger import to_decimal
from daybook.exceptions import ValidationError
from daybook.models import Goal


def _print_brokerage(brokerage) -> None:
    if brokerage.entry_mode == "fixed":
        entry = f"{format_money(brokerage.entry_value, brokerage)} per trade"
    else:
        entry = f"{brokerage.entry_value}% of balance"

    console.print(Panel(
        f"Name:             {brokerage.name}\n"
        f"Initial Balance:  {format_money(brokerage.initial_balance, brokerage)}\n"
        f"Entry Size:       {entry}\n"
        f"Payout:           {brokerage.payout_percentage}%\n"
        f"Stop Gain:        {brokerage.stop_gain_trades or 'off'} wins\n"
        f"Stop Loss:        {brokerage.stop_loss_trades or 'off'} losses\n"
        f"Currency:         {brokerage.currency}",
        title="[bold]Account Settings[/bold]",
        border_style="cyan",
    ))


@click.group()
def settings() -> None:
    """View and edit the active account.

    \b
    Commands:
      show  - Show current settings
      set   - Change one or more settings
    """
    pass


@settings.command()
@click.pass_context
def show(ctx: click.Context) -> None:
    """Show the active account settings."""
    session = open_session(ctx)
    _print_brokerage(session.brokerage)


@settings.command(name="set")
@click.option("--name", default=None, help="Display name.")
@click.option("--initial-balance", default=None, help="Starting balance.")
@click.option("--entry-mode", type=click.Choice(["fixed", "percentage"]), default=None, help="Entry sizing mode.")
@click.option("--entry-value", default=None, help="Fixed stake, or percent of balance.")
@click.option("--payout", default=None, help="Payout percentage for a win.")
@click.option("--stop-gain", type=int, default=None, help="Wins per day before halting (0 = off).")
@click.option("--stop-loss", type=int, default=None, help="Losses per day before halting (0 = off).")
@click.option("--currency", type=click.Choice(["USD", "BRL"]), default=None, help="Display currency.")
@click.pass_context
def set_settings(
    ctx: click.Context,
    name: Optional[str],
    initial_balance: Optional[str],
    entry_mode: Optional[str],
    entry_value: Optional[str],
    payout: Optional[str],
    stop_gain: Optional[int],
    stop_loss: Optional[int],
    currency: Optional[str],
) -> None:
    """Change account settings.

    Changing the initial balance recalculates every day's balances.

    \b
    Examples:
      daybook settings set --initial-balance 50
      daybook settings set --entry-mode fixed --entry-value 2 --payout 85
      daybook settings set --stop-gain 0   # no stop gain
    """
    session = open_session(ctx)

    try:
        changes = {
            "name": name,
            "initial_balance": to_decimal(initial_balance, "initial_balance") if initial_balance else None,
            "entry_mode": entry_mode,
            "entry_value": to_decimal(entry_value, "entry_value") if entry_value else None,
            "payout_percentage": to_decimal(payout, "payout") if payout else None,
            "stop_gain_trades": stop_gain,
            "stop_loss_trades": stop_loss,
            "currency": currency,
        }
        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            console.print("[dim]Nothing to change.[/dim]")
            return

        # Re-validate so field constraints apply to the edit
        updated = type(session.brokerage).model_validate(
            {**session.brokerage.model_dump(), **changes}
        )
        session.update_brokerage(updated)
    except ValidationError as e:
        fail(e)
    except PydanticValidationError as e:
        error_panel(f"Invalid settings:\n\n{e}")
        raise SystemExit(1)

    finish(session)
    console.print("[green]Settings updated.[/green]\n")
    _print_brokerage(session.brokerage)


@click.group()
def goal() -> None:
    """View and set your profit goal.

    \b
    Commands:
      show   - Show the goal and today's target
      set    - Set the goal
      clear  - Remove the goal
    """
    pass


@goal.command(name="show")
@click.pass_context
def show_goal(ctx: click.Context) -> None:
    """Show the current goal."""
    session = open_session(ctx)
    if not session.goals:
        console.print("[dim]No goal set. Use `daybook goal set`.[/dim]")
        return

    for current in session.goals:
        console.print(
            f"[bold]{current.name}[/bold]: {format_money(current.target_amount, session.brokerage)} "
            f"({current.type})"
        )


@goal.command(name="set")
@click.argument("amount")
@click.option(
    "--type",
    "goal_type",
    type=click.Choice(["daily", "weekly", "monthly", "annual"]),
    default="monthly",
    show_default=True,
    help="Goal period.",
)
@click.option("--name", default="Goal", help="Goal name.")
@click.pass_context
def set_goal(ctx: click.Context, amount: str, goal_type: str, name: str) -> None:
    """Set a profit goal of AMOUNT for a period.

    \b
    Examples:
      daybook goal set 100
      daybook goal set 25 --type weekly
    """
    session = open_session(ctx)
    try:
        target = to_decimal(amount, "amount")
        if target < 0:
            raise ValidationError(f"amount must be >= 0, got {amount!r}")
    except ValidationError as e:
        fail(e)

    session.set_goals([Goal(name=name, type=goal_type, target_amount=target)])
    finish(session)
    console.print(f"[green]Goal set: {format_money(target, session.brokerage)} ({goal_type}).[/green]")


@goal.command(name="clear")
@click.pass_context
def clear_goal(ctx: click.Context) -> None:
    """Remove the goal."""
    session = open_session(ctx)
    session.set_goals([])
    finish(session)
    console.print("[green]Goal cleared.[/green]")
