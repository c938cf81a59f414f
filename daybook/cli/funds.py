"""Deposit and withdrawal commands for Daybook CLI.

Handles deposit, withdraw, edit and remove commands.
"""

from datetime import datetime
from typing import Optional

import click

from daybook.cli.common import console, date_option, fail, finish, format_money, open_session, resolve_day
from daybook.exceptions import ValidationError


def _record_transaction(ctx, kind: str, amount: str, day: Optional[datetime], notes: Optional[str]) -> None:
    session = open_session(ctx)
    try:
        transaction = session.add_transaction(kind, resolve_day(day), amount, notes)
    except ValidationError as e:
        fail(e)

    finish(session)
    console.print(
        f"[green]Recorded {kind} of {format_money(transaction.amount, session.brokerage)} "
        f"on {transaction.date}[/green] [dim]({transaction.id})[/dim]"
    )


@click.command()
@click.argument("amount")
@date_option()
@click.option("--notes", default=None, help="Free-form note.")
@click.pass_context
def deposit(ctx: click.Context, amount: str, day: Optional[datetime], notes: Optional[str]) -> None:
    """Record a deposit of AMOUNT."""
    _record_transaction(ctx, "deposit", amount, day, notes)


@click.command()
@click.argument("amount")
@date_option()
@click.option("--notes", default=None, help="Free-form note.")
@click.pass_context
def withdraw(ctx: click.Context, amount: str, day: Optional[datetime], notes: Optional[str]) -> None:
    """Record a withdrawal of AMOUNT."""
    _record_transaction(ctx, "withdrawal", amount, day, notes)


@click.command()
@click.argument("record_id")
@click.option("--confirm", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def remove(ctx: click.Context, record_id: str, confirm: bool) -> None:
    """Remove a whole record: a day (by its date) or a deposit/withdrawal.

    \b
    Examples:
      daybook remove 2024-05-02
      daybook remove trans_1f3a... --confirm
    """
    session = open_session(ctx)

    if not any(r.id == record_id for r in session.records):
        console.print(f"[dim]No record {record_id}, nothing removed.[/dim]")
        return

    if not confirm:
        if not click.confirm(f"Remove record {record_id}? This cannot be undone"):
            console.print("[dim]Remove cancelled.[/dim]")
            return

    session.delete_record(record_id)
    finish(session)
    console.print(f"[green]Removed record {record_id}.[/green]")


@click.command()
@click.argument("record_id")
@click.option("--type", "kind", type=click.Choice(["deposit", "withdrawal"]), default=None, help="Change the kind.")
@click.option("--amount", default=None, help="New amount.")
@date_option("New day for the transaction.")
@click.option("--notes", default=None, help="New note.")
@click.pass_context
def edit(
    ctx: click.Context,
    record_id: str,
    kind: Optional[str],
    amount: Optional[str],
    day: Optional[datetime],
    notes: Optional[str],
) -> None:
    """Edit the deposit or withdrawal RECORD_ID.

    \b
    Examples:
      daybook edit trans_1f3a... --amount 25
      daybook edit trans_1f3a... --type withdrawal --date 2024-05-03
    """
    if kind is None and amount is None and day is None and notes is None:
        console.print("[dim]Nothing to change.[/dim]")
        return

    session = open_session(ctx)
    try:
        transaction = session.update_transaction(
            record_id,
            kind=kind,
            day=day.date().isoformat() if day else None,
            amount=amount,
            notes=notes,
        )
    except ValidationError as e:
        fail(e)

    if transaction is None:
        console.print(f"[dim]No deposit or withdrawal {record_id}, nothing changed.[/dim]")
        return

    finish(session)
    console.print(
        f"[green]Updated {transaction.record_type} of "
        f"{format_money(transaction.amount, session.brokerage)} on {transaction.date}.[/green]"
    )
