"""Review commands for Daybook CLI.

Handles day, ledger and stats commands.
"""

from datetime import date, datetime
from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from daybook.cli.common import colored_money, console, date_option, format_money, open_session, resolve_day
from daybook.engine.stats import (
    account_balance,
    dynamic_daily_goal,
    month_bounds,
    period_stats,
    start_balance_for,
    week_bounds,
)
from daybook.models import DailyRecord


def render_day(session, day_key: str) -> None:
    """Print a day's balances, gate state and trades."""
    brokerage = session.brokerage
    record = session.record_for(day_key)
    gate = session.evaluate_gate(day_key)
    start = start_balance_for(day_key, session.records, brokerage.initial_balance)
    end = record.end_balance if record else start
    account = account_balance(session.records, brokerage.initial_balance, day_key)

    if gate.halted:
        gate_text = "[red]HALTED[/red] (" + ("stop gain" if gate.reason == "stop_gain" else "stop loss") + ")"
    elif gate.override_active:
        gate_text = "[yellow]OVERRIDE[/yellow]"
    else:
        gate_text = "[green]OPEN[/green]"

    lines = [
        f"Start Balance:   {format_money(start, brokerage)}",
        f"Current Balance: {format_money(end, brokerage)}",
        f"Account Balance: {format_money(account, brokerage)}",
        f"Net Profit:      {colored_money(record.net_profit if record else end - start, brokerage)}",
        f"Wins / Losses:   {record.win_count if record else 0} / {record.loss_count if record else 0}",
        f"Next Stake:      {format_money(session.suggest_entry_size(day_key), brokerage)}",
        f"Limits:          {gate_text}",
    ]
    for goal in session.goals:
        target = dynamic_daily_goal(goal, session.records, date.fromisoformat(day_key))
        lines.append(f"Goal ({goal.type}): {format_money(target, brokerage)} today")

    console.print(Panel(
        "\n".join(lines),
        title=f"[bold]{day_key}[/bold] - {brokerage.name}",
        border_style="cyan",
    ))

    if record and record.trades:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Trade ID", style="dim")
        table.add_column("Time", style="dim")
        table.add_column("Result", justify="center")
        table.add_column("Stake", justify="right")
        table.add_column("Payout", justify="right")
        table.add_column("P&L", justify="right")

        for trade in record.trades:
            result = "[green]WIN[/green]" if trade.result == "win" else "[red]LOSS[/red]"
            table.add_row(
                trade.id,
                trade.timestamp.strftime("%H:%M"),
                result,
                format_money(trade.entry_value, brokerage),
                f"{trade.payout_percentage}%",
                colored_money(trade.profit, brokerage),
            )
        console.print(table)


@click.command()
@date_option()
@click.pass_context
def day(ctx: click.Context, day: Optional[datetime]) -> None:
    """Show a day's balance, limits and trades.

    \b
    Examples:
      daybook day
      daybook day --date 2024-05-02
    """
    session = open_session(ctx)
    render_day(session, resolve_day(day))


@click.command()
@click.pass_context
def ledger(ctx: click.Context) -> None:
    """Show every record with its start and end balance."""
    session = open_session(ctx)
    brokerage = session.brokerage
    records = session.records

    if not records:
        console.print(Panel(
            "[dim]No trades recorded yet[/dim]",
            title="[bold]Ledger[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title=f"Ledger - {brokerage.name}", show_header=True, header_style="bold cyan")
    table.add_column("Date")
    table.add_column("Type", justify="center")
    table.add_column("W/L", justify="center")
    table.add_column("Start", justify="right")
    table.add_column("Result", justify="right")
    table.add_column("End", justify="right")
    table.add_column("ID", style="dim")

    for record in records:
        if isinstance(record, DailyRecord):
            table.add_row(
                record.id,
                "day",
                f"{record.win_count}/{record.loss_count}",
                format_money(record.start_balance, brokerage),
                colored_money(record.net_profit, brokerage),
                format_money(record.end_balance, brokerage),
                record.id,
            )
        else:
            amount = record.amount if record.record_type == "deposit" else -record.amount
            table.add_row(
                record.date,
                record.record_type,
                "-",
                "-",
                colored_money(amount, brokerage),
                "-",
                record.id,
            )

    console.print(table)
    last = [r for r in records if isinstance(r, DailyRecord)]
    trading = last[-1].end_balance if last else brokerage.initial_balance
    console.print(f"\nTrading Balance: [bold]{format_money(trading, brokerage)}[/bold]")
    console.print(
        "Account Balance: "
        f"[bold]{format_money(account_balance(records, brokerage.initial_balance), brokerage)}[/bold]"
    )


@click.command()
@date_option("Reference day for the week and month (default: today).")
@click.pass_context
def stats(ctx: click.Context, day: Optional[datetime]) -> None:
    """Show weekly and monthly performance."""
    session = open_session(ctx)
    brokerage = session.brokerage
    reference = date.fromisoformat(resolve_day(day))

    table = Table(title="Performance", show_header=True, header_style="bold cyan")
    table.add_column("Period")
    table.add_column("Start", justify="right")
    table.add_column("Profit", justify="right")
    table.add_column("Current", justify="right")
    table.add_column("W/L", justify="center")
    table.add_column("Win Rate", justify="right")
    table.add_column("Transfers", justify="right")
    table.add_column("Account", justify="right")

    for label, (start, end) in (
        ("Week", week_bounds(reference)),
        ("Month", month_bounds(reference)),
    ):
        summary = period_stats(session.records, start, end, brokerage.initial_balance)
        table.add_row(
            f"{label}\n[dim]{start.isoformat()} - {end.isoformat()}[/dim]",
            format_money(summary.start_balance, brokerage),
            colored_money(summary.profit, brokerage),
            format_money(summary.current_balance, brokerage),
            f"{summary.wins}/{summary.losses}",
            f"{summary.win_rate:.1f}%",
            colored_money(summary.transfers, brokerage),
            format_money(summary.account_balance, brokerage),
        )

    console.print(table)
