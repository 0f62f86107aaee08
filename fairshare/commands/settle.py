"""Balance and settle-up commands.

Transfers are recomputed from the confirmed expenses every time; nothing
here writes to the database.
"""

import sqlite3
import sys
from typing import NoReturn

from rich.table import Table

from fairshare.commands.common import console, labels, load_settings, money, signed_money
from fairshare.config import Settings
from fairshare.dates import month_range
from fairshare.domain.errors import AllocationError, UnbalancedLedger
from fairshare.domain.models import Balance, Expense, Money, Participant, ParticipantId
from fairshare.domain.settlement import compute_balances, participant_position, settle_up
from fairshare.store.queries import get_expenses, get_participants
from fairshare.store.schema import get_db_path


def compute_period(month: str | None) -> tuple[str | None, str | None, str]:
    """Compute date range and display label for a settlement period.

    Args:
        month: Optional month (YYYY-MM); None means all time.

    Returns:
        Tuple of (since_date, until_date, period_display).

    Raises:
        ValueError: If month is not in YYYY-MM format.
    """
    if not month:
        return None, None, "All Time"
    since, until, label = month_range(month)
    return since, until, label


def load_snapshot(month: str | None) -> tuple[list[Expense], list[Participant], str]:
    """Fetch confirmed expenses and participants in one go, exiting on errors."""
    try:
        since, until, period = compute_period(month)
    except ValueError:
        console.print(f"[red]Invalid month '{month}', expected YYYY-MM[/red]")
        sys.exit(1)

    db_path = get_db_path()
    try:
        expenses = get_expenses(db_path, confirmed=True, since_date=since, until_date=until)
        participants = get_participants(db_path)
    except sqlite3.Error as e:
        console.print(f"[red]Database error: {e}[/red]", style="bold")
        sys.exit(1)

    if not participants:
        console.print("[yellow]No participants yet. Add one with 'fairshare participant-add'.[/yellow]")
        sys.exit(0)

    return expenses, participants, period


def render_balances(
    balances: dict[ParticipantId, Balance],
    names: dict[ParticipantId, str],
    settings: Settings,
) -> None:
    """Render a balance table."""
    table = Table(title="Balances")
    table.add_column("Participant", style="cyan")
    table.add_column("Paid", justify="right")
    table.add_column("Share", justify="right")
    table.add_column("Net", justify="right")

    for pid, balance in balances.items():
        table.add_row(
            names.get(pid, pid),
            money(balance.paid, settings),
            money(balance.owed, settings),
            signed_money(balance.net, settings),
        )

    console.print(table)


def report_integrity_error(error: UnbalancedLedger) -> NoReturn:
    console.print(f"[red]Integrity error: {error}[/red]", style="bold")
    console.print("[dim]Check the confirmed expenses with 'fairshare list --confirmed'[/dim]")
    sys.exit(2)


def balances_command(month: str | None = None) -> None:
    """Show paid, owed and net amounts per participant."""
    settings = load_settings()
    expenses, participants, period = load_snapshot(month)

    try:
        balances = compute_balances(expenses, participants)
    except UnbalancedLedger as e:
        report_integrity_error(e)
    except AllocationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    console.print(f"[bold cyan]{period}[/bold cyan] ({len(expenses)} confirmed expenses)\n")
    render_balances(balances, labels(participants), settings)


def settle_command(month: str | None = None, me: str | None = None) -> None:
    """Show who pays whom to settle every balance."""
    settings = load_settings()
    expenses, participants, period = load_snapshot(month)
    names = labels(participants)

    if me and me not in names:
        console.print(f"[red]Unknown participant '{me}'[/red]")
        sys.exit(1)

    try:
        plan = settle_up(expenses, participants)
    except UnbalancedLedger as e:
        report_integrity_error(e)
    except AllocationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    console.print(f"[bold cyan]{period}[/bold cyan] ({len(expenses)} confirmed expenses)\n")
    render_balances(plan.balances, names, settings)

    if not plan.transfers:
        console.print("\n[green]Everyone is settled up[/green]")
        return

    table = Table(title="Settle up")
    table.add_column("From", style="red")
    table.add_column("To", style="green")
    table.add_column("Amount", justify="right")
    for transfer in plan.transfers:
        table.add_row(
            names.get(transfer.from_participant_id, transfer.from_participant_id),
            names.get(transfer.to_participant_id, transfer.to_participant_id),
            money(transfer.amount, settings),
        )
    console.print()
    console.print(table)

    if me:
        position = participant_position(plan.transfers, ParticipantId(me))
        console.print(f"\n[bold]{names[ParticipantId(me)]}[/bold]")
        if not position:
            console.print("  [green]Nothing to pay or receive[/green]")
        for counterparty, amount in position.items():
            if amount > 0:
                console.print(f"  Pay {names.get(counterparty, counterparty)}: [red]{money(amount, settings)}[/red]")
            else:
                console.print(
                    f"  Receive from {names.get(counterparty, counterparty)}: "
                    f"[green]{money(Money(-amount), settings)}[/green]"
                )
