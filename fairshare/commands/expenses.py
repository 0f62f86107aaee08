"""Expense commands: add drafts and confirm their allocation."""

import sqlite3
import sys
import uuid

import typer
from rich.table import Table

from fairshare.commands.common import console, labels, load_settings, money
from fairshare.config import Settings
from fairshare.dates import normalize_date
from fairshare.domain.allocation import (
    allocate,
    calculate_remaining,
    derive_percentages,
    distribute_remaining,
    validate_split,
)
from fairshare.domain.batch import batch_total, confirm_batch
from fairshare.domain.errors import AllocationError, UnderAllocated
from fairshare.domain.expenses import parse_money, parse_percentage
from fairshare.domain.models import (
    BasisPoints,
    ExpenseId,
    Money,
    Participant,
    ParticipantId,
    Share,
    SplitMethod,
)
from fairshare.store.queries import (
    get_expenses_by_id,
    get_participants,
    insert_expense,
    save_confirmed_expenses,
)
from fairshare.store.schema import get_db_path


def add_command(date: str, description: str, amount: str, payer: str) -> None:
    """Add a draft expense.

    Args:
        date: Expense date (YYYY-MM-DD, DD/MM/YYYY, or other formats).
        description: Expense description.
        amount: Expense total as a decimal string (e.g., "42.50").
        payer: Handle of the participant who paid.
    """
    settings = load_settings()
    db_path = get_db_path()

    try:
        normalized_date = normalize_date(date)
    except ValueError as e:
        console.print(f"[red]Invalid date format: {e}[/red]")
        console.print("[dim]Accepted formats: YYYY-MM-DD, DD/MM/YYYY, DD-MM-YYYY, etc.[/dim]")
        sys.exit(1)

    total = parse_money(amount, settings.decimals)
    if total is None or total <= 0:
        console.print(f"[red]Invalid amount '{amount}'[/red]")
        sys.exit(1)

    try:
        handles = {participant.id for participant in get_participants(db_path)}
        if payer not in handles:
            console.print(f"[red]Unknown participant '{payer}'[/red]")
            sys.exit(1)

        expense_id = insert_expense(normalized_date, description, total, ParticipantId(payer), db_path)
    except sqlite3.Error as e:
        console.print(f"[red]Database error: {e}[/red]", style="bold")
        sys.exit(1)

    console.print(f"[green]✓[/green] Draft expense #{expense_id}: {description} {money(total, settings)}")


def parse_share_options(
    share_options: list[str],
    method: SplitMethod,
    settings: Settings,
) -> tuple[dict[ParticipantId, BasisPoints], dict[ParticipantId, Money]]:
    """Parse repeated HANDLE=VALUE options.

    Args:
        share_options: Raw option values.
        method: Split method; decides whether values are percentages or amounts.
        settings: Settings for the currency decimals.

    Returns:
        Tuple of (percentages, amounts); only one of them is filled.

    Raises:
        ValueError: If an option is malformed.
    """
    percentages: dict[ParticipantId, BasisPoints] = {}
    amounts: dict[ParticipantId, Money] = {}

    for option in share_options:
        handle, sep, raw_value = option.partition("=")
        if not sep or not handle.strip():
            raise ValueError(f"Expected HANDLE=VALUE, got '{option}'")
        pid = ParticipantId(handle.strip())

        if method is SplitMethod.PERCENTAGE:
            points = parse_percentage(raw_value)
            if points is None:
                raise ValueError(f"Invalid percentage '{raw_value}' for {pid}")
            percentages[pid] = points
        else:
            amount = parse_money(raw_value, settings.decimals)
            if amount is None:
                raise ValueError(f"Invalid amount '{raw_value}' for {pid}")
            amounts[pid] = amount

    return percentages, amounts


def select_participants(participants: list[Participant], handles: list[str] | None) -> list[Participant]:
    """Restrict participants to the given handles, keeping stored order.

    Raises:
        ValueError: If a handle is unknown.
    """
    if not handles:
        return participants

    known = {participant.id for participant in participants}
    for handle in handles:
        if handle not in known:
            raise ValueError(f"Unknown participant '{handle}'")

    wanted = set(handles)
    return [participant for participant in participants if participant.id in wanted]


def render_split(shares: list[Share], total: Money, participants: list[Participant], settings: Settings) -> None:
    """Render a proposed split."""
    names = labels(participants)
    points = derive_percentages(shares, total)

    table = Table(title=f"Split of {money(total, settings)}")
    table.add_column("Participant", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_column("Share", justify="right", style="dim")

    for share in shares:
        table.add_row(
            names.get(share.participant_id, share.participant_id),
            money(share.amount, settings),
            f"{points[share.participant_id] / 100:.2f}%",
        )

    console.print(table)

    remaining = calculate_remaining(total, shares)
    if remaining > 0:
        console.print(f"[yellow]Unallocated: {money(remaining, settings)}[/yellow]")
    elif remaining < 0:
        console.print(f"[red]Over-allocated by {money(Money(-remaining), settings)}[/red]")


def confirm_command(
    expense_ids: list[int],
    method: str = "equal",
    share_options: list[str] | None = None,
    with_handles: list[str] | None = None,
    distribute: bool = False,
    yes: bool = False,
) -> None:
    """Confirm one or more draft expenses under one allocation."""
    settings = load_settings()
    db_path = get_db_path()
    expense_ids = list(dict.fromkeys(expense_ids))

    try:
        split_method = SplitMethod(method.lower())
    except ValueError:
        console.print(f"[red]Unknown split method '{method}'. Use equal, percentage or custom.[/red]")
        sys.exit(1)

    try:
        expenses = get_expenses_by_id([ExpenseId(eid) for eid in expense_ids], db_path)
        all_participants = get_participants(db_path)
    except sqlite3.Error as e:
        console.print(f"[red]Database error: {e}[/red]", style="bold")
        sys.exit(1)

    found = {expense.id for expense in expenses}
    missing = [eid for eid in expense_ids if eid not in found]
    if missing:
        console.print(f"[red]Expense not found: {', '.join(f'#{eid}' for eid in missing)}[/red]")
        sys.exit(1)

    try:
        participants = select_participants(all_participants, with_handles)
        percentages, amounts = parse_share_options(share_options or [], split_method, settings)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    total = batch_total(expenses)
    if len(expenses) > 1:
        console.print(f"[cyan]Batch of {len(expenses)} expenses, {money(total, settings)} in total[/cyan]")

    try:
        shares = allocate(total, split_method, participants, percentages=percentages, amounts=amounts)
        if split_method is SplitMethod.CUSTOM and distribute:
            shares = distribute_remaining(total, shares)

        render_split(shares, total, participants, settings)

        if split_method is SplitMethod.PERCENTAGE:
            valid, error = validate_split(split_method, total, shares, percentages)
            if not valid:
                console.print(f"[red]{error}[/red]")
                sys.exit(1)

        confirmed = confirm_batch(expenses, shares, split_method)
    except AllocationError as e:
        console.print(f"[red]{e}[/red]")
        if isinstance(e, UnderAllocated) and not distribute:
            console.print("[dim]Use --distribute to spread the unallocated amount over participants with 0[/dim]")
        sys.exit(1)

    if not yes and not typer.confirm(f"Confirm {len(confirmed)} expense(s)?", default=True):
        console.print("[yellow]Nothing confirmed[/yellow]")
        return

    batch_id = uuid.uuid4().hex if len(confirmed) > 1 else None
    try:
        save_confirmed_expenses(confirmed, batch_id, db_path)
    except AllocationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    except sqlite3.Error as e:
        console.print(f"[red]Database error: {e}[/red]", style="bold")
        sys.exit(1)

    for expense in confirmed:
        amount_display = money(expense.total_amount, settings)
        console.print(f"[green]✓[/green] Confirmed #{expense.id} {expense.description} ({amount_display})")
