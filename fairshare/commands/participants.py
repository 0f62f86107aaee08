"""Participant commands."""

import sqlite3
import sys

from rich.table import Table

from fairshare.commands.common import console
from fairshare.store.queries import add_participant, get_participants
from fairshare.store.schema import get_db_path


def participant_add_command(handle: str, name: str | None = None) -> None:
    """Add a participant."""
    handle = handle.strip()
    if not handle:
        console.print("[red]Handle can't be empty[/red]")
        sys.exit(1)

    try:
        added = add_participant(handle, (name or "").strip(), get_db_path())
    except sqlite3.Error as e:
        console.print(f"[red]Database error: {e}[/red]", style="bold")
        sys.exit(1)

    if added:
        console.print(f"[green]✓[/green] Added {name or handle}")
    else:
        console.print(f"[yellow]Participant '{handle}' already exists[/yellow]")


def participants_command() -> None:
    """List participants in allocation order."""
    try:
        participants = get_participants(get_db_path())
    except sqlite3.Error as e:
        console.print(f"[red]Database error: {e}[/red]", style="bold")
        sys.exit(1)

    if not participants:
        console.print("[yellow]No participants yet. Add one with 'fairshare participant-add'.[/yellow]")
        return

    table = Table(title=f"Participants ({len(participants)})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Handle", style="cyan")
    table.add_column("Name", style="white")

    for idx, participant in enumerate(participants, 1):
        table.add_row(str(idx), participant.id, participant.display_name or "[dim]-[/dim]")

    console.print(table)
