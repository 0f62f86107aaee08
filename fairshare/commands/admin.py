"""Admin commands for init, config and listing expenses."""

import sqlite3
import sys
from pathlib import Path

from rich.table import Table

from fairshare.commands.common import console, labels, load_settings, money
from fairshare.config import DEFAULT_CONFIG, create_default_config, get_config_path, set_option
from fairshare.store.queries import get_expenses, get_participants
from fairshare.store.schema import database_exists, get_db_path, init_database


def run_migration(db_path: Path) -> None:
    """Run database migrations on existing database."""
    console.print(f"[cyan]Running migrations on {db_path}...[/cyan]")
    init_database(db_path)
    console.print("[green]✓[/green] Migrations complete")
    console.print("[dim]Database schema is up to date[/dim]")


def run_full_init(db_path: Path, config_path: Path) -> None:
    """Initialize new database and config."""
    if db_path.exists():
        db_path.unlink()

    console.print(f"[cyan]Initializing database at {db_path}...[/cyan]")
    init_database(db_path)
    console.print("[green]✓[/green] Database initialized")

    console.print(f"[cyan]Creating config file at {config_path}...[/cyan]")
    create_default_config(config_path)
    console.print("[green]✓[/green] Config file created (permissions: 600)")

    console.print("\n[green]Initialization complete![/green]", style="bold")
    console.print(f"[dim]Database: {db_path}[/dim]")
    console.print(f"[dim]Config: {config_path}[/dim]")


def init_command(force: bool = False, migrate: bool = False) -> None:
    """Initialize fairshare database and configuration."""
    db_path = get_db_path()
    config_path = get_config_path()

    db_exists = database_exists(db_path)
    config_exists = config_path.exists()

    try:
        if migrate:
            if not db_exists:
                console.print("[red]No database found to migrate[/red]", style="bold")
                console.print(f"[dim]Expected location: {db_path}[/dim]")
                sys.exit(1)
            run_migration(db_path)
            return

        if not force and (db_exists or config_exists):
            console.print("[red]Initialization failed:[/red]", style="bold")
            if db_exists:
                console.print(f"  Database already exists: {db_path}")
            if config_exists:
                console.print(f"  Config already exists: {config_path}")
            console.print("\n[yellow]Use 'fairshare init --force' to overwrite[/yellow]")
            console.print("[yellow]Or 'fairshare init --migrate' to update database schema only[/yellow]")
            sys.exit(1)

        run_full_init(db_path, config_path)

    except sqlite3.Error as e:
        console.print(f"[red]Database error: {e}[/red]", style="bold")
        sys.exit(1)
    except OSError as e:
        console.print(f"[red]Filesystem error: {e}[/red]", style="bold")
        sys.exit(1)


def config_command(key: str, value: str) -> None:
    """Set a config option."""
    if key not in DEFAULT_CONFIG:
        known = ", ".join(sorted(DEFAULT_CONFIG))
        console.print(f"[red]Unknown option '{key}'. Known options: {known}[/red]")
        sys.exit(1)

    parsed: str | int = value
    if isinstance(DEFAULT_CONFIG[key], int):
        try:
            parsed = int(value)
        except ValueError:
            console.print(f"[red]'{key}' must be a whole number[/red]")
            sys.exit(1)
        if parsed < 0:
            console.print(f"[red]'{key}' can't be negative[/red]")
            sys.exit(1)

    try:
        set_option(key, parsed)
    except OSError as e:
        console.print(f"[red]Filesystem error: {e}[/red]", style="bold")
        sys.exit(1)

    console.print(f"[green]✓[/green] {key} = {parsed!r}")


def list_command(drafts: bool = False, confirmed: bool = False) -> None:
    """List expenses."""
    settings = load_settings()
    db_path = get_db_path()

    status_filter: bool | None = None
    if drafts and not confirmed:
        status_filter = False
    elif confirmed and not drafts:
        status_filter = True

    try:
        expenses = get_expenses(db_path, confirmed=status_filter)
        names = labels(get_participants(db_path))
    except sqlite3.Error as e:
        console.print(f"[red]Database error: {e}[/red]", style="bold")
        sys.exit(1)

    if not expenses:
        console.print("[yellow]No expenses found[/yellow]")
        return

    table = Table(title=f"Expenses ({len(expenses)})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Date", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Amount", justify="right")
    table.add_column("Paid by", style="magenta")
    table.add_column("Split", style="dim")
    table.add_column("Status", justify="center")

    for expense in expenses:
        table.add_row(
            str(expense.id),
            expense.date,
            expense.description,
            money(expense.total_amount, settings),
            names.get(expense.payer_id, f"{expense.payer_id} [red](unknown)[/red]"),
            expense.split_method.value if expense.split_method else "-",
            "✓" if expense.confirmed else "○",
        )

    console.print(table)
