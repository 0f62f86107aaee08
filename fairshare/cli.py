"""CLI entry point for fairshare."""

import typer

from fairshare.commands.admin import config_command, init_command, list_command
from fairshare.commands.common import load_settings
from fairshare.commands.expenses import add_command, confirm_command
from fairshare.commands.participants import participant_add_command, participants_command
from fairshare.commands.settle import balances_command, settle_command
from fairshare.log import configure_logging

app = typer.Typer(
    name="fairshare",
    help="fairshare - Split shared expenses fairly and settle up",
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """fairshare - Split shared expenses fairly and settle up."""
    configure_logging(load_settings().log_level, verbose)


@app.command(name="init")
def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing database and config"),
    migrate: bool = typer.Option(False, "--migrate", help="Update the database schema only"),
) -> None:
    """Initialize fairshare database and configuration."""
    init_command(force, migrate)


@app.command(name="config")
def config(
    key: str,
    value: str,
) -> None:
    """Set a config option (currency_symbol, decimals, log_level)."""
    config_command(key, value)


@app.command(name="participant-add")
def participant_add(
    handle: str,
    name: str = typer.Option(None, "--name", "-n", help="Display name"),
) -> None:
    """Add a participant to the group."""
    participant_add_command(handle, name)


@app.command(name="participants")
def participants() -> None:
    """List the participants of the group."""
    participants_command()


@app.command(name="add")
def add(
    date: str,
    description: str,
    amount: str,
    payer: str = typer.Option(..., "--payer", "-p", help="Handle of the participant who paid"),
) -> None:
    """Add a draft expense."""
    add_command(date, description, amount, payer)


@app.command(name="list")
def list_expenses(
    drafts: bool = typer.Option(False, "--drafts", help="Only show draft expenses"),
    confirmed: bool = typer.Option(False, "--confirmed", help="Only show confirmed expenses"),
) -> None:
    """List expenses."""
    list_command(drafts, confirmed)


@app.command(name="confirm")
def confirm(
    expense_ids: list[int],
    method: str = typer.Option("equal", "--method", "-m", help="Split method: equal, percentage or custom"),
    share: list[str] = typer.Option(None, "--share", "-s", help="HANDLE=VALUE percentage or amount (repeatable)"),
    with_handles: list[str] = typer.Option(None, "--with", "-w", help="Only split between these handles"),
    distribute: bool = typer.Option(
        False, "--distribute", help="Spread the unallocated amount over participants with 0 (custom split)"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Don't ask for confirmation"),
) -> None:
    """Confirm draft expenses; several IDs are confirmed as one batch."""
    confirm_command(expense_ids, method, share, with_handles, distribute, yes)


@app.command(name="balances")
def balances(
    month: str = typer.Option(None, "--month", help="Specific month (YYYY-MM)"),
) -> None:
    """Show what everyone paid, owes and is owed."""
    balances_command(month)


@app.command(name="settle")
def settle(
    month: str = typer.Option(None, "--month", help="Specific month (YYYY-MM)"),
    me: str = typer.Option(None, "--me", help="Show what this participant pays and receives"),
) -> None:
    """Show who pays whom to settle up."""
    settle_command(month, me)


if __name__ == "__main__":
    app()
