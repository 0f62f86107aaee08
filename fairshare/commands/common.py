"""Helpers shared by the command modules."""

import sys
import tomllib

from rich.console import Console

from fairshare.config import Settings, get_settings
from fairshare.domain.expenses import format_money
from fairshare.domain.models import Money, Participant, ParticipantId

console = Console()


def load_settings() -> Settings:
    """Read settings or exit with a readable message."""
    try:
        return get_settings()
    except (ValueError, tomllib.TOMLDecodeError) as e:
        console.print(f"[red]Config error: {e}[/red]", style="bold")
        sys.exit(1)


def money(amount: Money, settings: Settings) -> str:
    """Format an amount with the configured currency."""
    return format_money(amount, settings.currency_symbol, settings.decimals)


def signed_money(amount: Money, settings: Settings) -> str:
    """Format an amount in green when positive and red when negative."""
    if amount > 0:
        return f"[green]+{money(amount, settings)}[/green]"
    elif amount < 0:
        return f"[red]{money(amount, settings)}[/red]"
    return f"[dim]{money(amount, settings)}[/dim]"


def labels(participants: list[Participant]) -> dict[ParticipantId, str]:
    """Map participant ids to display labels."""
    return {participant.id: participant.label for participant in participants}
