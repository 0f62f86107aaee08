"""Date utilities for fairshare.

Pure functions for date range calculations and normalisation.
"""

from datetime import datetime, timedelta

import pandas as pd


def normalize_date(raw_date: str) -> str:
    """Normalize a user-entered date to ISO format (YYYY-MM-DD).

    Uses pandas.to_datetime so ISO, European and other common formats are
    accepted; ambiguous dates are read day first.

    Args:
        raw_date: Date as typed (e.g., "2025-01-15", "15/01/2025").

    Returns:
        Normalized date in YYYY-MM-DD format.

    Raises:
        ValueError: If date cannot be parsed.
    """
    try:
        parsed_date = pd.to_datetime(raw_date.strip(), dayfirst=True)
    except (ValueError, pd.errors.ParserError) as e:
        raise ValueError(f"Could not parse date '{raw_date}': {e}") from e

    if pd.isna(parsed_date):
        raise ValueError(f"Could not parse date '{raw_date}'")
    return parsed_date.strftime("%Y-%m-%d")


def month_range(month: str) -> tuple[str, str, str]:
    """Calculate date range and label for a month.

    Args:
        month: Month in YYYY-MM format.

    Returns:
        Tuple of (since_date, until_date, label) where:
        - since_date: First day of month (YYYY-MM-DD)
        - until_date: First day of next month (YYYY-MM-DD)
        - label: Human-readable month (e.g., "January 2025")

    Raises:
        ValueError: If month is not in YYYY-MM format.
    """
    dt = datetime.strptime(month, "%Y-%m")
    since = dt.strftime("%Y-%m-01")
    next_month = (dt.replace(day=28) + timedelta(days=4)).replace(day=1)
    until = next_month.strftime("%Y-%m-%d")
    label = dt.strftime("%B %Y")
    return since, until, label
