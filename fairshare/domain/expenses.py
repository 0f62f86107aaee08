"""Pure functions for the expense lifecycle and money text conversion.

An expense is created as a draft and confirmed exactly once; confirmation
fixes its allocation. Money crosses the text boundary here and nowhere else:
everything past these helpers works in integer minor units.
"""

from collections.abc import Iterable, Sequence
from dataclasses import replace
from decimal import Decimal, InvalidOperation

from fairshare.domain.allocation import check_allocation
from fairshare.domain.errors import ExpenseAlreadyConfirmed, InvalidTotal
from fairshare.domain.models import (
    BasisPoints,
    Expense,
    ExpenseId,
    Money,
    ParticipantId,
    Share,
    SplitMethod,
)


def new_expense(
    expense_id: ExpenseId,
    total_amount: Money,
    payer_id: ParticipantId,
    date: str,
    description: str = "",
) -> Expense:
    """Create a draft expense.

    Raises:
        InvalidTotal: If total_amount is not positive.
    """
    if total_amount <= 0:
        raise InvalidTotal(total_amount)
    return Expense(
        id=expense_id,
        total_amount=total_amount,
        payer_id=payer_id,
        date=date,
        description=description,
    )


def confirm_expense(expense: Expense, shares: Sequence[Share], method: SplitMethod) -> Expense:
    """Confirm a draft expense with its final allocation.

    Args:
        expense: Draft expense.
        shares: Final shares; must add up to the expense total exactly.
        method: Split method the shares were produced with.

    Returns:
        New confirmed Expense.

    Raises:
        ExpenseAlreadyConfirmed: If the expense is already confirmed.
        AllocationError: If the shares are not an exact allocation.
    """
    if expense.confirmed:
        raise ExpenseAlreadyConfirmed(expense.id)

    check_allocation(shares, expense.total_amount)

    return replace(expense, confirmed=True, allocation=tuple(shares), split_method=method)


def confirmed_only(expenses: Iterable[Expense]) -> list[Expense]:
    """Filter out draft expenses."""
    return [expense for expense in expenses if expense.confirmed]


def parse_money(amount_str: str, decimals: int = 2) -> Money | None:
    """Parse a decimal amount string to minor units.

    Args:
        amount_str: Amount such as "12.50" or "£1,200".
        decimals: Number of minor-unit digits of the currency.

    Returns:
        Money amount in minor units, or None if invalid, negative or more
        precise than the currency allows.
    """
    cleaned = amount_str.strip().replace(",", "").lstrip("£$€¥")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None

    if not value.is_finite() or value < 0:
        return None

    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        return None
    return Money(int(scaled))


def format_money(amount: Money, symbol: str = "£", decimals: int = 2) -> str:
    """Format minor units for display (e.g., "£1,234.50" or "-£3.00")."""
    major = Decimal(abs(amount)).scaleb(-decimals)
    formatted = f"{symbol}{major:,.{decimals}f}"
    return f"-{formatted}" if amount < 0 else formatted


def parse_percentage(percentage_str: str) -> BasisPoints | None:
    """Parse a percentage string to basis points.

    Args:
        percentage_str: Percentage such as "33.33" or "25%".

    Returns:
        Basis points, or None if invalid, negative or finer than 0.01%.
    """
    cleaned = percentage_str.strip().rstrip("%").strip()
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None

    if not value.is_finite() or value < 0:
        return None

    scaled = value * 100
    if scaled != scaled.to_integral_value():
        return None
    return BasisPoints(int(scaled))
