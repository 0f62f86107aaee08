"""Pure functions for confirming several expenses under one allocation.

A batch template allocates the sum of the batch totals. Each expense then
gets the template scaled by its share of that sum.

All monetary amounts are in minor units (Money type).
"""

import logging
from collections.abc import Sequence
from fractions import Fraction

from fairshare.domain.allocation import check_allocation, round_half_up, spread_difference
from fairshare.domain.errors import InvalidTotal
from fairshare.domain.expenses import confirm_expense
from fairshare.domain.models import Expense, Money, Share, SplitMethod

logger = logging.getLogger(__name__)


def batch_total(expenses: Sequence[Expense]) -> Money:
    """Sum the totals of a batch of expenses."""
    return Money(sum(expense.total_amount for expense in expenses))


def scale_allocation(template: Sequence[Share], expense_amount: Money, batch_total: Money) -> list[Share]:
    """Scale a batch template to one expense, rounding each share.

    The result is not renormalised, so it can be a unit or two away from
    expense_amount; use scale_allocation_exact when the sum must be exact.

    Args:
        template: Shares of the whole batch.
        expense_amount: Total of the expense being scaled to.
        batch_total: Total of the whole batch.

    Returns:
        Scaled shares in template order.

    Raises:
        InvalidTotal: If batch_total is not positive or expense_amount is negative.
    """
    if batch_total <= 0:
        raise InvalidTotal(batch_total)
    if expense_amount < 0:
        raise InvalidTotal(expense_amount)

    ratio = Fraction(expense_amount, batch_total)
    return [Share(share.participant_id, Money(round_half_up(share.amount * ratio))) for share in template]


def scale_allocation_exact(template: Sequence[Share], expense_amount: Money, batch_total: Money) -> list[Share]:
    """Scale a batch template to one expense, correcting the sum to be exact.

    Args:
        template: Shares of the whole batch.
        expense_amount: Total of the expense being scaled to.
        batch_total: Total of the whole batch.

    Returns:
        Scaled shares adding up to expense_amount.
    """
    scaled = scale_allocation(template, expense_amount, batch_total)
    return spread_difference(scaled, expense_amount)


def confirm_batch(expenses: Sequence[Expense], template: Sequence[Share], method: SplitMethod) -> list[Expense]:
    """Confirm a batch of draft expenses under one allocation template.

    Args:
        expenses: Draft expenses in the batch.
        template: Shares allocating the batch total.
        method: Split method the template was produced with.

    Returns:
        Confirmed expenses, in input order.

    Raises:
        InvalidTotal: If the batch is empty.
        AllocationError: If the template does not allocate the batch total
            exactly or an expense is already confirmed.
    """
    total = batch_total(expenses)
    if total <= 0:
        raise InvalidTotal(total)
    check_allocation(template, total)

    if len(expenses) == 1:
        return [confirm_expense(expenses[0], template, method)]

    confirmed: list[Expense] = []
    for expense in expenses:
        shares = scale_allocation_exact(template, expense.total_amount, total)
        confirmed.append(confirm_expense(expense, shares, method))
        logger.debug("Scaled batch template to expense %s (%d of %d)", expense.id, expense.total_amount, total)
    return confirmed
