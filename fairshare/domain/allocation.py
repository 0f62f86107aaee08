"""Pure functions for dividing an expense total among participants.

This module contains the functional core for allocation:
- No I/O operations (no database, no console, no files)
- No side effects
- Pure data transformations
- Easy to test

All monetary amounts are in minor units (Money type) and all percentages are
in basis points (BasisPoints type). Every allocator keeps the participant
order it was given; that order is the tie-break for handing out odd units.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from fractions import Fraction

from fairshare.domain.errors import (
    DuplicateParticipant,
    EmptyParticipantSet,
    InvalidTotal,
    NegativePercentage,
    NegativeShare,
    NothingToDistribute,
    OverAllocated,
    PercentageOverflow,
    UnderAllocated,
    UnknownParticipant,
)
from fairshare.domain.models import (
    FULL_PERCENTAGE,
    BasisPoints,
    Money,
    Participant,
    ParticipantId,
    Share,
    SplitMethod,
)

logger = logging.getLogger(__name__)

# Percentage totals within 1% of 100% pass interactive validation
PERCENTAGE_TOLERANCE = BasisPoints(100)


def round_half_up(value: Fraction) -> int:
    """Round an exact fraction to the nearest integer, halves rounding up.

    Args:
        value: Exact rational value.

    Returns:
        Nearest integer.
    """
    return math.floor(value + Fraction(1, 2))


def participant_ids(participants: Sequence[Participant]) -> list[ParticipantId]:
    """Extract ids from a participant set, checking it is usable.

    Args:
        participants: Participants in their display order.

    Returns:
        List of participant ids in the same order.

    Raises:
        EmptyParticipantSet: If there are no participants.
        DuplicateParticipant: If an id appears twice.
    """
    if not participants:
        raise EmptyParticipantSet()

    ids: list[ParticipantId] = []
    seen: set[ParticipantId] = set()
    for participant in participants:
        if participant.id in seen:
            raise DuplicateParticipant(participant.id)
        seen.add(participant.id)
        ids.append(participant.id)
    return ids


def _check_known(ids: Sequence[ParticipantId], values: Mapping[ParticipantId, int]) -> None:
    known = set(ids)
    for participant_id in values:
        if participant_id not in known:
            raise UnknownParticipant(participant_id)


def calculate_remaining(total: Money, shares: Sequence[Share]) -> Money:
    """Calculate the part of the total not yet allocated.

    Args:
        total: Expense total in minor units.
        shares: Current shares.

    Returns:
        Remaining amount (negative if over-allocated).
    """
    return Money(total - sum(share.amount for share in shares))


def spread_difference(shares: Sequence[Share], target_total: Money) -> list[Share]:
    """Correct shares so they add up to target_total.

    The result is the same as handing units out one at a time in share order,
    wrapping around. When units have to
    be taken away, shares already at zero are skipped.

    Args:
        shares: Shares to correct.
        target_total: Required sum in minor units.

    Returns:
        Corrected shares in the same order.

    Raises:
        InvalidTotal: If target_total is negative.
        EmptyParticipantSet: If there are no shares to correct.
    """
    if target_total < 0:
        raise InvalidTotal(target_total)

    amounts = [share.amount for share in shares]
    diff = target_total - sum(amounts)
    if diff == 0:
        return list(shares)
    if not amounts:
        raise EmptyParticipantSet()

    if diff > 0:
        per_share, extra = divmod(diff, len(amounts))
        for position in range(len(amounts)):
            amounts[position] += per_share + (1 if position < extra else 0)
    else:
        outstanding = -diff
        # Whole passes over the shares still above zero, then a partial pass
        while outstanding > 0:
            eligible = [position for position, amount in enumerate(amounts) if amount > 0]
            step = min(outstanding // len(eligible), min(amounts[position] for position in eligible))
            if step == 0:
                for position in eligible[:outstanding]:
                    amounts[position] -= 1
                break
            for position in eligible:
                amounts[position] -= step
            outstanding -= step * len(eligible)

    logger.debug("Spread rounding difference of %d across %d shares", diff, len(amounts))
    return [Share(share.participant_id, Money(amount)) for share, amount in zip(shares, amounts)]


def allocate_equal(total: Money, participants: Sequence[Participant]) -> list[Share]:
    """Split total equally, giving odd units to the first participants.

    Args:
        total: Amount to split in minor units (zero allowed).
        participants: Participants in tie-break order.

    Returns:
        One share per participant.

    Raises:
        InvalidTotal: If total is negative.
        EmptyParticipantSet: If there are no participants.
    """
    if total < 0:
        raise InvalidTotal(total)
    ids = participant_ids(participants)

    base, remainder = divmod(total, len(ids))
    return [Share(pid, Money(base + (1 if i < remainder else 0))) for i, pid in enumerate(ids)]


def allocate_percentage(
    total: Money,
    participants: Sequence[Participant],
    percentages: Mapping[ParticipantId, BasisPoints],
) -> list[Share]:
    """Split total by percentage, correcting rounding so the sum is exact.

    Args:
        total: Amount to split in minor units.
        participants: Participants in tie-break order.
        percentages: Basis points per participant (missing means 0%).

    Returns:
        One share per participant, adding up to total.

    Raises:
        InvalidTotal: If total is not positive.
        EmptyParticipantSet: If there are no participants.
        UnknownParticipant: If a percentage names someone outside the set.
        NegativePercentage: If a percentage is below zero.
        PercentageOverflow: If percentages add up to more than 100%.
    """
    if total <= 0:
        raise InvalidTotal(total)
    ids = participant_ids(participants)
    _check_known(ids, percentages)

    points = [percentages.get(pid, BasisPoints(0)) for pid in ids]
    for pid, bp in zip(ids, points):
        if bp < 0:
            raise NegativePercentage(pid, bp)
    total_points = sum(points)
    if total_points > FULL_PERCENTAGE:
        raise PercentageOverflow(total_points)

    raw = [Share(pid, Money(round_half_up(Fraction(total * bp, FULL_PERCENTAGE)))) for pid, bp in zip(ids, points)]
    return spread_difference(raw, total)


def allocate_custom(
    total: Money,
    participants: Sequence[Participant],
    amounts: Mapping[ParticipantId, Money],
) -> list[Share]:
    """Take user-entered amounts as a draft allocation.

    Negative amounts are clamped to zero. The result is not required to add
    up to total; see calculate_remaining and distribute_remaining.

    Args:
        total: Expense total in minor units.
        participants: Participants in display order.
        amounts: Entered amount per participant (missing means 0).

    Returns:
        One share per participant.

    Raises:
        InvalidTotal: If total is not positive.
        EmptyParticipantSet: If there are no participants.
        UnknownParticipant: If an amount names someone outside the set.
    """
    if total <= 0:
        raise InvalidTotal(total)
    ids = participant_ids(participants)
    _check_known(ids, amounts)

    return [Share(pid, Money(max(0, amounts.get(pid, 0)))) for pid in ids]


def distribute_remaining(total: Money, shares: Sequence[Share]) -> list[Share]:
    """Spread the unallocated amount over participants whose share is zero.

    Args:
        total: Expense total in minor units.
        shares: Current draft shares.

    Returns:
        Shares adding up to total.

    Raises:
        InvalidTotal: If total is not positive.
        NothingToDistribute: If no share is zero.
        OverAllocated: If shares already exceed total, since zero shares
            cannot give anything back.
    """
    if total <= 0:
        raise InvalidTotal(total)

    remaining = calculate_remaining(total, shares)
    if remaining == 0:
        return list(shares)

    targets = [i for i, share in enumerate(shares) if share.amount == 0]
    if not targets:
        raise NothingToDistribute()
    if remaining < 0:
        raise OverAllocated(total - remaining, total)

    per_head, extra = divmod(remaining, len(targets))
    amounts = [share.amount for share in shares]
    for rank, position in enumerate(targets):
        amounts[position] += per_head + (1 if rank < extra else 0)

    logger.debug("Distributed %d across %d zero-amount shares", remaining, len(targets))
    return [Share(share.participant_id, Money(amount)) for share, amount in zip(shares, amounts)]


def allocate(
    total: Money,
    method: SplitMethod,
    participants: Sequence[Participant],
    percentages: Mapping[ParticipantId, BasisPoints] | None = None,
    amounts: Mapping[ParticipantId, Money] | None = None,
) -> list[Share]:
    """Allocate an expense total with the chosen split method.

    Args:
        total: Expense total in minor units.
        method: Split method.
        participants: Participants in tie-break order.
        percentages: Basis points per participant (percentage method).
        amounts: Entered amounts per participant (custom method).

    Returns:
        One share per participant.

    Raises:
        AllocationError: If the input is invalid for the method.
    """
    if method is SplitMethod.EQUAL:
        return allocate_equal(total, participants)
    elif method is SplitMethod.PERCENTAGE:
        return allocate_percentage(total, participants, percentages or {})
    else:
        return allocate_custom(total, participants, amounts or {})


def check_allocation(shares: Sequence[Share], total: Money) -> None:
    """Check that shares are a valid final allocation of total.

    Args:
        shares: Shares to check.
        total: Expense total in minor units.

    Raises:
        EmptyParticipantSet: If there are no shares.
        DuplicateParticipant: If a participant has two shares.
        NegativeShare: If an amount is below zero.
        OverAllocated: If shares add up to more than total.
        UnderAllocated: If shares add up to less than total.
    """
    if not shares:
        raise EmptyParticipantSet()

    seen: set[ParticipantId] = set()
    for share in shares:
        if share.participant_id in seen:
            raise DuplicateParticipant(share.participant_id)
        seen.add(share.participant_id)
        if share.amount < 0:
            raise NegativeShare(share.participant_id, share.amount)

    allocated = sum(share.amount for share in shares)
    if allocated > total:
        raise OverAllocated(allocated, total)
    if allocated < total:
        raise UnderAllocated(allocated, total)


def validate_split(
    method: SplitMethod,
    total: Money,
    shares: Sequence[Share],
    percentages: Mapping[ParticipantId, BasisPoints] | None = None,
) -> tuple[bool, str | None]:
    """Validate an edited split before it is submitted.

    Args:
        method: Split method in use.
        total: Expense total in minor units.
        shares: Shares as edited.
        percentages: Basis points per participant (percentage method).

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not shares:
        return False, "At least one participant is required"

    if any(share.amount < 0 for share in shares):
        return False, "Amounts can't be negative"

    allocated = sum(share.amount for share in shares)
    if allocated != total:
        return False, f"Split amounts add up to {allocated} but the expense total is {total}"

    if method is SplitMethod.PERCENTAGE:
        total_points = sum((percentages or {}).values())
        if total_points > FULL_PERCENTAGE:
            return False, f"Percentages add up to {total_points / 100:.2f}%, more than 100%"
        if abs(total_points - FULL_PERCENTAGE) > PERCENTAGE_TOLERANCE:
            return False, f"Percentages must add up to 100% (got {total_points / 100:.2f}%)"

    return True, None


def derive_percentages(shares: Sequence[Share], total: Money) -> dict[ParticipantId, BasisPoints]:
    """Express each share as a percentage of total, to 0.01%.

    Args:
        shares: Shares to describe.
        total: Expense total in minor units.

    Returns:
        Dictionary of participant id to basis points (all 0 if total is 0).
    """
    if total <= 0:
        return {share.participant_id: BasisPoints(0) for share in shares}
    return {
        share.participant_id: BasisPoints(round_half_up(Fraction(share.amount * FULL_PERCENTAGE, total)))
        for share in shares
    }
