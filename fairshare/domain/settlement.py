"""Pure functions for net balances and settlement transfers.

This module contains the functional core for settling up:
- No I/O operations (no database, no console, no files)
- No side effects
- Pure data transformations
- Easy to test

Transfers are a projection of the confirmed expenses and are recomputed on
demand. The matcher is greedy: debtors ordered by largest debt pay creditors
ordered by largest credit, ties kept in participant order. It produces at
most (debtors + creditors - 1) transfers, not necessarily the fewest.

All monetary amounts are in minor units (Money type).
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from fairshare.domain.allocation import participant_ids
from fairshare.domain.errors import EmptyParticipantSet, UnbalancedLedger
from fairshare.domain.models import (
    Balance,
    Expense,
    ExpenseId,
    Money,
    Participant,
    ParticipantId,
    SettlementTransfer,
)

logger = logging.getLogger(__name__)

# Nets smaller than this (in minor units) count as settled
BALANCE_TOLERANCE = Money(1)


@dataclass(frozen=True)
class SettlementPlan:
    """Immutable result of settling a set of expenses."""

    balances: dict[ParticipantId, Balance]
    transfers: list[SettlementTransfer]


def compute_balances(
    expenses: Iterable[Expense],
    participants: Sequence[Participant],
) -> dict[ParticipantId, Balance]:
    """Compute paid, owed and net amounts per participant.

    Draft expenses are ignored and an expense id is only counted once.

    Args:
        expenses: Expenses in scope (drafts allowed, they are skipped).
        participants: Participant universe, in display order.

    Returns:
        Dictionary of participant id to Balance, in participant order.

    Raises:
        EmptyParticipantSet: If there are no participants.
        UnbalancedLedger: If the nets do not add up to zero.
    """
    ids = participant_ids(participants)
    paid: dict[ParticipantId, int] = {pid: 0 for pid in ids}
    owed: dict[ParticipantId, int] = {pid: 0 for pid in ids}

    counted: set[ExpenseId] = set()
    for expense in expenses:
        if not expense.confirmed:
            continue
        if expense.id in counted:
            logger.warning("Skipping duplicate expense %s", expense.id)
            continue
        counted.add(expense.id)

        if expense.payer_id in paid:
            paid[expense.payer_id] += expense.total_amount
        for share in expense.allocation:
            if share.participant_id in owed:
                owed[share.participant_id] += share.amount

    imbalance = sum(paid.values()) - sum(owed.values())
    if imbalance != 0:
        raise UnbalancedLedger(imbalance)

    balances: dict[ParticipantId, Balance] = {}
    for pid in ids:
        net = paid[pid] - owed[pid]
        if abs(net) < BALANCE_TOLERANCE:
            net = 0
        balances[pid] = Balance(participant_id=pid, paid=Money(paid[pid]), owed=Money(owed[pid]), net=Money(net))

    logger.debug("Computed balances over %d expenses for %d participants", len(counted), len(ids))
    return balances


def net_settle(balances: Mapping[ParticipantId, Balance]) -> list[SettlementTransfer]:
    """Turn net balances into debtor-to-creditor transfers.

    Args:
        balances: Balances in participant order (the tie-break order).

    Returns:
        Transfers in the order they were matched.

    Raises:
        EmptyParticipantSet: If balances is empty.
        UnbalancedLedger: If the nets do not add up to zero.
    """
    if not balances:
        raise EmptyParticipantSet()

    imbalance = sum(balance.net for balance in balances.values())
    if imbalance != 0:
        raise UnbalancedLedger(imbalance)

    # sorted() is stable, so equal nets stay in participant order
    creditors = sorted((b for b in balances.values() if b.net > 0), key=lambda b: -b.net)
    debtors = sorted((b for b in balances.values() if b.net < 0), key=lambda b: b.net)

    credit = [[creditor.participant_id, int(creditor.net)] for creditor in creditors]
    transfers: list[SettlementTransfer] = []
    j = 0
    for debtor in debtors:
        remaining = -debtor.net
        while remaining > 0 and j < len(credit):
            creditor_id, available = credit[j]
            amount = min(remaining, available)
            transfers.append(
                SettlementTransfer(
                    from_participant_id=debtor.participant_id,
                    to_participant_id=creditor_id,
                    amount=Money(amount),
                )
            )
            logger.debug("%s pays %s %d", debtor.participant_id, creditor_id, amount)
            remaining -= amount
            credit[j][1] = available - amount
            if credit[j][1] == 0:
                j += 1

    return transfers


def apply_transfers(
    balances: Mapping[ParticipantId, Balance],
    transfers: Iterable[SettlementTransfer],
) -> dict[ParticipantId, Money]:
    """Compute the nets left after every transfer has been paid.

    Args:
        balances: Balances before settling.
        transfers: Transfers to apply.

    Returns:
        Dictionary of participant id to residual net.
    """
    residual = {pid: int(balance.net) for pid, balance in balances.items()}
    for transfer in transfers:
        residual[transfer.from_participant_id] = residual.get(transfer.from_participant_id, 0) + transfer.amount
        residual[transfer.to_participant_id] = residual.get(transfer.to_participant_id, 0) - transfer.amount
    return {pid: Money(net) for pid, net in residual.items()}


def settle_up(
    expenses: Iterable[Expense],
    participants: Sequence[Participant],
) -> SettlementPlan:
    """Compute balances and the transfers that settle them.

    Args:
        expenses: Expenses in scope.
        participants: Participant universe, in display order.

    Returns:
        SettlementPlan with balances and transfers.

    Raises:
        EmptyParticipantSet: If there are no participants.
        UnbalancedLedger: If the records are inconsistent or the transfers
            would leave anyone unsettled.
    """
    balances = compute_balances(expenses, participants)
    transfers = net_settle(balances)

    residual = apply_transfers(balances, transfers)
    unsettled = sum(abs(net) for net in residual.values())
    if unsettled != 0:
        raise UnbalancedLedger(unsettled)

    return SettlementPlan(balances=balances, transfers=transfers)


def participant_position(
    transfers: Iterable[SettlementTransfer],
    participant_id: ParticipantId,
) -> dict[ParticipantId, Money]:
    """Summarise the transfers one participant is part of.

    Args:
        transfers: Transfers from net_settle.
        participant_id: Participant to summarise.

    Returns:
        Dictionary of counterparty id to amount: positive when this
        participant pays the counterparty, negative when the counterparty
        pays this participant.
    """
    position: dict[ParticipantId, int] = {}
    for transfer in transfers:
        if transfer.from_participant_id == participant_id:
            counterparty = transfer.to_participant_id
            position[counterparty] = position.get(counterparty, 0) + transfer.amount
        elif transfer.to_participant_id == participant_id:
            counterparty = transfer.from_participant_id
            position[counterparty] = position.get(counterparty, 0) - transfer.amount
    return {pid: Money(amount) for pid, amount in position.items()}
