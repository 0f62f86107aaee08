"""Domain type definitions for fairshare.

These NewTypes provide semantic clarity and help with type checking:
- Money: Amount in minor currency units (pence, cents)
- BasisPoints: Percentage in hundredths of a percent (10000 == 100%)
- ParticipantId: Opaque participant handle
- ExpenseId: Expense identifier
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType

# Money amounts are always minor units to avoid floating point errors
Money = NewType("Money", int)

# 33.33% is stored as 3333
BasisPoints = NewType("BasisPoints", int)

FULL_PERCENTAGE = BasisPoints(10000)

ParticipantId = NewType("ParticipantId", str)

ExpenseId = NewType("ExpenseId", int)


class SplitMethod(str, Enum):
    """How an expense total is divided among participants."""

    EQUAL = "equal"
    PERCENTAGE = "percentage"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Participant:
    """Immutable participant identity."""

    id: ParticipantId
    display_name: str = ""

    @property
    def label(self) -> str:
        return self.display_name or str(self.id)


@dataclass(frozen=True)
class Share:
    """One participant's part of an expense."""

    participant_id: ParticipantId
    amount: Money


@dataclass(frozen=True)
class Expense:
    """Immutable expense record.

    An expense starts as a draft (confirmed=False, empty allocation) and is
    confirmed exactly once, fixing its allocation.
    """

    id: ExpenseId
    total_amount: Money
    payer_id: ParticipantId
    date: str
    confirmed: bool = False
    allocation: tuple[Share, ...] = ()
    description: str = ""
    split_method: SplitMethod | None = None


@dataclass(frozen=True)
class Balance:
    """Immutable net position of a participant over a set of expenses."""

    participant_id: ParticipantId
    paid: Money
    owed: Money
    net: Money  # positive is owed money, negative owes money


@dataclass(frozen=True)
class SettlementTransfer:
    """Immutable payment instruction: debtor pays creditor."""

    from_participant_id: ParticipantId
    to_participant_id: ParticipantId
    amount: Money
