"""Domain models and types for fairshare.

This package contains the functional core:
- Pure functions with no side effects
- No I/O operations
- Easy to test
- Business logic separated from infrastructure
"""

from fairshare.domain.models import (
    Balance,
    BasisPoints,
    Expense,
    ExpenseId,
    Money,
    Participant,
    ParticipantId,
    SettlementTransfer,
    Share,
    SplitMethod,
)

__all__ = [
    "Balance",
    "BasisPoints",
    "Expense",
    "ExpenseId",
    "Money",
    "Participant",
    "ParticipantId",
    "SettlementTransfer",
    "Share",
    "SplitMethod",
]
