"""Error taxonomy for the allocation and settlement engine.

AllocationError subclasses describe bad input and are recoverable: the caller
asks for corrected input and tries again. UnbalancedLedger signals that the
records fed to the solver are inconsistent and must abort the settlement.
"""


class FairshareError(Exception):
    """Base class for all fairshare domain errors."""


class AllocationError(FairshareError):
    """Recoverable error in allocation input."""


class InvalidTotal(AllocationError):
    """Total amount is not positive."""

    def __init__(self, total: int) -> None:
        super().__init__(f"Total amount must be positive, got {total}")
        self.total = total


class EmptyParticipantSet(AllocationError):
    """Allocation or netting requested with no participants."""

    def __init__(self) -> None:
        super().__init__("At least one participant is required")


class DuplicateParticipant(AllocationError):
    """Participant id appears more than once in a participant set."""

    def __init__(self, participant_id: str) -> None:
        super().__init__(f"Participant '{participant_id}' appears more than once")
        self.participant_id = participant_id


class PercentageOverflow(AllocationError):
    """Percentages add up to more than 100%."""

    def __init__(self, total_basis_points: int) -> None:
        super().__init__(f"Percentages add up to {total_basis_points / 100:.2f}%, which is more than 100%")
        self.total_basis_points = total_basis_points


class OverAllocated(AllocationError):
    """Shares add up to more than the expense total."""

    def __init__(self, allocated: int, total: int) -> None:
        super().__init__(f"Allocated {allocated} exceeds total {total} by {allocated - total}")
        self.allocated = allocated
        self.total = total


class UnderAllocated(AllocationError):
    """Shares add up to less than the expense total."""

    def __init__(self, allocated: int, total: int) -> None:
        super().__init__(f"Allocated {allocated} is {total - allocated} short of total {total}")
        self.allocated = allocated
        self.total = total


class NegativeShare(AllocationError):
    """A share amount is below zero."""

    def __init__(self, participant_id: str, amount: int) -> None:
        super().__init__(f"Share for '{participant_id}' is negative ({amount})")
        self.participant_id = participant_id
        self.amount = amount


class NegativePercentage(AllocationError):
    """A percentage is below zero."""

    def __init__(self, participant_id: str, basis_points: int) -> None:
        super().__init__(f"Percentage for '{participant_id}' is negative ({basis_points / 100:.2f}%)")
        self.participant_id = participant_id
        self.basis_points = basis_points


class NothingToDistribute(AllocationError):
    """No zero-amount participant is left to absorb the remaining amount."""

    def __init__(self) -> None:
        super().__init__("No participant with a zero amount to distribute the remaining amount to")


class ExpenseAlreadyConfirmed(AllocationError):
    """Expense has already been confirmed; its allocation is fixed."""

    def __init__(self, expense_id: int) -> None:
        super().__init__(f"Expense {expense_id} is already confirmed")
        self.expense_id = expense_id


class UnknownParticipant(AllocationError):
    """Input names a participant outside the participant set."""

    def __init__(self, participant_id: str) -> None:
        super().__init__(f"Unknown participant '{participant_id}'")
        self.participant_id = participant_id


class UnbalancedLedger(FairshareError):
    """Net balances do not add up to zero."""

    def __init__(self, imbalance: int) -> None:
        super().__init__(f"Ledger is unbalanced by {imbalance}; the expense records are inconsistent")
        self.imbalance = imbalance
