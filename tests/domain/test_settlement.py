"""Tests for fairshare.domain.settlement pure functions."""

import pytest

from fairshare.domain.errors import EmptyParticipantSet, UnbalancedLedger
from fairshare.domain.expenses import confirm_expense, new_expense
from fairshare.domain.models import (
    Balance,
    Expense,
    ExpenseId,
    Money,
    Participant,
    ParticipantId,
    Share,
    SettlementTransfer,
    SplitMethod,
)
from fairshare.domain.settlement import (
    apply_transfers,
    compute_balances,
    net_settle,
    participant_position,
    settle_up,
)

ALICE = ParticipantId("alice")
BOB = ParticipantId("bob")
CAROL = ParticipantId("carol")
DAVE = ParticipantId("dave")

GROUP = [Participant(id=ALICE), Participant(id=BOB), Participant(id=CAROL)]


def confirmed(expense_id: int, payer: ParticipantId, shares: dict[ParticipantId, int]) -> Expense:
    total = Money(sum(shares.values()))
    expense = new_expense(ExpenseId(expense_id), total, payer, "2025-01-15")
    return confirm_expense(
        expense,
        [Share(pid, Money(amount)) for pid, amount in shares.items()],
        SplitMethod.CUSTOM,
    )


def balances_from_nets(nets: dict[ParticipantId, int]) -> dict[ParticipantId, Balance]:
    return {
        pid: Balance(participant_id=pid, paid=Money(max(net, 0)), owed=Money(max(-net, 0)), net=Money(net))
        for pid, net in nets.items()
    }


class TestComputeBalances:
    """Tests for compute_balances."""

    def test_single_expense(self) -> None:
        """Should credit the payer and debit everyone's share."""
        expense = confirmed(1, ALICE, {ALICE: 100, BOB: 100, CAROL: 100})

        balances = compute_balances([expense], GROUP)

        assert balances[ALICE] == Balance(ALICE, Money(300), Money(100), Money(200))
        assert balances[BOB].net == -100
        assert balances[CAROL].net == -100
        assert list(balances) == [ALICE, BOB, CAROL]

    def test_nets_add_up_to_zero(self) -> None:
        """Should conserve money across several expenses."""
        expenses = [
            confirmed(1, ALICE, {ALICE: 34, BOB: 33, CAROL: 33}),
            confirmed(2, BOB, {ALICE: 250, BOB: 0, CAROL: 750}),
            confirmed(3, CAROL, {BOB: 17}),
        ]

        balances = compute_balances(expenses, GROUP)

        assert sum(balance.net for balance in balances.values()) == 0
        assert balances[BOB].paid == 1000

    def test_drafts_ignored(self) -> None:
        """Should skip expenses that are not confirmed."""
        expenses = [
            confirmed(1, ALICE, {ALICE: 50, BOB: 50}),
            new_expense(ExpenseId(2), Money(999), BOB, "2025-01-16"),
        ]

        balances = compute_balances(expenses, GROUP)

        assert balances[BOB].paid == 0
        assert balances[BOB].net == -50

    def test_duplicate_expense_counted_once(self) -> None:
        """Should count a repeated expense id only once."""
        expense = confirmed(1, ALICE, {ALICE: 50, BOB: 50})

        balances = compute_balances([expense, expense], GROUP)

        assert balances[ALICE].net == 50
        assert balances[BOB].net == -50

    def test_participant_without_expenses(self) -> None:
        """Should report a zero balance for someone not involved."""
        balances = compute_balances([confirmed(1, ALICE, {ALICE: 50, BOB: 50})], GROUP)

        assert balances[CAROL] == Balance(CAROL, Money(0), Money(0), Money(0))

    def test_unknown_payer_raises(self) -> None:
        """Should refuse to settle when a payer is outside the group."""
        expense = confirmed(1, DAVE, {ALICE: 50, BOB: 50})

        with pytest.raises(UnbalancedLedger):
            compute_balances([expense], GROUP)

    def test_empty_participants_raises(self) -> None:
        """Should reject an empty participant set."""
        with pytest.raises(EmptyParticipantSet):
            compute_balances([], [])


class TestNetSettle:
    """Tests for net_settle."""

    def test_two_debtors_one_creditor(self) -> None:
        """Should have each debtor pay the creditor."""
        transfers = net_settle(balances_from_nets({ALICE: 200, BOB: -100, CAROL: -100}))

        assert transfers == [
            SettlementTransfer(BOB, ALICE, Money(100)),
            SettlementTransfer(CAROL, ALICE, Money(100)),
        ]

    def test_largest_first_with_ties_in_order(self) -> None:
        """Should match largest debts to largest credits, ties in input order."""
        transfers = net_settle(balances_from_nets({ALICE: -50, BOB: 30, CAROL: -50, DAVE: 70}))

        assert transfers == [
            SettlementTransfer(ALICE, DAVE, Money(50)),
            SettlementTransfer(CAROL, DAVE, Money(20)),
            SettlementTransfer(CAROL, BOB, Money(30)),
        ]

    def test_transfer_count_bound(self) -> None:
        """Should produce at most debtors + creditors - 1 transfers."""
        nets = {ALICE: 70, BOB: -25, CAROL: -25, DAVE: -20}

        transfers = net_settle(balances_from_nets(nets))

        assert 0 < len(transfers) <= 3
        assert all(transfer.amount > 0 for transfer in transfers)
        assert all(transfer.from_participant_id != transfer.to_participant_id for transfer in transfers)

    def test_deterministic(self) -> None:
        """Should give the same transfers for the same balances."""
        balances = balances_from_nets({ALICE: -10, BOB: -10, CAROL: 10, DAVE: 10})

        assert net_settle(balances) == net_settle(balances)

    def test_everyone_settled(self) -> None:
        """Should return no transfers when every net is zero."""
        assert net_settle(balances_from_nets({ALICE: 0, BOB: 0})) == []

    def test_unbalanced_raises(self) -> None:
        """Should refuse nets that don't add up to zero."""
        with pytest.raises(UnbalancedLedger):
            net_settle(balances_from_nets({ALICE: 100, BOB: -90}))

    def test_empty_raises(self) -> None:
        """Should reject an empty balance set."""
        with pytest.raises(EmptyParticipantSet):
            net_settle({})


class TestApplyTransfers:
    """Tests for apply_transfers."""

    def test_transfers_clear_every_balance(self) -> None:
        """Should leave every participant at zero."""
        balances = balances_from_nets({ALICE: -50, BOB: 30, CAROL: -50, DAVE: 70})

        residual = apply_transfers(balances, net_settle(balances))

        assert residual == {ALICE: 0, BOB: 0, CAROL: 0, DAVE: 0}


class TestSettleUp:
    """Tests for settle_up."""

    def test_returns_balances_and_transfers(self) -> None:
        """Should compute the full plan from confirmed expenses."""
        expenses = [confirmed(1, ALICE, {ALICE: 100, BOB: 100, CAROL: 100})]

        plan = settle_up(expenses, GROUP)

        assert plan.balances[ALICE].net == 200
        assert plan.transfers == [
            SettlementTransfer(BOB, ALICE, Money(100)),
            SettlementTransfer(CAROL, ALICE, Money(100)),
        ]

    def test_small_nets_settle(self) -> None:
        """Should settle balances of a few minor units exactly."""
        expenses = [confirmed(1, ALICE, {BOB: 7, CAROL: 3})]

        plan = settle_up(expenses, GROUP)

        assert [balance.net for balance in plan.balances.values()] == [10, -7, -3]
        assert plan.transfers == [
            SettlementTransfer(BOB, ALICE, Money(7)),
            SettlementTransfer(CAROL, ALICE, Money(3)),
        ]

    def test_single_unit_nets_kept(self) -> None:
        """Should not collapse one-unit balances to zero."""
        expenses = [confirmed(1, ALICE, {ALICE: 1, BOB: 1, CAROL: 1})]

        plan = settle_up(expenses, GROUP)

        assert plan.transfers == [
            SettlementTransfer(BOB, ALICE, Money(1)),
            SettlementTransfer(CAROL, ALICE, Money(1)),
        ]

    def test_unbalanced_allocation_raises(self) -> None:
        """Should abort when shares mention someone outside the group."""
        expense = confirmed(1, ALICE, {ALICE: 50, DAVE: 50})

        with pytest.raises(UnbalancedLedger):
            settle_up([expense], GROUP)


class TestParticipantPosition:
    """Tests for participant_position."""

    def test_payer_and_receiver_views(self) -> None:
        """Should show positive amounts to pay and negative amounts to receive."""
        transfers = net_settle(balances_from_nets({ALICE: -50, BOB: 30, CAROL: -50, DAVE: 70}))

        assert participant_position(transfers, CAROL) == {DAVE: 20, BOB: 30}
        assert participant_position(transfers, DAVE) == {ALICE: -50, CAROL: -20}

    def test_uninvolved_participant(self) -> None:
        """Should be empty for someone with no transfers."""
        transfers = [SettlementTransfer(BOB, ALICE, Money(100))]

        assert participant_position(transfers, CAROL) == {}
