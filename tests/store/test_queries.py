"""Tests for fairshare.store against a temporary database."""

import sqlite3
from pathlib import Path

import pytest

from fairshare.domain.errors import ExpenseAlreadyConfirmed
from fairshare.domain.expenses import confirm_expense
from fairshare.domain.models import ExpenseId, Money, ParticipantId, Share, SplitMethod
from fairshare.store.queries import (
    add_participant,
    get_expenses,
    get_expenses_by_id,
    get_participants,
    insert_expense,
    save_confirmed_expenses,
)
from fairshare.store.schema import database_exists, init_database

ALICE = ParticipantId("alice")
BOB = ParticipantId("bob")


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "fairshare.db"
    init_database(path)
    return path


class TestSchema:
    """Tests for init_database."""

    def test_creates_database(self, tmp_path: Path) -> None:
        """Should create the file and parent directories."""
        path = tmp_path / "nested" / "fairshare.db"

        init_database(path)

        assert database_exists(path)

    def test_idempotent(self, db_path: Path) -> None:
        """Should keep data when run again."""
        add_participant("alice", db_path=db_path)

        init_database(db_path)

        assert [p.id for p in get_participants(db_path)] == [ALICE]

    def test_expense_columns(self, db_path: Path) -> None:
        """Should create the batch and timestamp columns."""
        with sqlite3.connect(db_path) as conn:
            columns = {row[1] for row in conn.execute("PRAGMA table_info(expenses)")}

        assert {"batch_id", "created_at", "confirmed_at"} <= columns


class TestParticipants:
    """Tests for participant queries."""

    def test_add_and_list_in_order(self, db_path: Path) -> None:
        """Should list participants in the order they were added."""
        assert add_participant("bob", "Bob", db_path) is True
        assert add_participant("alice", "", db_path) is True

        participants = get_participants(db_path)

        assert [p.id for p in participants] == [BOB, ALICE]
        assert participants[0].label == "Bob"
        assert participants[1].label == "alice"

    def test_duplicate_handle(self, db_path: Path) -> None:
        """Should not add the same handle twice."""
        add_participant("alice", db_path=db_path)

        assert add_participant("alice", "Other", db_path) is False
        assert len(get_participants(db_path)) == 1


class TestExpenses:
    """Tests for expense queries."""

    def test_insert_draft(self, db_path: Path) -> None:
        """Should store a draft without allocation."""
        expense_id = insert_expense("2025-01-15", "Pizza", Money(3000), ALICE, db_path)

        (expense,) = get_expenses(db_path)

        assert expense.id == expense_id
        assert expense.total_amount == 3000
        assert expense.payer_id == ALICE
        assert expense.confirmed is False
        assert expense.allocation == ()

    def test_filters(self, db_path: Path) -> None:
        """Should filter by status and date range."""
        first = insert_expense("2025-01-15", "January", Money(100), ALICE, db_path)
        second = insert_expense("2025-02-03", "February", Money(200), BOB, db_path)
        draft = get_expenses_by_id([first], db_path)[0]
        confirmed = confirm_expense(draft, [Share(ALICE, Money(100))], SplitMethod.CUSTOM)
        save_confirmed_expenses([confirmed], db_path=db_path)

        assert [e.id for e in get_expenses(db_path, confirmed=True)] == [first]
        assert [e.id for e in get_expenses(db_path, confirmed=False)] == [second]
        assert [e.id for e in get_expenses(db_path, since_date="2025-02-01", until_date="2025-03-01")] == [second]

    def test_get_by_id_keeps_requested_order(self, db_path: Path) -> None:
        """Should return expenses in request order and skip unknown ids."""
        first = insert_expense("2025-01-15", "One", Money(100), ALICE, db_path)
        second = insert_expense("2025-01-16", "Two", Money(200), ALICE, db_path)

        expenses = get_expenses_by_id([second, ExpenseId(999), first], db_path)

        assert [e.id for e in expenses] == [second, first]

    def test_amount_must_be_positive(self, db_path: Path) -> None:
        """Should refuse a zero amount at the database level."""
        with pytest.raises(sqlite3.IntegrityError):
            insert_expense("2025-01-15", "Nothing", Money(0), ALICE, db_path)


class TestSaveConfirmedExpenses:
    """Tests for save_confirmed_expenses."""

    def test_persists_allocation_in_order(self, db_path: Path) -> None:
        """Should store the allocation and keep its order."""
        expense_id = insert_expense("2025-01-15", "Pizza", Money(100), ALICE, db_path)
        draft = get_expenses_by_id([expense_id], db_path)[0]
        shares = [Share(BOB, Money(34)), Share(ALICE, Money(66))]

        save_confirmed_expenses([confirm_expense(draft, shares, SplitMethod.CUSTOM)], db_path=db_path)

        (stored,) = get_expenses(db_path, confirmed=True)
        assert stored.allocation == tuple(shares)
        assert stored.split_method is SplitMethod.CUSTOM

    def test_batch_id_stored(self, db_path: Path) -> None:
        """Should tag expenses confirmed together with the batch id."""
        ids = [
            insert_expense("2025-01-15", "One", Money(100), ALICE, db_path),
            insert_expense("2025-01-16", "Two", Money(100), ALICE, db_path),
        ]
        confirmed = [
            confirm_expense(draft, [Share(ALICE, Money(100))], SplitMethod.EQUAL)
            for draft in get_expenses_by_id(ids, db_path)
        ]

        save_confirmed_expenses(confirmed, batch_id="batch-1", db_path=db_path)

        with sqlite3.connect(db_path) as conn:
            batch_ids = {row[0] for row in conn.execute("SELECT batch_id FROM expenses")}
        assert batch_ids == {"batch-1"}

    def test_already_confirmed_rolls_back(self, db_path: Path) -> None:
        """Should write nothing when one expense in the batch is already confirmed."""
        first = insert_expense("2025-01-15", "One", Money(100), ALICE, db_path)
        second = insert_expense("2025-01-16", "Two", Money(100), ALICE, db_path)
        drafts = get_expenses_by_id([first, second], db_path)
        confirmed = [confirm_expense(d, [Share(ALICE, Money(100))], SplitMethod.CUSTOM) for d in drafts]
        save_confirmed_expenses([confirmed[0]], db_path=db_path)

        with pytest.raises(ExpenseAlreadyConfirmed):
            save_confirmed_expenses([confirmed[1], confirmed[0]], db_path=db_path)

        assert [e.id for e in get_expenses(db_path, confirmed=False)] == [second]
        with sqlite3.connect(db_path) as conn:
            (count,) = conn.execute("SELECT COUNT(*) FROM allocations").fetchone()
        assert count == 1
