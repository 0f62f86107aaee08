"""Database query functions."""

import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from fairshare.domain.errors import ExpenseAlreadyConfirmed
from fairshare.domain.models import (
    Expense,
    ExpenseId,
    Money,
    Participant,
    ParticipantId,
    Share,
    SplitMethod,
)
from fairshare.store.schema import get_db_path

logger = logging.getLogger(__name__)


def _connect(db_path: Path | None = None) -> sqlite3.Connection:
    """Create a database connection with row factory.

    Args:
        db_path: Path to the database file. If None, uses default location.

    Returns:
        Database connection with row_factory configured.
    """
    if db_path is None:
        db_path = get_db_path()
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def _row_to_expense(row: sqlite3.Row, shares: list[Share]) -> Expense:
    return Expense(
        id=ExpenseId(row["id"]),
        total_amount=Money(row["amount"]),
        payer_id=ParticipantId(row["payer"]),
        date=row["date"],
        confirmed=bool(row["confirmed"]),
        allocation=tuple(shares),
        description=row["description"],
        split_method=SplitMethod(row["split_method"]) if row["split_method"] else None,
    )


def add_participant(handle: str, display_name: str = "", db_path: Path | None = None) -> bool:
    """Add a participant if the handle is not taken.

    Args:
        handle: Unique participant handle.
        display_name: Name to show instead of the handle.
        db_path: Path to the database file. If None, uses default location.

    Returns:
        True if the participant was added, False if the handle already exists.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        try:
            cursor.execute("SELECT id FROM participants WHERE handle = ?", (handle,))
            if cursor.fetchone():
                return False

            cursor.execute(
                "INSERT INTO participants (handle, display_name) VALUES (?, ?)",
                (handle, display_name),
            )
            conn.commit()
            logger.info("Added participant %s", handle)
            return True
        except sqlite3.Error:
            conn.rollback()
            raise


def get_participants(db_path: Path | None = None) -> list[Participant]:
    """Get all participants in the order they were added.

    Args:
        db_path: Path to the database file. If None, uses default location.

    Returns:
        List of Participant objects.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT handle, display_name FROM participants ORDER BY id ASC")
        return [Participant(id=ParticipantId(row["handle"]), display_name=row["display_name"]) for row in cursor]


def insert_expense(
    date: str,
    description: str,
    amount: Money,
    payer: ParticipantId,
    db_path: Path | None = None,
) -> ExpenseId:
    """Insert a draft expense.

    Args:
        date: Expense date (YYYY-MM-DD).
        description: Expense description.
        amount: Expense total in minor units.
        payer: Handle of the participant who paid.
        db_path: Path to the database file. If None, uses default location.

    Returns:
        ID of the new expense.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        try:
            cursor.execute(
                "INSERT INTO expenses (date, description, amount, payer) VALUES (?, ?, ?, ?)",
                (date, description, amount, payer),
            )
            conn.commit()
            expense_id = ExpenseId(cursor.lastrowid or 0)
            logger.info("Inserted draft expense %s", expense_id)
            return expense_id
        except sqlite3.Error:
            conn.rollback()
            raise


def _load_shares(cursor: sqlite3.Cursor, expense_ids: list[int]) -> dict[int, list[Share]]:
    shares: dict[int, list[Share]] = {expense_id: [] for expense_id in expense_ids}
    if not expense_ids:
        return shares

    placeholders = ", ".join("?" for _ in expense_ids)
    cursor.execute(
        f"SELECT expense_id, participant, amount FROM allocations "
        f"WHERE expense_id IN ({placeholders}) ORDER BY expense_id, position",
        expense_ids,
    )
    for row in cursor.fetchall():
        shares[row["expense_id"]].append(Share(ParticipantId(row["participant"]), Money(row["amount"])))
    return shares


def get_expenses(
    db_path: Path | None = None,
    confirmed: bool | None = None,
    since_date: str | None = None,
    until_date: str | None = None,
) -> list[Expense]:
    """Get expenses with their allocations.

    Args:
        db_path: Path to the database file. If None, uses default location.
        confirmed: If set, only confirmed (True) or draft (False) expenses.
        since_date: Optional start date (YYYY-MM-DD) for filtering.
        until_date: Optional end date (YYYY-MM-DD, exclusive) for filtering.

    Returns:
        List of Expense objects ordered by date then id.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        query = "SELECT id, date, description, amount, payer, confirmed, split_method FROM expenses WHERE 1 = 1"
        params: list[Any] = []

        if confirmed is not None:
            query += " AND confirmed = ?"
            params.append(1 if confirmed else 0)
        if since_date:
            query += " AND date >= ?"
            params.append(since_date)
        if until_date:
            query += " AND date < ?"
            params.append(until_date)

        query += " ORDER BY date ASC, id ASC"

        cursor.execute(query, params)
        rows = cursor.fetchall()
        shares = _load_shares(cursor, [row["id"] for row in rows])
        return [_row_to_expense(row, shares[row["id"]]) for row in rows]


def get_expenses_by_id(expense_ids: Sequence[ExpenseId], db_path: Path | None = None) -> list[Expense]:
    """Get specific expenses, in the order requested.

    Args:
        expense_ids: Expense IDs to fetch.
        db_path: Path to the database file. If None, uses default location.

    Returns:
        List of Expense objects; unknown IDs are left out.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    if not expense_ids:
        return []

    with _connect(db_path) as conn:
        cursor = conn.cursor()
        placeholders = ", ".join("?" for _ in expense_ids)
        cursor.execute(
            f"SELECT id, date, description, amount, payer, confirmed, split_method FROM expenses "
            f"WHERE id IN ({placeholders})",
            list(expense_ids),
        )
        rows = {row["id"]: row for row in cursor.fetchall()}
        shares = _load_shares(cursor, list(rows))
        return [_row_to_expense(rows[eid], shares[eid]) for eid in expense_ids if eid in rows]


def save_confirmed_expenses(
    expenses: Sequence[Expense],
    batch_id: str | None = None,
    db_path: Path | None = None,
) -> None:
    """Store confirmed expenses and their allocations in one transaction.

    Args:
        expenses: Expenses confirmed by the domain layer.
        batch_id: Identifier shared by expenses confirmed together.
        db_path: Path to the database file. If None, uses default location.

    Raises:
        ExpenseAlreadyConfirmed: If any expense was confirmed in the meantime
            (nothing is written).
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        try:
            for expense in expenses:
                cursor.execute(
                    "UPDATE expenses SET confirmed = 1, split_method = ?, batch_id = ?, "
                    "confirmed_at = datetime('now') WHERE id = ? AND confirmed = 0",
                    (expense.split_method.value if expense.split_method else None, batch_id, expense.id),
                )
                if cursor.rowcount == 0:
                    raise ExpenseAlreadyConfirmed(expense.id)

                cursor.executemany(
                    "INSERT INTO allocations (expense_id, participant, amount, position) VALUES (?, ?, ?, ?)",
                    [
                        (expense.id, share.participant_id, share.amount, position)
                        for position, share in enumerate(expense.allocation)
                    ],
                )
            conn.commit()
            logger.info("Confirmed %d expense(s)%s", len(expenses), f" in batch {batch_id}" if batch_id else "")
        except (sqlite3.Error, ExpenseAlreadyConfirmed):
            conn.rollback()
            raise
