"""Database store layer - provides persistence for the application.

This module re-exports all public database functions for easy importing.
Only participants and expenses are stored; settlement transfers are always
recomputed from them.
"""

from fairshare.store.queries import (
    add_participant,
    get_expenses,
    get_expenses_by_id,
    get_participants,
    insert_expense,
    save_confirmed_expenses,
)
from fairshare.store.schema import database_exists, get_db_path, init_database

__all__ = [
    # Schema
    "database_exists",
    "get_db_path",
    "init_database",
    # Queries
    "add_participant",
    "get_expenses",
    "get_expenses_by_id",
    "get_participants",
    "insert_expense",
    "save_confirmed_expenses",
]
