"""SQLite-backed history store for lists, purchases and prices."""

from .history import HistoryStore, SQLiteHistoryStore
from .schema import ensure_schema

__all__ = [
    "HistoryStore",
    "SQLiteHistoryStore",
    "ensure_schema",
]
