"""Read access to shopping lists, purchase history and price history."""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import StoreUnavailable
from ..models import (
    DEFAULT_UNIT,
    ListItem,
    PriceRecord,
    PurchaseRecord,
    ShoppingList,
)
from .schema import ensure_schema

if TYPE_CHECKING:
    from ..models import ProcessedReceipt

logger = logging.getLogger(__name__)


class HistoryStore(ABC):
    """Read-only view over a user's lists and purchase/price history.

    Every query returns newest records first. An empty result means "no rows";
    storage failures raise StoreUnavailable.
    """

    @abstractmethod
    def recent_lists(self, user_id: str, limit: int = 5) -> list[ShoppingList]:
        ...

    @abstractmethod
    def list_name(self, list_id: str) -> str | None:
        ...

    @abstractmethod
    def list_items(self, list_id: str) -> list[ListItem]:
        """Non-deleted items of a list, unchecked first."""
        ...

    @abstractmethod
    def purchase_history(
        self, user_id: str, limit: int = 50
    ) -> list[PurchaseRecord]:
        ...

    @abstractmethod
    def price_history(
        self, user_id: str, limit: int = 50, item_name: str | None = None
    ) -> list[PriceRecord]:
        """Recent price records, optionally narrowed to names containing item_name."""
        ...

    @abstractmethod
    def record_receipt(self, user_id: str, receipt: ProcessedReceipt) -> int:
        """Append one purchase row and one unit-price row per receipt item."""
        ...


def _decimal(value) -> Decimal | None:
    if value is None or value == "":
        return None
    return Decimal(str(value))


class SQLiteHistoryStore(HistoryStore):
    """HistoryStore backed by a local SQLite file.

    Each call opens its own connection so reads can run in worker threads.
    """

    def __init__(self, db_path: str | Path = "~/.config/comprai/history.db") -> None:
        self._db_path = db_path
        self._guard(lambda: ensure_schema(self._db_path).close())

    def _guard(self, fn):
        try:
            return fn()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"History store error: {e}") from e
        except (ValueError, InvalidOperation) as e:
            # Rows that do not map back to records are a storage fault too
            raise StoreUnavailable(f"History store returned malformed data: {e}") from e

    def _query(self, sql: str, params: tuple, to_record) -> list:
        """Run a read and map each row inside the store error boundary."""

        def run() -> list:
            conn = ensure_schema(self._db_path)
            try:
                rows = conn.execute(sql, params).fetchall()
                return [to_record(r) for r in rows]
            finally:
                conn.close()

        return self._guard(run)

    def recent_lists(self, user_id: str, limit: int = 5) -> list[ShoppingList]:
        return self._query(
            """SELECT id, name, created_at, updated_at FROM shopping_lists
               WHERE user_id = ?
               ORDER BY updated_at DESC, rowid DESC
               LIMIT ?""",
            (user_id, limit),
            lambda r: ShoppingList(
                id=r["id"],
                name=r["name"],
                created_at=datetime.fromisoformat(r["created_at"]),
                updated_at=datetime.fromisoformat(r["updated_at"]),
            ),
        )

    def list_name(self, list_id: str) -> str | None:
        names = self._query(
            "SELECT name FROM shopping_lists WHERE id = ?",
            (list_id,),
            lambda r: r["name"],
        )
        return names[0] if names else None

    def list_items(self, list_id: str) -> list[ListItem]:
        return self._query(
            """SELECT name, quantity, unit, category, checked FROM shopping_items
               WHERE list_id = ? AND deleted = 0
               ORDER BY checked ASC, id ASC""",
            (list_id,),
            lambda r: ListItem(
                name=r["name"],
                quantity=_decimal(r["quantity"]) or Decimal("1"),
                unit=r["unit"] or DEFAULT_UNIT,
                category=r["category"],
                checked=bool(r["checked"]),
            ),
        )

    def purchase_history(
        self, user_id: str, limit: int = 50
    ) -> list[PurchaseRecord]:
        return self._query(
            """SELECT item_name, category, quantity, unit, purchased_at
               FROM purchase_history
               WHERE user_id = ?
               ORDER BY purchased_at DESC, id DESC
               LIMIT ?""",
            (user_id, limit),
            lambda r: PurchaseRecord(
                item_name=r["item_name"],
                category=r["category"],
                quantity=_decimal(r["quantity"]) or Decimal("1"),
                unit=r["unit"] or DEFAULT_UNIT,
                purchased_at=datetime.fromisoformat(r["purchased_at"]),
            ),
        )

    def price_history(
        self, user_id: str, limit: int = 50, item_name: str | None = None
    ) -> list[PriceRecord]:
        sql = "SELECT item_name, price, store, purchased_at FROM price_history WHERE user_id = ?"
        params: tuple = (user_id,)
        if item_name:
            # LIKE is case-insensitive for ASCII in SQLite
            sql += " AND item_name LIKE ?"
            params += (f"%{item_name}%",)
        sql += " ORDER BY purchased_at DESC, id DESC LIMIT ?"
        params += (limit,)

        return self._query(
            sql,
            params,
            lambda r: PriceRecord(
                item_name=r["item_name"],
                price=_decimal(r["price"]),
                store=r["store"],
                purchased_at=datetime.fromisoformat(r["purchased_at"]),
            ),
        )

    def record_receipt(self, user_id: str, receipt: ProcessedReceipt) -> int:
        try:
            purchased_at = datetime.fromisoformat(receipt.date).isoformat()
        except ValueError:
            purchased_at = datetime.now().replace(microsecond=0).isoformat()

        def run() -> int:
            conn = ensure_schema(self._db_path)
            try:
                for item in receipt.items:
                    conn.execute(
                        """INSERT INTO purchase_history
                           (user_id, item_name, category, quantity, unit, purchased_at)
                           VALUES (?, ?, ?, ?, ?, ?)""",
                        (
                            user_id,
                            item.name,
                            item.category,
                            str(item.quantity),
                            item.unit,
                            purchased_at,
                        ),
                    )
                    conn.execute(
                        """INSERT INTO price_history
                           (user_id, item_name, price, store, purchased_at)
                           VALUES (?, ?, ?, ?, ?)""",
                        (
                            user_id,
                            item.name,
                            str(item.unit_price),
                            receipt.store,
                            purchased_at,
                        ),
                    )
                conn.commit()
            finally:
                conn.close()
            return len(receipt.items)

        count = self._guard(run)
        logger.info("Recorded %d receipt items for user %s", count, user_id)
        return count
