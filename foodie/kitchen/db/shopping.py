"""Shopping list persistence backed by the shopping_items table."""

from __future__ import annotations

import sqlite3

from ..errors import NotFoundError
from ..models import ShoppingItem
from .base import ShoppingItemStore
from .schema import SQLiteStore, from_db_datetime, to_db_datetime


def _row_to_item(row: sqlite3.Row) -> ShoppingItem:
    return ShoppingItem.reconstruct(
        id=row["id"],
        owner=row["user_id"],
        name=row["name"],
        product_id=row["product_id"],
        is_bought=bool(row["is_bought"]),
        created_at=from_db_datetime(row["created_at"]),
        updated_at=from_db_datetime(row["updated_at"]),
    )


class ShoppingItemDB(SQLiteStore, ShoppingItemStore):
    """Manages the shopping_items table."""

    async def list_all(self, owner: str) -> list[ShoppingItem]:
        rows = self._query(
            """SELECT * FROM shopping_items
               WHERE user_id = ?
               ORDER BY is_bought, created_at""",
            (owner,),
        )
        return [_row_to_item(r) for r in rows]

    async def get(self, item_id: str, owner: str) -> ShoppingItem:
        rows = self._query(
            "SELECT * FROM shopping_items WHERE id = ? AND user_id = ?",
            (item_id, owner),
        )
        if not rows:
            raise NotFoundError(f"shopping item {item_id}")
        return _row_to_item(rows[0])

    async def find_by_product(
        self, product_id: str, owner: str
    ) -> ShoppingItem | None:
        rows = self._query(
            """SELECT * FROM shopping_items
               WHERE product_id = ? AND user_id = ?
               ORDER BY created_at
               LIMIT 1""",
            (product_id, owner),
        )
        return _row_to_item(rows[0]) if rows else None

    async def put(self, item: ShoppingItem) -> None:
        self._write(
            """INSERT INTO shopping_items
               (id, user_id, name, product_id, is_bought, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   name = excluded.name,
                   product_id = excluded.product_id,
                   is_bought = excluded.is_bought,
                   updated_at = excluded.updated_at
               WHERE shopping_items.user_id = excluded.user_id""",
            (
                item.id,
                item.owner,
                item.name,
                item.product_id,
                int(item.is_bought),
                to_db_datetime(item.created_at),
                to_db_datetime(item.updated_at),
            ),
        )

    async def delete(self, item_id: str, owner: str) -> None:
        count = self._write(
            "DELETE FROM shopping_items WHERE id = ? AND user_id = ?",
            (item_id, owner),
        )
        if count == 0:
            raise NotFoundError(f"shopping item {item_id}")

    async def delete_by_product(self, product_id: str, owner: str) -> None:
        self._write(
            "DELETE FROM shopping_items WHERE product_id = ? AND user_id = ?",
            (product_id, owner),
        )

    async def delete_bought(self, owner: str) -> int:
        return self._write(
            "DELETE FROM shopping_items WHERE user_id = ? AND is_bought = 1",
            (owner,),
        )
