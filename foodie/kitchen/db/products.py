"""Product persistence backed by the products table."""

from __future__ import annotations

import sqlite3

from ..errors import NotFoundError
from ..models import Product, ProductLocation, ProductOutcome, ProductStatus
from .base import ProductStore
from .schema import SQLiteStore, from_db_datetime, to_db_datetime


def _row_to_product(row: sqlite3.Row) -> Product:
    return Product.reconstruct(
        id=row["id"],
        owner=row["user_id"],
        name=row["name"],
        status=ProductStatus(row["status"]),
        location=ProductLocation(row["location"]) if row["location"] else None,
        quantity=row["quantity"],
        expiry_date=from_db_datetime(row["expiry_date"]),
        estimated_expiry_date=from_db_datetime(row["estimated_expiry_date"]),
        outcome=ProductOutcome(row["outcome"]) if row["outcome"] else None,
        created_at=from_db_datetime(row["created_at"]),
        updated_at=from_db_datetime(row["updated_at"]),
    )


class ProductDB(SQLiteStore, ProductStore):
    """Manages the products table."""

    async def list_all(self, owner: str) -> list[Product]:
        rows = self._query(
            "SELECT * FROM products WHERE user_id = ? ORDER BY created_at DESC",
            (owner,),
        )
        return [_row_to_product(r) for r in rows]

    async def get(self, product_id: str, owner: str) -> Product:
        rows = self._query(
            "SELECT * FROM products WHERE id = ? AND user_id = ?",
            (product_id, owner),
        )
        if not rows:
            raise NotFoundError(f"product {product_id}")
        return _row_to_product(rows[0])

    async def put(self, product: Product) -> None:
        # Upsert instead of REPLACE so linked shopping items keep their
        # product_id (REPLACE deletes the row and fires ON DELETE SET NULL).
        self._write(
            """INSERT INTO products
               (id, user_id, name, status, location, quantity, expiry_date,
                estimated_expiry_date, outcome, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   name = excluded.name,
                   status = excluded.status,
                   location = excluded.location,
                   quantity = excluded.quantity,
                   expiry_date = excluded.expiry_date,
                   estimated_expiry_date = excluded.estimated_expiry_date,
                   outcome = excluded.outcome,
                   updated_at = excluded.updated_at
               WHERE products.user_id = excluded.user_id""",
            (
                product.id,
                product.owner,
                product.name,
                product.status.value,
                product.location.value if product.location else None,
                product.quantity,
                to_db_datetime(product.expiry_date),
                to_db_datetime(product.estimated_expiry_date),
                product.outcome.value if product.outcome else None,
                to_db_datetime(product.created_at),
                to_db_datetime(product.updated_at),
            ),
        )

    async def delete(self, product_id: str, owner: str) -> None:
        count = self._write(
            "DELETE FROM products WHERE id = ? AND user_id = ?",
            (product_id, owner),
        )
        if count == 0:
            raise NotFoundError(f"product {product_id}")

    async def list_active(self, owner: str) -> list[Product]:
        """Return products that are not finished, newest first."""
        rows = self._query(
            """SELECT * FROM products
               WHERE user_id = ? AND status != ?
               ORDER BY created_at DESC""",
            (owner, ProductStatus.FINISHED.value),
        )
        return [_row_to_product(r) for r in rows]
