"""SQLite stores for products and the shopping list."""

from .base import ProductStore, ShoppingItemStore
from .products import ProductDB
from .schema import ensure_schema
from .shopping import ShoppingItemDB

__all__ = [
    "ProductStore",
    "ShoppingItemStore",
    "ProductDB",
    "ShoppingItemDB",
    "ensure_schema",
]
