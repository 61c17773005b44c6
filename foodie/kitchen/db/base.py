"""Store interfaces used by the kitchen services.

Every method is scoped by ``owner``; a record owned by someone else must be
indistinguishable from a missing one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import Product, ShoppingItem


class ProductStore(ABC):
    """Persistence port for products."""

    @abstractmethod
    async def list_all(self, owner: str) -> list[Product]:
        ...

    @abstractmethod
    async def get(self, product_id: str, owner: str) -> Product:
        """Return the product or raise NotFoundError."""
        ...

    @abstractmethod
    async def put(self, product: Product) -> None:
        """Insert or replace the product."""
        ...

    @abstractmethod
    async def delete(self, product_id: str, owner: str) -> None:
        ...

    @abstractmethod
    async def list_active(self, owner: str) -> list[Product]:
        """Return products whose status is not finished."""
        ...


class ShoppingItemStore(ABC):
    """Persistence port for shopping list items."""

    @abstractmethod
    async def list_all(self, owner: str) -> list[ShoppingItem]:
        ...

    @abstractmethod
    async def get(self, item_id: str, owner: str) -> ShoppingItem:
        """Return the item or raise NotFoundError."""
        ...

    @abstractmethod
    async def find_by_product(
        self, product_id: str, owner: str
    ) -> ShoppingItem | None:
        ...

    @abstractmethod
    async def put(self, item: ShoppingItem) -> None:
        ...

    @abstractmethod
    async def delete(self, item_id: str, owner: str) -> None:
        ...

    @abstractmethod
    async def delete_by_product(self, product_id: str, owner: str) -> None:
        ...

    @abstractmethod
    async def delete_bought(self, owner: str) -> int:
        """Delete bought items and return how many were removed."""
        ...
