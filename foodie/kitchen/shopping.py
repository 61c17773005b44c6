"""Shopping list use cases."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .errors import NotFoundError, ShoppingItemNameEmpty, ShoppingItemNotFound
from .models import ShoppingItem, utcnow

if TYPE_CHECKING:
    from .db import ShoppingItemStore

logger = logging.getLogger(__name__)


class ShoppingListService:
    """Manage a user's shopping list."""

    def __init__(self, shopping_items: ShoppingItemStore) -> None:
        self._items = shopping_items

    async def _load(self, item_id: str, owner: str) -> ShoppingItem:
        try:
            return await self._items.get(item_id, owner)
        except NotFoundError as e:
            raise ShoppingItemNotFound(f"shopping item {item_id} not found") from e

    async def create(
        self, owner: str, name: str, product_id: str | None = None
    ) -> ShoppingItem:
        """Add an item, or return the existing one already linked to the product."""
        logger.info("Creating shopping item: %s", name)

        if product_id is not None:
            existing = await self._items.find_by_product(product_id, owner)
            if existing is not None:
                logger.info(
                    "Shopping item for product %s already exists, skipping",
                    product_id,
                )
                return existing

        item = ShoppingItem.create(owner, name, product_id)
        await self._items.put(item)
        logger.info("Shopping item created: %s", item.id)
        return item

    async def get_all(self, owner: str) -> list[ShoppingItem]:
        items = await self._items.list_all(owner)
        logger.info("Retrieved %d shopping items", len(items))
        return items

    async def get_by_id(self, item_id: str, owner: str) -> ShoppingItem:
        return await self._load(item_id, owner)

    async def update(
        self,
        item_id: str,
        owner: str,
        name: str | None = None,
        is_bought: bool | None = None,
    ) -> ShoppingItem:
        """Rename an item and/or toggle its bought flag.

        Fields left as ``None`` keep their current value. The product link
        and creation time are never changed.
        """
        logger.info("Updating shopping item: %s", item_id)
        if name is not None and not name.strip():
            raise ShoppingItemNameEmpty()

        existing = await self._load(item_id, owner)

        updated = ShoppingItem.reconstruct(
            id=existing.id,
            owner=existing.owner,
            name=name.strip() if name is not None else existing.name,
            product_id=existing.product_id,
            is_bought=is_bought if is_bought is not None else existing.is_bought,
            created_at=existing.created_at,
            updated_at=utcnow(),
        )
        await self._items.put(updated)
        logger.info("Shopping item updated: %s", updated.id)
        return updated

    async def delete(self, item_id: str, owner: str) -> None:
        logger.info("Deleting shopping item: %s", item_id)
        await self._load(item_id, owner)
        try:
            await self._items.delete(item_id, owner)
        except NotFoundError as e:
            raise ShoppingItemNotFound(f"shopping item {item_id} not found") from e
        logger.info("Shopping item deleted: %s", item_id)

    async def clear_bought(self, owner: str) -> int:
        logger.info("Clearing bought shopping items")
        count = await self._items.delete_bought(owner)
        logger.info("Cleared %d bought shopping items", count)
        return count
