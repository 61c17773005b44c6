"""Product use cases and shopping list synchronization."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from .errors import (
    EstimationUnavailable,
    IdentificationFailed,
    NotFoundError,
    ProductNotFound,
    ScanFailed,
)
from .models import (
    Product,
    ProductLocation,
    ProductOutcome,
    ProductStatus,
    ShoppingItem,
    utcnow,
    validate_product_fields,
)

if TYPE_CHECKING:
    from .ai import (
        ExpiryEstimation,
        ExpiryEstimator,
        ProductIdentification,
        ProductIdentifier,
        ReceiptScanner,
        ReceiptScanResult,
    )
    from .db import ProductStore, ShoppingItemStore

logger = logging.getLogger(__name__)


class ProductService:
    """Create, read, update and delete products for one owner at a time.

    ``update`` also keeps the shopping list in step with status changes:
    finishing a product puts it on the list, reviving a finished product
    takes it off again. Those list writes are best effort and never undo
    a product update that has already been saved.
    """

    def __init__(
        self,
        products: ProductStore,
        shopping_items: ShoppingItemStore,
        estimator: ExpiryEstimator | None = None,
        identifier: ProductIdentifier | None = None,
        scanner: ReceiptScanner | None = None,
    ) -> None:
        self._products = products
        self._shopping_items = shopping_items
        self._estimator = estimator
        self._identifier = identifier
        self._scanner = scanner

    async def _load(self, product_id: str, owner: str) -> Product:
        try:
            return await self._products.get(product_id, owner)
        except NotFoundError as e:
            raise ProductNotFound(f"product {product_id} not found") from e

    async def create(
        self,
        owner: str,
        name: str,
        status: ProductStatus = ProductStatus.NEW,
        location: ProductLocation | None = None,
        quantity: str | None = None,
        expiry_date: datetime | None = None,
        estimated_expiry_date: datetime | None = None,
        outcome: ProductOutcome | None = None,
    ) -> Product:
        logger.info("Creating product: %s", name)
        product = Product.create(
            owner=owner,
            name=name,
            status=status,
            location=location,
            quantity=quantity,
            expiry_date=expiry_date,
            estimated_expiry_date=estimated_expiry_date,
            outcome=outcome,
        )
        await self._products.put(product)
        logger.info("Product created with id: %s", product.id)
        return product

    async def get_all(self, owner: str) -> list[Product]:
        products = await self._products.list_all(owner)
        logger.info("Retrieved %d products", len(products))
        return products

    async def get_by_id(self, product_id: str, owner: str) -> Product:
        logger.info("Fetching product by id: %s", product_id)
        return await self._load(product_id, owner)

    async def update(
        self,
        product_id: str,
        owner: str,
        name: str,
        status: ProductStatus,
        location: ProductLocation | None = None,
        quantity: str | None = None,
        expiry_date: datetime | None = None,
        estimated_expiry_date: datetime | None = None,
        outcome: ProductOutcome | None = None,
    ) -> Product:
        """Replace a product and sync the shopping list with its new status.

        Raises:
            NameEmpty: If the trimmed name is empty.
            OutcomeRequiresFinishedStatus: If outcome is set on an
                unfinished product.
            ProductNotFound: If the owner has no product with this id.
            RepositoryError: If the product cannot be saved.
        """
        logger.info("Updating product: %s", product_id)
        validate_product_fields(name, status, outcome)

        existing = await self._load(product_id, owner)

        updated = Product.reconstruct(
            id=existing.id,
            owner=existing.owner,
            name=name.strip(),
            status=status,
            location=location,
            quantity=quantity,
            expiry_date=expiry_date,
            estimated_expiry_date=estimated_expiry_date,
            outcome=outcome,
            created_at=existing.created_at,
            updated_at=utcnow(),
        )
        await self._products.put(updated)

        if updated.is_finished and not existing.is_finished:
            await self._add_to_shopping_list(updated)
        elif existing.is_finished and not updated.is_finished:
            await self._remove_from_shopping_list(updated)

        logger.info("Product updated: %s", updated.id)
        return updated

    async def _add_to_shopping_list(self, product: Product) -> None:
        try:
            linked = await self._shopping_items.find_by_product(
                product.id, product.owner
            )
            if linked is not None:
                return
            item = ShoppingItem.create(product.owner, product.name, product.id)
            await self._shopping_items.put(item)
        except Exception as e:
            logger.warning(
                "Failed to auto-add shopping item for product %s: %s",
                product.id,
                e,
            )

    async def _remove_from_shopping_list(self, product: Product) -> None:
        try:
            await self._shopping_items.delete_by_product(product.id, product.owner)
        except Exception as e:
            logger.warning(
                "Failed to remove shopping item for product %s: %s",
                product.id,
                e,
            )

    async def delete(self, product_id: str, owner: str) -> None:
        logger.info("Deleting product: %s", product_id)
        await self._load(product_id, owner)
        try:
            await self._products.delete(product_id, owner)
        except NotFoundError as e:
            raise ProductNotFound(f"product {product_id} not found") from e
        logger.info("Product deleted: %s", product_id)

    async def estimate_expiry(self, product_id: str, owner: str) -> Product:
        """Ask the estimator for an expiry date and store it on the product.

        The product is returned unchanged when no date could be estimated.
        """
        logger.info("Estimating expiry date for product: %s", product_id)
        product = await self._load(product_id, owner)
        estimation = await self.estimate_expiry_date(
            product.name,
            product.status.value,
            product.location.value if product.location else None,
        )

        if estimation.date is not None:
            product = dataclasses.replace(
                product,
                estimated_expiry_date=estimation.date,
                updated_at=utcnow(),
            )
            await self._products.put(product)

        logger.info(
            "Expiry estimation complete for product %s: confidence=%s",
            product.id,
            estimation.confidence.value,
        )
        return product

    async def estimate_expiry_date(
        self, name: str, status: str, location: str | None = None
    ) -> ExpiryEstimation:
        """Estimate an expiry date for a product that may not be stored yet."""
        if self._estimator is None:
            raise EstimationUnavailable("no expiry estimator configured")
        return await self._estimator.estimate_expiry_date(name, status, location)

    async def identify_by_image(self, image_base64: str) -> ProductIdentification:
        logger.info("Identifying product by image")
        if self._identifier is None:
            raise IdentificationFailed("no product identifier configured")
        result = await self._identifier.identify_by_image(image_base64)
        logger.info(
            "Product identified by image: %s (confidence: %s)",
            result.name,
            result.confidence.value,
        )
        return result

    async def identify_by_barcode(self, barcode: str) -> ProductIdentification:
        logger.info("Identifying product by barcode: %s", barcode)
        if self._identifier is None:
            raise IdentificationFailed("no product identifier configured")
        result = await self._identifier.identify_by_barcode(barcode)
        logger.info(
            "Product identified by barcode: %s (confidence: %s)",
            result.name,
            result.confidence.value,
        )
        return result

    async def scan_receipt(self, image_base64: str) -> ReceiptScanResult:
        logger.info("Scanning receipt image")
        if self._scanner is None:
            raise ScanFailed("no receipt scanner configured")
        result = await self._scanner.scan(image_base64)
        logger.info("Receipt scanned: %d items found", len(result.items))
        return result
