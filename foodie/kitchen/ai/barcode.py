"""
Open Food Facts barcode lookup.

API Documentation: https://openfoodfacts.github.io/openfoodfacts-server/api/
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import IdentificationFailed
from ..models import ProductLocation
from . import IdentificationConfidence, IdentificationMethod, ProductIdentification

logger = logging.getLogger(__name__)

OFF_API_BASE = "https://world.openfoodfacts.org"

_FREEZER_HINTS = ("frozen", "congel")
_FRIDGE_HINTS = ("dair", "lact", "fresh", "fresc", "meat", "carn", "fish", "pescad")


def infer_location_from_categories(categories: list[str]) -> ProductLocation:
    """Guess where a product is stored from its Open Food Facts category tags."""
    joined = ",".join(categories).lower()
    if any(hint in joined for hint in _FREEZER_HINTS):
        return ProductLocation.FREEZER
    if any(hint in joined for hint in _FRIDGE_HINTS):
        return ProductLocation.FRIDGE
    return ProductLocation.PANTRY


class OpenFoodFactsClient:
    """Client for the Open Food Facts product API."""

    def __init__(
        self,
        base_url: str = OFF_API_BASE,
        timeout: float = 10.0,
        language: str = "es",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.language = language

    async def lookup(self, barcode: str) -> ProductIdentification:
        """Look up a product by barcode.

        Raises:
            IdentificationFailed: If the request fails or the product is
                unknown or unnamed.
        """
        clean = barcode.strip()
        url = f"{self.base_url}/api/v2/product/{clean}.json"
        logger.debug("Looking up barcode %s", clean)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(url, follow_redirects=True)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPError as e:
                logger.warning("HTTP error looking up barcode %s: %s", clean, e)
                raise IdentificationFailed(f"barcode lookup failed: {e}") from e
            except ValueError as e:
                raise IdentificationFailed("barcode lookup returned invalid JSON") from e

        return self._parse_product(data)

    def _parse_product(self, data: dict[str, Any]) -> ProductIdentification:
        if data.get("status") != 1 or not data.get("product"):
            raise IdentificationFailed("barcode not found")

        product = data["product"]
        name = (
            product.get(f"product_name_{self.language}")
            or product.get("product_name")
            or ""
        ).strip()
        if not name:
            raise IdentificationFailed("product has no name")

        return ProductIdentification(
            name=name,
            confidence=IdentificationConfidence.HIGH,
            method=IdentificationMethod.BARCODE,
            suggested_location=infer_location_from_categories(
                product.get("categories_tags") or []
            ),
            suggested_quantity=product.get("quantity") or None,
        )
