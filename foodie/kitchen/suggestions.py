"""Cooking suggestions built from the products a user still has."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from .errors import GenerationFailed, InvalidSuggestion, SuggestionError
from .models import Product, utcnow
from .urgency import classify, is_expired, urgency_rank

if TYPE_CHECKING:
    from .ai import SuggestionGenerator
    from .db import ProductStore

logger = logging.getLogger(__name__)


class TimeRange(str, Enum):
    QUICK = "quick"  # ~10 minutes
    MEDIUM = "medium"  # ~20 minutes
    LONG = "long"  # 30+ minutes


@dataclass
class SuggestionIngredient:
    """A pantry product used by a suggestion."""

    product_id: str
    product_name: str
    quantity: str | None = None
    is_urgent: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "is_urgent": self.is_urgent,
        }


@dataclass
class Suggestion:
    id: str
    title: str
    estimated_time: TimeRange
    ingredients: list[SuggestionIngredient]
    description: str | None = None
    urgent_ingredients: list[str] = field(default_factory=list)
    steps: list[str] | None = None
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "estimated_time": self.estimated_time.value,
            "ingredients": [i.to_dict() for i in self.ingredients],
            "urgent_ingredients": list(self.urgent_ingredients),
            "steps": list(self.steps) if self.steps is not None else None,
            "created_at": self.created_at.isoformat(),
        }


def create_suggestion(
    id: str,
    title: str,
    estimated_time: TimeRange,
    ingredients: list[SuggestionIngredient],
    description: str | None = None,
    steps: list[str] | None = None,
) -> Suggestion:
    """Build a validated suggestion.

    Raises:
        InvalidSuggestion: If the title is blank or there are no ingredients.
    """
    if not title or not title.strip():
        raise InvalidSuggestion("suggestion title is empty")
    if not ingredients:
        raise InvalidSuggestion("suggestion has no ingredients")

    return Suggestion(
        id=id,
        title=title.strip(),
        description=description.strip() if description is not None else None,
        estimated_time=estimated_time,
        ingredients=ingredients,
        urgent_ingredients=[i.product_id for i in ingredients if i.is_urgent],
        steps=steps,
    )


def rank_products(
    products: list[Product], now: datetime | None = None
) -> list[Product]:
    """Drop expired products and order the rest most urgent first.

    The sort is stable, so products with the same urgency keep the order
    the store returned them in.
    """
    now = now or utcnow()
    usable = [p for p in products if not is_expired(p, now)]
    return sorted(usable, key=lambda p: urgency_rank(classify(p, now)))


class SuggestionService:
    """Generate cooking suggestions, prioritizing soon-to-expire products."""

    def __init__(
        self, products: ProductStore, generator: SuggestionGenerator
    ) -> None:
        self._products = products
        self._generator = generator

    async def generate(self, owner: str, limit: int) -> list[Suggestion]:
        """Return up to ``limit`` suggestions for the owner's active products.

        Returns an empty list without calling the generator when nothing
        usable is left after dropping expired products.

        Raises:
            GenerationFailed: If the products cannot be loaded or the
                generator fails unexpectedly.
        """
        logger.info("Generating suggestions with limit: %d", limit)

        try:
            products = await self._products.list_active(owner)
        except Exception as e:
            raise GenerationFailed(f"could not load products: {e}") from e

        ranked = rank_products(products)
        if not ranked:
            logger.info("No usable products, skipping generation")
            return []

        try:
            suggestions = await self._generator.generate(ranked, limit)
        except SuggestionError:
            raise
        except Exception as e:
            raise GenerationFailed(str(e)) from e

        logger.info("Generated %d suggestions", len(suggestions))
        return suggestions
