"""Exception hierarchy for the kitchen module.

Every error carries a stable ``code`` string (e.g. ``product.name_empty``)
that the CLI prints, so callers never have to match on message text.
"""

from __future__ import annotations


class KitchenError(Exception):
    """Base class for all kitchen errors."""

    code = "kitchen.error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)


# Repository

class RepositoryError(KitchenError):
    code = "repository.error"


class NotFoundError(RepositoryError):
    code = "repository.not_found"


class PersistenceError(RepositoryError):
    code = "repository.persistence"


class DuplicatedError(RepositoryError):
    code = "repository.duplicated"


class DatabaseError(RepositoryError):
    code = "repository.database_error"


# Product

class ProductError(KitchenError):
    code = "product.error"


class NameEmpty(ProductError):
    code = "product.name_empty"


class ProductNotFound(ProductError):
    code = "product.not_found"


class OutcomeRequiresFinishedStatus(ProductError):
    code = "product.outcome_requires_finished_status"


class IdentificationFailed(ProductError):
    code = "product.identification_failed"


class ScanFailed(ProductError):
    code = "product.scan_failed"


class EstimationUnavailable(ProductError):
    code = "product.estimation_unavailable"


# Shopping list

class ShoppingItemError(KitchenError):
    code = "shopping_item.error"


class ShoppingItemNameEmpty(ShoppingItemError):
    code = "shopping_item.name_empty"


class ShoppingItemNotFound(ShoppingItemError):
    code = "shopping_item.not_found"


# Suggestions

class SuggestionError(KitchenError):
    code = "suggestion.error"


class NotEnoughProducts(SuggestionError):
    code = "suggestion.not_enough_products"


class GenerationFailed(SuggestionError):
    code = "suggestion.generation_failed"


class InvalidSuggestion(SuggestionError):
    code = "suggestion.invalid_suggestion"
