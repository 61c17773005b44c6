"""Kitchen inventory, shopping list and cooking suggestions for Foodie."""

from .ai import (
    Confidence,
    ExpiryEstimation,
    ExpiryEstimator,
    ProductIdentification,
    ProductIdentifier,
    ReceiptScanner,
    ReceiptScanResult,
    SuggestionGenerator,
    create_assistant,
)
from .config import KitchenConfig, load_config
from .models import (
    Product,
    ProductLocation,
    ProductOutcome,
    ProductStatus,
    ShoppingItem,
)
from .products import ProductService
from .shopping import ShoppingListService
from .suggestions import (
    Suggestion,
    SuggestionIngredient,
    SuggestionService,
    TimeRange,
    create_suggestion,
)
from .urgency import UrgencyLevel, classify, days_until_expiry

__all__ = [
    "Product",
    "ProductStatus",
    "ProductLocation",
    "ProductOutcome",
    "ShoppingItem",
    "UrgencyLevel",
    "classify",
    "days_until_expiry",
    "ProductService",
    "ShoppingListService",
    "SuggestionService",
    "Suggestion",
    "SuggestionIngredient",
    "TimeRange",
    "create_suggestion",
    "SuggestionGenerator",
    "ExpiryEstimator",
    "ExpiryEstimation",
    "Confidence",
    "ProductIdentifier",
    "ProductIdentification",
    "ReceiptScanner",
    "ReceiptScanResult",
    "create_assistant",
    "KitchenConfig",
    "load_config",
]
