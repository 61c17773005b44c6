"""AI capability interfaces, result types, and backend factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..models import ProductLocation

if TYPE_CHECKING:
    from ..config import KitchenConfig
    from ..models import Product
    from ..suggestions import Suggestion
    from .assistant import KitchenAssistant


class Confidence(str, Enum):
    """Confidence of an expiry estimation."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class IdentificationConfidence(str, Enum):
    HIGH = "high"
    LOW = "low"


class IdentificationMethod(str, Enum):
    BARCODE = "barcode"
    VISUAL = "visual"


@dataclass
class ExpiryEstimation:
    date: datetime | None
    confidence: Confidence

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat() if self.date else None,
            "confidence": self.confidence.value,
        }


@dataclass
class ProductIdentification:
    name: str
    confidence: IdentificationConfidence
    method: IdentificationMethod
    suggested_location: ProductLocation | None = None
    suggested_quantity: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "confidence": self.confidence.value,
            "method": self.method.value,
            "suggested_location": (
                self.suggested_location.value if self.suggested_location else None
            ),
            "suggested_quantity": self.suggested_quantity,
        }


@dataclass
class ReceiptItem:
    name: str
    confidence: IdentificationConfidence


@dataclass
class ReceiptScanResult:
    items: list[ReceiptItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [
                {"name": i.name, "confidence": i.confidence.value}
                for i in self.items
            ]
        }


class SuggestionGenerator(ABC):
    """Generates cooking suggestions from products ranked by urgency."""

    @abstractmethod
    async def generate(
        self, products: list[Product], limit: int
    ) -> list[Suggestion]:
        """Raises GenerationFailed when the model output is unusable."""
        ...


class ExpiryEstimator(ABC):
    """Estimates when a product will expire."""

    @abstractmethod
    async def estimate_expiry_date(
        self, product_name: str, status: str, location: str | None = None
    ) -> ExpiryEstimation:
        """Never raises; failures come back with Confidence.NONE."""
        ...


class ProductIdentifier(ABC):
    """Identifies a product from a photo or a barcode."""

    @abstractmethod
    async def identify_by_image(self, image_base64: str) -> ProductIdentification:
        ...

    @abstractmethod
    async def identify_by_barcode(self, barcode: str) -> ProductIdentification:
        ...


class ReceiptScanner(ABC):
    """Extracts product names from a supermarket receipt photo."""

    @abstractmethod
    async def scan(self, image_base64: str) -> ReceiptScanResult:
        ...


def create_assistant(config: KitchenConfig) -> KitchenAssistant:
    """Create an AI assistant backend based on configuration."""
    from .barcode import OpenFoodFactsClient

    backend_name = config.assistant.backend
    barcode_client = OpenFoodFactsClient(
        base_url=config.barcode.base_url,
        timeout=config.barcode.timeout,
        language=config.barcode.language,
    )

    match backend_name:
        case "claude":
            from .claude import ClaudeAssistant

            return ClaudeAssistant(
                api_key=config.assistant.claude.api_key,
                model=config.assistant.claude.model,
                barcode_client=barcode_client,
                language=config.assistant.language,
            )
        case "gemini":
            from .gemini import GeminiAssistant

            return GeminiAssistant(
                api_key=config.assistant.gemini.api_key,
                model=config.assistant.gemini.model,
                barcode_client=barcode_client,
                language=config.assistant.language,
            )
        case _:
            raise ValueError(
                f"Unknown assistant backend: {backend_name!r} "
                f"(choose claude or gemini)"
            )
