"""LLM-backed implementation of the kitchen AI capabilities.

``KitchenAssistant`` owns the prompts and the response parsing; concrete
backends only implement ``_complete`` for their SDK.
"""

from __future__ import annotations

import json
import logging
import re
from abc import abstractmethod
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from ..errors import (
    GenerationFailed,
    IdentificationFailed,
    InvalidSuggestion,
    ScanFailed,
)
from ..models import ProductLocation
from ..suggestions import Suggestion, SuggestionIngredient, TimeRange, create_suggestion
from ..urgency import classify, days_until_expiry
from . import (
    Confidence,
    ExpiryEstimation,
    ExpiryEstimator,
    IdentificationConfidence,
    IdentificationMethod,
    ProductIdentification,
    ProductIdentifier,
    ReceiptItem,
    ReceiptScanner,
    ReceiptScanResult,
    SuggestionGenerator,
)

if TYPE_CHECKING:
    from ..models import Product
    from .barcode import OpenFoodFactsClient

logger = logging.getLogger(__name__)

_SUGGESTION_SYSTEM = """\
You are a cooking assistant for a home kitchen inventory app.
Help tired people decide what to cook quickly, using first the ingredients
that are about to expire.

- Keep recipes simple (30 minutes at most) and realistic.
- Prefer common home dishes.
- Answer with a JSON array only, no other text.
"""

_SUGGESTION_PROMPT = """\
Suggest up to {limit} simple recipes that can be cooked today with these products.

PRODUCTS (most urgent first):
{products}

- Prefer recipes using use_today and use_soon products.
- estimatedTime is "quick" (~10 min), "medium" (~20 min) or "long" (~30 min).
- Give 3-4 short steps per recipe.
- Only use products from the list, referring to them by id.
- Write titles, descriptions and steps in {language}.

Return a JSON array shaped like:
[
  {{
    "title": "Recipe name",
    "description": "One sentence, mention urgent ingredients",
    "estimatedTime": "quick",
    "ingredients": [
      {{"productId": "id from the list", "productName": "name", "isUrgent": true}}
    ],
    "steps": ["Step 1", "Step 2", "Step 3"]
  }}
]
"""

_EXPIRY_SYSTEM = """\
You estimate how many days a food product has left before it is unsafe to eat.
Answer with a JSON object only:
{"daysUntilExpiry": <integer or null>, "confidence": "high" | "medium" | "low" | "none"}

Status meanings: "new" is sealed, "opened" has been opened, "almost_empty"
is nearly finished, "finished" is empty (answer 0).
Locations: "fridge" extends perishables, "freezer" extends shelf life a lot,
"pantry" or no location means room temperature.
Base the estimate on food safety guidance, not printed best-before dates.
If the product is too vague to estimate, answer
{"daysUntilExpiry": null, "confidence": "none"}.
"""

_IDENTIFY_SYSTEM = """\
You identify a single food product from a photo.
Answer with a JSON object only:
{{"name": "...", "confidence": "high" | "low",
 "suggestedLocation": "fridge" | "pantry" | "freezer",
 "suggestedQuantity": "e.g. 1 L or 500 g"}}
The name is in {language}, without brand, weight or price.
suggestedLocation and suggestedQuantity are optional.
If the product cannot be identified, answer {{"name": "", "confidence": "low"}}.
"""

_RECEIPT_SYSTEM = """\
You read supermarket receipts.
Answer with a JSON array only: [{{"name": "...", "confidence": "high" | "low"}}]
- Names are short product names in {language}, without brand, weight or price.
- Skip non-food lines (bags, discounts, totals, store details).
- "low" confidence when a line is hard to read.
"""

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-z]+;base64,")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


def clean_base64_image(raw: str) -> str:
    """Strip a data-URL prefix and whitespace from a base64 image."""
    stripped = _DATA_URL_PREFIX.sub("", raw.strip())
    return "".join(stripped.split())


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    return cleaned


def _extract_json(text: str, pattern: re.Pattern) -> Any | None:
    match = pattern.search(_strip_fences(text))
    if match is None:
        return None
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError:
        return None


def build_suggestion_prompt(
    products: list[Product],
    limit: int,
    language: str = "Spanish",
    now: datetime | None = None,
) -> str:
    lines = []
    for p in products:
        days = days_until_expiry(p, now)
        days_text = f"expires in {days} days" if days is not None else "no expiry date"
        lines.append(
            f"- {p.name} [id:{p.id}] ({classify(p, now).value}, {days_text})"
        )
    return _SUGGESTION_PROMPT.format(
        limit=limit, products="\n".join(lines), language=language
    )


def parse_suggestions(
    text: str, products: list[Product], id_prefix: str = "ai"
) -> list[Suggestion]:
    """Parse the model's JSON array into suggestions.

    Entries without a title or without usable ingredients are skipped.

    Raises:
        GenerationFailed: If no JSON array can be read from the text.
    """
    items = _extract_json(text, _JSON_ARRAY)
    if not isinstance(items, list):
        raise GenerationFailed("model did not return a JSON array")

    quantities = {p.id: p.quantity for p in products}
    stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    suggestions: list[Suggestion] = []

    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue

        ingredients: list[SuggestionIngredient] = []
        for ing in item.get("ingredients") or []:
            if not isinstance(ing, dict):
                continue
            product_id = ing.get("productId")
            product_name = ing.get("productName")
            if not isinstance(product_id, str) or not isinstance(product_name, str):
                continue
            ingredients.append(
                SuggestionIngredient(
                    product_id=product_id,
                    product_name=product_name,
                    quantity=quantities.get(product_id),
                    is_urgent=ing.get("isUrgent") is True,
                )
            )

        try:
            estimated_time = TimeRange(item.get("estimatedTime"))
        except ValueError:
            estimated_time = TimeRange.MEDIUM

        steps = item.get("steps")
        if isinstance(steps, list):
            steps = [s for s in steps if isinstance(s, str)]
        else:
            steps = None

        description = item.get("description")
        try:
            suggestion = create_suggestion(
                id=f"{id_prefix}-{stamp}-{index}",
                title=item.get("title") or "",
                estimated_time=estimated_time,
                ingredients=ingredients,
                description=description if isinstance(description, str) else None,
                steps=steps,
            )
        except InvalidSuggestion:
            logger.debug("Skipping invalid suggestion at index %d", index)
            continue
        suggestions.append(suggestion)

    return suggestions


def parse_expiry_estimation(
    text: str, now: datetime | None = None
) -> ExpiryEstimation:
    data = _extract_json(text, _JSON_OBJECT)
    if not isinstance(data, dict):
        return ExpiryEstimation(date=None, confidence=Confidence.NONE)

    try:
        confidence = Confidence(data.get("confidence"))
    except ValueError:
        confidence = Confidence.NONE

    days = data.get("daysUntilExpiry")
    date = None
    if isinstance(days, int) and not isinstance(days, bool):
        date = (now or datetime.now(timezone.utc)) + timedelta(days=days)
    return ExpiryEstimation(date=date, confidence=confidence)


def parse_identification(text: str) -> ProductIdentification:
    data = _extract_json(text, _JSON_OBJECT)
    if not isinstance(data, dict):
        raise IdentificationFailed("model did not return a JSON object")

    confidence = (
        IdentificationConfidence.HIGH
        if data.get("confidence") == "high"
        else IdentificationConfidence.LOW
    )
    try:
        location = ProductLocation(data.get("suggestedLocation"))
    except ValueError:
        location = None
    quantity = data.get("suggestedQuantity")

    return ProductIdentification(
        name=str(data.get("name") or ""),
        confidence=confidence,
        method=IdentificationMethod.VISUAL,
        suggested_location=location,
        suggested_quantity=quantity if isinstance(quantity, str) else None,
    )


def parse_receipt(text: str) -> ReceiptScanResult:
    items = _extract_json(text, _JSON_ARRAY)
    if not isinstance(items, list):
        raise ScanFailed("model did not return a JSON array")

    result = ReceiptScanResult()
    for item in items:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            continue
        confidence = (
            IdentificationConfidence.LOW
            if item.get("confidence") == "low"
            else IdentificationConfidence.HIGH
        )
        result.items.append(ReceiptItem(name=item["name"], confidence=confidence))
    return result


class KitchenAssistant(
    SuggestionGenerator, ExpiryEstimator, ProductIdentifier, ReceiptScanner
):
    """All kitchen AI capabilities on top of a single text completion call."""

    name = "ai"

    def __init__(
        self,
        api_key: str = "",
        model: str = "",
        barcode_client: OpenFoodFactsClient | None = None,
        language: str = "Spanish",
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._barcode_client = barcode_client
        self._language = language
        self._expiry_cache: dict[str, ExpiryEstimation] = {}

    @abstractmethod
    async def _complete(
        self,
        system: str,
        prompt: str,
        images: list[str] | None = None,
        temperature: float = 0.1,
    ) -> str:
        """Send one request to the model and return its text answer.

        ``images`` are base64-encoded JPEG payloads.
        """
        ...

    async def generate(self, products: list[Product], limit: int) -> list[Suggestion]:
        if not products:
            return []

        prompt = build_suggestion_prompt(products, limit, self._language)
        try:
            text = await self._complete(_SUGGESTION_SYSTEM, prompt, temperature=0.7)
        except Exception as e:
            logger.warning("Suggestion request failed: %s", e)
            raise GenerationFailed(str(e)) from e

        return parse_suggestions(text, products, id_prefix=self.name)[:limit]

    async def estimate_expiry_date(
        self, product_name: str, status: str, location: str | None = None
    ) -> ExpiryEstimation:
        cache_key = f"{product_name.lower()}|{status}|{location or 'none'}"
        cached = self._expiry_cache.get(cache_key)
        if cached is not None:
            return cached

        parts = [f"Product: {product_name}", f"Status: {status}"]
        if location:
            parts.append(f"Location: {location}")
        parts.append("Estimate the expiry date.")

        try:
            text = await self._complete(_EXPIRY_SYSTEM, "\n".join(parts))
        except Exception as e:
            logger.warning("Expiry estimation failed for %s: %s", product_name, e)
            return ExpiryEstimation(date=None, confidence=Confidence.NONE)

        estimation = parse_expiry_estimation(text)
        self._expiry_cache[cache_key] = estimation
        return estimation

    async def identify_by_image(self, image_base64: str) -> ProductIdentification:
        try:
            text = await self._complete(
                _IDENTIFY_SYSTEM.format(language=self._language),
                "Identify this food product.",
                images=[clean_base64_image(image_base64)],
            )
        except Exception as e:
            logger.warning("Image identification failed: %s", e)
            raise IdentificationFailed(str(e)) from e
        return parse_identification(text)

    async def identify_by_barcode(self, barcode: str) -> ProductIdentification:
        if self._barcode_client is None:
            raise IdentificationFailed("barcode lookup is not configured")
        return await self._barcode_client.lookup(barcode)

    async def scan(self, image_base64: str) -> ReceiptScanResult:
        try:
            text = await self._complete(
                _RECEIPT_SYSTEM.format(language=self._language),
                "Extract the product names from this receipt.",
                images=[clean_base64_image(image_base64)],
            )
        except Exception as e:
            logger.warning("Receipt scan failed: %s", e)
            raise ScanFailed(str(e)) from e
        return parse_receipt(text)
