"""Tests for the kitchen assistant backends (mocked API calls)."""

import json
import sys
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from foodie.kitchen.ai import (
    Confidence,
    IdentificationConfidence,
    IdentificationMethod,
    create_assistant,
)
from foodie.kitchen.ai.assistant import (
    KitchenAssistant,
    build_suggestion_prompt,
    clean_base64_image,
    parse_expiry_estimation,
    parse_identification,
    parse_receipt,
    parse_suggestions,
)
from foodie.kitchen.ai.barcode import OpenFoodFactsClient
from foodie.kitchen.ai.claude import ClaudeAssistant
from foodie.kitchen.ai.gemini import GeminiAssistant
from foodie.kitchen.config import load_config
from foodie.kitchen.errors import (
    GenerationFailed,
    IdentificationFailed,
    ScanFailed,
)
from foodie.kitchen.models import Product, ProductLocation
from foodie.kitchen.suggestions import TimeRange

NOW = datetime(2025, 6, 10, 12, 0, tzinfo=timezone.utc)


class FakeAssistant(KitchenAssistant):
    """Assistant whose model answers come from a queue."""

    name = "fake"

    def __init__(self, answers=None, error=None, **kwargs):
        super().__init__(**kwargs)
        self.answers = list(answers or [])
        self.error = error
        self.calls = []

    async def _complete(self, system, prompt, images=None, temperature=0.1):
        self.calls.append({"system": system, "prompt": prompt, "images": images})
        if self.error is not None:
            raise self.error
        return self.answers.pop(0)


def _products():
    milk = Product.create(
        owner="u1", name="Leche", quantity="1 L", expiry_date=NOW + timedelta(hours=3)
    )
    rice = Product.create(owner="u1", name="Arroz")
    return milk, rice


class TestCreateAssistant:
    def test_create_claude(self):
        config = load_config()
        assistant = create_assistant(config)
        assert isinstance(assistant, ClaudeAssistant)
        assert isinstance(assistant._barcode_client, OpenFoodFactsClient)

    def test_create_gemini(self):
        config = load_config()
        config.assistant.backend = "gemini"
        assert isinstance(create_assistant(config), GeminiAssistant)

    def test_unknown_backend(self):
        config = load_config()
        config.assistant.backend = "unknown"
        with pytest.raises(ValueError, match="Unknown assistant backend"):
            create_assistant(config)


class TestHelpers:
    def test_clean_base64_image(self):
        assert clean_base64_image("data:image/png;base64,aGVs\nbG8= ") == "aGVsbG8="
        assert clean_base64_image("aGVsbG8=") == "aGVsbG8="

    def test_prompt_lists_products_with_urgency(self):
        milk, rice = _products()
        prompt = build_suggestion_prompt([milk, rice], 3, "English", NOW)
        assert f"[id:{milk.id}]" in prompt
        assert "use_today" in prompt
        assert "no expiry date" in prompt
        assert "up to 3 simple recipes" in prompt
        assert "in English" in prompt


class TestParseSuggestions:
    def test_parse_with_fences(self):
        milk, rice = _products()
        text = "```json\n" + json.dumps([
            {
                "title": "Arroz con leche",
                "description": "Postre",
                "estimatedTime": "long",
                "ingredients": [
                    {"productId": milk.id, "productName": "Leche", "isUrgent": True},
                    {"productId": rice.id, "productName": "Arroz", "isUrgent": False},
                ],
                "steps": ["Hervir", "Remover"],
            }
        ]) + "\n```"

        result = parse_suggestions(text, [milk, rice], id_prefix="claude")

        assert len(result) == 1
        s = result[0]
        assert s.title == "Arroz con leche"
        assert s.estimated_time == TimeRange.LONG
        assert s.urgent_ingredients == [milk.id]
        assert s.ingredients[0].quantity == "1 L"
        assert s.steps == ["Hervir", "Remover"]
        assert s.id.startswith("claude-")

    def test_unknown_time_defaults_to_medium(self):
        milk, _ = _products()
        text = json.dumps([
            {
                "title": "Batido",
                "estimatedTime": "forever",
                "ingredients": [{"productId": milk.id, "productName": "Leche"}],
            }
        ])
        result = parse_suggestions(text, [milk])
        assert result[0].estimated_time == TimeRange.MEDIUM
        assert result[0].steps is None

    def test_invalid_entries_skipped(self):
        milk, _ = _products()
        text = json.dumps([
            {"title": "", "ingredients": [{"productId": milk.id, "productName": "Leche"}]},
            {"title": "Sin ingredientes", "ingredients": []},
            "not an object",
            {"title": "Vale", "ingredients": [{"productId": milk.id, "productName": "Leche"}]},
        ])
        result = parse_suggestions(text, [milk])
        assert [s.title for s in result] == ["Vale"]

    def test_no_array(self):
        with pytest.raises(GenerationFailed):
            parse_suggestions("Sorry, I can't help.", [])


class TestParseExpiry:
    def test_days_added_to_now(self):
        result = parse_expiry_estimation(
            '{"daysUntilExpiry": 4, "confidence": "medium"}', NOW
        )
        assert result.date == NOW + timedelta(days=4)
        assert result.confidence == Confidence.MEDIUM

    def test_null_days(self):
        result = parse_expiry_estimation(
            '{"daysUntilExpiry": null, "confidence": "none"}', NOW
        )
        assert result.date is None
        assert result.confidence == Confidence.NONE

    def test_garbage(self):
        result = parse_expiry_estimation("no idea", NOW)
        assert result.date is None
        assert result.confidence == Confidence.NONE


class TestParseIdentification:
    def test_full(self):
        result = parse_identification(
            '{"name": "Tomate", "confidence": "high", '
            '"suggestedLocation": "fridge", "suggestedQuantity": "500 g"}'
        )
        assert result.name == "Tomate"
        assert result.confidence == IdentificationConfidence.HIGH
        assert result.method == IdentificationMethod.VISUAL
        assert result.suggested_location == ProductLocation.FRIDGE
        assert result.suggested_quantity == "500 g"

    def test_unknown_location_ignored(self):
        result = parse_identification('{"name": "Tomate", "suggestedLocation": "car"}')
        assert result.suggested_location is None
        assert result.confidence == IdentificationConfidence.LOW

    def test_no_object(self):
        with pytest.raises(IdentificationFailed):
            parse_identification("nothing here")


class TestParseReceipt:
    def test_items(self):
        result = parse_receipt(
            '[{"name": "Pan", "confidence": "high"}, {"name": "Lech", "confidence": "low"},'
            ' {"name": "Huevos"}, {"price": 3}]'
        )
        assert [i.name for i in result.items] == ["Pan", "Lech", "Huevos"]
        assert result.items[1].confidence == IdentificationConfidence.LOW
        assert result.items[2].confidence == IdentificationConfidence.HIGH

    def test_no_array(self):
        with pytest.raises(ScanFailed):
            parse_receipt("{}")


class TestKitchenAssistant:
    @pytest.mark.asyncio
    async def test_generate_empty_products(self):
        assistant = FakeAssistant()
        assert await assistant.generate([], 5) == []
        assert assistant.calls == []

    @pytest.mark.asyncio
    async def test_generate_truncates_to_limit(self):
        milk, _ = _products()
        entry = {"title": "Batido", "ingredients": [{"productId": milk.id, "productName": "Leche"}]}
        assistant = FakeAssistant([json.dumps([entry, entry, entry])])

        result = await assistant.generate([milk], 2)

        assert len(result) == 2
        assert result[0].id.startswith("fake-")

    @pytest.mark.asyncio
    async def test_generate_backend_error(self):
        milk, _ = _products()
        assistant = FakeAssistant(error=RuntimeError("rate limited"))
        with pytest.raises(GenerationFailed):
            await assistant.generate([milk], 2)

    @pytest.mark.asyncio
    async def test_expiry_cached_per_name_status_location(self):
        assistant = FakeAssistant([
            '{"daysUntilExpiry": 5, "confidence": "high"}',
            '{"daysUntilExpiry": 2, "confidence": "medium"}',
        ])

        first = await assistant.estimate_expiry_date("Leche", "opened", "fridge")
        second = await assistant.estimate_expiry_date("LECHE", "opened", "fridge")
        other = await assistant.estimate_expiry_date("Leche", "opened", None)

        assert second is first
        assert other.confidence == Confidence.MEDIUM
        assert len(assistant.calls) == 2
        assert "Location: fridge" in assistant.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_expiry_error_not_cached(self):
        assistant = FakeAssistant(error=RuntimeError("timeout"))
        result = await assistant.estimate_expiry_date("Leche", "new")
        assert result.date is None
        assert result.confidence == Confidence.NONE

        assistant.error = None
        assistant.answers = ['{"daysUntilExpiry": 7, "confidence": "high"}']
        result = await assistant.estimate_expiry_date("Leche", "new")
        assert result.confidence == Confidence.HIGH

    @pytest.mark.asyncio
    async def test_identify_by_image_sends_clean_image(self):
        assistant = FakeAssistant(['{"name": "Tomate", "confidence": "high"}'])
        result = await assistant.identify_by_image("data:image/jpeg;base64,aGVsbG8=")
        assert result.name == "Tomate"
        assert assistant.calls[0]["images"] == ["aGVsbG8="]

    @pytest.mark.asyncio
    async def test_identify_by_image_error(self):
        assistant = FakeAssistant(error=RuntimeError("down"))
        with pytest.raises(IdentificationFailed):
            await assistant.identify_by_image("aGVsbG8=")

    @pytest.mark.asyncio
    async def test_identify_by_barcode_delegates(self):
        barcode_client = MagicMock()
        barcode_client.lookup = AsyncMock(return_value="found")
        assistant = FakeAssistant(barcode_client=barcode_client)

        assert await assistant.identify_by_barcode("123") == "found"
        barcode_client.lookup.assert_awaited_once_with("123")

    @pytest.mark.asyncio
    async def test_identify_by_barcode_without_client(self):
        with pytest.raises(IdentificationFailed):
            await FakeAssistant().identify_by_barcode("123")

    @pytest.mark.asyncio
    async def test_scan_error(self):
        assistant = FakeAssistant(error=RuntimeError("down"))
        with pytest.raises(ScanFailed):
            await assistant.scan("aGVsbG8=")


class TestClaudeAssistant:
    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        assistant = ClaudeAssistant(api_key="")
        with pytest.raises(ValueError, match="API key"):
            await assistant._complete("system", "prompt")

    @pytest.mark.asyncio
    async def test_scan_with_mock(self):
        mock_response = MagicMock()
        mock_response.content = [
            MagicMock(text='[{"name": "Pan", "confidence": "high"}]')
        ]

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=mock_response)

        mock_anthropic = MagicMock()
        mock_anthropic.AsyncAnthropic.return_value = mock_client

        with patch.dict(sys.modules, {"anthropic": mock_anthropic}):
            assistant = ClaudeAssistant(api_key="test-key", model="claude-test")
            result = await assistant.scan("aGVsbG8=")

        assert [i.name for i in result.items] == ["Pan"]
        kwargs = mock_client.messages.create.await_args.kwargs
        assert kwargs["model"] == "claude-test"
        content = kwargs["messages"][0]["content"]
        assert content[0]["type"] == "image"
        assert content[0]["source"]["data"] == "aGVsbG8="
        assert content[1]["type"] == "text"


class TestGeminiAssistant:
    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        assistant = GeminiAssistant(api_key="")
        with pytest.raises(ValueError, match="API key"):
            await assistant._complete("system", "prompt")

    @pytest.mark.asyncio
    async def test_expiry_with_mock(self):
        mock_response = MagicMock()
        mock_response.text = '{"daysUntilExpiry": 3, "confidence": "low"}'

        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(return_value=mock_response)

        mock_genai = MagicMock()
        mock_genai.GenerativeModel.return_value = mock_model
        mock_google = MagicMock()
        mock_google.generativeai = mock_genai

        with patch.dict(
            sys.modules,
            {"google": mock_google, "google.generativeai": mock_genai},
        ):
            assistant = GeminiAssistant(api_key="test-key")
            result = await assistant.estimate_expiry_date("Pan", "opened")

        assert result.confidence == Confidence.LOW
        assert result.date is not None
        mock_genai.configure.assert_called_once_with(api_key="test-key")
