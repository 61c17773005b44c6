"""Tests for suggestion ranking, validation and SuggestionService."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from foodie.kitchen.ai import SuggestionGenerator
from foodie.kitchen.db import ProductStore
from foodie.kitchen.errors import (
    DatabaseError,
    GenerationFailed,
    InvalidSuggestion,
    NotEnoughProducts,
)
from foodie.kitchen.models import Product
from foodie.kitchen.suggestions import (
    SuggestionIngredient,
    SuggestionService,
    TimeRange,
    create_suggestion,
    rank_products,
)

NOW = datetime(2025, 6, 10, 12, 0, tzinfo=timezone.utc)


def _product(name, expiry=None):
    return Product.create(owner="u1", name=name, expiry_date=expiry)


def _suggestion():
    return create_suggestion(
        id="s1",
        title="Tortilla",
        estimated_time=TimeRange.QUICK,
        ingredients=[SuggestionIngredient("p1", "Huevos", is_urgent=True)],
    )


class TestCreateSuggestion:
    def test_urgent_ingredients_derived(self):
        suggestion = create_suggestion(
            id="s1",
            title="  Tortilla ",
            estimated_time=TimeRange.QUICK,
            ingredients=[
                SuggestionIngredient("p1", "Huevos", is_urgent=True),
                SuggestionIngredient("p2", "Patatas"),
                SuggestionIngredient("p3", "Cebolla", is_urgent=True),
            ],
            description=" Rápida ",
        )
        assert suggestion.title == "Tortilla"
        assert suggestion.description == "Rápida"
        assert suggestion.urgent_ingredients == ["p1", "p3"]
        assert suggestion.steps is None

    def test_blank_title(self):
        with pytest.raises(InvalidSuggestion):
            create_suggestion(
                id="s1",
                title=" ",
                estimated_time=TimeRange.QUICK,
                ingredients=[SuggestionIngredient("p1", "Huevos")],
            )

    def test_no_ingredients(self):
        with pytest.raises(InvalidSuggestion):
            create_suggestion(
                id="s1", title="Nada", estimated_time=TimeRange.LONG, ingredients=[]
            )

    def test_to_dict(self):
        data = _suggestion().to_dict()
        assert data["estimated_time"] == "quick"
        assert data["urgent_ingredients"] == ["p1"]
        assert data["ingredients"][0]["product_name"] == "Huevos"


class TestRankProducts:
    def test_drops_expired(self):
        expired = _product("Yogur", NOW - timedelta(hours=1))
        fresh = _product("Leche", NOW + timedelta(days=5))
        assert rank_products([expired, fresh], NOW) == [fresh]

    def test_most_urgent_first(self):
        ok = _product("Arroz")
        soon = _product("Leche", NOW + timedelta(days=2))
        today = _product("Pescado", NOW + timedelta(hours=2))
        later = _product("Queso", NOW + timedelta(days=9))

        ranked = rank_products([ok, soon, later, today], NOW)

        assert [p.name for p in ranked] == ["Pescado", "Leche", "Arroz", "Queso"]

    def test_stable_within_level(self):
        a = _product("A", NOW + timedelta(days=1))
        b = _product("B", NOW + timedelta(days=2))
        c = _product("C")
        d = _product("D")
        ranked = rank_products([c, b, d, a], NOW)
        assert [p.name for p in ranked] == ["B", "A", "C", "D"]


class TestSuggestionService:
    @pytest.fixture
    def products(self):
        return AsyncMock(spec=ProductStore)

    @pytest.fixture
    def generator(self):
        return AsyncMock(spec=SuggestionGenerator)

    @pytest.mark.asyncio
    async def test_generates_from_ranked_products(self, products, generator):
        now = datetime.now(timezone.utc)
        later = _product("Arroz")
        urgent = _product("Pescado", now + timedelta(days=1))
        expired = _product("Yogur", now - timedelta(days=1))
        products.list_active.return_value = [later, expired, urgent]
        generator.generate.return_value = [_suggestion()]
        service = SuggestionService(products, generator)

        result = await service.generate("u1", 3)

        assert len(result) == 1
        products.list_active.assert_awaited_once_with("u1")
        generator.generate.assert_awaited_once_with([urgent, later], 3)

    @pytest.mark.asyncio
    async def test_empty_inventory_skips_generator(self, products, generator):
        products.list_active.return_value = []
        service = SuggestionService(products, generator)

        assert await service.generate("u1", 5) == []
        generator.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_only_expired_skips_generator(self, products, generator):
        now = datetime.now(timezone.utc)
        products.list_active.return_value = [_product("Yogur", now - timedelta(days=3))]
        service = SuggestionService(products, generator)

        assert await service.generate("u1", 5) == []
        generator.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure(self, products, generator):
        products.list_active.side_effect = DatabaseError("locked")
        service = SuggestionService(products, generator)

        with pytest.raises(GenerationFailed):
            await service.generate("u1", 5)

    @pytest.mark.asyncio
    async def test_unexpected_generator_error(self, products, generator):
        products.list_active.return_value = [_product("Arroz")]
        generator.generate.side_effect = RuntimeError("boom")
        service = SuggestionService(products, generator)

        with pytest.raises(GenerationFailed):
            await service.generate("u1", 5)

    @pytest.mark.asyncio
    async def test_suggestion_errors_pass_through(self, products, generator):
        products.list_active.return_value = [_product("Arroz")]
        generator.generate.side_effect = NotEnoughProducts()
        service = SuggestionService(products, generator)

        with pytest.raises(NotEnoughProducts):
            await service.generate("u1", 5)
