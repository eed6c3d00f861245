"""Tests for the catalog helpers over the seeded in-memory menu."""

from decimal import Decimal

import pytest

from storefront.core.exceptions import NotFoundError, StorefrontError
from storefront.schemas import CategoryRecord
from storefront.services.catalog import (
    CATEGORY_IMAGES,
    SIDES_AND_ROLL,
    category_image,
    display_categories,
    load_categories,
    load_menu,
    resolve_cart_line,
    variant_options,
)


class TestDisplayCategories:

    @pytest.mark.asyncio
    async def test_sides_and_rolls_collapse_into_one_tile(self, platform):
        shown = display_categories(await load_categories(platform))
        assert [c.name for c in shown] == ["Pizza", SIDES_AND_ROLL, "Drinks", "Desserts"]
        assert shown[1].id == "c-sides"

    def test_duplicate_names_keep_first(self):
        categories = [
            CategoryRecord(id="1", name="Pizza"),
            CategoryRecord(id="2", name="pizza "),
            CategoryRecord(id="3", name="Pasta"),
        ]
        assert [c.id for c in display_categories(categories)] == ["1", "3"]

    def test_limit(self):
        categories = [CategoryRecord(id=str(i), name=f"Category {i}") for i in range(15)]
        assert len(display_categories(categories, limit=10)) == 10


class TestCategoryImage:

    def test_explicit_image_wins(self):
        category = CategoryRecord(id="1", name="Pizza", image_url="https://cdn.example.com/p.jpg")
        assert category_image(category) == "https://cdn.example.com/p.jpg"

    @pytest.mark.parametrize("name,key", [
        ("Veg Pizza", "pizza"),
        ("Cold Beverages", "drink"),
        ("Sides & Roll", "sides"),
        ("Sweet Treats", "dessert"),
        ("Hakka Noodles", "noodles"),
    ])
    def test_keyword_match(self, name, key):
        assert category_image(CategoryRecord(id="1", name=name)) == CATEGORY_IMAGES[key]

    def test_unknown_name_falls_back_to_pizza(self):
        assert category_image(CategoryRecord(id="1", name="Combos")) == CATEGORY_IMAGES["pizza"]


class TestMenu:

    @pytest.mark.asyncio
    async def test_category_filter(self, platform):
        items = await load_menu(platform, "c-drinks")
        assert {item.id for item in items} == {"m-coke", "m-cold-coffee", "m-lime-soda", "m-mango-shake"}

    @pytest.mark.asyncio
    async def test_blank_category_lists_everything(self, platform):
        assert len(await load_menu(platform, "")) == len(await load_menu(platform))

    @pytest.mark.asyncio
    async def test_available_only_skips_unavailable_items(self, platform):
        items = await load_menu(platform, "c-drinks", available_only=True)
        assert "m-mango-shake" not in {item.id for item in items}
        assert all(item.is_available for item in items)

    @pytest.mark.asyncio
    async def test_variant_options(self, platform):
        margherita = await platform.get_menu_item("m-margherita")
        options = variant_options(margherita)
        assert [(o.label, o.price) for o in options] == [
            ("small", Decimal("150")),
            ("medium", Decimal("250")),
            ("large", Decimal("350")),
        ]

    @pytest.mark.asyncio
    async def test_item_without_variants_sells_as_small(self, platform):
        bread = await platform.get_menu_item("m-garlic-bread")
        [option] = variant_options(bread)
        assert option.label == "small"
        assert option.price == Decimal("99")
        assert option.variant_id is None


class TestResolveCartLine:

    @pytest.mark.asyncio
    async def test_variant_price_comes_from_catalog(self, platform):
        line = await resolve_cart_line(platform, "m-margherita", "v-margherita-l")
        assert line.unit_price == Decimal("350")
        assert line.product_name == "Margherita"
        assert line.variant_label == "Large"

    @pytest.mark.asyncio
    async def test_item_without_variants(self, platform):
        line = await resolve_cart_line(platform, "m-garlic-bread")
        assert line.key == ("m-garlic-bread", None)
        assert line.unit_price == Decimal("99")

    @pytest.mark.asyncio
    async def test_unknown_item(self, platform):
        with pytest.raises(NotFoundError):
            await resolve_cart_line(platform, "m-sushi")

    @pytest.mark.asyncio
    async def test_unknown_variant(self, platform):
        with pytest.raises(NotFoundError):
            await resolve_cart_line(platform, "m-margherita", "v-family")

    @pytest.mark.asyncio
    async def test_size_required_when_item_has_variants(self, platform):
        with pytest.raises(StorefrontError, match="choose a size"):
            await resolve_cart_line(platform, "m-margherita")

    @pytest.mark.asyncio
    async def test_unavailable_item(self, platform):
        with pytest.raises(StorefrontError, match="currently unavailable"):
            await resolve_cart_line(platform, "m-mango-shake")
