"""
Catalog Service

Read-side helpers over the data platform's menu: categories for the home
page, menu listings and the size options offered for each item.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from storefront.core.exceptions import NotFoundError, StorefrontError
from storefront.models import CartLine
from storefront.schemas import CategoryRecord, MenuItemRecord
from storefront.services.platform.base import BaseDataPlatform

logger = logging.getLogger(__name__)


HOME_CATEGORY_LIMIT = 10
SIDES_AND_ROLL = "Sides & Roll"
_SIDES_NAMES = {"side", "sides", "roll", "rolls"}

_UNSPLASH = "https://images.unsplash.com"
CATEGORY_IMAGES = {
    "pizza": f"{_UNSPLASH}/photo-1513104890138-7c749659a591?w=400&h=400&fit=crop",
    "drink": f"{_UNSPLASH}/photo-1544145945-f90425340c7e?w=400&h=400&fit=crop",
    "pasta": f"{_UNSPLASH}/photo-1551183053-bf91a1d81141?w=400&h=400&fit=crop",
    "burger": f"{_UNSPLASH}/photo-1568901346375-23c9450c58cd?w=400&h=400&fit=crop",
    "sandwich": f"{_UNSPLASH}/photo-1528735602780-2552fd46c7af?w=400&h=400&fit=crop",
    "dessert": f"{_UNSPLASH}/photo-1551024601-bec78aea704b?w=400&h=400&fit=crop",
    "sides": f"{_UNSPLASH}/photo-1573080496219-bb080dd4f877?w=400&h=400&fit=crop",
    "biryani": f"{_UNSPLASH}/photo-1563379091339-03b21ab4a4f8?w=400&h=400&fit=crop",
    "samosa": f"{_UNSPLASH}/photo-1601050690597-df0568f70950?w=400&h=400&fit=crop",
    "noodles": f"{_UNSPLASH}/photo-1585032226651-759b368d7246?w=400&h=400&fit=crop",
}

# (keywords, image key), checked in order against the lower-cased name
_IMAGE_KEYWORDS = [
    (("pizza",), "pizza"),
    (("drink", "beverage"), "drink"),
    (("pasta",), "pasta"),
    (("burger",), "burger"),
    (("sandwich",), "sandwich"),
    (("dessert", "sweet"), "dessert"),
    (("side", "roll"), "sides"),
    (("biryani",), "biryani"),
    (("samosa",), "samosa"),
    (("chowmein", "noodle"), "noodles"),
]


@dataclass(frozen=True)
class VariantOption:
    """One size the visitor can add to the cart."""
    label: str
    price: Decimal
    variant_id: Optional[str]


async def load_categories(platform: BaseDataPlatform) -> list[CategoryRecord]:
    return await platform.list_categories()


async def load_menu(
    platform: BaseDataPlatform,
    category_id: Optional[str] = None,
    available_only: bool = False,
) -> list[MenuItemRecord]:
    """Menu items (variants attached), optionally limited to one category."""
    items = await platform.list_menu_items(
        category_id=category_id or None,
        available_only=available_only,
    )
    logger.debug(f"Loaded {len(items)} menu items (category={category_id or 'all'})")
    return items


def display_categories(
    categories: list[CategoryRecord],
    limit: Optional[int] = None,
) -> list[CategoryRecord]:
    """
    Categories as shown on the home page.

    Side and roll categories collapse into one "Sides & Roll" tile (keeping
    the first one's id), and names are de-duplicated case-insensitively,
    first occurrence wins.
    """
    seen: set[str] = set()
    shown: list[CategoryRecord] = []

    for category in categories:
        category_name = category.name.strip()
        if category_name.lower() in _SIDES_NAMES:
            category = category.model_copy(update={"name": SIDES_AND_ROLL})
            category_name = SIDES_AND_ROLL

        key = category_name.lower()
        if key in seen:
            continue
        seen.add(key)
        shown.append(category)

    return shown[:limit] if limit is not None else shown


def category_image(category: CategoryRecord) -> str:
    if category.image_url:
        return category.image_url

    name = category.name.lower()
    for keywords, image_key in _IMAGE_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return CATEGORY_IMAGES[image_key]
    return CATEGORY_IMAGES["pizza"]


def variant_options(item: MenuItemRecord) -> list[VariantOption]:
    """Size options for an item; items without variants sell as "small" at base price."""
    if not item.variants:
        return [VariantOption(label="small", price=item.base_price, variant_id=None)]
    return [
        VariantOption(label=variant.name.lower(), price=variant.price, variant_id=variant.id)
        for variant in item.variants
    ]


async def resolve_cart_line(
    platform: BaseDataPlatform,
    product_id: str,
    variant_id: Optional[str] = None,
) -> CartLine:
    """
    Build a cart line from the catalog's own name, size and price.

    Raises:
        NotFoundError: Unknown menu item or variant
        StorefrontError: The item is currently unavailable
    """
    item = await platform.get_menu_item(product_id)
    if item is None:
        raise NotFoundError("This item is no longer on the menu.")
    if not item.is_available:
        raise StorefrontError(f"{item.name} is currently unavailable.")

    if variant_id is None:
        if item.variants:
            raise StorefrontError(f"Please choose a size for {item.name}.")
        return CartLine(
            product_id=item.id,
            variant_id=None,
            product_name=item.name,
            variant_label=None,
            unit_price=item.base_price,
        )

    variant = item.variant(variant_id)
    if variant is None:
        raise NotFoundError(f"That size of {item.name} is not available.")
    return CartLine(
        product_id=item.id,
        variant_id=variant.id,
        product_name=item.name,
        variant_label=variant.name,
        unit_price=variant.price,
    )
