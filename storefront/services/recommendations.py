"""
Cart Recommendations

Suggests a few menu items to complete the visitor's meal, based on which
kinds of food (pizza, sides, drinks) are already in the cart.

Rules, in priority order and accumulating:
    1. no drink in the cart → two drinks
    2. no pizza in the cart → two pizzas
    3. pizza but no sides → two sides
    4. nothing suggested so far → any two items not in the cart
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from storefront.core.config import get_settings
from storefront.models import CartLine, CategoryKind
from storefront.schemas import MenuItemRecord

logger = logging.getLogger(__name__)


PER_KIND = 2

DRINK_MESSAGE = "🥤 Thirsty? Add a refreshing drink!"
PIZZA_MESSAGE = "🍕 Hungry? Add a delicious pizza!"
SIDES_MESSAGE = "🍟 Perfect pairing! Add some crispy sides!"
FALLBACK_DELIVERY_MESSAGE = "🍕 Complete your meal! Add more items to reach the minimum order."
FALLBACK_MESSAGE = "🍕 Complete your meal! Add more delicious items!"


@dataclass(frozen=True)
class Suggestion:
    """A menu item offered at one representative size."""
    item: MenuItemRecord
    variant_id: Optional[str]
    variant_label: str
    price: Decimal


@dataclass
class Recommendations:
    message: str = ""
    suggestions: list[Suggestion] = field(default_factory=list)


def representative_variant(item: MenuItemRecord) -> tuple[Optional[str], str, Decimal]:
    """The median-priced variant, or "Regular" at base price without variants."""
    if not item.variants:
        return None, "Regular", item.base_price
    ordered = sorted(item.variants, key=lambda v: v.price)
    variant = ordered[len(ordered) // 2]
    return variant.id, variant.name, variant.price


def _cart_kinds(lines: Iterable[CartLine], catalog: dict[str, MenuItemRecord]) -> set[CategoryKind]:
    kinds = set()
    for line in lines:
        item = catalog.get(line.product_id)
        if item is not None:
            kinds.add(item.kind)
    return kinds


def _cheapest(candidates: list[MenuItemRecord], kind: CategoryKind) -> list[MenuItemRecord]:
    of_kind = [item for item in candidates if item.kind == kind]
    return sorted(of_kind, key=lambda item: item.base_price)[:PER_KIND]


def recommend(
    lines: list[CartLine],
    menu: list[MenuItemRecord],
    is_delivery: bool = False,
    limit: Optional[int] = None,
) -> Recommendations:
    """
    Pick suggestions for a cart.

    Args:
        lines: Current cart lines
        menu: Full catalog; unavailable items are never suggested
        is_delivery: Selects the fallback message wording
        limit: Maximum number of suggestions (RECOMMENDATION_LIMIT by default)

    Returns:
        Recommendations with a message and up to ``limit`` suggestions
    """
    limit = get_settings().recommendation_limit if limit is None else limit
    catalog = {item.id: item for item in menu}
    kinds = _cart_kinds(lines, catalog)
    in_cart = {line.product_id for line in lines}
    candidates = [item for item in menu if item.is_available and item.id not in in_cart]

    picked: list[MenuItemRecord] = []
    messages: list[str] = []

    def offer(kind: CategoryKind, message: str) -> None:
        items = _cheapest(candidates, kind)
        if items:
            picked.extend(items)
            messages.append(message)

    if CategoryKind.DRINK not in kinds:
        offer(CategoryKind.DRINK, DRINK_MESSAGE)
    if CategoryKind.PIZZA not in kinds:
        offer(CategoryKind.PIZZA, PIZZA_MESSAGE)
    if CategoryKind.PIZZA in kinds and CategoryKind.SIDES not in kinds:
        offer(CategoryKind.SIDES, SIDES_MESSAGE)

    if not picked and candidates:
        picked = candidates[:PER_KIND]
        messages = [FALLBACK_DELIVERY_MESSAGE if is_delivery else FALLBACK_MESSAGE]

    suggestions = []
    for item in picked[:limit]:
        variant_id, label, price = representative_variant(item)
        suggestions.append(Suggestion(item=item, variant_id=variant_id, variant_label=label, price=price))

    logger.debug(f"Recommending {len(suggestions)} item(s) for a cart of {len(lines)} line(s)")
    return Recommendations(message=" ".join(messages), suggestions=suggestions)
