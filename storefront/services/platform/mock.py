"""
Mock Data Platform Implementation

In-memory stand-in for the hosted backend, used in development mode
(ENV_MODE=development) to:
    - Browse a realistic seeded menu without a Supabase project
    - Place and list orders locally
    - Run the test-suite without network access

Behavior:
    - Optional simulated latency and failure rate
    - Orders and items live in process memory
    - Rows pass through the same pydantic validation as real responses
"""

import asyncio
import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Optional

from storefront.core.exceptions import PlatformError
from storefront.models import OrderStatus
from storefront.schemas import (
    CategoryRecord,
    MenuItemRecord,
    MenuVariantRecord,
    OrderDraft,
    OrderItemDraft,
    OrderItemRecord,
    OrderRecord,
)
from storefront.services.platform.base import (
    BaseDataPlatform,
    attach_variants,
    parse_records,
)

logger = logging.getLogger(__name__)


SEED_CATEGORIES = [
    {"id": "c-pizza", "name": "Pizza", "kind": "pizza"},
    {"id": "c-sides", "name": "Sides", "kind": "sides"},
    {"id": "c-rolls", "name": "Rolls", "kind": "sides"},
    {"id": "c-drinks", "name": "Drinks", "kind": "drink"},
    {"id": "c-desserts", "name": "Desserts", "kind": "dessert"},
]

SEED_MENU = [
    {"id": "m-margherita", "name": "Margherita", "category_id": "c-pizza", "base_price": "150",
     "description": "Classic cheese and tomato."},
    {"id": "m-farmhouse", "name": "Farmhouse", "category_id": "c-pizza", "base_price": "199",
     "description": "Onion, capsicum, tomato and mushroom."},
    {"id": "m-pepperoni", "name": "Pepperoni", "category_id": "c-pizza", "base_price": "249",
     "description": "Loaded with pepperoni and mozzarella."},
    {"id": "m-paneer-tikka", "name": "Paneer Tikka Pizza", "category_id": "c-pizza", "base_price": "229",
     "description": "Tandoori paneer, onion and mint mayo."},
    {"id": "m-garlic-bread", "name": "Garlic Bread", "category_id": "c-sides", "base_price": "99"},
    {"id": "m-fries", "name": "French Fries", "category_id": "c-sides", "base_price": "89"},
    {"id": "m-nuggets", "name": "Chicken Nuggets", "category_id": "c-sides", "base_price": "129"},
    {"id": "m-paneer-roll", "name": "Paneer Roll", "category_id": "c-rolls", "base_price": "79"},
    {"id": "m-egg-roll", "name": "Egg Roll", "category_id": "c-rolls", "base_price": "69"},
    {"id": "m-coke", "name": "Coke", "category_id": "c-drinks", "base_price": "40"},
    {"id": "m-cold-coffee", "name": "Cold Coffee", "category_id": "c-drinks", "base_price": "99"},
    {"id": "m-lime-soda", "name": "Fresh Lime Soda", "category_id": "c-drinks", "base_price": "60"},
    {"id": "m-mango-shake", "name": "Mango Shake", "category_id": "c-drinks", "base_price": "109",
     "is_available": False},
    {"id": "m-lava-cake", "name": "Choco Lava Cake", "category_id": "c-desserts", "base_price": "99"},
    {"id": "m-brownie", "name": "Brownie", "category_id": "c-desserts", "base_price": "89"},
]

SEED_VARIANTS = [
    {"id": "v-margherita-s", "menu_id": "m-margherita", "name": "Small", "price": "150"},
    {"id": "v-margherita-m", "menu_id": "m-margherita", "name": "Medium", "price": "250"},
    {"id": "v-margherita-l", "menu_id": "m-margherita", "name": "Large", "price": "350"},
    {"id": "v-farmhouse-s", "menu_id": "m-farmhouse", "name": "Small", "price": "199"},
    {"id": "v-farmhouse-m", "menu_id": "m-farmhouse", "name": "Medium", "price": "329"},
    {"id": "v-farmhouse-l", "menu_id": "m-farmhouse", "name": "Large", "price": "449"},
    {"id": "v-pepperoni-s", "menu_id": "m-pepperoni", "name": "Small", "price": "249"},
    {"id": "v-pepperoni-m", "menu_id": "m-pepperoni", "name": "Medium", "price": "399"},
    {"id": "v-pepperoni-l", "menu_id": "m-pepperoni", "name": "Large", "price": "549"},
    {"id": "v-fries-r", "menu_id": "m-fries", "name": "Regular", "price": "89"},
    {"id": "v-fries-l", "menu_id": "m-fries", "name": "Large", "price": "129"},
    {"id": "v-coke-250", "menu_id": "m-coke", "name": "250 ml", "price": "40"},
    {"id": "v-coke-500", "menu_id": "m-coke", "name": "500 ml", "price": "60"},
]


class MockDataPlatform(BaseDataPlatform):
    """
    Mock implementation of the data platform.

    Attributes:
        failure_rate: Probability of a simulated outage per call (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds

    Example:
        >>> platform = MockDataPlatform(min_latency=0, max_latency=0)
        >>> pizzas = await platform.list_menu_items(category_id="c-pizza")
    """

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
        categories: Optional[list[dict]] = None,
        menu: Optional[list[dict]] = None,
        variants: Optional[list[dict]] = None,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency

        self._categories = parse_records(CategoryRecord, categories if categories is not None else SEED_CATEGORIES)
        self._variants = parse_records(MenuVariantRecord, variants if variants is not None else SEED_VARIANTS)
        category_by_id = {c.id: c for c in self._categories}
        items = [
            item.model_copy(update={"category": category_by_id.get(item.category_id)})
            for item in parse_records(MenuItemRecord, menu if menu is not None else SEED_MENU)
        ]
        self._menu = attach_variants(items, self._variants)

        self._orders: dict[str, OrderRecord] = {}
        self._order_items: dict[str, list[OrderItemRecord]] = {}

        logger.info(
            f"MockDataPlatform initialized "
            f"({len(self._categories)} categories, {len(self._menu)} menu items, "
            f"failure_rate={failure_rate:.0%})"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    async def _simulate_call(self) -> None:
        """Simulate network latency and random outages."""
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))
        if self.failure_rate and random.random() < self.failure_rate:
            logger.debug("Mock: Simulated platform failure")
            raise PlatformError("The menu service is temporarily unavailable.", code="simulated_failure")

    # --- Catalog --------------------------------------------------------------

    async def list_categories(self) -> list[CategoryRecord]:
        await self._simulate_call()
        return list(self._categories)

    async def list_menu_items(
        self,
        category_id: Optional[str] = None,
        available_only: bool = False,
    ) -> list[MenuItemRecord]:
        await self._simulate_call()
        items = [
            item for item in self._menu
            if (category_id is None or item.category_id == category_id)
            and (item.is_available or not available_only)
        ]
        return sorted(items, key=lambda item: item.name)

    async def list_variants(self, menu_ids: list[str]) -> list[MenuVariantRecord]:
        await self._simulate_call()
        wanted = set(menu_ids)
        return sorted(
            (v for v in self._variants if v.menu_id in wanted),
            key=lambda v: v.price,
        )

    async def get_menu_item(self, item_id: str) -> Optional[MenuItemRecord]:
        await self._simulate_call()
        for item in self._menu:
            if item.id == item_id:
                return item
        return None

    # --- Orders ---------------------------------------------------------------

    async def create_order(
        self,
        draft: OrderDraft,
        access_token: Optional[str] = None,
    ) -> OrderRecord:
        await self._simulate_call()
        order = OrderRecord(
            id=uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            **draft.model_dump(),
        )
        self._orders[order.id] = order
        self._order_items[order.id] = []
        logger.info(f"Mock: Order {order.id[:8]} created for user {draft.user_id}")
        return order

    async def create_order_items(
        self,
        items: list[OrderItemDraft],
        access_token: Optional[str] = None,
    ) -> None:
        await self._simulate_call()
        for draft in items:
            if draft.order_id not in self._orders:
                raise PlatformError(
                    f"Order {draft.order_id} does not exist",
                    code="foreign_key_violation",
                )
            menu_item = next((m for m in self._menu if m.id == draft.menu_id), None)
            variant = menu_item.variant(draft.variant_id) if menu_item else None
            self._order_items[draft.order_id].append(OrderItemRecord(
                id=uuid.uuid4().hex,
                menu_name=menu_item.name if menu_item else None,
                variant_name=variant.name if variant else None,
                **draft.model_dump(),
            ))

    async def list_orders(
        self,
        user_id: str,
        access_token: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[OrderRecord]:
        await self._simulate_call()
        # Newest first; same-tick orders fall back to reverse insertion order
        orders = sorted(
            (o for o in self._orders.values() if o.user_id == user_id),
            key=lambda o: o.created_at,
        )[::-1]
        return orders[:limit] if limit is not None else orders

    async def list_order_items(
        self,
        order_id: str,
        access_token: Optional[str] = None,
    ) -> list[OrderItemRecord]:
        await self._simulate_call()
        return list(self._order_items.get(order_id, []))

    def advance_order_status(self, order_id: str, status: OrderStatus) -> OrderRecord:
        """
        Move an order along its workflow, as the kitchen would.

        Raises:
            PlatformError: Unknown order or a transition the workflow forbids
        """
        order = self._orders.get(order_id)
        if order is None:
            raise PlatformError(f"Order {order_id} does not exist", code="not_found")
        if not order.status.can_transition_to(status):
            raise PlatformError(
                f"Cannot move order from {order.status.value} to {status.value}",
                code="invalid_transition",
            )
        order = order.model_copy(update={"status": status})
        self._orders[order_id] = order
        return order

    async def health_check(self) -> bool:
        """Mock platform is always healthy."""
        return True
