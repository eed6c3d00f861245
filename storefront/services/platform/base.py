"""
Data Platform Abstract Base Class

Defines the interface contract for the hosted backend that stores the
catalog, orders and order items. Both MockDataPlatform and
SupabaseDataPlatform implement these methods, so routes and services work
identically regardless of which one is active.

Error contract:
    Every method raises PlatformError when the call fails or the returned
    rows do not validate. Nothing else escapes an implementation.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from storefront.core.exceptions import PlatformError
from storefront.schemas import (
    CategoryRecord,
    MenuItemRecord,
    MenuVariantRecord,
    OrderDraft,
    OrderItemDraft,
    OrderItemRecord,
    OrderRecord,
)

RecordT = TypeVar("RecordT", bound=BaseModel)


def parse_records(model: Type[RecordT], rows: object) -> list[RecordT]:
    """
    Validate platform rows into records.

    Raises:
        PlatformError: If ``rows`` is not a list or any row is malformed
    """
    if not isinstance(rows, list):
        raise PlatformError(
            f"Expected a list of {model.__name__} rows, got {type(rows).__name__}",
            code="malformed_response",
        )
    try:
        return [model.model_validate(row) for row in rows]
    except ValidationError as e:
        raise PlatformError(
            f"Malformed {model.__name__} returned by the data platform: {e.error_count()} error(s)",
            code="malformed_response",
        ) from e


def attach_variants(
    items: Iterable[MenuItemRecord],
    variants: Iterable[MenuVariantRecord],
) -> list[MenuItemRecord]:
    """Return copies of ``items`` with their variants, cheapest first."""
    by_menu: dict[str, list[MenuVariantRecord]] = {}
    for variant in variants:
        by_menu.setdefault(variant.menu_id, []).append(variant)

    return [
        item.model_copy(update={
            "variants": sorted(by_menu.get(item.id, []), key=lambda v: v.price),
        })
        for item in items
    ]


class BaseDataPlatform(ABC):
    """
    Abstract base class for data platform clients.

    Example:
        >>> platform = get_data_platform()
        >>> items = await platform.list_menu_items(category_id="1")
        >>> print(items[0].variants)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the data platform provider.

        Returns:
            str: Provider name (e.g., "mock", "supabase")
        """
        pass

    @abstractmethod
    async def list_categories(self) -> list[CategoryRecord]:
        pass

    @abstractmethod
    async def list_menu_items(
        self,
        category_id: Optional[str] = None,
        available_only: bool = False,
    ) -> list[MenuItemRecord]:
        """
        List menu items ordered by name, variants and category attached.

        Args:
            category_id: Restrict to one category
            available_only: Skip items marked unavailable
        """
        pass

    @abstractmethod
    async def list_variants(self, menu_ids: list[str]) -> list[MenuVariantRecord]:
        """List the variants of the given menu items, cheapest first."""
        pass

    @abstractmethod
    async def get_menu_item(self, item_id: str) -> Optional[MenuItemRecord]:
        """Fetch one menu item with its variants, or None if it does not exist."""
        pass

    @abstractmethod
    async def create_order(
        self,
        draft: OrderDraft,
        access_token: Optional[str] = None,
    ) -> OrderRecord:
        """
        Insert an order row and return it as stored.

        Args:
            draft: Order header (customer, type, delivery charge, status)
            access_token: Caller's auth token; row-level security keys on it
        """
        pass

    @abstractmethod
    async def create_order_items(
        self,
        items: list[OrderItemDraft],
        access_token: Optional[str] = None,
    ) -> None:
        pass

    @abstractmethod
    async def list_orders(
        self,
        user_id: str,
        access_token: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[OrderRecord]:
        """List a user's orders, newest first."""
        pass

    @abstractmethod
    async def list_order_items(
        self,
        order_id: str,
        access_token: Optional[str] = None,
    ) -> list[OrderItemRecord]:
        """List an order's items with menu and variant names resolved."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the data platform.

        Returns:
            bool: True if the platform answers queries
        """
        pass

    async def close(self) -> None:
        """Release network resources. No-op unless overridden."""
        return None
