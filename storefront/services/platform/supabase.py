"""
Supabase Data Platform Implementation

Production implementation talking to the project's PostgREST endpoint
(``{SUPABASE_URL}/rest/v1``) with httpx. Used when ENV_MODE=production or
ENV_MODE=staging.

Requirements:
    - SUPABASE_URL and SUPABASE_ANON_KEY must be set
    - Tables: categories(id, name, kind, image_url),
      menu(id, name, description, base_price, image_url, category_id, is_available),
      menu_variants(id, menu_id, name, price),
      orders(id, user_id, status, created_at, customer_name, customer_phone,
             customer_address, type, delivery_charge),
      order_items(id, order_id, menu_id, variant_id, quantity, price)

API Documentation:
    https://postgrest.org/en/stable/references/api.html
"""

import logging
from typing import Any, Optional

import httpx

from storefront.core.config import get_settings
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
from storefront.services.platform.base import (
    BaseDataPlatform,
    attach_variants,
    parse_records,
)

logger = logging.getLogger(__name__)

CATEGORY_COLUMNS = "id,name,kind,image_url"
MENU_COLUMNS = (
    "id,name,description,base_price,image_url,category_id,is_available,"
    f"categories({CATEGORY_COLUMNS})"
)
VARIANT_COLUMNS = "id,menu_id,name,price"
ORDER_COLUMNS = (
    "id,user_id,status,created_at,customer_name,customer_phone,"
    "customer_address,type,delivery_charge"
)
ORDER_ITEM_COLUMNS = (
    "id,order_id,menu_id,variant_id,quantity,price,"
    "menu:menu_id(name),variant:variant_id(name)"
)


class SupabaseDataPlatform(BaseDataPlatform):
    """
    PostgREST client for the hosted data platform.

    Row-level security is enforced by the platform: order queries are sent
    with the signed-in user's access token, catalog queries with the anon
    key.

    Example:
        >>> platform = SupabaseDataPlatform()
        >>> categories = await platform.list_categories()
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the PostgREST client.

        Args:
            client: Preconfigured client (tests pass one with a MockTransport)

        Raises:
            ValueError: If SUPABASE_URL or SUPABASE_ANON_KEY is not configured
        """
        settings = get_settings()

        if not settings.supabase_url or not settings.supabase_anon_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_ANON_KEY are required for production mode. "
                "Set them in your .env file or environment variables."
            )

        self._anon_key = settings.supabase_anon_key
        self._client = client or httpx.AsyncClient(
            base_url=f"{settings.supabase_url}/rest/v1",
            timeout=settings.http_timeout_seconds,
        )

        logger.info("SupabaseDataPlatform initialized")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "supabase"

    def _headers(self, access_token: Optional[str], prefer: Optional[str]) -> dict[str, str]:
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {access_token or self._anon_key}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        access_token: Optional[str] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        """
        Send one PostgREST request and return the decoded body.

        Raises:
            PlatformError: On timeout, transport failure or a non-2xx answer
        """
        logger.debug(f"Supabase: {method} /{table} {params or ''}")

        try:
            response = await self._client.request(
                method,
                f"/{table}",
                params=params,
                json=json,
                headers=self._headers(access_token, prefer),
            )
            response.raise_for_status()

        except httpx.TimeoutException:
            logger.error(f"Supabase: {method} /{table} timed out")
            raise PlatformError(
                "The menu service took too long to answer. Please try again.",
                code="timeout",
            )

        except httpx.HTTPStatusError as e:
            body = self._error_body(e.response)
            logger.error(f"Supabase: {method} /{table} failed ({e.response.status_code}) - {body}")
            raise PlatformError(
                body.get("message") or f"Request failed with status {e.response.status_code}",
                code=body.get("code") or str(e.response.status_code),
            )

        except httpx.TransportError as e:
            logger.error(f"Supabase: Transport error - {e}")
            raise PlatformError(
                "Unable to reach the menu service",
                code="transport_error",
            )

        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_body(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    # --- Catalog --------------------------------------------------------------

    async def list_categories(self) -> list[CategoryRecord]:
        rows = await self._request("GET", "categories", params={"select": CATEGORY_COLUMNS})
        return parse_records(CategoryRecord, rows)

    async def list_variants(self, menu_ids: list[str]) -> list[MenuVariantRecord]:
        if not menu_ids:
            return []
        rows = await self._request(
            "GET",
            "menu_variants",
            params={
                "select": VARIANT_COLUMNS,
                "menu_id": f"in.({','.join(menu_ids)})",
                "order": "price.asc",
            },
        )
        return parse_records(MenuVariantRecord, rows)

    async def list_menu_items(
        self,
        category_id: Optional[str] = None,
        available_only: bool = False,
    ) -> list[MenuItemRecord]:
        params = {"select": MENU_COLUMNS, "order": "name.asc"}
        if category_id:
            params["category_id"] = f"eq.{category_id}"
        if available_only:
            params["is_available"] = "eq.true"

        items = parse_records(MenuItemRecord, await self._request("GET", "menu", params=params))
        variants = await self.list_variants([item.id for item in items])
        return attach_variants(items, variants)

    async def get_menu_item(self, item_id: str) -> Optional[MenuItemRecord]:
        rows = await self._request(
            "GET",
            "menu",
            params={"select": MENU_COLUMNS, "id": f"eq.{item_id}", "limit": 1},
        )
        items = parse_records(MenuItemRecord, rows)
        if not items:
            return None
        variants = await self.list_variants([items[0].id])
        return attach_variants(items, variants)[0]

    # --- Orders ---------------------------------------------------------------

    async def create_order(
        self,
        draft: OrderDraft,
        access_token: Optional[str] = None,
    ) -> OrderRecord:
        rows = await self._request(
            "POST",
            "orders",
            params={"select": ORDER_COLUMNS},
            json=draft.model_dump(mode="json"),
            access_token=access_token,
            prefer="return=representation",
        )
        orders = parse_records(OrderRecord, rows)
        if len(orders) != 1:
            raise PlatformError("Order was not created", code="insert_failed")

        logger.info(f"Supabase: Order {orders[0].id} created")
        return orders[0]

    async def create_order_items(
        self,
        items: list[OrderItemDraft],
        access_token: Optional[str] = None,
    ) -> None:
        if not items:
            return
        await self._request(
            "POST",
            "order_items",
            json=[item.model_dump(mode="json") for item in items],
            access_token=access_token,
            prefer="return=minimal",
        )

    async def list_orders(
        self,
        user_id: str,
        access_token: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[OrderRecord]:
        params = {
            "select": ORDER_COLUMNS,
            "user_id": f"eq.{user_id}",
            "order": "created_at.desc",
        }
        if limit is not None:
            params["limit"] = limit
        rows = await self._request("GET", "orders", params=params, access_token=access_token)
        return parse_records(OrderRecord, rows)

    async def list_order_items(
        self,
        order_id: str,
        access_token: Optional[str] = None,
    ) -> list[OrderItemRecord]:
        rows = await self._request(
            "GET",
            "order_items",
            params={"select": ORDER_ITEM_COLUMNS, "order_id": f"eq.{order_id}"},
            access_token=access_token,
        )
        return parse_records(OrderItemRecord, rows)

    async def health_check(self) -> bool:
        """
        Verify PostgREST connectivity.

        Makes a one-row category query to verify credentials and reachability.
        """
        try:
            await self._request("GET", "categories", params={"select": "id", "limit": 1})
            logger.debug("Supabase: Health check passed")
            return True
        except PlatformError as e:
            logger.error(f"Supabase: Health check failed - {e.message}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
