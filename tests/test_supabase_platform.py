"""Tests for the PostgREST client, driven through an httpx MockTransport."""

import json
from decimal import Decimal

import httpx
import pytest

from storefront.core.config import get_settings
from storefront.core.exceptions import PlatformError
from storefront.models import ServiceMode
from storefront.schemas import OrderDraft, OrderItemDraft
from storefront.services.platform import SupabaseDataPlatform

BASE_URL = "https://demo.supabase.co/rest/v1"


@pytest.fixture()
def supabase_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co/")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    get_settings.cache_clear()


def make_platform(handler) -> SupabaseDataPlatform:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return SupabaseDataPlatform(client=client)


class TestConfiguration:

    def test_missing_credentials(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        get_settings.cache_clear()
        with pytest.raises(ValueError, match="SUPABASE_URL"):
            SupabaseDataPlatform()

    def test_trailing_slash_stripped(self, supabase_env):
        assert get_settings().supabase_url == "https://demo.supabase.co"


class TestCatalogQueries:

    @pytest.mark.asyncio
    async def test_menu_with_variants_and_embedded_category(self, supabase_env):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path.endswith("/menu"):
                return httpx.Response(200, json=[
                    {"id": 7, "name": "Margherita", "base_price": 150, "category_id": 1,
                     "is_available": True, "categories": {"id": 1, "name": "Pizza", "kind": "pizza"}},
                    {"id": 9, "name": "Garlic Bread", "base_price": None, "category_id": 2,
                     "categories": [{"id": 2, "name": "Sides", "kind": "Sides"}]},
                ])
            return httpx.Response(200, json=[
                {"id": 71, "menu_id": 7, "name": "Large", "price": 350},
                {"id": 70, "menu_id": 7, "name": "Small", "price": 150},
            ])

        platform = make_platform(handler)
        items = await platform.list_menu_items(category_id="1")

        menu_request, variant_request = seen
        assert menu_request.url.params["category_id"] == "eq.1"
        assert menu_request.headers["apikey"] == "anon-key"
        assert menu_request.headers["authorization"] == "Bearer anon-key"
        assert variant_request.url.params["menu_id"] == "in.(7,9)"

        margherita, bread = items
        assert margherita.id == "7"
        assert [v.name for v in margherita.variants] == ["Small", "Large"]
        assert margherita.kind.value == "pizza"
        assert bread.base_price == Decimal("0")
        assert bread.kind.value == "sides"
        await platform.close()

    @pytest.mark.asyncio
    async def test_get_menu_item_not_found(self, supabase_env):
        platform = make_platform(lambda request: httpx.Response(200, json=[]))
        assert await platform.get_menu_item("404") is None

    @pytest.mark.asyncio
    async def test_available_only_filter(self, supabase_env):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        assert await make_platform(handler).list_menu_items(available_only=True) == []
        assert seen[0].url.params["is_available"] == "eq.true"

    @pytest.mark.asyncio
    async def test_malformed_rows_raise_platform_error(self, supabase_env):
        platform = make_platform(lambda request: httpx.Response(200, json=[{"name": "No id"}]))
        with pytest.raises(PlatformError) as exc_info:
            await platform.list_categories()
        assert exc_info.value.code == "malformed_response"


class TestOrders:

    @pytest.mark.asyncio
    async def test_create_order_sends_user_token(self, supabase_env):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            body = json.loads(request.content)
            return httpx.Response(201, json=[{
                **body, "id": "o-1", "created_at": "2024-01-15T12:00:00+00:00",
            }])

        platform = make_platform(handler)
        draft = OrderDraft(user_id="u-1", type=ServiceMode.DELIVERY, customer_address="House 4",
                           delivery_charge=Decimal("30"))
        order = await platform.create_order(draft, access_token="user-token")

        request = seen[0]
        assert request.method == "POST"
        assert request.headers["authorization"] == "Bearer user-token"
        assert request.headers["prefer"] == "return=representation"
        assert json.loads(request.content)["type"] == "delivery"
        assert order.id == "o-1"
        assert order.delivery_charge == Decimal("30")

    @pytest.mark.asyncio
    async def test_create_order_items_in_one_request(self, supabase_env):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(201)

        platform = make_platform(handler)
        await platform.create_order_items([
            OrderItemDraft(order_id="o-1", menu_id="7", variant_id="71", quantity=2, price=Decimal("350")),
            OrderItemDraft(order_id="o-1", menu_id="9", quantity=1, price=Decimal("99")),
        ])
        assert len(seen) == 1
        assert [row["menu_id"] for row in seen[0]] == ["7", "9"]

    @pytest.mark.asyncio
    async def test_order_items_flatten_embedded_names(self, supabase_env):
        platform = make_platform(lambda request: httpx.Response(200, json=[{
            "id": 1, "order_id": "o-1", "menu_id": 7, "variant_id": 71, "quantity": 2, "price": "350.00",
            "menu": {"name": "Margherita"}, "variant": {"name": "Large"},
        }]))
        [item] = await platform.list_order_items("o-1")
        assert item.menu_name == "Margherita"
        assert item.variant_name == "Large"
        assert item.line_total == Decimal("700.00")

    @pytest.mark.asyncio
    async def test_list_orders_newest_first_with_limit(self, supabase_env):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        await make_platform(handler).list_orders("u-1", access_token="t", limit=1)
        params = seen[0].url.params
        assert params["user_id"] == "eq.u-1"
        assert params["order"] == "created_at.desc"
        assert params["limit"] == "1"


class TestErrors:

    @pytest.mark.asyncio
    async def test_error_body_message_and_code(self, supabase_env):
        platform = make_platform(lambda request: httpx.Response(
            409, json={"message": "duplicate key value", "code": "23505"},
        ))
        with pytest.raises(PlatformError) as exc_info:
            await platform.list_categories()
        assert exc_info.value.message == "duplicate key value"
        assert exc_info.value.code == "23505"

    @pytest.mark.asyncio
    async def test_error_without_body(self, supabase_env):
        platform = make_platform(lambda request: httpx.Response(500, text="oops"))
        with pytest.raises(PlatformError) as exc_info:
            await platform.list_categories()
        assert exc_info.value.code == "500"

    @pytest.mark.asyncio
    async def test_timeout(self, supabase_env):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(PlatformError) as exc_info:
            await make_platform(handler).list_categories()
        assert exc_info.value.code == "timeout"

    @pytest.mark.asyncio
    async def test_transport_error(self, supabase_env):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(PlatformError) as exc_info:
            await make_platform(handler).list_categories()
        assert exc_info.value.code == "transport_error"

    @pytest.mark.asyncio
    async def test_health_check(self, supabase_env):
        assert await make_platform(lambda request: httpx.Response(200, json=[])).health_check()
        assert not await make_platform(lambda request: httpx.Response(401, json={})).health_check()
