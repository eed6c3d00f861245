"""Tests for the GoTrue client, driven through an httpx MockTransport."""

import json

import httpx
import pytest

from storefront.core.config import get_settings
from storefront.schemas import UserMetadata
from storefront.services.auth import AuthEvent, SupabaseAuthProvider

BASE_URL = "https://demo.supabase.co/auth/v1"

USER = {
    "id": "5f0c6a1e-0000-4000-8000-000000000001",
    "email": "asha@example.com",
    "user_metadata": {"full_name": "Asha Verma", "phone": "9876543210"},
}
SESSION = {"access_token": "jwt-access", "refresh_token": "jwt-refresh", "user": USER}


@pytest.fixture()
def supabase_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    get_settings.cache_clear()


def make_provider(handler) -> SupabaseAuthProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return SupabaseAuthProvider(client=client)


class TestSignIn:

    @pytest.mark.asyncio
    async def test_password_grant(self, supabase_env):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=SESSION)

        auth = make_provider(handler)
        events = []
        auth.on_auth_state_change(lambda event, user: events.append((event, user.email)))

        result = await auth.sign_in("asha@example.com", "secret123")

        request = seen[0]
        assert request.url.path == "/auth/v1/token"
        assert request.url.params["grant_type"] == "password"
        assert json.loads(request.content) == {"email": "asha@example.com", "password": "secret123"}
        assert result.has_session
        assert result.access_token == "jwt-access"
        assert result.user.user_metadata.is_onboarded
        assert events == [(AuthEvent.SIGNED_IN, "asha@example.com")]
        await auth.close()

    @pytest.mark.asyncio
    async def test_rejected_credentials_keep_provider_message(self, supabase_env):
        auth = make_provider(lambda request: httpx.Response(400, json={
            "error": "invalid_grant",
            "error_description": "Invalid login credentials",
        }))
        result = await auth.sign_in("asha@example.com", "wrong")
        assert not result.success
        assert result.error_message == "Invalid login credentials"
        assert result.error_code == "invalid_grant"

    @pytest.mark.asyncio
    async def test_timeout(self, supabase_env):
        def handler(request):
            raise httpx.ConnectTimeout("slow", request=request)

        result = await make_provider(handler).sign_in("asha@example.com", "secret123")
        assert result.error_code == "timeout"

    @pytest.mark.asyncio
    async def test_transport_error(self, supabase_env):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = await make_provider(handler).sign_in("asha@example.com", "secret123")
        assert result.error_code == "transport_error"

    @pytest.mark.asyncio
    async def test_malformed_user(self, supabase_env):
        auth = make_provider(lambda request: httpx.Response(200, json={"access_token": "x", "user": {"email": "a@b.co"}}))
        result = await auth.sign_in("a@b.co", "secret123")
        assert result.error_code == "malformed_response"


class TestSignUp:

    @pytest.mark.asyncio
    async def test_metadata_sent_as_data(self, supabase_env):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json=SESSION)

        result = await make_provider(handler).sign_up(
            "asha@example.com", "secret123", UserMetadata(full_name="Asha Verma"),
        )
        assert seen[0]["data"] == {"full_name": "Asha Verma"}
        assert result.has_session

    @pytest.mark.asyncio
    async def test_confirmation_pending_has_no_session(self, supabase_env):
        auth = make_provider(lambda request: httpx.Response(200, json=USER))
        result = await auth.sign_up("asha@example.com", "secret123")
        assert result.success
        assert not result.has_session
        assert result.user.email == "asha@example.com"

    @pytest.mark.asyncio
    async def test_already_registered(self, supabase_env):
        auth = make_provider(lambda request: httpx.Response(422, json={
            "code": 422, "error_code": "user_already_exists", "msg": "User already registered",
        }))
        result = await auth.sign_up("asha@example.com", "secret123")
        assert result.error_message == "User already registered"
        assert result.error_code == "user_already_exists"


class TestUserEndpoints:

    @pytest.mark.asyncio
    async def test_get_user_with_bearer_token(self, supabase_env):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=USER)

        user = await make_provider(handler).get_user("jwt-access")
        assert user.id == USER["id"]
        assert seen[0].headers["authorization"] == "Bearer jwt-access"

    @pytest.mark.asyncio
    async def test_get_user_invalid_token(self, supabase_env):
        auth = make_provider(lambda request: httpx.Response(401, json={"msg": "invalid JWT"}))
        assert await auth.get_user("expired") is None

    @pytest.mark.asyncio
    async def test_update_user_replaces_metadata(self, supabase_env):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            seen.append((request.method, body))
            return httpx.Response(200, json={**USER, "user_metadata": body["data"]})

        auth = make_provider(handler)
        events = []
        auth.on_auth_state_change(lambda event, user: events.append(event))

        metadata = UserMetadata(full_name="Asha Verma", phone="9876543210", address="House 4")
        result = await auth.update_user("jwt-access", metadata)

        assert seen == [("PUT", {"data": metadata.model_dump()})]
        assert result.user.user_metadata.address == "House 4"
        assert events == [AuthEvent.USER_UPDATED]

    @pytest.mark.asyncio
    async def test_sign_out(self, supabase_env):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/logout"):
                return httpx.Response(204)
            return httpx.Response(200, json=USER)

        auth = make_provider(handler)
        events = []
        auth.on_auth_state_change(lambda event, user: events.append((event, user.id)))

        assert await auth.sign_out("jwt-access")
        assert events == [(AuthEvent.SIGNED_OUT, USER["id"])]

    @pytest.mark.asyncio
    async def test_health_check(self, supabase_env):
        assert await make_provider(lambda request: httpx.Response(200, json={})).health_check()
        assert not await make_provider(lambda request: httpx.Response(503)).health_check()
