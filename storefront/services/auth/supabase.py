"""
Supabase Auth Provider Implementation

Production identity provider talking to the project's GoTrue endpoint
(``{SUPABASE_URL}/auth/v1``) with httpx. Profile fields (full name,
phone, address) are kept in the user's ``user_metadata``.

API Documentation:
    https://supabase.com/docs/reference/api/auth
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from storefront.core.config import get_settings
from storefront.schemas import AuthUser, UserMetadata
from storefront.services.auth.base import AuthEvent, AuthResult, BaseAuthProvider

logger = logging.getLogger(__name__)


class SupabaseAuthProvider(BaseAuthProvider):
    """
    GoTrue client.

    Failures are returned as ``AuthResult(success=False)`` with the
    provider's own message, which is already written for end users
    ("Invalid login credentials", "User already registered", ...).
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the GoTrue client.

        Raises:
            ValueError: If SUPABASE_URL or SUPABASE_ANON_KEY is not configured
        """
        super().__init__()
        settings = get_settings()

        if not settings.supabase_url or not settings.supabase_anon_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_ANON_KEY are required for production mode. "
                "Set them in your .env file or environment variables."
            )

        self._anon_key = settings.supabase_anon_key
        self._client = client or httpx.AsyncClient(
            base_url=f"{settings.supabase_url}/auth/v1",
            timeout=settings.http_timeout_seconds,
        )

        logger.info("SupabaseAuthProvider initialized")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "supabase"

    def _headers(self, access_token: Optional[str] = None) -> dict[str, str]:
        return {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {access_token or self._anon_key}",
        }

    async def _call(
        self,
        method: str,
        path: str,
        access_token: Optional[str] = None,
        params: Optional[dict[str, str]] = None,
        json: Any = None,
    ) -> tuple[Optional[dict], Optional[AuthResult]]:
        """
        Send one GoTrue request.

        Returns:
            (body, None) on success, (None, failed AuthResult) otherwise
        """
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(access_token),
            )
        except httpx.TimeoutException:
            logger.error(f"Supabase Auth: {method} {path} timed out")
            return None, AuthResult(
                success=False,
                error_message="Sign-in service timed out. Please try again.",
                error_code="timeout",
            )
        except httpx.TransportError as e:
            logger.error(f"Supabase Auth: Transport error - {e}")
            return None, AuthResult(
                success=False,
                error_message="Unable to reach the sign-in service",
                error_code="transport_error",
            )

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error:
            message = (
                body.get("error_description")
                or body.get("msg")
                or body.get("message")
                or f"Request failed with status {response.status_code}"
            )
            code = body.get("error_code") or body.get("error") or str(response.status_code)
            logger.warning(f"Supabase Auth: {method} {path} rejected ({response.status_code}) - {message}")
            return None, AuthResult(success=False, error_message=message, error_code=code)

        return body, None

    @staticmethod
    def _parse_user(data: Any) -> Optional[AuthUser]:
        if not isinstance(data, dict):
            return None
        try:
            return AuthUser.model_validate(data)
        except ValidationError as e:
            logger.error(f"Supabase Auth: Malformed user payload - {e.error_count()} error(s)")
            return None

    def _session_result(self, body: dict) -> AuthResult:
        user = self._parse_user(body.get("user"))
        if user is None:
            return AuthResult(
                success=False,
                error_message="Sign-in service returned an unexpected response",
                error_code="malformed_response",
            )
        result = AuthResult(
            success=True,
            user=user,
            access_token=body.get("access_token"),
            refresh_token=body.get("refresh_token"),
        )
        if result.has_session:
            self._emit(AuthEvent.SIGNED_IN, user)
        return result

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[UserMetadata] = None,
    ) -> AuthResult:
        body, failure = await self._call(
            "POST",
            "/signup",
            json={
                "email": email,
                "password": password,
                "data": (metadata or UserMetadata()).model_dump(exclude_none=True),
            },
        )
        if failure:
            return failure

        # With email confirmation enabled GoTrue answers with the bare user
        if "access_token" not in body:
            user = self._parse_user(body.get("user") or body)
            logger.info(f"Supabase Auth: Sign-up for {email} awaits confirmation")
            return AuthResult(success=user is not None, user=user)

        return self._session_result(body)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        body, failure = await self._call(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if failure:
            return failure
        return self._session_result(body)

    async def sign_out(self, access_token: str) -> bool:
        user = await self.get_user(access_token)
        _, failure = await self._call("POST", "/logout", access_token=access_token)
        if failure:
            return False
        self._emit(AuthEvent.SIGNED_OUT, user)
        return True

    async def get_user(self, access_token: str) -> Optional[AuthUser]:
        body, failure = await self._call("GET", "/user", access_token=access_token)
        if failure:
            return None
        return self._parse_user(body)

    async def update_user(self, access_token: str, metadata: UserMetadata) -> AuthResult:
        body, failure = await self._call(
            "PUT",
            "/user",
            access_token=access_token,
            json={"data": metadata.model_dump()},
        )
        if failure:
            return failure

        user = self._parse_user(body)
        if user is None:
            return AuthResult(
                success=False,
                error_message="Sign-in service returned an unexpected response",
                error_code="malformed_response",
            )
        self._emit(AuthEvent.USER_UPDATED, user)
        return AuthResult(success=True, user=user, access_token=access_token)

    async def health_check(self) -> bool:
        """Verify GoTrue connectivity via its public health endpoint."""
        try:
            response = await self._client.get("/health", headers=self._headers())
            return response.is_success
        except httpx.HTTPError as e:
            logger.error(f"Supabase Auth: Health check failed - {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
