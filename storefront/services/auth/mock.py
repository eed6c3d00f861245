"""
Mock Auth Provider Implementation

In-memory identity provider used in development mode. Accounts and
sessions disappear when the process exits.
"""

import hashlib
import logging
import secrets
import uuid
from typing import Optional

from storefront.schemas import AuthUser, UserMetadata
from storefront.services.auth.base import AuthEvent, AuthResult, BaseAuthProvider

logger = logging.getLogger(__name__)


class MockAuthProvider(BaseAuthProvider):
    """
    Mock implementation of the identity provider.

    Example:
        >>> auth = MockAuthProvider()
        >>> await auth.sign_up("guest@example.com", "secret123")
        >>> result = await auth.sign_in("guest@example.com", "secret123")
    """

    def __init__(self):
        super().__init__()
        self._accounts: dict[str, dict] = {}
        self._users: dict[str, AuthUser] = {}
        self._sessions: dict[str, str] = {}

        logger.info("MockAuthProvider initialized")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    @staticmethod
    def _hash(password: str, salt: str) -> str:
        return hashlib.sha256(f"{salt}:{password}".encode("utf-8")).hexdigest()

    def _open_session(self, user: AuthUser) -> AuthResult:
        token = f"mock_{secrets.token_hex(16)}"
        self._sessions[token] = user.id
        self._emit(AuthEvent.SIGNED_IN, user)
        return AuthResult(
            success=True,
            user=user,
            access_token=token,
            refresh_token=f"mock_refresh_{secrets.token_hex(8)}",
        )

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[UserMetadata] = None,
    ) -> AuthResult:
        email = email.strip().lower()
        if email in self._accounts:
            return AuthResult(
                success=False,
                error_message="User already registered",
                error_code="user_already_exists",
            )

        salt = secrets.token_hex(8)
        user = AuthUser(id=str(uuid.uuid4()), email=email, user_metadata=metadata or UserMetadata())
        self._accounts[email] = {"user_id": user.id, "salt": salt, "hash": self._hash(password, salt)}
        self._users[user.id] = user

        logger.info(f"Mock: Account created for {email}")
        return self._open_session(user)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        account = self._accounts.get(email.strip().lower())
        if account is None or account["hash"] != self._hash(password, account["salt"]):
            logger.debug(f"Mock: Rejected sign-in for {email}")
            return AuthResult(
                success=False,
                error_message="Invalid login credentials",
                error_code="invalid_credentials",
            )
        return self._open_session(self._users[account["user_id"]])

    async def sign_out(self, access_token: str) -> bool:
        user_id = self._sessions.pop(access_token, None)
        if user_id is None:
            return False
        self._emit(AuthEvent.SIGNED_OUT, self._users.get(user_id))
        return True

    async def get_user(self, access_token: str) -> Optional[AuthUser]:
        user_id = self._sessions.get(access_token)
        return self._users.get(user_id) if user_id else None

    async def update_user(self, access_token: str, metadata: UserMetadata) -> AuthResult:
        user = await self.get_user(access_token)
        if user is None:
            return AuthResult(
                success=False,
                error_message="Your session has expired. Please sign in again.",
                error_code="session_not_found",
            )
        user = user.model_copy(update={"user_metadata": metadata})
        self._users[user.id] = user
        self._emit(AuthEvent.USER_UPDATED, user)
        return AuthResult(success=True, user=user, access_token=access_token)

    async def health_check(self) -> bool:
        """Mock provider is always healthy."""
        return True
