"""
Auth Provider Abstract Base Class

Defines the interface contract for the identity provider: sign-up,
sign-in, sign-out, current-user retrieval and profile metadata updates.
Both MockAuthProvider and SupabaseAuthProvider implement these methods.

Session changes are published to subscribers registered with
``on_auth_state_change``; the subscription mechanism lives here so every
implementation emits the same events.
"""

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from storefront.schemas import AuthUser, UserMetadata

logger = logging.getLogger(__name__)


class AuthEvent(str, enum.Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_UPDATED = "USER_UPDATED"


AuthListener = Callable[[AuthEvent, Optional[AuthUser]], None]


@dataclass
class AuthResult:
    """
    Standardized result from identity provider calls.

    Attributes:
        success: Whether the call succeeded
        user: The signed-in or updated user
        access_token: Session token; None after a sign-up that still
            awaits email confirmation
        refresh_token: Token for renewing the session
        error_message: Short, user-presentable failure description
        error_code: Machine-readable error code
    """
    success: bool
    user: Optional[AuthUser] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def has_session(self) -> bool:
        return self.success and self.access_token is not None and self.user is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization (tokens omitted)."""
        return {
            "success": self.success,
            "user": self.user.model_dump() if self.user else None,
            "error_message": self.error_message,
            "error_code": self.error_code,
        }


class BaseAuthProvider(ABC):
    """
    Abstract base class for identity providers.

    Example:
        >>> auth = get_auth_provider()
        >>> result = await auth.sign_in("guest@example.com", "secret123")
        >>> if result.has_session:
        ...     print(result.user.email)
    """

    def __init__(self):
        self._listeners: list[AuthListener] = []

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the identity provider.

        Returns:
            str: Provider name (e.g., "mock", "supabase")
        """
        pass

    @abstractmethod
    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[UserMetadata] = None,
    ) -> AuthResult:
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthResult:
        pass

    @abstractmethod
    async def sign_out(self, access_token: str) -> bool:
        """
        End the session behind ``access_token``.

        Returns:
            bool: True if the provider acknowledged the sign-out
        """
        pass

    @abstractmethod
    async def get_user(self, access_token: str) -> Optional[AuthUser]:
        """Return the user owning ``access_token``, or None if the token is invalid."""
        pass

    @abstractmethod
    async def update_user(self, access_token: str, metadata: UserMetadata) -> AuthResult:
        """
        Replace the user's profile metadata.

        Callers merge with the current metadata before calling; the provider
        stores exactly what it is given.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass

    async def close(self) -> None:
        return None

    # --- Auth state subscription ----------------------------------------------

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: AuthEvent, user: Optional[AuthUser]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, user)
            except Exception:
                logger.exception(f"Auth listener failed on {event.value}")
