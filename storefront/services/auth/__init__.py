"""
Auth Provider Factory

Usage:
    from storefront.services.auth import get_auth_provider

    auth = get_auth_provider()
    result = await auth.sign_in(email, password)

Environment Switching:
    - ENV_MODE=development → MockAuthProvider (in-memory accounts)
    - ENV_MODE=staging / production → SupabaseAuthProvider (GoTrue)
"""

import logging
from functools import lru_cache

from storefront.core.config import get_settings
from storefront.services.auth.base import (
    AuthEvent,
    AuthResult,
    BaseAuthProvider,
)
from storefront.services.auth.mock import MockAuthProvider
from storefront.services.auth.supabase import SupabaseAuthProvider

logger = logging.getLogger(__name__)


@lru_cache()
def get_auth_provider() -> BaseAuthProvider:
    """
    Get the configured identity provider instance.

    Returns:
        BaseAuthProvider: Configured auth provider

    Raises:
        ValueError: If production mode but Supabase is not configured
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Auth Provider: Using MockAuthProvider (development mode)")
        return MockAuthProvider()

    logger.info(
        f"Auth Provider: Using SupabaseAuthProvider "
        f"({settings.env_mode.value} mode)"
    )
    return SupabaseAuthProvider()


def reset_auth_provider() -> None:
    """Clear the cached auth provider instance."""
    get_auth_provider.cache_clear()
    logger.debug("Auth provider cache cleared")


__all__ = [
    "get_auth_provider",
    "reset_auth_provider",
    "AuthEvent",
    "AuthResult",
    "BaseAuthProvider",
    "MockAuthProvider",
    "SupabaseAuthProvider",
]
