"""
FastAPI dependencies shared by the page and API routers.

The session cookie is read (and issued) by the middleware in ``main``,
which stores the id on ``request.state.session_id``.
"""

import logging
from functools import lru_cache

from fastapi import Depends, Request

from storefront.core.exceptions import AuthRequiredError
from storefront.schemas import AuthUser
from storefront.services.auth import BaseAuthProvider, get_auth_provider
from storefront.services.platform import BaseDataPlatform, get_data_platform
from storefront.state import SessionRegistry, SessionState, get_slot_backend

logger = logging.getLogger(__name__)


@lru_cache()
def get_registry() -> SessionRegistry:
    """Process-wide session registry over the configured slot backend."""
    return SessionRegistry(get_slot_backend())


def get_platform() -> BaseDataPlatform:
    return get_data_platform()


def get_auth() -> BaseAuthProvider:
    return get_auth_provider()


def get_session(
    request: Request,
    registry: SessionRegistry = Depends(get_registry),
) -> SessionState:
    """SessionState for the visitor's cookie."""
    session_id = getattr(request.state, "session_id", None) or SessionRegistry.new_session_id()
    return registry.get(session_id)


def require_user(session: SessionState = Depends(get_session)) -> AuthUser:
    """
    The signed-in user.

    Raises:
        AuthRequiredError: The visitor has not signed in
    """
    if not session.is_authenticated:
        raise AuthRequiredError("Please sign in to continue.")
    return session.user
