"""
Visitor Sessions

A SessionState bundles everything the storefront keeps for one visitor:
the cart store, the order selection store, the auth session returned by
the identity provider and the in-flight order flag. Request handlers get
the state for the visitor's cookie from the SessionRegistry and pass it by
reference to the services.
"""

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from storefront.core.config import get_settings
from storefront.schemas import AuthUser
from storefront.state.cart import CartStore
from storefront.state.selection import OrderSelectionStore
from storefront.state.slots import BaseSlotBackend, CART_SLOT, SELECTION_SLOT

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """Per-visitor application state."""
    session_id: str
    cart: CartStore
    selection: OrderSelectionStore
    access_token: Optional[str] = None
    user: Optional[AuthUser] = None
    placing_order: bool = False
    flash: list[str] = field(default_factory=list)

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None and self.user is not None

    def sign_in(self, access_token: str, user: AuthUser) -> None:
        self.access_token = access_token
        self.user = user

    def sign_out(self) -> None:
        self.access_token = None
        self.user = None

    def add_flash(self, message: str) -> None:
        self.flash.append(message)

    def pop_flash(self) -> list[str]:
        messages, self.flash = self.flash, []
        return messages


class SessionRegistry:
    """
    In-process map of session id to SessionState, capped at ``max_sessions``.

    Stores are rebuilt from their slots the first time a session id is
    seen by this process, so a restart or an eviction only loses the auth
    session. When the cap is reached the least recently used session is
    dropped.
    """

    def __init__(self, backend: BaseSlotBackend, max_sessions: Optional[int] = None):
        self._backend = backend
        self._max_sessions = max_sessions or get_settings().max_sessions
        self._sessions: OrderedDict[str, SessionState] = OrderedDict()

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex

    def get(self, session_id: str) -> SessionState:
        state = self._sessions.get(session_id)
        if state is not None:
            self._sessions.move_to_end(session_id)
            return state

        state = SessionState(
            session_id=session_id,
            cart=CartStore(self._backend.slot(session_id, CART_SLOT)),
            selection=OrderSelectionStore(self._backend.slot(session_id, SELECTION_SLOT)),
        )
        self._sessions[session_id] = state
        logger.debug(f"Session {session_id[:8]} loaded ({state.cart.item_count} items in cart)")

        while len(self._sessions) > self._max_sessions:
            oldest = next(iter(self._sessions))
            self.discard(oldest)
            logger.debug(f"Session {oldest[:8]} evicted (cap {self._max_sessions})")
        return state

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
