"""
Visitor State

Client-side state of the storefront, kept per visitor session:
    - cart: CartStore
    - selection: OrderSelectionStore
    - slots: durable JSON slots backing both stores
    - session: SessionState / SessionRegistry
"""

from storefront.state.cart import CartStore
from storefront.state.selection import OrderSelectionStore
from storefront.state.session import SessionRegistry, SessionState
from storefront.state.slots import (
    BaseSlotBackend,
    MemorySlotBackend,
    RedisSlotBackend,
    Slot,
    get_slot_backend,
    reset_slot_backend,
)

__all__ = [
    "CartStore",
    "OrderSelectionStore",
    "SessionRegistry",
    "SessionState",
    "BaseSlotBackend",
    "MemorySlotBackend",
    "RedisSlotBackend",
    "Slot",
    "get_slot_backend",
    "reset_slot_backend",
]
