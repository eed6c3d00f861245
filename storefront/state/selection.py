"""
Order Selection Store

Holds the visitor's service mode and delivery zone, persisted to its own
slot. A visitor with no stored selection (or an unreadable one) starts with
the service selection prompt open.
"""

import json
import logging
from typing import Optional

from storefront.core.exceptions import InvalidSelectionError
from storefront.models import OrderSelection, ServiceMode
from storefront.state.slots import Slot
from storefront.state.store import Store

logger = logging.getLogger(__name__)


class OrderSelectionStore(Store):
    """Service mode / delivery zone container with the prompt flag."""

    def __init__(self, slot: Optional[Slot] = None):
        super().__init__()
        self._slot = slot
        restored = self._restore()
        self._selection = restored or OrderSelection()
        self.is_prompt_open = restored is None

    # --- Queries --------------------------------------------------------------

    @property
    def selection(self) -> OrderSelection:
        return self._selection

    @property
    def service_mode(self) -> Optional[ServiceMode]:
        return self._selection.service_mode

    @property
    def delivery_zone(self) -> Optional[str]:
        return self._selection.delivery_zone

    @property
    def is_complete(self) -> bool:
        return self._selection.is_complete

    # --- Mutations ------------------------------------------------------------

    def set_service_mode(self, mode: Optional[ServiceMode]) -> None:
        zone = self._selection.delivery_zone if mode == ServiceMode.DELIVERY else None
        self._commit(OrderSelection(service_mode=mode, delivery_zone=zone))

    def set_delivery_zone(self, zone: Optional[str]) -> None:
        if zone and self._selection.service_mode != ServiceMode.DELIVERY:
            raise InvalidSelectionError("A delivery zone can only be chosen for delivery orders.")
        self._commit(OrderSelection(service_mode=self._selection.service_mode, delivery_zone=zone or None))

    def confirm(self, mode: Optional[ServiceMode], zone: Optional[str] = None) -> None:
        """Apply the choice made in the selection prompt and close it."""
        self._commit(OrderSelection(
            service_mode=mode,
            delivery_zone=(zone or None) if mode == ServiceMode.DELIVERY else None,
        ))
        self.close_prompt()

    def open_prompt(self) -> None:
        self.is_prompt_open = True
        self._notify()

    def close_prompt(self) -> None:
        self.is_prompt_open = False
        self._notify()

    # --- Internal helpers -----------------------------------------------------

    def _commit(self, selection: OrderSelection) -> None:
        self._selection = selection
        if self._slot is not None:
            self._slot.save(json.dumps(selection.to_dict()))
        self._notify()

    def _restore(self) -> Optional[OrderSelection]:
        if self._slot is None:
            return None
        raw = self._slot.load()
        if not raw:
            return None
        try:
            return OrderSelection.from_dict(json.loads(raw))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Discarding unreadable selection in {self._slot.key}: {e}")
            return None
