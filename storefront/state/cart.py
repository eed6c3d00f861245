"""
Cart Store

Holds the visitor's cart lines, keyed by (product_id, variant_id), and
writes the full line set to its slot after every mutation. A missing or
unreadable slot restores as an empty cart.
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from storefront.models import CartLine
from storefront.state.slots import Slot
from storefront.state.store import Store

logger = logging.getLogger(__name__)


class CartStore(Store):
    """
    Cart line container.

    Example:
        >>> cart = CartStore(slot)
        >>> cart.add_or_increment(CartLine("p1", None, "Margherita", None, Decimal("150")))
        >>> cart.total
        Decimal('150')
    """

    def __init__(self, slot: Optional[Slot] = None):
        super().__init__()
        self._slot = slot
        self._lines: list[CartLine] = self._restore()

    # --- Queries --------------------------------------------------------------

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    @property
    def total(self) -> Decimal:
        return sum((line.line_total for line in self._lines), Decimal("0"))

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def quantity_of(self, product_id: str, variant_id: Optional[str] = None) -> int:
        index = self._find(product_id, variant_id)
        return self._lines[index].quantity if index is not None else 0

    # --- Mutations ------------------------------------------------------------

    def add_or_increment(self, line: CartLine, qty: int = 1) -> None:
        """Merge ``qty`` units of ``line`` into the cart."""
        index = self._find(line.product_id, line.variant_id)
        if index is not None:
            existing = self._lines[index]
            self._lines[index] = existing.with_quantity(existing.quantity + qty)
        else:
            self._lines.append(line.with_quantity(qty))
        self._commit()

    def increment(self, line: CartLine) -> None:
        self.add_or_increment(line, 1)

    def decrement(self, product_id: str, variant_id: Optional[str] = None) -> None:
        index = self._find(product_id, variant_id)
        if index is None:
            return
        next_qty = self._lines[index].quantity - 1
        if next_qty <= 0:
            del self._lines[index]
        else:
            self._lines[index] = self._lines[index].with_quantity(next_qty)
        self._commit()

    def set_quantity(self, product_id: str, variant_id: Optional[str], qty: int) -> None:
        """Overwrite a line's quantity; zero or less removes the line."""
        index = self._find(product_id, variant_id)
        if index is None:
            return
        if qty <= 0:
            del self._lines[index]
        else:
            self._lines[index] = self._lines[index].with_quantity(qty)
        self._commit()

    def remove(self, product_id: str, variant_id: Optional[str] = None) -> None:
        index = self._find(product_id, variant_id)
        if index is None:
            return
        del self._lines[index]
        self._commit()

    def clear(self) -> None:
        self._lines = []
        self._commit()

    def deduct(self, lines: list[CartLine]) -> None:
        """Take the given line quantities off the cart in a single commit."""
        for taken in lines:
            index = self._find(*taken.key)
            if index is None:
                continue
            remaining = self._lines[index].quantity - taken.quantity
            if remaining > 0:
                self._lines[index] = self._lines[index].with_quantity(remaining)
            else:
                del self._lines[index]
        self._commit()

    # --- Internal helpers -----------------------------------------------------

    def _find(self, product_id: str, variant_id: Optional[str]) -> Optional[int]:
        for i, line in enumerate(self._lines):
            if line.key == (product_id, variant_id):
                return i
        return None

    def _commit(self) -> None:
        if self._slot is not None:
            self._slot.save(json.dumps([line.to_dict() for line in self._lines]))
        self._notify()

    def _restore(self) -> list[CartLine]:
        if self._slot is None:
            return []
        raw = self._slot.load()
        if not raw:
            return []
        try:
            data = json.loads(raw)
            lines = [CartLine.from_dict(item) for item in data]
        except (ValueError, TypeError, KeyError, AttributeError, InvalidOperation) as e:
            logger.warning(f"Discarding unreadable cart in {self._slot.key}: {e}")
            return []

        # Older writers could leave duplicate keys; fold them together.
        merged: dict[tuple, CartLine] = {}
        for line in lines:
            if line.key in merged:
                line = merged[line.key].with_quantity(merged[line.key].quantity + line.quantity)
            merged[line.key] = line
        return list(merged.values())
