"""
Domain Models

Plain value types shared by the visitor-state stores, the checkout
aggregation and the services:
- Service modes and order selection
- Cart lines with their (product, variant) key
- Order status workflow
- Category taxonomy supplied by the catalog
"""

from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Optional
import enum


class ServiceMode(str, enum.Enum):
    """Fulfillment channel chosen by the visitor."""
    DELIVERY = "delivery"
    PICKUP = "pickup"
    DINE_IN = "dinein"

    @property
    def label(self) -> str:
        return {
            ServiceMode.DELIVERY: "Delivery",
            ServiceMode.PICKUP: "Pick-up",
            ServiceMode.DINE_IN: "Dine-in",
        }[self]


class OrderStatus(str, enum.Enum):
    """
    Order status workflow.

    pending → accepted → preparing → ready → dispatched → delivered,
    or cancelled from any state before delivered.
    """
    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY = "ready"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    @property
    def step(self) -> Optional[int]:
        """1-based position in the happy path, None when cancelled."""
        if self == OrderStatus.CANCELLED:
            return None
        return ORDER_PROGRESSION.index(self) + 1

    def can_transition_to(self, target: "OrderStatus") -> bool:
        if self.is_terminal:
            return False
        if target == OrderStatus.CANCELLED:
            return True
        return ORDER_PROGRESSION.index(target) == ORDER_PROGRESSION.index(self) + 1


ORDER_PROGRESSION = [
    OrderStatus.PENDING,
    OrderStatus.ACCEPTED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.DISPATCHED,
    OrderStatus.DELIVERED,
]

_STATUS_LABELS = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.ACCEPTED: "Order Confirmed",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.READY: "Ready for Pickup/Delivery",
    OrderStatus.DISPATCHED: "On the Way",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}


class CategoryKind(str, enum.Enum):
    """Menu taxonomy used by the recommendation rules."""
    PIZZA = "pizza"
    SIDES = "sides"
    DRINK = "drink"
    DESSERT = "dessert"
    OTHER = "other"


@dataclass(frozen=True)
class CartLine:
    """
    One orderable (product, variant) pairing with a quantity.

    Lines are immutable; the cart store replaces a line to change its
    quantity so subscribers never see a half-updated line.
    """
    product_id: str
    variant_id: Optional[str]
    product_name: str
    variant_label: Optional[str]
    unit_price: Decimal
    quantity: int = 1

    @property
    def key(self) -> tuple[str, Optional[str]]:
        return (self.product_id, self.variant_id)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def with_quantity(self, quantity: int) -> "CartLine":
        return CartLine(
            product_id=self.product_id,
            variant_id=self.variant_id,
            product_name=self.product_name,
            variant_label=self.variant_label,
            unit_price=self.unit_price,
            quantity=quantity,
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["unit_price"] = str(self.unit_price)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        quantity = int(data["quantity"])
        unit_price = Decimal(str(data["unit_price"]))
        if quantity <= 0 or unit_price < 0:
            raise ValueError(f"Invalid cart line: {data!r}")
        variant_id = data.get("variant_id")
        return cls(
            product_id=str(data["product_id"]),
            variant_id=str(variant_id) if variant_id is not None else None,
            product_name=str(data["product_name"]),
            variant_label=data.get("variant_label"),
            unit_price=unit_price,
            quantity=quantity,
        )


@dataclass(frozen=True)
class OrderSelection:
    """Chosen service mode and, for delivery, the delivery zone."""
    service_mode: Optional[ServiceMode] = None
    delivery_zone: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        if self.service_mode == ServiceMode.DELIVERY:
            return bool(self.delivery_zone)
        return self.service_mode is not None

    @property
    def description(self) -> Optional[str]:
        if self.service_mode is None:
            return None
        if self.service_mode == ServiceMode.DELIVERY:
            return f"Delivery • {self.delivery_zone or 'Area'}"
        return self.service_mode.label

    def to_dict(self) -> dict:
        return {
            "service_mode": self.service_mode.value if self.service_mode else None,
            "delivery_zone": self.delivery_zone,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OrderSelection":
        raw_mode = data.get("service_mode")
        mode = ServiceMode(raw_mode) if raw_mode else None
        zone = data.get("delivery_zone") if mode == ServiceMode.DELIVERY else None
        return cls(service_mode=mode, delivery_zone=zone or None)
