"""
Order Service

Turns the visitor's cart into an order on the data platform and reads
the order history back for the orders page and the JSON API.

Placement sequence:
    1. signed-in user, non-empty cart, checkout guards
    2. one submission per session at a time
    3. insert the order header, then its items
    4. take the ordered lines off the cart
A failure at any step leaves the cart untouched.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from storefront.core.config import Settings, get_settings
from storefront.core.exceptions import (
    AuthRequiredError,
    CheckoutBlockedError,
    EmptyCartError,
    OrderInFlightError,
    PlatformError,
)
from storefront.models import ServiceMode
from storefront.schemas import (
    AuthUser,
    OrderDetailResponse,
    OrderDraft,
    OrderItemDraft,
    OrderItemRecord,
    OrderItemResponse,
    OrderRecord,
    OrderSummaryResponse,
)
from storefront.services.checkout import CheckoutSummary, evaluate_checkout
from storefront.services.platform.base import BaseDataPlatform
from storefront.state.session import SessionState

logger = logging.getLogger(__name__)


DISPLAY_FORMAT = "%d %b %Y, %I:%M %p"


@dataclass
class PlacedOrder:
    order: OrderRecord
    summary: CheckoutSummary


@dataclass
class OrderDetails:
    order: OrderRecord
    items: list[OrderItemRecord]

    @property
    def items_total(self) -> Decimal:
        """Sum of the item lines; the delivery charge is shown separately."""
        return sum((item.line_total for item in self.items), Decimal("0"))


def format_order_time(created_at: datetime, tz_name: Optional[str] = None) -> str:
    """Render an order timestamp in the storefront's display timezone."""
    tz = ZoneInfo(tz_name or get_settings().display_timezone)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at.astimezone(tz).strftime(DISPLAY_FORMAT)


def require_user(session: SessionState) -> AuthUser:
    if not session.is_authenticated:
        raise AuthRequiredError("Please sign in to place your order.")
    return session.user


async def place_order(
    session: SessionState,
    platform: BaseDataPlatform,
    settings: Optional[Settings] = None,
) -> PlacedOrder:
    """
    Place the visitor's cart as an order.

    Raises:
        AuthRequiredError: No signed-in user
        EmptyCartError: Nothing in the cart
        CheckoutBlockedError: A checkout guard failed
        OrderInFlightError: This session is already placing an order
        PlatformError: The data platform rejected the order or its items
    """
    settings = settings or get_settings()
    user = require_user(session)
    cart = session.cart
    selection = session.selection.selection

    if cart.is_empty:
        raise EmptyCartError("Your cart is empty.")

    metadata = user.user_metadata
    summary = evaluate_checkout(cart.total, selection, metadata.address, settings)
    if not summary.can_checkout:
        raise CheckoutBlockedError(summary.blocking_reason)

    if session.placing_order:
        raise OrderInFlightError("Your order is already being placed.")

    # Lines checked by the guards; anything added while the inserts run stays in the cart
    lines = cart.lines

    session.placing_order = True
    try:
        is_delivery = selection.service_mode == ServiceMode.DELIVERY
        draft = OrderDraft(
            user_id=user.id,
            customer_name=metadata.full_name or "Guest",
            customer_phone=metadata.phone,
            customer_address=metadata.address if is_delivery else None,
            type=selection.service_mode,
            delivery_charge=summary.delivery_charge,
        )
        order = await platform.create_order(draft, access_token=session.access_token)

        try:
            await platform.create_order_items(
                [
                    OrderItemDraft(
                        order_id=order.id,
                        menu_id=line.product_id,
                        variant_id=line.variant_id,
                        quantity=line.quantity,
                        price=line.unit_price,
                    )
                    for line in lines
                ],
                access_token=session.access_token,
            )
        except PlatformError as e:
            logger.error(f"Order {order.id} for user {user.id} has no items (orphaned): {e.message}")
            raise
    finally:
        session.placing_order = False

    logger.info(
        f"Order {order.id} placed for user {user.id} "
        f"({sum(line.quantity for line in lines)} items, {selection.service_mode.value}, "
        f"total {summary.grand_total})"
    )
    cart.deduct(lines)
    return PlacedOrder(order=order, summary=summary)


async def order_history(
    platform: BaseDataPlatform,
    user: AuthUser,
    access_token: Optional[str] = None,
) -> list[OrderRecord]:
    """All of the user's orders, newest first."""
    return await platform.list_orders(user.id, access_token=access_token)


async def last_order(
    platform: BaseDataPlatform,
    user: AuthUser,
    access_token: Optional[str] = None,
) -> Optional[OrderRecord]:
    orders = await platform.list_orders(user.id, access_token=access_token, limit=1)
    return orders[0] if orders else None


async def order_details(
    platform: BaseDataPlatform,
    user: AuthUser,
    order_id: str,
    access_token: Optional[str] = None,
) -> Optional[OrderDetails]:
    """One of the user's orders with its items, or None if it is not theirs."""
    orders = await platform.list_orders(user.id, access_token=access_token)
    order = next((o for o in orders if o.id == order_id), None)
    if order is None:
        return None
    items = await platform.list_order_items(order.id, access_token=access_token)
    return OrderDetails(order=order, items=items)


# =============================================================================
# RESPONSE BUILDERS
# =============================================================================

def order_summary_response(order: OrderRecord) -> OrderSummaryResponse:
    return OrderSummaryResponse(
        id=order.id,
        status=order.status,
        status_label=order.status.label,
        created_at=order.created_at,
        created_at_display=format_order_time(order.created_at),
        customer_name=order.customer_name,
        customer_address=order.customer_address,
        type=order.type,
        delivery_charge=order.delivery_charge,
    )


def order_detail_response(details: OrderDetails) -> OrderDetailResponse:
    summary = order_summary_response(details.order)
    return OrderDetailResponse(
        **summary.model_dump(),
        items=[
            OrderItemResponse(
                menu_id=item.menu_id,
                variant_id=item.variant_id,
                name=item.menu_name or "Item",
                variant_name=item.variant_name,
                quantity=item.quantity,
                price=item.price,
                line_total=item.line_total,
            )
            for item in details.items
        ],
        items_total=details.items_total,
    )
