"""
Checkout Aggregation

Derives the amounts shown on the cart page (subtotal, delivery charge,
grand total) and decides whether the visitor may proceed to place the
order. Nothing here talks to the data platform; the same summary drives
the cart template, the JSON API and ``place_order``.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from storefront.core.config import Settings, get_settings
from storefront.core.exceptions import InvalidSelectionError
from storefront.models import OrderSelection, ServiceMode
from storefront.state.selection import OrderSelectionStore

logger = logging.getLogger(__name__)


SELECT_ORDER_TYPE = "Please select an order type before proceeding."
ADD_DELIVERY_ADDRESS = "Please add a delivery address before proceeding."


def format_amount(amount: Decimal, currency: Optional[str] = None) -> str:
    """Render a money amount, dropping the paise when there are none."""
    currency = get_settings().currency_symbol if currency is None else currency
    if amount == amount.to_integral_value():
        return f"{currency}{amount:,.0f}"
    return f"{currency}{amount:,.2f}"


@dataclass
class CheckoutSummary:
    """
    Amounts and checkout decision for one cart.

    Attributes:
        subtotal: Sum of the cart lines
        delivery_charge: Surcharge for delivery outside the free zone
        grand_total: subtotal + delivery_charge
        minimum_order_amount: Minimum subtotal accepted for delivery
        amount_to_minimum: What is missing to reach the delivery minimum
        blocking_reason: First failed guard, None when checkout may proceed
        hint: Short status line shown next to the checkout button
    """
    subtotal: Decimal
    delivery_charge: Decimal
    grand_total: Decimal
    minimum_order_amount: Decimal
    amount_to_minimum: Decimal
    blocking_reason: Optional[str]
    hint: str

    @property
    def can_checkout(self) -> bool:
        return self.blocking_reason is None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "subtotal": self.subtotal,
            "delivery_charge": self.delivery_charge,
            "grand_total": self.grand_total,
            "minimum_order_amount": self.minimum_order_amount,
            "amount_to_minimum": self.amount_to_minimum,
            "can_checkout": self.can_checkout,
            "blocking_reason": self.blocking_reason,
            "hint": self.hint,
        }


def delivery_charge_for(
    selection: OrderSelection,
    settings: Optional[Settings] = None,
) -> Decimal:
    """Surcharge applies to delivery anywhere except the free delivery zone."""
    settings = settings or get_settings()
    if selection.service_mode != ServiceMode.DELIVERY:
        return Decimal("0")
    if selection.delivery_zone == settings.free_delivery_zone:
        return Decimal("0")
    return settings.delivery_charge


def minimum_order_message(settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    minimum = format_amount(settings.minimum_order_amount, settings.currency_symbol)
    return f"Minimum order amount is {minimum} for delivery. Please add more items to proceed."


def evaluate_checkout(
    subtotal: Decimal,
    selection: OrderSelection,
    saved_address: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> CheckoutSummary:
    """
    Build the checkout summary for a cart total and selection.

    Guards, first failure wins:
        1. no service mode chosen
        2. delivery below the minimum order amount
        3. delivery without a saved address

    Args:
        subtotal: Cart total
        selection: Current order selection
        saved_address: Address from the user's profile, if any
        settings: Override for the configured amounts

    Returns:
        CheckoutSummary
    """
    settings = settings or get_settings()
    mode = selection.service_mode
    charge = delivery_charge_for(selection, settings)
    minimum = settings.minimum_order_amount
    shortfall = max(minimum - subtotal, Decimal("0"))

    blocking_reason: Optional[str] = None
    if mode is None:
        blocking_reason = SELECT_ORDER_TYPE
    elif mode == ServiceMode.DELIVERY and subtotal < minimum:
        blocking_reason = minimum_order_message(settings)
    elif mode == ServiceMode.DELIVERY and not (saved_address and saved_address.strip()):
        blocking_reason = ADD_DELIVERY_ADDRESS

    if mode is None:
        hint = "Select order type to continue"
    elif mode == ServiceMode.DELIVERY and shortfall > 0:
        hint = f"Add {format_amount(shortfall, settings.currency_symbol)} more for delivery minimum"
    else:
        hint = "Ready to place order"

    if blocking_reason:
        logger.debug(f"Checkout blocked: {blocking_reason}")

    return CheckoutSummary(
        subtotal=subtotal,
        delivery_charge=charge,
        grand_total=subtotal + charge,
        minimum_order_amount=minimum,
        amount_to_minimum=shortfall,
        blocking_reason=blocking_reason,
        hint=hint,
    )


def confirm_selection(
    store: OrderSelectionStore,
    mode: Optional[ServiceMode],
    zone: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> None:
    """
    Apply a choice from the service selection prompt.

    Raises:
        InvalidSelectionError: No mode, a delivery without a served zone,
            or a zone given for pickup / dine-in
    """
    settings = settings or get_settings()
    if mode is None:
        raise InvalidSelectionError("Please choose Delivery, Pick-up or Dine-in.")
    if mode == ServiceMode.DELIVERY:
        if not zone:
            raise InvalidSelectionError("Please select your delivery area.")
        if zone not in settings.delivery_zones_list:
            raise InvalidSelectionError(f"Sorry, we do not deliver to {zone} yet.")
    elif zone:
        raise InvalidSelectionError("A delivery zone can only be chosen for delivery orders.")

    store.confirm(mode, zone)
    logger.info(f"Order selection confirmed: {store.selection.description}")
