"""Unit tests for the domain value types."""

from decimal import Decimal

import pytest

from storefront.models import (
    ORDER_PROGRESSION,
    CartLine,
    OrderSelection,
    OrderStatus,
    ServiceMode,
)
from tests.helpers import make_line


class TestCartLine:

    def test_key_is_product_and_variant(self):
        line = make_line("p1", "v-medium")
        assert line.key == ("p1", "v-medium")

    def test_line_total(self):
        assert make_line(price="150", quantity=3).line_total == Decimal("450")

    def test_with_quantity_returns_new_line(self):
        line = make_line(quantity=1)
        bigger = line.with_quantity(4)
        assert bigger.quantity == 4
        assert line.quantity == 1

    def test_dict_round_trip_keeps_decimal_price(self):
        line = make_line(price="99.50", label="Large", variant_id="v-l")
        data = line.to_dict()
        assert data["unit_price"] == "99.50"
        assert CartLine.from_dict(data) == line

    @pytest.mark.parametrize("field,value", [("quantity", 0), ("quantity", -2), ("unit_price", "-1")])
    def test_from_dict_rejects_invalid_values(self, field, value):
        data = make_line().to_dict()
        data[field] = value
        with pytest.raises(ValueError):
            CartLine.from_dict(data)


class TestOrderSelection:

    @pytest.mark.parametrize("mode,zone,expected", [
        (None, None, False),
        (ServiceMode.PICKUP, None, True),
        (ServiceMode.DINE_IN, None, True),
        (ServiceMode.DELIVERY, None, False),
        (ServiceMode.DELIVERY, "Madhuban", True),
    ])
    def test_is_complete(self, mode, zone, expected):
        assert OrderSelection(mode, zone).is_complete is expected

    def test_description(self):
        assert OrderSelection().description is None
        assert OrderSelection(ServiceMode.DELIVERY, "Talimpur").description == "Delivery • Talimpur"
        assert OrderSelection(ServiceMode.DINE_IN).description == "Dine-in"

    def test_from_dict_drops_zone_unless_delivery(self):
        selection = OrderSelection.from_dict({"service_mode": "pickup", "delivery_zone": "Madhuban"})
        assert selection == OrderSelection(ServiceMode.PICKUP, None)

    def test_from_dict_rejects_unknown_mode(self):
        with pytest.raises(ValueError):
            OrderSelection.from_dict({"service_mode": "drive-through"})


class TestOrderStatus:

    def test_happy_path_moves_one_step_at_a_time(self):
        for current, following in zip(ORDER_PROGRESSION, ORDER_PROGRESSION[1:]):
            assert current.can_transition_to(following)

    def test_cannot_skip_steps(self):
        assert not OrderStatus.PENDING.can_transition_to(OrderStatus.READY)
        assert not OrderStatus.PREPARING.can_transition_to(OrderStatus.ACCEPTED)

    def test_cancel_allowed_before_delivery(self):
        assert OrderStatus.DISPATCHED.can_transition_to(OrderStatus.CANCELLED)
        assert not OrderStatus.DELIVERED.can_transition_to(OrderStatus.CANCELLED)

    def test_terminal_states(self):
        assert OrderStatus.DELIVERED.is_terminal
        assert OrderStatus.CANCELLED.is_terminal
        assert not OrderStatus.CANCELLED.can_transition_to(OrderStatus.PENDING)

    def test_labels_and_steps(self):
        assert OrderStatus.ACCEPTED.label == "Order Confirmed"
        assert OrderStatus.DISPATCHED.label == "On the Way"
        assert OrderStatus.PENDING.step == 1
        assert OrderStatus.DELIVERED.step == 6
        assert OrderStatus.CANCELLED.step is None
