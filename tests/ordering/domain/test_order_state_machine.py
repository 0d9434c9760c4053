"""Tests for Order state machine: valid transitions and invalid transition guards."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from ordering.order.order import Order, OrderStatus, allowed_transitions
from ordering.order.pricing import OrderTotals, PricedLine
from shared.errors import InvalidStatusTransition

ADDRESS = {
    "first_name": "Ada",
    "last_name": "Lovelace",
    "email": "ada@example.com",
    "street": "1 St",
    "city": "C",
    "state": "S",
    "postal_code": "00000",
    "country": "US",
}

_EXPECTED = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}


def _make_order():
    line = PricedLine(product_id="prod-001", name="Test Product", unit_price=Decimal("50.00"), quantity=1)
    totals = OrderTotals(
        subtotal=Decimal("50.00"),
        tax=Decimal("4.00"),
        shipping_cost=Decimal("10.00"),
        discount=Decimal("0.00"),
        total=Decimal("64.00"),
    )
    return Order.create(
        order_number="ORD-20240601-0001",
        customer_id="cust-001",
        lines=[line],
        totals=totals,
        shipping_address=ADDRESS,
        payment_method="credit_card",
        now=datetime(2024, 6, 1, tzinfo=UTC),
    )


def _apply(order, target_status):
    if target_status == OrderStatus.CONFIRMED:
        order.confirm()
    elif target_status == OrderStatus.PROCESSING:
        order.mark_processing()
    elif target_status == OrderStatus.SHIPPED:
        order.record_shipment("FedEx", "TRACK-001")
    elif target_status == OrderStatus.DELIVERED:
        order.record_delivery()
    elif target_status == OrderStatus.CANCELLED:
        order.cancel("Changed my mind", "cust-001")
    elif target_status == OrderStatus.REFUNDED:
        order.refund()
    else:
        order.assert_can_transition(target_status)


_PATHS = {
    OrderStatus.PENDING: [],
    OrderStatus.CONFIRMED: [OrderStatus.CONFIRMED],
    OrderStatus.PROCESSING: [OrderStatus.CONFIRMED, OrderStatus.PROCESSING],
    OrderStatus.SHIPPED: [OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED],
    OrderStatus.DELIVERED: [
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    ],
    OrderStatus.CANCELLED: [OrderStatus.CANCELLED],
    OrderStatus.REFUNDED: [
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.REFUNDED,
    ],
}


def _order_at_state(target_status):
    """Create an order and advance it to the desired state."""
    order = _make_order()
    for status in _PATHS[target_status]:
        _apply(order, status)
    return order


_ALL_PAIRS = [(source, target) for source in OrderStatus for target in OrderStatus]


class TestTransitionTable:
    def test_allowed_transitions_match_workflow(self):
        for status, expected in _EXPECTED.items():
            assert allowed_transitions(status) == expected

    def test_terminal_states(self):
        assert _order_at_state(OrderStatus.CANCELLED).is_terminal
        assert _order_at_state(OrderStatus.REFUNDED).is_terminal
        assert not _order_at_state(OrderStatus.DELIVERED).is_terminal


class TestTransitionClosure:
    @pytest.mark.parametrize(("source", "target"), _ALL_PAIRS, ids=lambda s: s.value)
    def test_transition_succeeds_only_when_allowed(self, source, target):
        order = _order_at_state(source)
        history_before = len(order.history)

        if target in _EXPECTED[source]:
            _apply(order, target)
            assert order.status == target.value
            assert len(order.history) == history_before + 1
            assert order.history[-1].status == target.value
        else:
            with pytest.raises(InvalidStatusTransition) as exc:
                _apply(order, target)
            assert order.status == source.value
            assert len(order.history) == history_before
            assert exc.value.from_status == source.value
            assert exc.value.to_status == target.value


class TestSideEffects:
    def test_shipment_records_time_and_tracking(self):
        order = _order_at_state(OrderStatus.SHIPPED)

        assert order.shipped_at is not None
        assert order.carrier == "FedEx"
        assert order.tracking_number == "TRACK-001"

    def test_delivery_records_time(self):
        assert _order_at_state(OrderStatus.DELIVERED).delivered_at is not None

    def test_cancellation_records_reason_and_actor(self):
        order = _order_at_state(OrderStatus.CANCELLED)

        assert order.cancelled_at is not None
        assert order.cancellation_reason == "Changed my mind"
        assert order.cancelled_by == "cust-001"
        assert order.history[-1].note == "Order cancelled: Changed my mind"

    def test_refund_defaults_to_order_total(self):
        order = _order_at_state(OrderStatus.REFUNDED)

        assert order.refunded_at is not None
        assert order.refund_amount == Decimal("64.00")

    def test_default_history_note(self):
        order = _order_at_state(OrderStatus.CONFIRMED)

        assert order.history[-1].note == "Status changed to confirmed"


class TestTransitionTo:
    def test_dispatches_to_the_lifecycle_methods(self):
        order = _make_order()

        order.transition_to(OrderStatus.CONFIRMED, note="Payment verified")
        order.transition_to(OrderStatus.PROCESSING)
        order.transition_to(OrderStatus.SHIPPED, carrier="UPS", tracking_number="1Z999")

        assert order.status == "shipped"
        assert order.carrier == "UPS"
        assert [h.note for h in order.history][1] == "Payment verified"

    def test_cancellation_records_the_acting_user(self):
        order = _make_order()

        order.transition_to(OrderStatus.CANCELLED, reason="Duplicate", actor_id="admin-001")

        assert order.cancelled_by == "admin-001"
        assert order.cancellation_reason == "Duplicate"

    def test_rejected_move_leaves_order_untouched(self):
        order = _make_order()

        with pytest.raises(InvalidStatusTransition):
            order.transition_to(OrderStatus.DELIVERED)

        assert order.status == "pending"
        assert len(order.history) == 1
