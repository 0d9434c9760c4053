"""Order aggregate, the core of the ordering domain.

An order freezes the prices, totals and addresses captured at checkout and
then moves through a guarded status workflow. Every status change appends
exactly one entry to the order's status history.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED → REFUNDED
    CANCELLED (from PENDING, CONFIRMED, PROCESSING)
    CANCELLED and REFUNDED are terminal.

The aggregate's ``_version`` makes every save conditional on the version
that was read, so two concurrent transitions cannot both commit.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP
from decimal import Decimal as D
from enum import Enum
from typing import Any

from protean.fields import (
    DateTime,
    Decimal,
    Dict,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.pricing import OrderTotals, PricedLine
from shared.database import utcnow
from shared.errors import InvalidStatusTransition, ValidationError

CENT = D("0.01")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    CASH_ON_DELIVERY = "cash_on_delivery"
    BANK_TRANSFER = "bank_transfer"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}

# States from which cancellation is allowed
CANCELLABLE_STATES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING})

# Transitions that hand reserved stock back to the catalogue
RESTOCKING_STATES = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})

ADDRESS_FIELDS = ("first_name", "last_name", "email", "phone", "street", "city", "state", "postal_code", "country")
REQUIRED_ADDRESS_FIELDS = ("first_name", "last_name", "email", "street", "city", "state", "postal_code", "country")


def allowed_transitions(status: OrderStatus) -> frozenset[OrderStatus]:
    return frozenset(_VALID_TRANSITIONS[status])


def validate_address(address: dict[str, Any] | None, field_name: str) -> dict[str, Any]:
    if not address:
        raise ValidationError(f"{field_name} is required", errors={field_name: ["This field is required"]})
    if not isinstance(address, dict):
        raise ValidationError(f"{field_name} must be an object", errors={field_name: ["Expected an address object"]})

    missing = [name for name in REQUIRED_ADDRESS_FIELDS if not address.get(name)]
    if missing:
        raise ValidationError(
            f"{field_name} is incomplete",
            errors={field_name: [f"Missing {name}" for name in missing]},
        )
    return {name: address.get(name) for name in ADDRESS_FIELDS}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Address:
    """A delivery or billing address captured at checkout time.

    Once recorded on an order the address never changes.
    """

    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    email = String(required=True, max_length=255)
    phone = String(max_length=30)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line of the order with its unit price frozen at creation time."""

    position = Integer(required=True, min_value=0)
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Decimal(required=True, min_value=0, precision=12, scale=2)
    total = Decimal(required=True, min_value=0, precision=12, scale=2)
    selected_variants = Dict()


@ordering.entity(part_of="Order")
class StatusHistoryEntry:
    """One append-only entry per status change."""

    position = Integer(required=True, min_value=0)
    status = String(required=True, max_length=20, choices=OrderStatus)
    timestamp = DateTime(required=True)
    note = Text()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=32, unique=True)
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    status_history = HasMany(StatusHistoryEntry)

    subtotal = Decimal(required=True, min_value=0, precision=12, scale=2)
    tax = Decimal(required=True, min_value=0, precision=12, scale=2)
    shipping_cost = Decimal(required=True, min_value=0, precision=12, scale=2)
    discount = Decimal(required=True, min_value=0, precision=12, scale=2)
    total = Decimal(required=True, min_value=0, precision=12, scale=2)
    currency = String(max_length=3, default="USD")

    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_id = String(max_length=255)
    transaction_id = String(max_length=255)

    shipping_address = ValueObject(Address, required=True)
    billing_address = ValueObject(Address, required=True)

    applied_coupon_id = Identifier()
    coupon_code = String(max_length=50)
    notes = Text()

    carrier = String(max_length=100)
    tracking_number = String(max_length=255)
    estimated_delivery = String(max_length=10)  # ISO date string

    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)
    cancelled_by = Identifier()
    refunded_at = DateTime()
    refund_amount = Decimal(min_value=0, precision=12, scale=2)

    created_at = DateTime(required=True)
    updated_at = DateTime(required=True)

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number: str,
        customer_id: str,
        lines: list[PricedLine],
        totals: OrderTotals,
        shipping_address: dict[str, Any],
        payment_method: str,
        billing_address: dict[str, Any] | None = None,
        coupon_id: str | None = None,
        coupon_code: str | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> "Order":
        """Create a pending order from priced lines and computed totals.

        The billing address defaults to a copy of the shipping address.
        """
        now = now or utcnow()
        shipping = validate_address(shipping_address, "shipping_address")
        billing = validate_address(billing_address, "billing_address") if billing_address else dict(shipping)
        try:
            method = PaymentMethod(payment_method).value
        except ValueError:
            raise ValidationError(
                f"Unknown payment method: {payment_method}",
                errors={"payment_method": [f"Unknown payment method: {payment_method}"]},
            ) from None

        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            subtotal=totals.subtotal,
            tax=totals.tax,
            shipping_cost=totals.shipping_cost,
            discount=totals.discount,
            total=totals.total,
            currency=totals.currency,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=method,
            shipping_address=Address(**shipping),
            billing_address=Address(**billing),
            applied_coupon_id=coupon_id,
            coupon_code=coupon_code,
            notes=notes,
            created_at=now,
            updated_at=now,
            items=[
                OrderItem(
                    position=position,
                    product_id=line.product_id,
                    name=line.name,
                    quantity=line.quantity,
                    price=line.unit_price,
                    total=line.line_total,
                    selected_variants=dict(line.selected_variants),
                )
                for position, line in enumerate(lines)
            ],
        )
        order._check_totals()
        order._append_history(OrderStatus.PENDING, "Order created", now)
        return order

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    def _check_totals(self) -> None:
        line_sum = sum((item.total for item in self.items), D("0"))
        if line_sum != self.subtotal:
            raise ValidationError("Subtotal does not match order lines", subtotal=str(self.subtotal))
        if not D("0") <= self.discount <= self.subtotal:
            raise ValidationError("Discount must be between 0 and the subtotal", discount=str(self.discount))
        expected = max(D("0"), self.subtotal + self.tax + self.shipping_cost - self.discount)
        if self.total != expected:
            raise ValidationError("Order total does not reconcile", total=str(self.total))

    # -------------------------------------------------------------------
    # Ordered views of the child collections
    # -------------------------------------------------------------------
    @property
    def lines(self) -> list[OrderItem]:
        return sorted(self.items, key=lambda item: item.position)

    @property
    def history(self) -> list[StatusHistoryEntry]:
        return sorted(self.status_history, key=lambda entry: entry.position)

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[self.current_status]

    @property
    def is_cancellable(self) -> bool:
        return self.current_status in CANCELLABLE_STATES

    def can_transition_to(self, target_status: OrderStatus) -> bool:
        return target_status in _VALID_TRANSITIONS[self.current_status]

    def assert_can_transition(self, target_status: OrderStatus) -> None:
        """Validate that the current state allows transition to target."""
        if not self.can_transition_to(target_status):
            raise InvalidStatusTransition(self.current_status.value, target_status.value)

    def _append_history(self, status: OrderStatus, note: str | None, now: datetime) -> None:
        self.add_status_history(
            StatusHistoryEntry(
                position=len(self.status_history),
                status=status.value,
                timestamp=now,
                note=note,
            )
        )

    def _move_to(self, target_status: OrderStatus, note: str | None, now: datetime | None) -> datetime:
        self.assert_can_transition(target_status)
        now = now or utcnow()
        self.status = target_status.value
        self.updated_at = now
        self._append_history(target_status, note or f"Status changed to {target_status.value}", now)
        return now

    # -------------------------------------------------------------------
    # Order lifecycle transitions
    # -------------------------------------------------------------------
    def confirm(self, note: str | None = None, now: datetime | None = None) -> None:
        self._move_to(OrderStatus.CONFIRMED, note, now)

    def mark_processing(self, note: str | None = None, now: datetime | None = None) -> None:
        self._move_to(OrderStatus.PROCESSING, note, now)

    def record_shipment(
        self,
        carrier: str | None = None,
        tracking_number: str | None = None,
        note: str | None = None,
        now: datetime | None = None,
    ) -> None:
        self.shipped_at = self._move_to(OrderStatus.SHIPPED, note, now)
        if carrier:
            self.carrier = carrier
        if tracking_number:
            self.tracking_number = tracking_number

    def record_delivery(self, note: str | None = None, now: datetime | None = None) -> None:
        self.delivered_at = self._move_to(OrderStatus.DELIVERED, note, now)

    def cancel(self, reason: str | None, cancelled_by: str | None, now: datetime | None = None) -> None:
        """Cancel the order. Stock release is the caller's job."""
        note = f"Order cancelled: {reason}" if reason else "Order cancelled"
        self.cancelled_at = self._move_to(OrderStatus.CANCELLED, note, now)
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by

    def refund(
        self,
        refund_amount: D | None = None,
        note: str | None = None,
        now: datetime | None = None,
    ) -> None:
        """Refund a delivered order, by default for its full total."""
        self.assert_can_transition(OrderStatus.REFUNDED)
        amount = self.total if refund_amount is None else D(refund_amount).quantize(CENT, rounding=ROUND_HALF_UP)
        if not D("0") <= amount <= self.total:
            raise ValidationError(
                f"Refund amount must be between 0 and the order total {self.total}",
                refund_amount=str(amount),
            )
        self.refunded_at = self._move_to(OrderStatus.REFUNDED, note, now)
        self.refund_amount = amount

    def transition_to(
        self,
        target_status: OrderStatus,
        note: str | None = None,
        reason: str | None = None,
        actor_id: str | None = None,
        carrier: str | None = None,
        tracking_number: str | None = None,
        refund_amount: D | None = None,
        now: datetime | None = None,
    ) -> None:
        """Move to ``target_status`` through the matching lifecycle method.

        Raises InvalidStatusTransition without touching the order when the
        move is not allowed.
        """
        if target_status == OrderStatus.CONFIRMED:
            self.confirm(note, now)
        elif target_status == OrderStatus.PROCESSING:
            self.mark_processing(note, now)
        elif target_status == OrderStatus.SHIPPED:
            self.record_shipment(carrier, tracking_number, note, now)
        elif target_status == OrderStatus.DELIVERED:
            self.record_delivery(note, now)
        elif target_status == OrderStatus.CANCELLED:
            self.cancel(reason, actor_id, now)
        elif target_status == OrderStatus.REFUNDED:
            self.refund(refund_amount, note, now)
        else:
            self.assert_can_transition(target_status)

    # -------------------------------------------------------------------
    # Non-status updates
    # -------------------------------------------------------------------
    def update_fulfilment_details(
        self,
        carrier: str | None = None,
        tracking_number: str | None = None,
        estimated_delivery: str | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> None:
        """Set tracking data and notes. These never touch the status history."""
        if carrier is not None:
            self.carrier = carrier
        if tracking_number is not None:
            self.tracking_number = tracking_number
        if estimated_delivery is not None:
            self.estimated_delivery = estimated_delivery
        if notes is not None:
            self.notes = notes
        self.updated_at = now or utcnow()

    def record_payment(
        self,
        payment_status: PaymentStatus,
        payment_id: str | None = None,
        transaction_id: str | None = None,
        now: datetime | None = None,
    ) -> None:
        self.payment_status = payment_status.value
        if payment_id:
            self.payment_id = payment_id
        if transaction_id:
            self.transaction_id = transaction_id
        self.updated_at = now or utcnow()

    def __repr__(self) -> str:
        return f"<Order {self.order_number} {self.status}>"
