"""Error taxonomy shared by every bounded context.

Each error carries a ``kind`` (its class name), a human readable message and
a ``context`` dict with the structured fields a caller may want to act on.
The HTTP layer maps the families below onto status codes.
"""

from typing import Any


class StorefrontError(Exception):
    """Base exception for all storefront domain errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    @property
    def kind(self) -> str:
        return type(self).__name__


class ValidationError(StorefrontError):
    """Input is malformed or violates a business rule before any side effect."""


class NotFoundError(StorefrontError):
    """A referenced record does not exist."""


class ProductNotFound(NotFoundError):
    def __init__(self, product_ids: list[str]):
        super().__init__(
            f"Product(s) not found: {', '.join(product_ids)}",
            product_ids=product_ids,
        )
        self.product_ids = product_ids


class OrderNotFound(NotFoundError):
    def __init__(self, reference: str):
        super().__init__(f"Order not found: {reference}", reference=reference)


class CouponNotFound(NotFoundError):
    def __init__(self, reference: str):
        super().__init__(f"Coupon not found: {reference}", reference=reference)


class UnknownPaymentProvider(NotFoundError):
    def __init__(self, provider: str):
        super().__init__(f"Unknown payment provider: {provider}", provider=provider)


class ConflictError(StorefrontError):
    """The request is well formed but conflicts with current state."""


class InsufficientStock(ConflictError):
    def __init__(self, product_id: str, name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {name}: {available} available, {requested} requested",
            product_id=product_id,
            name=name,
            available=available,
            requested=requested,
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class InvalidCoupon(ConflictError):
    def __init__(self, reason: str, code: str | None = None):
        super().__init__(reason, code=code, reason=reason)
        self.reason = reason


class InvalidStatusTransition(ConflictError):
    def __init__(self, from_status: str, to_status: str):
        super().__init__(
            f"Cannot transition from {from_status} to {to_status}",
            from_status=from_status,
            to_status=to_status,
        )
        self.from_status = from_status
        self.to_status = to_status


class NotCancellable(ConflictError):
    def __init__(self, order_number: str, status: str):
        super().__init__(
            f"Order {order_number} cannot be cancelled in status {status}",
            order_number=order_number,
            status=status,
        )
        self.status = status


class ConcurrentModification(ConflictError):
    """Another transaction changed the record between read and write."""


class PaymentStateConflict(ConflictError):
    """A payment result does not fit the order's current state."""


class Forbidden(StorefrontError):
    """The acting user may not perform the operation."""


class InvalidWebhookSignature(StorefrontError):
    """A payment provider callback failed signature verification."""
