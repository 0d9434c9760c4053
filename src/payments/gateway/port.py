"""Payment gateway port (abstract interface).

Defines the contract every payment provider adapter implements. Adapters
are looked up by provider key, so the ordering core never needs to know
which provider collected a payment.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PaymentResult:
    """Outcome of a payment, status or refund call."""

    success: bool
    provider: str
    payment_id: str | None = None
    transaction_id: str | None = None
    status: str | None = None
    amount: Decimal | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class WebhookEvent:
    """A provider callback normalised to the order it concerns."""

    provider: str
    order_number: str
    payment_status: str
    payment_id: str | None = None
    transaction_id: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    provider: str

    @abstractmethod
    def create_payment(
        self,
        order_number: str,
        amount: Decimal,
        currency: str,
        payment_method: str,
        idempotency_key: str,
    ) -> PaymentResult:
        """Ask the provider to collect a payment for an order."""
        ...

    @abstractmethod
    def get_payment_status(self, payment_id: str) -> PaymentResult:
        """Look up the provider's view of a payment."""
        ...

    @abstractmethod
    def refund_payment(self, payment_id: str, amount: Decimal | None = None) -> PaymentResult:
        """Refund a captured payment, fully when ``amount`` is None."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the provider."""
        ...

    @abstractmethod
    def parse_webhook(self, payload: dict) -> WebhookEvent:
        """Translate a provider callback into a ``WebhookEvent``."""
        ...
