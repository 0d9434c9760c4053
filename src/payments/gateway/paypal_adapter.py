"""PayPal payment gateway adapter (production stub).

Placeholder for the PayPal Orders v2 integration: create and capture
orders, issue refunds and verify webhook events against the configured
webhook id.
"""

from decimal import Decimal

from payments.gateway.port import PaymentGateway, PaymentResult, WebhookEvent


class PayPalGateway(PaymentGateway):
    """Production PayPal gateway adapter. Not yet implemented."""

    provider = "paypal"

    def __init__(self, client_id: str, client_secret: str, webhook_id: str) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.webhook_id = webhook_id

    def create_payment(
        self,
        order_number: str,
        amount: Decimal,
        currency: str,
        payment_method: str,
        idempotency_key: str,
    ) -> PaymentResult:
        raise NotImplementedError("PayPalGateway.create_payment() is not yet implemented.")

    def get_payment_status(self, payment_id: str) -> PaymentResult:
        raise NotImplementedError("PayPalGateway.get_payment_status() is not yet implemented.")

    def refund_payment(self, payment_id: str, amount: Decimal | None = None) -> PaymentResult:
        raise NotImplementedError("PayPalGateway.refund_payment() is not yet implemented.")

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        raise NotImplementedError("PayPalGateway.verify_webhook_signature() is not yet implemented.")

    def parse_webhook(self, payload: dict) -> WebhookEvent:
        raise NotImplementedError("PayPalGateway.parse_webhook() is not yet implemented.")
