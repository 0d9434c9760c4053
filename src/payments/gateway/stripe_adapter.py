"""Stripe payment gateway adapter (production stub).

This is a placeholder for the real Stripe SDK integration.
In production, this would use the stripe-python SDK to:
- Create PaymentIntents for an order total
- Refund charges
- Verify webhook signatures using Stripe's signing secret
"""

from decimal import Decimal

from payments.gateway.port import PaymentGateway, PaymentResult, WebhookEvent


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter. Not yet implemented."""

    provider = "stripe"

    def __init__(self, api_key: str, webhook_secret: str) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_payment(
        self,
        order_number: str,
        amount: Decimal,
        currency: str,
        payment_method: str,
        idempotency_key: str,
    ) -> PaymentResult:
        raise NotImplementedError(
            "StripeGateway.create_payment() is not yet implemented. Integrate stripe-python SDK here."
        )

    def get_payment_status(self, payment_id: str) -> PaymentResult:
        raise NotImplementedError("StripeGateway.get_payment_status() is not yet implemented.")

    def refund_payment(self, payment_id: str, amount: Decimal | None = None) -> PaymentResult:
        raise NotImplementedError(
            "StripeGateway.refund_payment() is not yet implemented. Integrate stripe-python SDK here."
        )

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        raise NotImplementedError(
            "StripeGateway.verify_webhook_signature() is not yet implemented. "
            "Use stripe.Webhook.construct_event() here."
        )

    def parse_webhook(self, payload: dict) -> WebhookEvent:
        raise NotImplementedError("StripeGateway.parse_webhook() is not yet implemented.")
