"""Configurable fake payment gateway for development and testing.

Simulates a provider without any external calls. It can be told to succeed
or fail, and it records every call it receives.
"""

from decimal import Decimal
from uuid import uuid4

from payments.gateway.port import PaymentGateway, PaymentResult, WebhookEvent
from shared.errors import ValidationError


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    provider = "fake"

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []
        self.payments: dict[str, PaymentResult] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_payment(
        self,
        order_number: str,
        amount: Decimal,
        currency: str,
        payment_method: str,
        idempotency_key: str,
    ) -> PaymentResult:
        self.calls.append(
            {
                "method": "create_payment",
                "order_number": order_number,
                "amount": amount,
                "currency": currency,
                "payment_method": payment_method,
                "idempotency_key": idempotency_key,
            }
        )

        payment_id = f"fake_pay_{uuid4().hex[:12]}"
        if self.should_succeed:
            result = PaymentResult(
                success=True,
                provider=self.provider,
                payment_id=payment_id,
                transaction_id=f"fake_txn_{uuid4().hex[:12]}",
                status="paid",
                amount=amount,
            )
        else:
            result = PaymentResult(
                success=False,
                provider=self.provider,
                payment_id=payment_id,
                status="failed",
                amount=amount,
                failure_reason=self.failure_reason,
            )
        self.payments[payment_id] = result
        return result

    def get_payment_status(self, payment_id: str) -> PaymentResult:
        self.calls.append({"method": "get_payment_status", "payment_id": payment_id})
        return self.payments.get(
            payment_id,
            PaymentResult(success=False, provider=self.provider, payment_id=payment_id, failure_reason="Unknown payment"),
        )

    def refund_payment(self, payment_id: str, amount: Decimal | None = None) -> PaymentResult:
        self.calls.append({"method": "refund_payment", "payment_id": payment_id, "amount": amount})

        original = self.payments.get(payment_id)
        if not self.should_succeed or original is None or original.status != "paid":
            return PaymentResult(
                success=False,
                provider=self.provider,
                payment_id=payment_id,
                failure_reason=self.failure_reason if original is not None else "Unknown payment",
            )

        refunded = original.amount if amount is None else amount
        status = "refunded" if refunded == original.amount else "partially_refunded"
        return PaymentResult(
            success=True,
            provider=self.provider,
            payment_id=payment_id,
            transaction_id=f"fake_ref_{uuid4().hex[:12]}",
            status=status,
            amount=refunded,
        )

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == "test-signature"

    def parse_webhook(self, payload: dict) -> WebhookEvent:
        missing = [key for key in ("order_number", "status") if not payload.get(key)]
        if missing:
            raise ValidationError("Malformed webhook payload", errors={key: ["This field is required"] for key in missing})

        return WebhookEvent(
            provider=self.provider,
            order_number=payload["order_number"],
            payment_status=payload["status"],
            payment_id=payload.get("payment_id"),
            transaction_id=payload.get("transaction_id"),
            failure_reason=payload.get("failure_reason"),
        )
