"""Tests for the configurable fake payment gateway."""

from decimal import Decimal

import pytest
from payments.gateway.fake_adapter import FakeGateway
from shared.errors import ValidationError


@pytest.fixture
def gateway():
    return FakeGateway()


class TestPayments:
    def test_successful_payment(self, gateway):
        result = gateway.create_payment("ORD-20240601-0001", Decimal("85.60"), "USD", "credit_card", "key-1")

        assert result.success
        assert result.status == "paid"
        assert result.payment_id.startswith("fake_pay_")
        assert gateway.calls[0]["method"] == "create_payment"
        assert gateway.calls[0]["idempotency_key"] == "key-1"

    def test_declined_payment(self, gateway):
        gateway.configure(should_succeed=False, failure_reason="Insufficient funds")

        result = gateway.create_payment("ORD-20240601-0001", Decimal("10.00"), "USD", "credit_card", "key-2")

        assert not result.success
        assert result.status == "failed"
        assert result.failure_reason == "Insufficient funds"

    def test_status_lookup(self, gateway):
        payment = gateway.create_payment("ORD-20240601-0001", Decimal("10.00"), "USD", "paypal", "key-3")

        assert gateway.get_payment_status(payment.payment_id) == payment
        assert not gateway.get_payment_status("unknown").success


class TestRefunds:
    def test_full_refund(self, gateway):
        payment = gateway.create_payment("ORD-20240601-0001", Decimal("40.00"), "USD", "credit_card", "key-4")

        refund = gateway.refund_payment(payment.payment_id)

        assert refund.success
        assert refund.status == "refunded"
        assert refund.amount == Decimal("40.00")

    def test_partial_refund(self, gateway):
        payment = gateway.create_payment("ORD-20240601-0001", Decimal("40.00"), "USD", "credit_card", "key-5")

        refund = gateway.refund_payment(payment.payment_id, Decimal("15.00"))

        assert refund.status == "partially_refunded"

    def test_refund_of_unknown_payment(self, gateway):
        refund = gateway.refund_payment("nope")

        assert not refund.success
        assert refund.failure_reason == "Unknown payment"


class TestWebhooks:
    def test_signature(self, gateway):
        assert gateway.verify_webhook_signature("{}", "test-signature")
        assert not gateway.verify_webhook_signature("{}", "forged")

    def test_parse_webhook(self, gateway):
        event = gateway.parse_webhook(
            {"order_number": "ORD-20240601-0001", "status": "paid", "payment_id": "p1", "transaction_id": "t1"}
        )

        assert event.provider == "fake"
        assert event.order_number == "ORD-20240601-0001"
        assert event.payment_status == "paid"
        assert event.transaction_id == "t1"

    def test_malformed_webhook(self, gateway):
        with pytest.raises(ValidationError):
            gateway.parse_webhook({"status": "paid"})
