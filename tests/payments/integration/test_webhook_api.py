"""Integration tests for payment provider callbacks via TestClient."""

import pytest
from app import app
from fastapi.testclient import TestClient
from payments.gateway import get_gateway, register_gateway
from payments.gateway.fake_adapter import FakeGateway

SIGNED = {"X-Gateway-Signature": "test-signature"}


class RecordingGateway(FakeGateway):
    """Fake provider that keeps every payload it was asked to verify."""

    def __init__(self):
        super().__init__()
        self.verified_payloads = []

    def verify_webhook_signature(self, payload, signature):
        self.verified_payloads.append(payload)
        return super().verify_webhook_signature(payload, signature)


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def order(make_product, place_order):
    return place_order([(make_product(), 1)])


def test_paid_webhook_records_payment(client, order, load_order):
    response = client.post(
        "/payments/fake/webhook",
        json={"order_number": order.order_number, "status": "paid", "payment_id": "pay-1", "transaction_id": "txn-1"},
        headers=SIGNED,
    )

    assert response.status_code == 200
    assert response.json() == {
        "status": "processed",
        "order_number": order.order_number,
        "payment_status": "paid",
    }
    stored = load_order(order.id)
    assert stored.payment_status == "paid"
    assert stored.payment_id == "pay-1"
    assert stored.transaction_id == "txn-1"


def test_bad_signature_is_401(client, order, load_order):
    response = client.post(
        "/payments/fake/webhook",
        json={"order_number": order.order_number, "status": "paid"},
        headers={"X-Gateway-Signature": "forged"},
    )

    assert response.status_code == 401
    assert load_order(order.id).payment_status == "pending"


def test_unknown_provider_is_404(client, order):
    response = client.post(
        "/payments/carrier-pigeon/webhook",
        json={"order_number": order.order_number, "status": "paid"},
        headers=SIGNED,
    )

    assert response.status_code == 404


def test_unknown_order_is_404(client):
    response = client.post(
        "/payments/fake/webhook",
        json={"order_number": "ORD-20240601-9999", "status": "paid"},
        headers=SIGNED,
    )

    assert response.status_code == 404


def test_malformed_payload_is_422(client):
    response = client.post("/payments/fake/webhook", json={"status": "paid"}, headers=SIGNED)

    assert response.status_code == 422


def test_payment_on_cancelled_order_is_409(client, order, make_product):
    client.patch(f"/orders/{order.id}/cancel", json={}, headers={"X-User-Id": order.customer_id})

    response = client.post(
        "/payments/fake/webhook",
        json={"order_number": order.order_number, "status": "paid"},
        headers=SIGNED,
    )

    assert response.status_code == 409


def test_configure_fake_gateway(client):
    response = client.post("/payments/gateway/configure", json={"should_succeed": False, "failure_reason": "Nope"})

    assert response.status_code == 200
    assert response.json() == {"gateway": "FakeGateway", "should_succeed": False, "failure_reason": "Nope"}
    assert get_gateway("fake").should_succeed is False


def test_signature_is_checked_against_the_raw_body(client, order, load_order):
    gateway = RecordingGateway()
    register_gateway("fake", gateway)
    # Key order and whitespace a re-serialised payload would not reproduce
    body = '{ "status": "paid",\n  "order_number": "%s",  "payment_id": "pay-9" }' % order.order_number

    response = client.post(
        "/payments/fake/webhook",
        content=body,
        headers={**SIGNED, "Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert gateway.verified_payloads == [body]
    assert load_order(order.id).payment_id == "pay-9"


def test_body_that_is_not_json_is_422(client):
    response = client.post(
        "/payments/fake/webhook",
        content="status=paid",
        headers={**SIGNED, "Content-Type": "application/json"},
    )

    assert response.status_code == 422


def test_json_array_body_is_422(client):
    response = client.post("/payments/fake/webhook", json=[{"status": "paid"}], headers=SIGNED)

    assert response.status_code == 422
