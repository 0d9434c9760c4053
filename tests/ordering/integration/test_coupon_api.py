"""Integration tests for Coupon API endpoints via TestClient."""

from decimal import Decimal

import pytest
from app import app
from fastapi.testclient import TestClient

ADDRESS = {
    "first_name": "Grace",
    "last_name": "Hopper",
    "email": "grace@example.com",
    "street": "1 Harbor Rd",
    "city": "Arlington",
    "state": "VA",
    "postal_code": "22201",
    "country": "US",
}

CUSTOMER = {"X-User-Id": "cust-api-001"}
ADMIN = {"X-User-Id": "admin-001", "X-User-Role": "admin"}

COUPON = {
    "code": "save10",
    "name": "Ten off",
    "discount_type": "fixed_amount",
    "discount_value": "10",
    "minimum_order_value": "50",
    "start_date": "2000-01-01T00:00:00Z",
    "end_date": "2100-01-01T00:00:00Z",
}


@pytest.fixture()
def client():
    return TestClient(app)


def test_admin_creates_coupon(client):
    response = client.post("/coupons", json=COUPON, headers=ADMIN)

    body = response.json()
    assert response.status_code == 201
    assert body["code"] == "SAVE10"
    assert body["usage_count"] == 0
    assert body["is_active"] is True


def test_customer_cannot_create_coupon(client):
    response = client.post("/coupons", json=COUPON, headers=CUSTOMER)

    assert response.status_code == 403


def test_duplicate_code_is_409(client):
    client.post("/coupons", json=COUPON, headers=ADMIN)

    response = client.post("/coupons", json={**COUPON, "code": "SAVE10"}, headers=ADMIN)

    assert response.status_code == 409


def test_inverted_validity_window_is_422(client):
    response = client.post(
        "/coupons",
        json={**COUPON, "start_date": "2100-01-01T00:00:00Z", "end_date": "2000-01-01T00:00:00Z"},
        headers=ADMIN,
    )

    assert response.status_code == 422


def test_validate_applicable_coupon(client):
    client.post("/coupons", json=COUPON, headers=ADMIN)

    response = client.post("/coupons/validate", json={"code": "save10", "order_amount": "70"}, headers=CUSTOMER)

    body = response.json()
    assert body["valid"] is True
    assert Decimal(body["discount"]) == Decimal("10.00")


def test_validate_reports_reason(client):
    client.post("/coupons", json=COUPON, headers=ADMIN)

    response = client.post("/coupons/validate", json={"code": "SAVE10", "order_amount": "40"}, headers=CUSTOMER)

    body = response.json()
    assert body["valid"] is False
    assert body["reason"] == "minimum order not met"


def test_deactivated_coupon_is_rejected_at_checkout(client, make_product):
    coupon_id = client.post("/coupons", json=COUPON, headers=ADMIN).json()["id"]
    product_id = make_product(price="35.00")

    deactivated = client.put(f"/coupons/{coupon_id}/deactivate", headers=ADMIN)
    order = client.post(
        "/orders",
        json={
            "items": [{"product_id": product_id, "quantity": 2}],
            "shipping_address": ADDRESS,
            "payment_method": "credit_card",
            "coupon_code": "SAVE10",
        },
        headers=CUSTOMER,
    )

    assert deactivated.json()["is_active"] is False
    assert order.status_code == 409
    assert order.json()["context"]["reason"] == "coupon is not active"


def test_coupon_applied_at_checkout(client, make_product, load_coupon):
    coupon_id = client.post("/coupons", json=COUPON, headers=ADMIN).json()["id"]
    product_id = make_product(price="35.00")

    response = client.post(
        "/orders",
        json={
            "items": [{"product_id": product_id, "quantity": 2}],
            "shipping_address": ADDRESS,
            "payment_method": "credit_card",
            "coupon_code": "save10",
        },
        headers=CUSTOMER,
    )

    body = response.json()
    assert Decimal(body["discount"]) == Decimal("10.00")
    assert Decimal(body["total"]) == Decimal("75.60")
    assert body["coupon_code"] == "SAVE10"
    assert load_coupon(coupon_id).usage_count == 1
