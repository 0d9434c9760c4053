"""Tests for adding products to the catalogue and restocking them."""

from decimal import Decimal

import pytest
from catalogue.domain import catalogue
from catalogue.product.registration import AddProduct, RestockProduct
from shared.errors import ConflictError


def _process(command):
    with catalogue.domain_context():
        return catalogue.process(command, asynchronous=False)


def test_added_product_is_active_with_no_sales(load_product):
    product_id = _process(AddProduct(sku=" MUG-1 ", name="Mug", price=Decimal("12.5"), stock=4))

    product = load_product(product_id)
    assert product.sku == "MUG-1"
    assert product.price == Decimal("12.50")
    assert product.stock == 4
    assert product.sold_count == 0
    assert product.is_active is True


def test_duplicate_sku(make_product):
    make_product(sku="MUG-1")

    with pytest.raises(ConflictError):
        _process(AddProduct(sku="MUG-1", name="Other mug", price=Decimal("9.00")))


def test_restock_adds_to_current_stock(make_product, load_product):
    product_id = make_product(stock=2, sold_count=3)

    assert _process(RestockProduct(product_id=product_id, quantity=5)) == 7
    assert load_product(product_id).stock == 7
    assert load_product(product_id).sold_count == 3
