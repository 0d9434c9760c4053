"""Tests for the catalogue stock counters used by order reservation."""

import pytest
from catalogue.product.stock import ProductStock
from protean import UnitOfWork
from protean.exceptions import InvalidOperationError
from shared.errors import ProductNotFound


def test_reserve_decrements_stock_and_counts_sale(make_product, load_product):
    product_id = make_product(stock=5)

    with UnitOfWork():
        reserved = ProductStock().reserve_stock(product_id, 3)

    assert reserved is True
    assert load_product(product_id).stock == 2
    assert load_product(product_id).sold_count == 3


def test_reserve_refuses_more_than_available(make_product, load_product):
    product_id = make_product(stock=2)

    with UnitOfWork():
        reserved = ProductStock().reserve_stock(product_id, 3)

    assert reserved is False
    assert load_product(product_id).stock == 2
    assert load_product(product_id).sold_count == 0


def test_reservation_is_undone_with_the_unit_of_work(make_product, load_product):
    product_id = make_product(stock=5)

    with pytest.raises(RuntimeError):
        with UnitOfWork():
            ProductStock().reserve_stock(product_id, 5)
            raise RuntimeError("checkout failed")

    assert load_product(product_id).stock == 5


def test_reserve_advances_product_version(make_product, load_product):
    product_id = make_product(stock=5)
    version = load_product(product_id)._version

    with UnitOfWork():
        ProductStock().reserve_stock(product_id, 1)

    assert load_product(product_id)._version == version + 1


def test_release_restores_stock_and_floors_sold_count(make_product, load_product):
    product_id = make_product(stock=1, sold_count=2)

    with UnitOfWork():
        ProductStock().release_stock(product_id, 3)

    assert load_product(product_id).stock == 4
    assert load_product(product_id).sold_count == 0


def test_release_of_missing_product_is_skipped():
    with UnitOfWork():
        assert ProductStock().release_stock("gone", 1) is False


def test_get_many_reports_every_missing_id(make_product):
    product_id = make_product()

    with pytest.raises(ProductNotFound) as exc:
        with UnitOfWork():
            ProductStock().get_many([product_id, "x", "y", "x"])

    assert exc.value.product_ids == ["x", "y"]


def test_stock_requires_a_unit_of_work():
    with pytest.raises(InvalidOperationError):
        ProductStock()
