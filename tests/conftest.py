import json
import os
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

import pytest
from protean.integrations.pytest import DomainFixture

ADDRESS = {
    "first_name": "Ada",
    "last_name": "Lovelace",
    "email": "ada@example.com",
    "phone": "+1-555-0100",
    "street": "12 Analytical Way",
    "city": "London",
    "state": "LDN",
    "postal_code": "N1 9GU",
    "country": "GB",
}

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the configuration overlay before any test imports the domains."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def catalogue_bed():
    from catalogue.domain import catalogue

    bed = DomainFixture(catalogue)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(scope="session")
def ordering_bed(catalogue_bed):
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(catalogue_bed, ordering_bed):
    """Run every test inside the ordering domain; catalogue data is reset too."""
    with catalogue_bed.domain_context():
        with ordering_bed.domain_context():
            yield


@pytest.fixture(autouse=True)
def run_around_tests():
    """Reset process-wide payment adapters after every test."""
    yield

    from payments.gateway import reset_gateways

    reset_gateways()


@pytest.fixture
def address():
    return dict(ADDRESS)


@pytest.fixture
def make_product():
    from catalogue.domain import catalogue
    from catalogue.product.product import Product
    from catalogue.product.registration import AddProduct

    def _make(name="Widget", price="25.00", stock=10, sold_count=0, sku=None):
        with catalogue.domain_context():
            product_id = catalogue.process(
                AddProduct(
                    sku=sku or f"SKU-{uuid4().hex[:8].upper()}",
                    name=name,
                    price=Decimal(price),
                    stock=stock,
                ),
                asynchronous=False,
            )
            if sold_count:
                repo = catalogue.repository_for(Product)
                product = repo.get(product_id)
                product.sold_count = sold_count
                repo.add(product)
        return product_id

    return _make


@pytest.fixture
def load_product():
    from catalogue.domain import catalogue
    from catalogue.product.product import Product

    def _load(product_id):
        with catalogue.domain_context():
            return catalogue.repository_for(Product).get(product_id)

    return _load


@pytest.fixture
def make_coupon():
    from protean.utils.globals import current_domain

    from ordering.coupon.coupon import Coupon

    def _make(
        code="SAVE10",
        discount_type="percentage",
        discount_value="10",
        minimum_order_value=None,
        maximum_discount_amount=None,
        usage_limit=None,
        usage_count=0,
        is_active=True,
        start_date=datetime(2000, 1, 1, tzinfo=UTC),
        end_date=datetime(2100, 1, 1, tzinfo=UTC),
    ):
        coupon = Coupon.create(
            code=code,
            discount_type=discount_type,
            discount_value=Decimal(discount_value),
            minimum_order_value=Decimal(minimum_order_value) if minimum_order_value else None,
            maximum_discount_amount=Decimal(maximum_discount_amount) if maximum_discount_amount else None,
            usage_limit=usage_limit,
            is_active=is_active,
            start_date=start_date,
            end_date=end_date,
        )
        coupon.usage_count = usage_count
        current_domain.repository_for(Coupon).add(coupon)
        return coupon.id

    return _make


@pytest.fixture
def load_coupon():
    from protean.utils.globals import current_domain

    from ordering.coupon.coupon import Coupon

    def _load(coupon_id):
        return current_domain.repository_for(Coupon).get(coupon_id)

    return _load


def create_order_command(
    items,
    customer_id="cust-001",
    coupon_code=None,
    payment_method="credit_card",
    now=NOW,
    shipping_address=None,
    billing_address=None,
    notes=None,
):
    from ordering.order.creation import CreateOrder

    return CreateOrder(
        customer_id=customer_id,
        items=json.dumps([{"product_id": product_id, "quantity": quantity} for product_id, quantity in items]),
        shipping_address=json.dumps(shipping_address if shipping_address is not None else ADDRESS),
        billing_address=json.dumps(billing_address) if billing_address else None,
        payment_method=payment_method,
        coupon_code=coupon_code,
        notes=notes,
        placed_at=now,
    )


@pytest.fixture
def place_order():
    """Create an order through the creation handler and return it."""
    from protean.utils.globals import current_domain

    from ordering.order.order import Order

    def _place(items, **kwargs):
        order_id = current_domain.process(create_order_command(items, **kwargs), asynchronous=False)
        return current_domain.repository_for(Order).get(order_id)

    return _place


@pytest.fixture
def load_order():
    from protean.utils.globals import current_domain

    from ordering.order.order import Order

    def _load(order_id):
        return current_domain.repository_for(Order).get(order_id)

    return _load


@pytest.fixture
def advance_order(load_order):
    """Walk an order forward through the given statuses as an administrator."""
    from protean.utils.globals import current_domain

    from ordering.order.status import TransitionOrderStatus

    def _advance(order_id, *statuses):
        for status in statuses:
            current_domain.process(
                TransitionOrderStatus(order_id=order_id, status=status, actor_id="admin-001", actor_role="admin"),
                asynchronous=False,
            )
        return load_order(order_id)

    return _advance


@pytest.fixture
def order_command():
    """Build a ``CreateOrder`` command from ``(product_id, quantity)`` pairs."""
    return create_order_command
