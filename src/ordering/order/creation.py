"""Order creation: command and handler.

Creation is one unit of work: price the lines, validate the coupon, reserve
stock, claim an order number, write the order, then count the coupon
redemption. Any failure rolls the whole transaction back, so stock and
coupon usage are untouched by a rejected checkout.
"""

import json
from dataclasses import dataclass, field
from typing import Any

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from catalogue.product.stock import ProductStock
from ordering.coupon.coupon import Coupon, normalize_code
from ordering.domain import ordering
from ordering.order.numbering import generate_order_number
from ordering.order.order import Order, PaymentMethod
from ordering.order.pricing import PricingPolicy, price_lines, price_order
from ordering.order.reservation import reserve_inventory
from shared import config
from shared.database import as_utc, utcnow
from shared.errors import ValidationError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderLine:
    product_id: str
    quantity: int
    selected_variants: dict[str, str] = field(default_factory=dict)


@ordering.command(part_of="Order")
class CreateOrder:
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity, selected_variants}
    shipping_address = Text(required=True)  # JSON: address dict
    billing_address = Text()  # JSON: address dict, defaults to the shipping address
    payment_method = String(required=True, max_length=30)
    coupon_code = String(max_length=50)
    notes = Text()
    placed_at = DateTime()


def _loads(value: Any, field_name: str) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        raise ValidationError(f"{field_name} is not valid JSON", errors={field_name: ["Malformed JSON"]}) from None


def _parse_lines(items: Any) -> list[OrderLine]:
    items = _loads(items, "items")
    if not isinstance(items, list):
        raise ValidationError("items must be a list", errors={"items": ["Expected a list of order lines"]})

    lines = []
    for item in items:
        if not isinstance(item, dict) or not item.get("product_id") or not isinstance(item.get("quantity"), int):
            raise ValidationError("Malformed order line", errors={"items": [f"Malformed order line: {item!r}"]})
        lines.append(
            OrderLine(
                product_id=str(item["product_id"]),
                quantity=item["quantity"],
                selected_variants=dict(item.get("selected_variants") or {}),
            )
        )
    return lines


def _validate(lines: list[OrderLine], payment_method: str, shipping_address: Any) -> None:
    max_items, max_quantity = config.order_limits()
    errors = {}

    if not lines:
        errors["items"] = ["Order must contain at least one item"]
    elif len(lines) > max_items:
        errors["items"] = [f"Order cannot contain more than {max_items} items"]

    bad_quantities = [line.product_id for line in lines if not 1 <= line.quantity <= max_quantity]
    if bad_quantities:
        errors["quantity"] = [f"Quantity must be between 1 and {max_quantity} for {pid}" for pid in bad_quantities]

    if payment_method not in {method.value for method in PaymentMethod}:
        errors["payment_method"] = [f"Unknown payment method: {payment_method}"]
    if not shipping_address:
        errors["shipping_address"] = ["This field is required"]

    if errors:
        raise ValidationError("Invalid order request", errors=errors)


@ordering.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        lines = _parse_lines(command.items)
        shipping_address = _loads(command.shipping_address, "shipping_address")
        billing_address = _loads(command.billing_address, "billing_address") if command.billing_address else None
        _validate(lines, command.payment_method, shipping_address)

        now = as_utc(command.placed_at) or utcnow()
        coupon_code = normalize_code(command.coupon_code) if command.coupon_code else None
        policy = PricingPolicy.from_config()
        products = ProductStock()
        orders = current_domain.repository_for(Order)
        coupons = current_domain.repository_for(Coupon)

        catalogue = products.get_many([line.product_id for line in lines])
        priced = price_lines(lines, catalogue)
        totals, coupon = price_order(priced, policy, coupons, coupon_code, now)

        reserve_inventory(products, priced)

        order = Order.create(
            order_number=generate_order_number(orders, now),
            customer_id=command.customer_id,
            lines=priced,
            totals=totals,
            shipping_address=shipping_address,
            billing_address=billing_address,
            payment_method=command.payment_method,
            coupon_id=coupon.id if coupon else None,
            coupon_code=coupon.code if coupon else None,
            notes=command.notes,
            now=now,
        )
        orders.add(order)

        if coupon is not None:
            coupons.increment_usage(coupon.id)
            logger.info("coupon_usage_incremented", coupon_id=coupon.id, code=coupon.code)

        logger.info(
            "order_created",
            order_id=order.id,
            order_number=order.order_number,
            customer_id=order.customer_id,
            total=str(order.total),
            items=len(order.items),
        )
        return str(order.id)
