"""Totals calculation for a prospective order.

All money is ``Decimal``. Tax and percentage discounts are rounded half-up
to the cent; every other amount is a sum or difference of cent values.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Protocol

from ordering.coupon.coupon import Coupon
from ordering.coupon.repository import CouponRepository
from ordering.coupon.validation import validate_coupon
from shared import config
from shared.errors import ProductNotFound

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class LineRequest(Protocol):
    product_id: str
    quantity: int
    selected_variants: Mapping[str, str]


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal = Decimal("0.08")
    shipping_fee: Decimal = Decimal("10.00")
    free_shipping_threshold: Decimal = Decimal("100.00")
    currency: str = "USD"

    @classmethod
    def from_config(cls) -> "PricingPolicy":
        return cls(**config.pricing_settings())

    def tax_for(self, subtotal: Decimal) -> Decimal:
        return to_money(subtotal * self.tax_rate)

    def shipping_for(self, subtotal: Decimal) -> Decimal:
        if subtotal > self.free_shipping_threshold:
            return ZERO
        return to_money(self.shipping_fee)


@dataclass(frozen=True)
class PricedLine:
    """One requested line with the unit price and name frozen from the catalogue."""

    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    selected_variants: dict[str, str] = field(default_factory=dict)

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping_cost: Decimal
    discount: Decimal
    total: Decimal
    currency: str = "USD"


def price_lines(requests: Iterable[LineRequest], products: Mapping[str, Any]) -> list[PricedLine]:
    """Freeze name and unit price from the catalogue rows keyed by product id."""
    requests = list(requests)
    missing = list(dict.fromkeys(r.product_id for r in requests if r.product_id not in products))
    if missing:
        raise ProductNotFound(missing)

    return [
        PricedLine(
            product_id=request.product_id,
            name=products[request.product_id].name,
            unit_price=to_money(products[request.product_id].price),
            quantity=request.quantity,
            selected_variants=dict(request.selected_variants or {}),
        )
        for request in requests
    ]


def subtotal_of(lines: Iterable[PricedLine]) -> Decimal:
    return sum((line.line_total for line in lines), ZERO)


def calculate_totals(
    lines: list[PricedLine],
    policy: PricingPolicy,
    coupon: Coupon | None = None,
) -> OrderTotals:
    subtotal = subtotal_of(lines)
    tax = policy.tax_for(subtotal)
    shipping_cost = policy.shipping_for(subtotal)
    discount = coupon.discount_for(subtotal, shipping_cost) if coupon is not None else ZERO

    total = max(ZERO, subtotal + tax + shipping_cost - discount)
    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        shipping_cost=shipping_cost,
        discount=discount,
        total=total,
        currency=policy.currency,
    )


def price_order(
    lines: list[PricedLine],
    policy: PricingPolicy,
    coupons: CouponRepository,
    coupon_code: str | None,
    now: datetime,
) -> tuple[OrderTotals, Coupon | None]:
    """Validate the coupon (if any) against the subtotal, then compute totals."""
    coupon = None
    if coupon_code:
        coupon = validate_coupon(coupons, coupon_code, subtotal_of(lines), now)
    return calculate_totals(lines, policy, coupon), coupon
