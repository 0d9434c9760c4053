"""Coupon aggregate and the discount it grants."""

from datetime import datetime
from decimal import ROUND_HALF_UP
from decimal import Decimal as D
from enum import Enum

from protean.fields import Boolean, DateTime, Decimal, Integer, String, Text

from ordering.domain import ordering
from shared.database import as_utc, utcnow

CENT = D("0.01")


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_SHIPPING = "free_shipping"


def normalize_code(code: str) -> str:
    return code.strip().upper()


@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    name = String(max_length=255)
    description = Text()
    discount_type = String(required=True, max_length=20, choices=DiscountType)
    discount_value = Decimal(required=True, min_value=0, precision=12, scale=2)
    maximum_discount_amount = Decimal(min_value=0, precision=12, scale=2)
    minimum_order_value = Decimal(min_value=0, precision=12, scale=2)
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)
    usage_limit = Integer(min_value=1)
    usage_count = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        discount_value,
        start_date,
        end_date,
        name=None,
        description=None,
        maximum_discount_amount=None,
        minimum_order_value=None,
        usage_limit=None,
        is_active=True,
    ):
        now = utcnow()
        return cls(
            code=normalize_code(code),
            name=name,
            description=description,
            discount_type=DiscountType(discount_type).value,
            discount_value=D(discount_value).quantize(CENT),
            maximum_discount_amount=None if maximum_discount_amount is None else D(maximum_discount_amount).quantize(CENT),
            minimum_order_value=None if minimum_order_value is None else D(minimum_order_value).quantize(CENT),
            start_date=as_utc(start_date),
            end_date=as_utc(end_date),
            usage_limit=usage_limit,
            usage_count=0,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )

    def activate(self) -> None:
        self.is_active = True
        self.updated_at = utcnow()

    def deactivate(self) -> None:
        self.is_active = False
        self.updated_at = utcnow()

    def rejection_reason(self, subtotal: D, now: datetime) -> str | None:
        """Return why the coupon cannot be applied, or None when it can.

        Checks run in a fixed order and stop at the first failure.
        """
        now = as_utc(now)
        if not self.is_active:
            return "coupon is not active"
        if now < as_utc(self.start_date):
            return "coupon is not yet valid"
        if now > as_utc(self.end_date):
            return "coupon has expired"
        if self.usage_limit is not None and (self.usage_count or 0) >= self.usage_limit:
            return "usage limit reached"
        if self.minimum_order_value is not None and subtotal < self.minimum_order_value:
            return "minimum order not met"
        return None

    def discount_for(self, subtotal: D, shipping_cost: D) -> D:
        """Discount granted on an order, capped by the maximum and the subtotal."""
        discount_type = DiscountType(self.discount_type)
        if discount_type == DiscountType.PERCENTAGE:
            discount = (subtotal * self.discount_value / 100).quantize(CENT, rounding=ROUND_HALF_UP)
        elif discount_type == DiscountType.FIXED_AMOUNT:
            discount = D(self.discount_value)
        else:
            discount = shipping_cost

        if self.maximum_discount_amount is not None:
            discount = min(discount, D(self.maximum_discount_amount))
        return max(D("0"), min(discount, subtotal)).quantize(CENT)
