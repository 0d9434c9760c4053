"""Administrative coupon commands and the customer-facing preview."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal as D

from protean import handle
from protean.fields import Boolean, DateTime, Decimal, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.coupon.coupon import Coupon, DiscountType, normalize_code
from ordering.coupon.validation import validate_coupon
from ordering.domain import logger, ordering
from ordering.order.pricing import PricingPolicy
from shared.actor import actor_of, require_admin
from shared.database import as_utc, utcnow
from shared.errors import ConflictError, InvalidCoupon, ValidationError


@ordering.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    discount_type = String(required=True, max_length=20)
    discount_value = Decimal(required=True)
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)
    name = String(max_length=255)
    description = Text()
    maximum_discount_amount = Decimal()
    minimum_order_value = Decimal()
    usage_limit = Integer()
    is_active = Boolean(default=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@ordering.command(part_of="Coupon")
class ActivateCoupon:
    coupon_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@ordering.command(part_of="Coupon")
class DeactivateCoupon:
    coupon_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)


@dataclass(frozen=True)
class CouponPreview:
    code: str
    valid: bool
    reason: str | None = None
    discount: D = D("0.00")


def _validate_configuration(command: CreateCoupon) -> None:
    errors = {}
    try:
        discount_type = DiscountType(command.discount_type)
    except ValueError:
        errors["discount_type"] = [f"Unknown discount type: {command.discount_type}"]
    else:
        if discount_type == DiscountType.PERCENTAGE and not (0 < command.discount_value <= 100):
            errors["discount_value"] = ["Percentage discount must be between 0 and 100"]
        elif discount_type == DiscountType.FIXED_AMOUNT and command.discount_value <= 0:
            errors["discount_value"] = ["Fixed discount must be greater than 0"]

    if as_utc(command.start_date) >= as_utc(command.end_date):
        errors["end_date"] = ["End date must be after start date"]
    if command.usage_limit is not None and command.usage_limit < 1:
        errors["usage_limit"] = ["Usage limit must be at least 1"]
    if not 3 <= len(normalize_code(command.code)) <= 50:
        errors["code"] = ["Coupon code must be between 3 and 50 characters"]

    if errors:
        raise ValidationError("Invalid coupon configuration", errors=errors)


@ordering.command_handler(part_of=Coupon)
class CouponManagementHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        require_admin(actor_of(command), "create coupons")
        _validate_configuration(command)

        repo = current_domain.repository_for(Coupon)
        code = normalize_code(command.code)
        if repo.find_by_code(code) is not None:
            raise ConflictError(f"Coupon code already exists: {code}", code=code)

        coupon = Coupon.create(
            code=code,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            start_date=command.start_date,
            end_date=command.end_date,
            name=command.name,
            description=command.description,
            maximum_discount_amount=command.maximum_discount_amount,
            minimum_order_value=command.minimum_order_value,
            usage_limit=command.usage_limit,
            is_active=command.is_active,
        )
        repo.add(coupon)
        logger.info("coupon_created", coupon_id=str(coupon.id), code=code, discount_type=command.discount_type)
        return str(coupon.id)

    @handle(ActivateCoupon)
    def activate_coupon(self, command):
        return self._set_active(command, True)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        return self._set_active(command, False)

    def _set_active(self, command, active: bool) -> str:
        require_admin(actor_of(command), "change coupon status")
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        if active:
            coupon.activate()
        else:
            coupon.deactivate()
        repo.add(coupon)
        logger.info("coupon_status_changed", coupon_id=str(coupon.id), code=coupon.code, is_active=active)
        return str(coupon.id)


def preview_coupon(
    code: str,
    order_amount: D,
    now: datetime | None = None,
    policy: PricingPolicy | None = None,
) -> CouponPreview:
    """Tell a shopper whether a code applies to an order amount, and for how much."""
    now = now or utcnow()
    policy = policy or PricingPolicy.from_config()
    try:
        coupon = validate_coupon(current_domain.repository_for(Coupon), code, order_amount, now)
    except InvalidCoupon as exc:
        return CouponPreview(code=normalize_code(code), valid=False, reason=exc.reason)

    discount = coupon.discount_for(order_amount, policy.shipping_for(order_amount))
    return CouponPreview(code=coupon.code, valid=True, discount=discount)
