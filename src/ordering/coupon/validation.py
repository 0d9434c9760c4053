"""Coupon validation against an order subtotal.

Validation never changes ``usage_count``; the count is incremented only after
the order that redeems the coupon has been written.
"""

from datetime import datetime
from decimal import Decimal

import structlog

from ordering.coupon.coupon import Coupon, normalize_code
from shared.errors import InvalidCoupon

logger = structlog.get_logger(__name__)


def validate_coupon(coupons, code: str, subtotal: Decimal, now: datetime) -> Coupon:
    """Return the coupon for ``code`` or raise ``InvalidCoupon`` with the reason."""
    code = normalize_code(code)
    coupon = coupons.find_by_code(code)
    if coupon is None:
        reason = "coupon not found"
    else:
        reason = coupon.rejection_reason(subtotal, now)

    if reason is not None:
        logger.info("coupon_rejected", code=code, reason=reason, subtotal=str(subtotal))
        raise InvalidCoupon(reason, code=code)

    return coupon
