"""Ordering domain API package."""

from ordering.api.routes import coupon_router, order_router

__all__ = ["order_router", "coupon_router"]
