"""Ordering bounded context: orders, coupons and their lifecycle."""
