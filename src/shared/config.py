"""Storefront settings read from the ``custom`` section of ``domain.toml``.

Protean loads ``domain.toml`` when a domain is constructed and merges the
table named by ``PROTEAN_ENV`` over the base configuration. These helpers
read the storefront's own tables from the active domain.
"""

import os
from decimal import Decimal
from typing import Any

from protean.utils.globals import current_domain

DEFAULT_ENV = "development"


def current_env() -> str:
    return (os.environ.get("PROTEAN_ENV") or DEFAULT_ENV).lower()


def custom_settings(section: str) -> dict[str, Any]:
    return current_domain.config["custom"].get(section, {})


def pricing_settings() -> dict[str, Decimal | str]:
    pricing = custom_settings("pricing")
    return {
        "currency": pricing.get("currency", "USD"),
        "tax_rate": Decimal(str(pricing.get("tax_rate", "0.08"))),
        "shipping_fee": Decimal(str(pricing.get("shipping_fee", "10.00"))),
        "free_shipping_threshold": Decimal(str(pricing.get("free_shipping_threshold", "100.00"))),
    }


def order_limits() -> tuple[int, int]:
    """Return ``(max_items, max_quantity)`` for a single order."""
    orders = custom_settings("orders")
    return int(orders.get("max_items", 50)), int(orders.get("max_quantity", 1000))


def payment_settings() -> dict[str, Any]:
    return custom_settings("payments")
