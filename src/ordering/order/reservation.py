"""Committing and returning catalogue stock for an order.

Reservation runs in two phases inside the caller's transaction. The first
phase only reads, so a shortfall on any line fails before any stock moves.
The second phase decrements with conditional updates; if one of them loses
a race, raising makes the enclosing transaction undo the decrements already
applied.
"""

from collections.abc import Iterable

import structlog

from catalogue.product.stock import ProductStock
from ordering.order.order import OrderItem
from ordering.order.pricing import PricedLine
from shared.errors import InsufficientStock

logger = structlog.get_logger(__name__)


def _quantities_by_product(lines: Iterable[PricedLine]) -> dict[str, tuple[str, int]]:
    requested: dict[str, tuple[str, int]] = {}
    for line in lines:
        name, quantity = requested.get(line.product_id, (line.name, 0))
        requested[line.product_id] = (name, quantity + line.quantity)
    return requested


def reserve_inventory(products: ProductStock, lines: list[PricedLine]) -> None:
    requested = _quantities_by_product(lines)

    for product_id, (name, quantity) in requested.items():
        available = products.current_stock(product_id)
        if available < quantity:
            logger.info("reservation_rejected", product_id=product_id, available=available, requested=quantity)
            raise InsufficientStock(product_id, name, available, quantity)

    for product_id, (name, quantity) in requested.items():
        if not products.reserve_stock(product_id, quantity):
            available = products.current_stock(product_id)
            logger.warning("reservation_lost_race", product_id=product_id, available=available, requested=quantity)
            raise InsufficientStock(product_id, name, available, quantity)

    logger.info("inventory_reserved", lines=len(lines), products=len(requested))


def release_inventory(products: ProductStock, items: Iterable[OrderItem]) -> None:
    """Hand every item's quantity back to the catalogue."""
    released = 0
    for item in items:
        if products.release_stock(item.product_id, item.quantity):
            released += item.quantity
    logger.info("inventory_released", units=released)
