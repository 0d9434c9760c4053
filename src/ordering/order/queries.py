"""Read access to orders, scoped by who is asking."""

from dataclasses import dataclass, replace
from math import ceil

from protean.utils.globals import current_domain

from ordering.order.order import Order
from ordering.order.repository import OrderSearch
from shared.actor import Actor
from shared.errors import Forbidden

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class OrderPage:
    orders: list[Order]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return ceil(self.total / self.limit) if self.limit else 0


def _ensure_access(order: Order, actor: Actor) -> Order:
    if not actor.can_access(order.customer_id):
        raise Forbidden("You can only view your own orders", order_id=order.id, user_id=actor.user_id)
    return order


def get_order(order_id: str, actor: Actor) -> Order:
    return _ensure_access(current_domain.repository_for(Order).get(order_id), actor)


def get_order_by_number(order_number: str, actor: Actor) -> Order:
    return _ensure_access(current_domain.repository_for(Order).get_by_number(order_number), actor)


def list_orders(criteria: OrderSearch, actor: Actor) -> OrderPage:
    """Search orders; customers only ever see their own."""
    if not actor.is_admin:
        criteria = replace(criteria, customer_id=actor.user_id)
    criteria = replace(
        criteria,
        page=max(1, criteria.page),
        limit=min(max(1, criteria.limit), MAX_PAGE_SIZE),
    )

    orders, total = current_domain.repository_for(Order).search(criteria)
    return OrderPage(orders=orders, total=total, page=criteria.page, limit=criteria.limit)
