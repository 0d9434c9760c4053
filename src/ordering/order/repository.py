"""Persistence for orders."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.numbering import OrderSequence
from ordering.order.order import Order
from shared.database import as_stored
from shared.errors import ConcurrentModification, OrderNotFound

SORTABLE_FIELDS = ("created_at", "total", "order_number", "status")


@dataclass(frozen=True)
class OrderSearch:
    customer_id: str | None = None
    status: str | None = None
    payment_status: str | None = None
    payment_method: str | None = None
    order_number: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    min_total: Decimal | None = None
    max_total: Decimal | None = None
    sort_by: str = "created_at"
    sort_order: str = "desc"
    page: int = 1
    limit: int = 10


@ordering.repository(part_of=Order)
class OrderRepository:
    def add(self, order: Order) -> Order:
        """Persist ``order``, reporting a lost optimistic-lock race as a conflict.

        Identifiers are read before the write; once a failed flush has
        poisoned the session the aggregate's attributes may not be readable.
        """
        order_id, order_number = order.id, order.order_number
        try:
            return super().add(order)
        except ExpectedVersionError as exc:
            raise ConcurrentModification(
                f"Order {order_number} was modified by another request",
                order_id=order_id,
            ) from exc

    def get(self, order_id: str) -> Order:
        try:
            return super().get(order_id)
        except ObjectNotFoundError:
            raise OrderNotFound(order_id) from None

    def get_by_number(self, order_number: str) -> Order:
        order = self.query.filter(order_number=order_number).all().first
        if order is None:
            raise OrderNotFound(order_number)
        return order

    def next_sequence(self, day: str) -> int:
        return current_domain.repository_for(OrderSequence).next_sequence(day)

    def search(self, criteria: OrderSearch) -> tuple[list[Order], int]:
        """Return one page of matching orders and the total match count."""
        lookups = {}
        if criteria.customer_id:
            lookups["customer_id"] = criteria.customer_id
        if criteria.status:
            lookups["status"] = criteria.status
        if criteria.payment_status:
            lookups["payment_status"] = criteria.payment_status
        if criteria.payment_method:
            lookups["payment_method"] = criteria.payment_method
        if criteria.order_number:
            lookups["order_number__contains"] = criteria.order_number
        if criteria.date_from:
            lookups["created_at__gte"] = as_stored(criteria.date_from)
        if criteria.date_to:
            lookups["created_at__lte"] = as_stored(criteria.date_to)
        if criteria.min_total is not None:
            lookups["total__gte"] = criteria.min_total
        if criteria.max_total is not None:
            lookups["total__lte"] = criteria.max_total

        sort_by = criteria.sort_by if criteria.sort_by in SORTABLE_FIELDS else "created_at"
        direction = "" if criteria.sort_order == "asc" else "-"
        results = (
            self.query.filter(**lookups)
            .order_by([f"{direction}{sort_by}", f"{direction}order_number"])
            .offset((criteria.page - 1) * criteria.limit)
            .limit(criteria.limit)
            .all()
        )
        return list(results.items), results.total
