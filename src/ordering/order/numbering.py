"""Human-readable order numbers: ``ORD-YYYYMMDD-NNNN``.

The sequence part comes from a per-day counter row that is incremented
atomically in the database, so concurrent checkouts never share a number.
Sequences past 9999 simply grow a fifth digit.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from protean.fields import Integer, String
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError

from ordering.domain import ordering
from shared.database import uow_session

if TYPE_CHECKING:
    from ordering.order.repository import OrderRepository

ORDER_NUMBER_PREFIX = "ORD"

# Attempts at creating a day's counter row when racing another transaction
_SEQUENCE_ATTEMPTS = 3


@ordering.aggregate
class OrderSequence:
    day = String(identifier=True, max_length=8)
    last_value = Integer(default=0, min_value=0)


@ordering.repository(part_of=OrderSequence)
class OrderSequenceRepository:
    def next_sequence(self, day: str) -> int:
        """Atomically increment and return the counter for ``day``.

        The first order of a day inserts the counter row inside a savepoint;
        if another transaction inserted it first, the increment is retried.
        """
        table = self._dao.database_model_cls.__table__
        session = uow_session(self._provider.name)

        for _ in range(_SEQUENCE_ATTEMPTS):
            result = session.execute(
                update(table)
                .where(table.c.day == day)
                .values(last_value=table.c.last_value + 1, _version=table.c._version + 1)
            )
            if result.rowcount == 1:
                return session.scalar(select(table.c.last_value).where(table.c.day == day))

            try:
                with session.begin_nested():
                    session.execute(insert(table).values(day=day, last_value=1, _version=0))
                return 1
            except IntegrityError:
                continue

        raise RuntimeError(f"Could not allocate an order number for {day}")


def sequence_day(now: datetime) -> str:
    """Counter key for the UTC calendar date of ``now``."""
    if now.tzinfo is not None:
        now = now.astimezone(UTC)
    return now.strftime("%Y%m%d")


def format_order_number(day: str, sequence: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}-{day}-{sequence:04d}"


def generate_order_number(orders: "OrderRepository", now: datetime) -> str:
    """Claim the next number for the day of ``now``."""
    day = sequence_day(now)
    return format_order_number(day, orders.next_sequence(day))
