"""Catalogue stock as seen by ordering: lookup, reserve and release.

Checkout never loads and re-saves ``Product`` aggregates. It reads the
columns it prices with and moves stock with single conditional UPDATEs on
the session of the caller's unit of work, so a reservation commits or rolls
back together with the order that made it. Each update also advances the
product's version, which makes a concurrent save of a stale ``Product``
fail instead of overwriting the counters.
"""

import structlog
from sqlalchemy import Boolean, Column, Integer, MetaData, Numeric, String, Table, case, select, update

from shared.database import uow_session
from shared.errors import ProductNotFound

logger = structlog.get_logger(__name__)

# Columns of the catalogue's ``product`` table that ordering relies on
product_table = Table(
    "product",
    MetaData(),
    Column("id", String(255), primary_key=True),
    Column("name", String(255)),
    Column("price", Numeric(12, 2)),
    Column("stock", Integer),
    Column("sold_count", Integer),
    Column("is_active", Boolean),
    Column("_version", Integer),
)


class ProductStock:
    def __init__(self, session=None):
        self.session = session if session is not None else uow_session()

    def get_many(self, product_ids: list[str]) -> dict:
        """Resolve every id in one query, failing with all the missing ids."""
        unique_ids = list(dict.fromkeys(product_ids))
        rows = self.session.execute(select(product_table).where(product_table.c.id.in_(unique_ids))).all()
        found = {row.id: row for row in rows}

        missing = [product_id for product_id in unique_ids if product_id not in found]
        if missing:
            raise ProductNotFound(missing)
        return found

    def current_stock(self, product_id: str) -> int:
        stock = self.session.scalar(select(product_table.c.stock).where(product_table.c.id == product_id))
        return stock or 0

    def reserve_stock(self, product_id: str, quantity: int) -> bool:
        """Decrement stock if, and only if, enough is available.

        Returns False when the conditional update matched no row, which means
        the stock was taken by another transaction after it was read.
        """
        result = self.session.execute(
            update(product_table)
            .where(product_table.c.id == product_id, product_table.c.stock >= quantity)
            .values(
                stock=product_table.c.stock - quantity,
                sold_count=product_table.c.sold_count + quantity,
                _version=product_table.c._version + 1,
            )
        )

        reserved = result.rowcount == 1
        if reserved:
            logger.debug("stock_reserved", product_id=product_id, quantity=quantity)
        return reserved

    def release_stock(self, product_id: str, quantity: int) -> bool:
        """Return stock; sold count is floored at zero."""
        result = self.session.execute(
            update(product_table)
            .where(product_table.c.id == product_id)
            .values(
                stock=product_table.c.stock + quantity,
                sold_count=case(
                    (product_table.c.sold_count > quantity, product_table.c.sold_count - quantity),
                    else_=0,
                ),
                _version=product_table.c._version + 1,
            )
        )

        if result.rowcount != 1:
            logger.warning("stock_release_skipped", product_id=product_id, quantity=quantity)
            return False

        logger.debug("stock_released", product_id=product_id, quantity=quantity)
        return True
