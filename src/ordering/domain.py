"""Ordering bounded context: orders, coupons and their lifecycle.

Orders are persisted aggregates with an optimistic version; checkout, status
changes and cancellations run as commands processed synchronously.
"""

import structlog
from protean.domain import Domain

import shared.database  # noqa: F401  SQLite BEGIN IMMEDIATE listeners

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
