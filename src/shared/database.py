"""Transaction plumbing shared by the catalogue and ordering domains.

Protean owns the engines and sessions. Two things are layered on top:

- SQLite connections open every transaction with ``BEGIN IMMEDIATE``.
  pysqlite defers BEGIN until the first write, which lets two checkouts both
  read the same stock before either writes. Taking the write lock up front
  serialises writers and keeps SAVEPOINT working.
- ``uow_session()`` hands out the session of the active unit of work, so the
  conditional stock and counter updates ride the same transaction as the
  aggregates a handler persists.
"""

import sqlite3
from datetime import UTC, datetime

from protean.exceptions import InvalidOperationError
from protean.utils.globals import current_uow
from sqlalchemy import Engine, event

SQLITE_BUSY_TIMEOUT_MS = 30000


@event.listens_for(Engine, "connect")
def _configure_sqlite_connection(dbapi_connection, connection_record):
    if isinstance(dbapi_connection, sqlite3.Connection):
        dbapi_connection.isolation_level = None
        dbapi_connection.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")


@event.listens_for(Engine, "begin")
def _begin_immediate(conn):
    if conn.dialect.name == "sqlite":
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def uow_session(provider: str = "default"):
    """Session of the unit of work in progress on the current domain."""
    if not (current_uow and current_uow.in_progress):
        raise InvalidOperationError("No unit of work in progress")
    return current_uow.get_session(provider)


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Timezone-aware UTC view of a stored or supplied timestamp.

    Timestamps are stored as naive UTC; a naive value is read as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def as_stored(value: datetime | None) -> datetime | None:
    """Naive UTC form used in storage and in query lookups."""
    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None)
