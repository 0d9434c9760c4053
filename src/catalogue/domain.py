"""Domain initialization and configuration."""

from protean.domain import Domain

import shared.database  # noqa: F401  SQLite BEGIN IMMEDIATE listeners
from shared.logging import get_logger

logger = get_logger(__name__)

# Domain Composition Root
catalogue = Domain(name="catalogue")
