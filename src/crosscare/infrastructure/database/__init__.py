"""
Database infrastructure components.
"""

from crosscare.infrastructure.database.connection import (
    Base,
    DatabaseManager,
    get_db_manager,
)
from crosscare.infrastructure.database.queue_store import (
    ItemChanges,
    QueueStore,
    TransitionGuard,
)
from crosscare.infrastructure.database.sql_queue_store import SqlQueueStore

__all__ = [
    "Base",
    "DatabaseManager",
    "get_db_manager",
    "ItemChanges",
    "QueueStore",
    "TransitionGuard",
    "SqlQueueStore",
]
