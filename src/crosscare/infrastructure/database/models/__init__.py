"""
Database ORM models package.
"""

from crosscare.infrastructure.database.models.queue_item_model import QueueItemModel
from crosscare.infrastructure.database.models.response_model import ResponseModel

__all__ = [
    "QueueItemModel",
    "ResponseModel",
]
