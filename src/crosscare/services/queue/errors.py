"""
Queue Errors

Conflict errors are ordinary control flow: the caller re-fetches the
queue and decides what to do. Nothing in this package retries them.
Persistence errors are not wrapped and reach the caller unchanged.
"""

from typing import Optional
from uuid import UUID

from crosscare.domain.enums.queue_enums import QueueStatus


class QueueError(Exception):
    """Base exception for queue operations."""


class ValidationError(QueueError):
    """Input rejected before anything was persisted."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class ItemNotFoundError(QueueError):
    """No queue item with the given id."""

    def __init__(self, item_id: UUID) -> None:
        super().__init__(f"Queue item {item_id} not found")
        self.item_id = item_id


class ResponseNotFoundError(QueueError):
    """No response with the given id."""

    def __init__(self, response_id: UUID) -> None:
        super().__init__(f"Response {response_id} not found")
        self.response_id = response_id


class ConflictError(QueueError):
    """
    The item was not in the state the operation requires.

    Recoverable: re-read the queue and act on its current state.
    """

    def __init__(
        self,
        message: str,
        item_id: UUID,
        current_status: Optional[QueueStatus] = None,
    ) -> None:
        super().__init__(message)
        self.item_id = item_id
        self.current_status = current_status


class AlreadyClaimedError(ConflictError):
    """Another responder claimed the item first, or it is no longer pending."""

    def __init__(self, item_id: UUID, current_status: Optional[QueueStatus] = None) -> None:
        super().__init__(
            f"Queue item {item_id} is no longer available",
            item_id=item_id,
            current_status=current_status,
        )


class NotOwnerError(ConflictError):
    """The item is claimed by a different responder."""

    def __init__(self, item_id: UUID, actor_id: str) -> None:
        super().__init__(
            f"Queue item {item_id} is not claimed by {actor_id}",
            item_id=item_id,
            current_status=QueueStatus.CLAIMED,
        )
        self.actor_id = actor_id


class NotClaimedError(ConflictError):
    """The operation needs an active claim and the item has none."""

    def __init__(self, item_id: UUID, current_status: Optional[QueueStatus] = None) -> None:
        super().__init__(
            f"Queue item {item_id} is not claimed",
            item_id=item_id,
            current_status=current_status,
        )


class ExpiredClaimError(ConflictError):
    """The caller's lease lapsed before the response was committed."""

    def __init__(self, item_id: UUID, current_status: Optional[QueueStatus] = None) -> None:
        super().__init__(
            f"Claim on queue item {item_id} expired before the response was recorded",
            item_id=item_id,
            current_status=current_status,
        )


class InvalidTransitionError(ConflictError):
    """The requested status edge does not exist for the item's current state."""

    def __init__(
        self,
        item_id: UUID,
        current_status: Optional[QueueStatus],
        target_status: QueueStatus,
    ) -> None:
        current = current_status.value if current_status else "unknown"
        super().__init__(
            f"Queue item {item_id} cannot move from {current} to {target_status.value}",
            item_id=item_id,
            current_status=current_status,
        )
        self.target_status = target_status
