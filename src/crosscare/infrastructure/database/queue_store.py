"""
Queue Store Interface

Contract for the persistent record store behind the counselor queue.

Every state change goes through a guarded, single-statement conditional
update (compare-and-swap on the status column plus any extra guard
columns). Implementations must never read a row and write it back in a
separate step, and never hold process-local locks: concurrency safety
comes from the store, scoped per item.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from crosscare.domain.enums.queue_enums import Priority, QueueStatus, ResponseMode
from crosscare.domain.models.feedback import AIFeedback
from crosscare.domain.models.queue_item import QueueItem, Response


@dataclass(frozen=True)
class TransitionGuard:
    """
    Conditions the stored row must meet at write time.

    Attributes:
        expected_status: Status the row must currently have
        claimed_by: Required lease holder
        response_mode: Required response mode
        deadline_after: Lease must still be live at this instant
        deadline_not_after: Lease must have lapsed by this instant
        answered_before: Row must have been answered before this instant
    """

    expected_status: QueueStatus
    claimed_by: Optional[str] = None
    response_mode: Optional[ResponseMode] = None
    deadline_after: Optional[datetime] = None
    deadline_not_after: Optional[datetime] = None
    answered_before: Optional[datetime] = None


@dataclass(frozen=True)
class ItemChanges:
    """
    Values written by a successful transition.

    The three claim fields are always written, so a transition away
    from CLAIMED cannot leave a stale lease behind. answered_at is
    written only when given.
    """

    status: QueueStatus
    updated_at: datetime
    claimed_by: Optional[str] = None
    claimed_at: Optional[datetime] = None
    response_deadline: Optional[datetime] = None
    answered_at: Optional[datetime] = None
    increment_response_count: bool = False


class QueueStore(ABC):
    """
    Abstract queue persistence.

    Writes return a bool instead of raising when the guard does not
    match: a lost race is expected, not exceptional. Infrastructure
    failures propagate unchanged.

    A guard/changes pair outside ALLOWED_TRANSITIONS is a programming
    error and raises ValueError before anything is written.
    """

    @abstractmethod
    async def create_item(self, item: QueueItem) -> QueueItem:
        """Persist a new queue item."""
        pass

    @abstractmethod
    async def get_item(
        self,
        item_id: UUID,
        *,
        include_responses: bool = False,
    ) -> Optional[QueueItem]:
        """Load one item, optionally with its responses."""
        pass

    @abstractmethod
    async def transition(
        self,
        item_id: UUID,
        guard: TransitionGuard,
        changes: ItemChanges,
    ) -> bool:
        """
        Apply changes if and only if the row matches guard.

        Returns:
            True if exactly one row was updated
        """
        pass

    @abstractmethod
    async def record_response(
        self,
        response: Response,
        guard: TransitionGuard,
        changes: ItemChanges,
    ) -> bool:
        """
        Insert response and transition its item in one transaction.

        Nothing is written unless the guard matches.

        Returns:
            True if the response was stored
        """
        pass

    @abstractmethod
    async def list_items(
        self,
        status: QueueStatus,
        *,
        response_mode: Optional[ResponseMode] = None,
        priority: Optional[Priority] = None,
        limit: int = 100,
    ) -> Sequence[QueueItem]:
        """List items by status, oldest first, ties broken by id."""
        pass

    @abstractmethod
    async def list_expired_claims(self, now: datetime, *, limit: int = 500) -> Sequence[UUID]:
        """Ids of claimed items whose deadline is at or before now."""
        pass

    @abstractmethod
    async def list_answered_before(self, cutoff: datetime, *, limit: int = 500) -> Sequence[UUID]:
        """Ids of answered items whose answered_at is before cutoff."""
        pass

    @abstractmethod
    async def list_requester_items(
        self,
        requester_id: str,
        *,
        before: datetime,
        limit: int = 10,
    ) -> Sequence[QueueItem]:
        """A requester's earlier items with responses, oldest first."""
        pass

    @abstractmethod
    async def list_responder_responses(
        self,
        responder_id: str,
        *,
        limit: int = 50,
    ) -> Sequence[Response]:
        """A counselor's human-written responses, newest first."""
        pass

    @abstractmethod
    async def get_response(self, response_id: UUID) -> Optional[Response]:
        """Load one response."""
        pass

    @abstractmethod
    async def attach_feedback(self, response_id: UUID, feedback: AIFeedback) -> bool:
        """
        Store feedback on a response that has none.

        Returns:
            False if the response is missing or already has feedback
        """
        pass
