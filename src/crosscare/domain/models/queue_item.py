"""
Queue Item Domain Model

A support request waiting for, or holding, a counselor or automated
response. Items are mutated only through the claim manager and the
response submission service, and are archived rather than deleted.

PRIVACY: content holds the student's own words and must never be
logged verbatim.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from crosscare.domain.enums.queue_enums import (
    CulturalBackground,
    Priority,
    QueueStatus,
    ResponderType,
    ResponseMode,
)

if TYPE_CHECKING:
    from crosscare.domain.models.feedback import AIFeedback


def utc_now() -> datetime:
    """
    Current UTC time as a naive datetime.

    All persisted timestamps are naive UTC so that stored values and
    in-process comparisons agree on every database backend.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Every permitted status edge. Anything absent here is invalid.
ALLOWED_TRANSITIONS: frozenset[tuple[QueueStatus, QueueStatus]] = frozenset({
    (QueueStatus.PENDING, QueueStatus.CLAIMED),
    (QueueStatus.CLAIMED, QueueStatus.PENDING),
    (QueueStatus.CLAIMED, QueueStatus.ANSWERED),
    (QueueStatus.PENDING, QueueStatus.ANSWERED),  # automated replies only
    (QueueStatus.ANSWERED, QueueStatus.ARCHIVED),
})


def is_valid_transition(current: QueueStatus, target: QueueStatus) -> bool:
    """Check whether moving from current to target is a permitted edge."""
    return (current, target) in ALLOWED_TRANSITIONS


@dataclass
class Response:
    """
    A single answer to a queue item.

    Attributes:
        id: Unique response identifier
        queue_item_id: Item this response answers
        responder_id: Counselor ID, or "ai" for automated replies
        responder_type: Human or automated
        content: Response text
        timestamp: When the response was committed
        feedback: Attached analysis, absent until the pipeline finishes
        model_id: Generating model for automated replies
    """

    queue_item_id: UUID
    responder_id: str
    responder_type: ResponderType
    content: str
    id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=utc_now)
    feedback: Optional["AIFeedback"] = None
    model_id: Optional[str] = None

    @property
    def has_feedback(self) -> bool:
        return self.feedback is not None

    def to_dict(self) -> dict:
        """Serialize response to dictionary."""
        return {
            "id": str(self.id),
            "queue_item_id": str(self.queue_item_id),
            "responder_id": self.responder_id,
            "responder_type": self.responder_type.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "model_id": self.model_id,
            "feedback": self.feedback.to_dict() if self.feedback else None,
        }


@dataclass
class QueueItem:
    """
    Support request in the counselor queue.

    Invariants:
    - response_deadline is set if and only if status is CLAIMED
    - claimed_by / claimed_at are set if and only if status is CLAIMED
    - priority never affects ordering

    Attributes:
        id: Unique item identifier
        requester_id: Student who submitted the request
        content: Request text
        response_mode: Whether the student asked for AI or a counselor
        status: Current lifecycle status
        priority: Advisory urgency
        cultural_context: Student's cultural background
        created_at: Submission time; the queue's ordering key
        updated_at: Last transition time
        claimed_by: Counselor holding the lease
        claimed_at: When the lease began
        response_deadline: When the lease lapses
        answered_at: When a response was committed
        response_count: Number of committed responses
        tags: Topic keywords derived from content
        is_anonymous: Hide requester identity from counselors
        responses: Loaded responses, oldest first
    """

    requester_id: str
    content: str
    response_mode: ResponseMode = ResponseMode.HUMAN
    cultural_context: CulturalBackground = CulturalBackground.OTHER
    priority: Priority = Priority.MEDIUM
    status: QueueStatus = QueueStatus.PENDING
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    claimed_by: Optional[str] = None
    claimed_at: Optional[datetime] = None
    response_deadline: Optional[datetime] = None
    answered_at: Optional[datetime] = None
    response_count: int = 0
    tags: list[str] = field(default_factory=list)
    is_anonymous: bool = False
    responses: list[Response] = field(default_factory=list)

    @property
    def is_claimed(self) -> bool:
        return self.status == QueueStatus.CLAIMED

    def is_claimed_by(self, actor_id: str) -> bool:
        """Check whether actor_id currently holds the lease."""
        return self.is_claimed and self.claimed_by == actor_id

    def lease_expired(self, now: datetime) -> bool:
        """True when the item is claimed and its deadline has passed."""
        return (
            self.is_claimed
            and self.response_deadline is not None
            and self.response_deadline <= now
        )

    def to_dict(self, include_requester: bool = True) -> dict:
        """Serialize item to dictionary."""
        requester = self.requester_id
        if self.is_anonymous and not include_requester:
            requester = None
        return {
            "id": str(self.id),
            "requester_id": requester,
            "content": self.content,
            "response_mode": self.response_mode.value,
            "status": self.status.value,
            "priority": self.priority.value,
            "cultural_context": self.cultural_context.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "claimed_by": self.claimed_by,
            "claimed_at": self.claimed_at.isoformat() if self.claimed_at else None,
            "response_deadline": (
                self.response_deadline.isoformat() if self.response_deadline else None
            ),
            "answered_at": self.answered_at.isoformat() if self.answered_at else None,
            "response_count": self.response_count,
            "tags": list(self.tags),
            "is_anonymous": self.is_anonymous,
        }
