"""
Queue Item Database Model

SQLAlchemy ORM model for support requests. The status column is the
compare-and-swap target for every queue transition.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from crosscare.domain.enums.queue_enums import (
    CulturalBackground,
    Priority,
    QueueStatus,
    ResponseMode,
)
from crosscare.domain.models.queue_item import QueueItem, utc_now
from crosscare.infrastructure.database.connection import Base

# JSONB on PostgreSQL, plain JSON elsewhere. Python None is stored as SQL NULL.
JSONType = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")


class QueueItemModel(Base):
    """
    Queue item table ORM model.

    Table: queue_items
    """

    __tablename__ = "queue_items"
    __table_args__ = (
        # Serves the FIFO listing: WHERE status = ? ORDER BY created_at, id
        Index("ix_queue_items_status_created", "status", "created_at", "id"),
        # Serves the expiry sweep
        Index("ix_queue_items_status_deadline", "status", "response_deadline"),
    )

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        doc="Unique queue item identifier"
    )
    requester_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        index=True,
        doc="Student who submitted the request"
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    response_mode: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=QueueStatus.PENDING.value,
        doc="pending, claimed, answered, archived"
    )
    priority: Mapped[str] = mapped_column(String(10), nullable=False)
    cultural_context: Mapped[str] = mapped_column(String(32), nullable=False)

    # Claim lease; all three are null unless status is claimed
    claimed_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    claimed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    response_deadline: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    answered_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    response_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tags: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    def __repr__(self) -> str:
        return f"<QueueItemModel(id={self.id}, status='{self.status}')>"

    @classmethod
    def from_domain(cls, item: QueueItem) -> "QueueItemModel":
        return cls(
            id=item.id,
            requester_id=item.requester_id,
            content=item.content,
            response_mode=item.response_mode.value,
            status=item.status.value,
            priority=item.priority.value,
            cultural_context=item.cultural_context.value,
            claimed_by=item.claimed_by,
            claimed_at=item.claimed_at,
            response_deadline=item.response_deadline,
            answered_at=item.answered_at,
            response_count=item.response_count,
            tags=list(item.tags),
            is_anonymous=item.is_anonymous,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )

    def to_domain(self) -> QueueItem:
        return QueueItem(
            id=self.id,
            requester_id=self.requester_id,
            content=self.content,
            response_mode=ResponseMode(self.response_mode),
            status=QueueStatus(self.status),
            priority=Priority(self.priority),
            cultural_context=CulturalBackground(self.cultural_context),
            claimed_by=self.claimed_by,
            claimed_at=self.claimed_at,
            response_deadline=self.response_deadline,
            answered_at=self.answered_at,
            response_count=self.response_count,
            tags=list(self.tags or []),
            is_anonymous=self.is_anonymous,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
