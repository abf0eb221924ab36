"""
SQL Queue Store

QueueStore implementation on SQLAlchemy async. Each public method runs
in its own transaction. Transitions are single UPDATE statements whose
WHERE clause carries the whole guard, so the database row lock is the
only synchronisation.
"""

from datetime import datetime
from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy import ColumnElement, select, update

from crosscare.config.logging_config import get_logger
from crosscare.domain.enums.queue_enums import Priority, QueueStatus, ResponderType, ResponseMode
from crosscare.domain.models.feedback import AIFeedback
from crosscare.domain.models.queue_item import QueueItem, Response, is_valid_transition
from crosscare.infrastructure.database.connection import DatabaseManager
from crosscare.infrastructure.database.models import QueueItemModel, ResponseModel
from crosscare.infrastructure.database.queue_store import (
    ItemChanges,
    QueueStore,
    TransitionGuard,
)

logger = get_logger(__name__)


def _guard_clauses(guard: TransitionGuard) -> list[ColumnElement[bool]]:
    """Translate a guard into WHERE clauses on queue_items."""
    clauses = [QueueItemModel.status == guard.expected_status.value]
    if guard.claimed_by is not None:
        clauses.append(QueueItemModel.claimed_by == guard.claimed_by)
    if guard.response_mode is not None:
        clauses.append(QueueItemModel.response_mode == guard.response_mode.value)
    if guard.deadline_after is not None:
        clauses.append(QueueItemModel.response_deadline > guard.deadline_after)
    if guard.deadline_not_after is not None:
        clauses.append(QueueItemModel.response_deadline <= guard.deadline_not_after)
    if guard.answered_before is not None:
        clauses.append(QueueItemModel.answered_at < guard.answered_before)
    return clauses


def _change_values(changes: ItemChanges) -> dict[str, Any]:
    values: dict[str, Any] = {
        "status": changes.status.value,
        "updated_at": changes.updated_at,
        "claimed_by": changes.claimed_by,
        "claimed_at": changes.claimed_at,
        "response_deadline": changes.response_deadline,
    }
    if changes.answered_at is not None:
        values["answered_at"] = changes.answered_at
    if changes.increment_response_count:
        values["response_count"] = QueueItemModel.response_count + 1
    return values


def _conditional_update(item_id: UUID, guard: TransitionGuard, changes: ItemChanges):
    if not is_valid_transition(guard.expected_status, changes.status):
        raise ValueError(
            f"{guard.expected_status.value} -> {changes.status.value} is not a permitted transition"
        )
    return (
        update(QueueItemModel)
        .where(QueueItemModel.id == item_id, *_guard_clauses(guard))
        .values(**_change_values(changes))
        .execution_options(synchronize_session=False)
    )


class SqlQueueStore(QueueStore):
    """
    SQLAlchemy-backed queue store.

    Usage:
        store = SqlQueueStore(get_db_manager())
        ok = await store.transition(item_id, guard, changes)
    """

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def create_item(self, item: QueueItem) -> QueueItem:
        async with self._db.session() as session:
            session.add(QueueItemModel.from_domain(item))
        return item

    async def get_item(
        self,
        item_id: UUID,
        *,
        include_responses: bool = False,
    ) -> Optional[QueueItem]:
        async with self._db.session() as session:
            row = await session.get(QueueItemModel, item_id)
            if row is None:
                return None
            item = row.to_domain()
            if include_responses:
                result = await session.execute(
                    select(ResponseModel)
                    .where(ResponseModel.queue_item_id == item_id)
                    .order_by(ResponseModel.timestamp.asc(), ResponseModel.id.asc())
                )
                item.responses = [r.to_domain() for r in result.scalars().all()]
            return item

    async def transition(
        self,
        item_id: UUID,
        guard: TransitionGuard,
        changes: ItemChanges,
    ) -> bool:
        async with self._db.session() as session:
            result = await session.execute(_conditional_update(item_id, guard, changes))
            return result.rowcount == 1

    async def record_response(
        self,
        response: Response,
        guard: TransitionGuard,
        changes: ItemChanges,
    ) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                _conditional_update(response.queue_item_id, guard, changes)
            )
            if result.rowcount != 1:
                return False
            session.add(ResponseModel.from_domain(response))
            await session.flush()
            return True

    async def list_items(
        self,
        status: QueueStatus,
        *,
        response_mode: Optional[ResponseMode] = None,
        priority: Optional[Priority] = None,
        limit: int = 100,
    ) -> Sequence[QueueItem]:
        query = select(QueueItemModel).where(QueueItemModel.status == status.value)
        if response_mode is not None:
            query = query.where(QueueItemModel.response_mode == response_mode.value)
        if priority is not None:
            query = query.where(QueueItemModel.priority == priority.value)
        query = query.order_by(
            QueueItemModel.created_at.asc(),
            QueueItemModel.id.asc(),
        ).limit(limit)

        async with self._db.session() as session:
            result = await session.execute(query)
            return [row.to_domain() for row in result.scalars().all()]

    async def list_expired_claims(self, now: datetime, *, limit: int = 500) -> Sequence[UUID]:
        async with self._db.session() as session:
            result = await session.execute(
                select(QueueItemModel.id)
                .where(
                    QueueItemModel.status == QueueStatus.CLAIMED.value,
                    QueueItemModel.response_deadline <= now,
                )
                .order_by(QueueItemModel.response_deadline.asc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def list_answered_before(self, cutoff: datetime, *, limit: int = 500) -> Sequence[UUID]:
        async with self._db.session() as session:
            result = await session.execute(
                select(QueueItemModel.id)
                .where(
                    QueueItemModel.status == QueueStatus.ANSWERED.value,
                    QueueItemModel.answered_at < cutoff,
                )
                .order_by(QueueItemModel.answered_at.asc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def list_requester_items(
        self,
        requester_id: str,
        *,
        before: datetime,
        limit: int = 10,
    ) -> Sequence[QueueItem]:
        async with self._db.session() as session:
            result = await session.execute(
                select(QueueItemModel)
                .where(
                    QueueItemModel.requester_id == requester_id,
                    QueueItemModel.created_at < before,
                )
                .order_by(QueueItemModel.created_at.desc())
                .limit(limit)
            )
            items = [row.to_domain() for row in reversed(result.scalars().all())]
            if not items:
                return items

            responses = await session.execute(
                select(ResponseModel)
                .where(ResponseModel.queue_item_id.in_([item.id for item in items]))
                .order_by(ResponseModel.timestamp.asc())
            )
            by_item: dict[UUID, list[Response]] = {}
            for row in responses.scalars().all():
                by_item.setdefault(row.queue_item_id, []).append(row.to_domain())
            for item in items:
                item.responses = by_item.get(item.id, [])
            return items

    async def list_responder_responses(
        self,
        responder_id: str,
        *,
        limit: int = 50,
    ) -> Sequence[Response]:
        async with self._db.session() as session:
            result = await session.execute(
                select(ResponseModel)
                .where(
                    ResponseModel.responder_id == responder_id,
                    ResponseModel.responder_type == ResponderType.HUMAN.value,
                )
                .order_by(ResponseModel.timestamp.desc(), ResponseModel.id.desc())
                .limit(limit)
            )
            return [row.to_domain() for row in result.scalars().all()]

    async def get_response(self, response_id: UUID) -> Optional[Response]:
        async with self._db.session() as session:
            row = await session.get(ResponseModel, response_id)
            return row.to_domain() if row else None

    async def attach_feedback(self, response_id: UUID, feedback: AIFeedback) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                update(ResponseModel)
                .where(
                    ResponseModel.id == response_id,
                    ResponseModel.feedback.is_(None),
                )
                .values(feedback=feedback.to_dict())
                .execution_options(synchronize_session=False)
            )
            attached = result.rowcount == 1
        if not attached:
            logger.warning("Feedback not attached", response_id=str(response_id))
        return attached
