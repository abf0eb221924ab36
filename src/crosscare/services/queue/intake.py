"""
Request Intake

Creates pending queue items from student submissions.
"""

import re
from datetime import datetime
from typing import Callable

from crosscare.config.logging_config import get_logger
from crosscare.domain.enums.queue_enums import (
    CulturalBackground,
    Priority,
    QueueStatus,
    ResponseMode,
)
from crosscare.domain.models.queue_item import QueueItem, utc_now
from crosscare.infrastructure.database.queue_store import QueueStore
from crosscare.infrastructure.metrics import QUEUE_REQUESTS_TOTAL
from crosscare.services.queue.errors import ValidationError

logger = get_logger(__name__)

MAX_REQUEST_LENGTH = 4000

TAG_CONCEPTS: tuple[str, ...] = (
    "anxiety",
    "stress",
    "depression",
    "family",
    "relationships",
    "academic",
    "career",
    "identity",
    "cultural",
    "social",
)

_WORD = re.compile(r"\b\w+\b")


def extract_tags(content: str) -> list[str]:
    """
    Concepts mentioned in content, in TAG_CONCEPTS order.

    A word matches a concept if it contains it ("stressed") or is a
    prefix of it at least five letters long ("relationship").
    """
    words = set(_WORD.findall(content.lower()))
    return [
        concept for concept in TAG_CONCEPTS
        if any(
            concept in word or (len(word) >= 5 and concept.startswith(word))
            for word in words
        )
    ]


class RequestIntake:
    """Validates and enqueues support requests."""

    def __init__(
        self,
        store: QueueStore,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    async def create_request(
        self,
        requester_id: str,
        content: str,
        response_mode: ResponseMode = ResponseMode.HUMAN,
        priority: Priority = Priority.MEDIUM,
        cultural_context: CulturalBackground = CulturalBackground.PREFER_NOT_TO_SAY,
        is_anonymous: bool = False,
    ) -> QueueItem:
        """
        Enqueue a new pending request.

        Raises:
            ValidationError: Missing requester, or empty or oversized
                content. Nothing is persisted.
        """
        if not requester_id:
            raise ValidationError("requester_id is required", field="requester_id")
        if not content or not content.strip():
            raise ValidationError("Request content must not be empty", field="content")
        if len(content) > MAX_REQUEST_LENGTH:
            raise ValidationError(
                f"Request content exceeds {MAX_REQUEST_LENGTH} characters",
                field="content",
            )

        now = self._clock()
        item = QueueItem(
            requester_id=requester_id,
            content=content,
            response_mode=response_mode,
            cultural_context=cultural_context,
            priority=priority,
            status=QueueStatus.PENDING,
            created_at=now,
            updated_at=now,
            tags=extract_tags(content),
            is_anonymous=is_anonymous,
        )
        await self._store.create_item(item)

        QUEUE_REQUESTS_TOTAL.labels(
            response_mode=response_mode.value,
            priority=priority.value,
        ).inc()
        logger.info(
            "Request queued",
            item_id=str(item.id),
            response_mode=response_mode.value,
            priority=priority.value,
            tags=item.tags,
        )
        return item
