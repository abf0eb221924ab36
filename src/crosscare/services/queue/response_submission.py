"""
Response Submission

Records an answer to a queue item and moves the item to answered.

A human response is accepted only while the submitting counselor still
holds a live lease. That check happens inside the same conditional
write that stores the response, so a lease that lapses mid-call is
rejected at commit time. Automated replies bypass claiming: they go
straight from pending to answered, and only for AI-mode items.

Analysis of human responses is handed to the AnalysisTaskRunner after
the commit. Submission never waits for it and never fails because of it.
"""

from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from crosscare.config.logging_config import get_logger
from crosscare.domain.enums.queue_enums import QueueStatus, ResponderType, ResponseMode
from crosscare.domain.models.feedback import FeedbackLookup, FeedbackState
from crosscare.domain.models.queue_item import Response, utc_now
from crosscare.infrastructure.database.queue_store import (
    ItemChanges,
    QueueStore,
    TransitionGuard,
)
from crosscare.infrastructure.metrics import track_submission
from crosscare.services.analysis.response_analyzer import AnalysisTaskRunner
from crosscare.services.queue.errors import (
    ExpiredClaimError,
    InvalidTransitionError,
    ItemNotFoundError,
    NotClaimedError,
    NotOwnerError,
    ResponseNotFoundError,
    ValidationError,
)

logger = get_logger(__name__)

AI_RESPONDER_ID = "ai"
MAX_RESPONSE_LENGTH = 10000


class ResponseSubmission:
    """
    Commits responses to queue items.

    Usage:
        submission = ResponseSubmission(store, analysis_runner=runner)
        response_id = await submission.submit(item_id, counselor_id, text)
    """

    def __init__(
        self,
        store: QueueStore,
        *,
        analysis_runner: Optional[AnalysisTaskRunner] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._analysis_runner = analysis_runner
        self._clock = clock

    async def submit(
        self,
        item_id: UUID,
        actor_id: str,
        content: str,
        responder_type: ResponderType = ResponderType.HUMAN,
        model_id: Optional[str] = None,
    ) -> UUID:
        """
        Record a response.

        Args:
            item_id: Item being answered
            actor_id: Counselor ID, or "ai" for automated replies
            content: Response text
            responder_type: Human or automated path
            model_id: Generating model, automated replies only

        Returns:
            ID of the stored response

        Raises:
            ValidationError: Empty or oversized content
            ExpiredClaimError: The caller's lease lapsed
            NotOwnerError: Another counselor holds the lease
            NotClaimedError: Item already answered or archived
            InvalidTransitionError: Automated reply to an item that is
                not a pending AI-mode item
            ItemNotFoundError: No such item
        """
        if not content or not content.strip():
            raise ValidationError("Response content must not be empty", field="content")
        if len(content) > MAX_RESPONSE_LENGTH:
            raise ValidationError(
                f"Response content exceeds {MAX_RESPONSE_LENGTH} characters",
                field="content",
            )
        if not actor_id:
            raise ValidationError("actor_id is required", field="actor_id")

        now = self._clock()
        response = Response(
            queue_item_id=item_id,
            responder_id=actor_id,
            responder_type=responder_type,
            content=content,
            timestamp=now,
            model_id=model_id,
        )
        changes = ItemChanges(
            status=QueueStatus.ANSWERED,
            updated_at=now,
            answered_at=now,
            increment_response_count=True,
        )

        if responder_type == ResponderType.HUMAN:
            guard = TransitionGuard(
                expected_status=QueueStatus.CLAIMED,
                claimed_by=actor_id,
                deadline_after=now,
            )
        else:
            guard = TransitionGuard(
                expected_status=QueueStatus.PENDING,
                response_mode=ResponseMode.AI,
            )

        if not await self._store.record_response(response, guard, changes):
            raise await self._classify_conflict(item_id, actor_id, responder_type)

        track_submission(responder_type.value, "answered")
        logger.info(
            "Response recorded",
            item_id=str(item_id),
            response_id=str(response.id),
            responder_type=responder_type.value,
        )

        if responder_type == ResponderType.HUMAN and self._analysis_runner is not None:
            self._analysis_runner.schedule(response)

        return response.id

    async def _classify_conflict(
        self,
        item_id: UUID,
        actor_id: str,
        responder_type: ResponderType,
    ) -> Exception:
        """Re-read the item to explain why the guarded write matched nothing."""
        item = await self._store.get_item(item_id)
        if item is None:
            return ItemNotFoundError(item_id)

        if responder_type == ResponderType.AI:
            track_submission(responder_type.value, "invalid")
            return InvalidTransitionError(item_id, item.status, QueueStatus.ANSWERED)

        if item.status == QueueStatus.CLAIMED and item.claimed_by == actor_id:
            outcome, error = "expired", ExpiredClaimError(item_id, item.status)
        elif item.status == QueueStatus.CLAIMED:
            outcome, error = "not_owner", NotOwnerError(item_id, actor_id)
        elif item.status == QueueStatus.PENDING:
            # Lease was swept back to the queue
            outcome, error = "expired", ExpiredClaimError(item_id, item.status)
        else:
            outcome, error = "not_claimed", NotClaimedError(item_id, item.status)

        track_submission(responder_type.value, outcome)
        logger.info(
            "Response rejected",
            item_id=str(item_id),
            actor_id=actor_id,
            reason=outcome,
            current_status=item.status.value,
        )
        return error

    async def get_feedback(self, response_id: UUID) -> FeedbackLookup:
        """
        Read the analysis state of a response.

        Raises:
            ResponseNotFoundError: No such response
        """
        response = await self._store.get_response(response_id)
        if response is None:
            raise ResponseNotFoundError(response_id)

        if response.responder_type == ResponderType.AI:
            return FeedbackLookup(response_id, FeedbackState.NOT_APPLICABLE)
        if response.feedback is None:
            return FeedbackLookup(response_id, FeedbackState.ABSENT)
        return FeedbackLookup(response_id, FeedbackState.ATTACHED, response.feedback)
