"""
Response Endpoints

Read access to counselor responses and the analysis attached to them.
"""

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from crosscare.api.dependencies import QueueServices, get_services
from crosscare.domain.enums.queue_enums import ResponderType
from crosscare.domain.models.feedback import FeedbackState
from crosscare.domain.models.queue_item import Response

router = APIRouter()


class ResponseView(BaseModel):
    """One committed response, with its feedback if attached."""

    id: UUID
    queue_item_id: UUID
    responder_id: str
    responder_type: ResponderType
    content: str
    timestamp: str
    model_id: Optional[str] = None
    feedback: Optional[dict[str, Any]] = None

    @classmethod
    def from_domain(cls, response: Response) -> "ResponseView":
        return cls(**response.to_dict())


class FeedbackLookupResponse(BaseModel):
    """
    Feedback slot of a response.

    state is "attached", "absent" (not finished, or the analysis
    failed) or "not_applicable" (automated reply).
    """

    response_id: UUID
    state: FeedbackState
    feedback: Optional[dict[str, Any]] = None


@router.get(
    "",
    response_model=list[ResponseView],
    summary="List a counselor's responses",
)
async def list_responses(
    responder_id: str = Query(..., min_length=1),
    limit: int = Query(50, ge=1, le=200),
    services: QueueServices = Depends(get_services),
) -> list[ResponseView]:
    """Human-written responses by one counselor, newest first."""
    responses = await services.store.list_responder_responses(responder_id, limit=limit)
    return [ResponseView.from_domain(response) for response in responses]


@router.get(
    "/{response_id}/feedback",
    response_model=FeedbackLookupResponse,
    summary="Get analysis feedback for a response",
)
async def get_feedback(
    response_id: UUID,
    services: QueueServices = Depends(get_services),
) -> FeedbackLookupResponse:
    lookup = await services.submission.get_feedback(response_id)
    return FeedbackLookupResponse(**lookup.to_dict())
