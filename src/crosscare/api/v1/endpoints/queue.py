"""
Queue Endpoints

Student request intake and the counselor claim / release / respond
cycle. Conflicts surface as 409 through the registered exception
handlers; nothing here retries.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from pydantic import BaseModel, Field

from crosscare.api.dependencies import QueueServices, get_services
from crosscare.api.v1.endpoints.responses import ResponseView
from crosscare.config.logging_config import get_logger
from crosscare.domain.enums.queue_enums import (
    CulturalBackground,
    Priority,
    ResponseMode,
)
from crosscare.domain.models.queue_item import QueueItem
from crosscare.infrastructure.llm.provider import LLMProviderError
from crosscare.services.queue.automated_responder import AutomatedResponder
from crosscare.services.queue.errors import ConflictError, ItemNotFoundError

logger = get_logger(__name__)
router = APIRouter()


# Request/Response Models

class CreateRequestBody(BaseModel):
    """A student's support request."""

    requester_id: str = Field(..., min_length=1, max_length=128)
    content: str = Field(..., min_length=1, max_length=4000, description="Request text")
    response_mode: ResponseMode = ResponseMode.HUMAN
    priority: Priority = Priority.MEDIUM
    cultural_context: CulturalBackground = CulturalBackground.PREFER_NOT_TO_SAY
    is_anonymous: bool = False


class ActorBody(BaseModel):
    """Identifies the counselor acting on an item."""

    actor_id: str = Field(..., min_length=1, max_length=128)


class SubmitResponseBody(BaseModel):
    """A counselor's answer."""

    actor_id: str = Field(..., min_length=1, max_length=128)
    content: str = Field(..., min_length=1, max_length=10000)


class SubmitResponseResult(BaseModel):
    response_id: UUID


class QueueItemResponse(BaseModel):
    """Queue item as shown to counselors."""

    id: UUID
    requester_id: Optional[str]
    content: str
    response_mode: ResponseMode
    status: str
    priority: Priority
    cultural_context: CulturalBackground
    created_at: str
    updated_at: str
    claimed_by: Optional[str] = None
    claimed_at: Optional[str] = None
    response_deadline: Optional[str] = None
    answered_at: Optional[str] = None
    response_count: int = 0
    tags: list[str] = Field(default_factory=list)
    is_anonymous: bool = False
    responses: list[ResponseView] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, item: QueueItem) -> "QueueItemResponse":
        return cls(
            **item.to_dict(include_requester=False),
            responses=[ResponseView.from_domain(response) for response in item.responses],
        )


async def _respond_in_background(responder: AutomatedResponder, item_id: UUID) -> None:
    """Automated reply; failures leave the item pending."""
    try:
        await responder.respond(item_id)
    except (LLMProviderError, ConflictError) as e:
        logger.warning(
            "Automated reply not recorded",
            item_id=str(item_id),
            error_type=type(e).__name__,
            error=str(e),
        )


@router.post(
    "/requests",
    response_model=QueueItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a support request",
)
async def create_request(
    body: CreateRequestBody,
    background_tasks: BackgroundTasks,
    services: QueueServices = Depends(get_services),
) -> QueueItemResponse:
    """
    Queue a support request.

    AI-mode requests are answered in the background when a model
    provider is configured.
    """
    item = await services.intake.create_request(
        requester_id=body.requester_id,
        content=body.content,
        response_mode=body.response_mode,
        priority=body.priority,
        cultural_context=body.cultural_context,
        is_anonymous=body.is_anonymous,
    )

    if item.response_mode == ResponseMode.AI and services.responder is not None:
        background_tasks.add_task(_respond_in_background, services.responder, item.id)

    return QueueItemResponse.from_domain(item)


@router.get(
    "/available",
    response_model=list[QueueItemResponse],
    summary="List claimable requests, oldest first",
)
async def list_available(
    priority: Optional[Priority] = Query(default=None, description="Only this priority"),
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    services: QueueServices = Depends(get_services),
) -> list[QueueItemResponse]:
    items = await services.claim_manager.list_available(priority=priority, limit=limit)
    return [QueueItemResponse.from_domain(item) for item in items]


@router.get(
    "/{item_id}",
    response_model=QueueItemResponse,
    summary="Get one queue item",
)
async def get_item(
    item_id: UUID,
    services: QueueServices = Depends(get_services),
) -> QueueItemResponse:
    item = await services.store.get_item(item_id, include_responses=True)
    if item is None:
        raise ItemNotFoundError(item_id)
    return QueueItemResponse.from_domain(item)


@router.post(
    "/{item_id}/claim",
    response_model=QueueItemResponse,
    summary="Claim a pending request",
)
async def claim_item(
    item_id: UUID,
    body: ActorBody,
    services: QueueServices = Depends(get_services),
) -> QueueItemResponse:
    """Take the lease. 409 if someone else got there first."""
    item = await services.claim_manager.claim(item_id, body.actor_id)
    return QueueItemResponse.from_domain(item)


@router.post(
    "/{item_id}/release",
    response_model=QueueItemResponse,
    summary="Release a claimed request",
)
async def release_item(
    item_id: UUID,
    body: ActorBody,
    services: QueueServices = Depends(get_services),
) -> QueueItemResponse:
    item = await services.claim_manager.release(item_id, body.actor_id)
    return QueueItemResponse.from_domain(item)


@router.post(
    "/{item_id}/responses",
    response_model=SubmitResponseResult,
    status_code=status.HTTP_201_CREATED,
    summary="Answer a claimed request",
)
async def submit_response(
    item_id: UUID,
    body: SubmitResponseBody,
    services: QueueServices = Depends(get_services),
) -> SubmitResponseResult:
    """
    Record the counselor's response.

    Returns as soon as the response is stored. Feedback appears later
    on GET /responses/{response_id}/feedback.
    """
    response_id = await services.submission.submit(item_id, body.actor_id, body.content)
    return SubmitResponseResult(response_id=response_id)
