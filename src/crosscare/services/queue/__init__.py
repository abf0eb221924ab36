"""Counselor work-claim queue."""

from crosscare.services.queue.automated_responder import AutomatedResponder
from crosscare.services.queue.claim_manager import ARCHIVE_COOLDOWN, LEASE_DURATION, ClaimManager
from crosscare.services.queue.errors import (
    AlreadyClaimedError,
    ConflictError,
    ExpiredClaimError,
    InvalidTransitionError,
    ItemNotFoundError,
    NotClaimedError,
    NotOwnerError,
    QueueError,
    ResponseNotFoundError,
    ValidationError,
)
from crosscare.services.queue.intake import RequestIntake, extract_tags
from crosscare.services.queue.maintenance import QueueMaintenance
from crosscare.services.queue.response_submission import AI_RESPONDER_ID, ResponseSubmission

__all__ = [
    "AI_RESPONDER_ID",
    "ARCHIVE_COOLDOWN",
    "LEASE_DURATION",
    "AlreadyClaimedError",
    "AutomatedResponder",
    "ClaimManager",
    "ConflictError",
    "ExpiredClaimError",
    "InvalidTransitionError",
    "ItemNotFoundError",
    "NotClaimedError",
    "NotOwnerError",
    "QueueError",
    "QueueMaintenance",
    "RequestIntake",
    "ResponseNotFoundError",
    "ResponseSubmission",
    "ValidationError",
    "extract_tags",
]
