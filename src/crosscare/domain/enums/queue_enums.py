"""
Queue Enumerations

Status, mode and priority vocabularies for support requests, plus the
requester's cultural-background category used by both prompt construction
and feedback interpretation.
"""

from enum import StrEnum


class QueueStatus(StrEnum):
    """
    Lifecycle of a support request in the counselor queue.

    Valid edges: pending → claimed → answered → archived,
    claimed → pending (release or lease expiry), and
    pending → answered for automated replies only.
    """

    PENDING = "pending"
    """Waiting for a responder."""

    CLAIMED = "claimed"
    """Leased to exactly one counselor until the response deadline."""

    ANSWERED = "answered"
    """A response has been recorded."""

    ARCHIVED = "archived"
    """Retained for history; never deleted."""


class ResponseMode(StrEnum):
    """Who the requester asked to answer."""

    AI = "ai"
    HUMAN = "human"


class ResponderType(StrEnum):
    """Who actually wrote a response."""

    AI = "ai"
    HUMAN = "human"


class Priority(StrEnum):
    """
    Requester-declared urgency.

    Advisory triage metadata shown to counselors. It filters listings
    but never reorders them: the queue is strictly first-in, first-out.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TrainingDataQuality(StrEnum):
    """Usefulness of a scored response as model-training material."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CulturalBackground(StrEnum):
    """Requester's self-identified cultural background."""

    AFRICAN_AMERICAN = "african-american"
    AFRICAN = "african"
    ASIAN_AMERICAN = "asian-american"
    EAST_ASIAN = "east-asian"
    SOUTH_ASIAN = "south-asian"
    LATINO_HISPANIC = "latino-hispanic"
    WHITE_AMERICAN = "white-american"
    MIDDLE_EASTERN = "middle-eastern"
    NATIVE_AMERICAN = "native-american"
    MULTIRACIAL = "multiracial"
    PREFER_NOT_TO_SAY = "prefer-not-to-say"
    OTHER = "other"
