"""
CrossCare Domain Layer

Core business entities and value objects, independent of
persistence and transport.
"""

from crosscare.domain.enums.queue_enums import (
    CulturalBackground,
    Priority,
    QueueStatus,
    ResponderType,
    ResponseMode,
    TrainingDataQuality,
)
from crosscare.domain.models.queue_item import QueueItem, Response
from crosscare.domain.models.feedback import AIFeedback, FeedbackScores, ResponseContext

__all__ = [
    # Enums
    "CulturalBackground",
    "Priority",
    "QueueStatus",
    "ResponderType",
    "ResponseMode",
    "TrainingDataQuality",
    # Models
    "QueueItem",
    "Response",
    "AIFeedback",
    "FeedbackScores",
    "ResponseContext",
]
