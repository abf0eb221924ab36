"""Domain models package."""

from crosscare.domain.models.queue_item import (
    ALLOWED_TRANSITIONS,
    QueueItem,
    Response,
    is_valid_transition,
    utc_now,
)
from crosscare.domain.models.feedback import (
    AIFeedback,
    CulturalAnalysis,
    FeedbackLookup,
    FeedbackScores,
    FeedbackState,
    ImprovementSuggestions,
    ResponseContext,
    ScoreThresholds,
)

__all__ = [
    # Queue
    "ALLOWED_TRANSITIONS",
    "QueueItem",
    "Response",
    "is_valid_transition",
    "utc_now",
    # Feedback
    "AIFeedback",
    "CulturalAnalysis",
    "FeedbackLookup",
    "FeedbackScores",
    "FeedbackState",
    "ImprovementSuggestions",
    "ResponseContext",
    "ScoreThresholds",
]
