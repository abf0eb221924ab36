"""
Feedback Domain Models

Scored analysis of a counselor response: nine 1-10 scores, a cultural
analysis, improvement suggestions, and the derived review flag and
training-data label.

The camelCase names in SCORE_FIELDS, CULTURAL_ANALYSIS_FIELDS and
SUGGESTION_FIELDS are the wire contract shared by the analysis prompt,
the result parser and the persisted JSON. Change them in one place only.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Optional
from uuid import UUID

from crosscare.domain.enums.queue_enums import CulturalBackground, TrainingDataQuality
from crosscare.domain.models.queue_item import utc_now


class ScoreThresholds:
    """
    Score boundaries shared by classification and any display layer.

    Scores live on a closed 1-10 scale.
    """

    MIN_SCORE: float = 1.0
    MAX_SCORE: float = 10.0
    NEUTRAL: float = 5.0
    """Substituted for any missing or invalid score."""

    EXCELLENT: float = 8.5
    GOOD: float = 7.0
    """Mean score required for high training-data quality."""
    NEEDS_IMPROVEMENT: float = 5.5
    """Critical scores below this flag the response for review."""
    POOR: float = 4.0

    MIN_CONTEXT_MESSAGE_LENGTH: int = 20
    """Student message must be longer than this for high quality."""


# (attribute name, wire key)
SCORE_FIELDS: tuple[tuple[str, str], ...] = (
    ("cultural_sensitivity", "culturalSensitivity"),
    ("cultural_awareness", "culturalAwareness"),
    ("empathy", "empathy"),
    ("professionalism", "professionalism"),
    ("actionability", "actionability"),
    ("question_quality", "questionQuality"),
    ("language_appropriate", "languageAppropriate"),
    ("response_length", "responseLength"),
    ("overall", "overall"),
)

CULTURAL_ANALYSIS_FIELDS: tuple[tuple[str, str], ...] = (
    ("assumptions", "assumptions"),
    ("biases", "biases"),
    ("strengths", "strengths"),
    ("cultural_misses", "culturalMisses"),
    ("appropriate_references", "appropriateReferences"),
)

SUGGESTION_FIELDS: tuple[tuple[str, str], ...] = (
    ("strengths", "strengths"),
    ("improvements", "improvements"),
    ("cultural_tips", "culturalTips"),
    ("alternative_approaches", "alternativeApproaches"),
    ("questions_to_ask", "questionsToAsk"),
)


@dataclass
class FeedbackScores:
    """Nine validated scores, each within [1, 10]."""

    cultural_sensitivity: float = ScoreThresholds.NEUTRAL
    cultural_awareness: float = ScoreThresholds.NEUTRAL
    empathy: float = ScoreThresholds.NEUTRAL
    professionalism: float = ScoreThresholds.NEUTRAL
    actionability: float = ScoreThresholds.NEUTRAL
    question_quality: float = ScoreThresholds.NEUTRAL
    language_appropriate: float = ScoreThresholds.NEUTRAL
    response_length: float = ScoreThresholds.NEUTRAL
    overall: float = ScoreThresholds.NEUTRAL

    def values(self) -> list[float]:
        return [getattr(self, attr) for attr, _ in SCORE_FIELDS]

    @property
    def mean(self) -> float:
        """Arithmetic mean of all nine scores."""
        scores = self.values()
        return sum(scores) / len(scores)

    def to_dict(self) -> dict[str, float]:
        return {key: getattr(self, attr) for attr, key in SCORE_FIELDS}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeedbackScores":
        return cls(**{
            attr: float(data[key]) for attr, key in SCORE_FIELDS if key in data
        })


@dataclass
class CulturalAnalysis:
    """Cultural observations about a counselor response."""

    assumptions: list[str] = field(default_factory=list)
    biases: list[str] = field(default_factory=list)
    strengths: list[str] = field(default_factory=list)
    cultural_misses: list[str] = field(default_factory=list)
    appropriate_references: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {key: list(getattr(self, attr)) for attr, key in CULTURAL_ANALYSIS_FIELDS}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CulturalAnalysis":
        return cls(**{
            attr: list(data.get(key) or []) for attr, key in CULTURAL_ANALYSIS_FIELDS
        })


@dataclass
class ImprovementSuggestions:
    """Coaching suggestions for the counselor."""

    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    cultural_tips: list[str] = field(default_factory=list)
    alternative_approaches: list[str] = field(default_factory=list)
    questions_to_ask: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {key: list(getattr(self, attr)) for attr, key in SUGGESTION_FIELDS}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImprovementSuggestions":
        return cls(**{
            attr: list(data.get(key) or []) for attr, key in SUGGESTION_FIELDS
        })


@dataclass
class ResponseContext:
    """
    Everything the analysis needs to know about one exchange.

    Attributes:
        student_message: The requester's original message
        counselor_response: The response being analysed
        cultural_background: Requester's cultural category
        conversation_history: Earlier turns, oldest first
        student_age: Age if known
        session_number: How many sessions this pair has had
        urgency_level: Requester-declared urgency
    """

    student_message: str
    counselor_response: str
    cultural_background: CulturalBackground = CulturalBackground.OTHER
    conversation_history: list[str] = field(default_factory=list)
    student_age: Optional[int] = None
    session_number: Optional[int] = None
    urgency_level: Optional[str] = None


@dataclass
class AIFeedback:
    """
    Complete, validated analysis attached to a counselor response.

    analysis_succeeded is False when the model output could not be
    parsed or the model call failed and neutral fallback values were
    substituted.
    """

    scores: FeedbackScores = field(default_factory=FeedbackScores)
    cultural_analysis: CulturalAnalysis = field(default_factory=CulturalAnalysis)
    suggestions: ImprovementSuggestions = field(default_factory=ImprovementSuggestions)
    flagged_for_review: bool = False
    training_data_quality: TrainingDataQuality = TrainingDataQuality.LOW
    model_id: str = ""
    analysis_version: str = "1.0"
    analysis_succeeded: bool = True
    analyzed_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted / API JSON shape."""
        return {
            "scores": self.scores.to_dict(),
            "culturalAnalysis": self.cultural_analysis.to_dict(),
            "suggestions": self.suggestions.to_dict(),
            "flaggedForReview": self.flagged_for_review,
            "trainingDataQuality": self.training_data_quality.value,
            "modelId": self.model_id,
            "analysisVersion": self.analysis_version,
            "analysisSucceeded": self.analysis_succeeded,
            "analyzedAt": self.analyzed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AIFeedback":
        return cls(
            scores=FeedbackScores.from_dict(data.get("scores") or {}),
            cultural_analysis=CulturalAnalysis.from_dict(data.get("culturalAnalysis") or {}),
            suggestions=ImprovementSuggestions.from_dict(data.get("suggestions") or {}),
            flagged_for_review=bool(data.get("flaggedForReview", False)),
            training_data_quality=TrainingDataQuality(data.get("trainingDataQuality", "low")),
            model_id=data.get("modelId", ""),
            analysis_version=data.get("analysisVersion", "1.0"),
            analysis_succeeded=bool(data.get("analysisSucceeded", True)),
            analyzed_at=datetime.fromisoformat(data["analyzedAt"]) if data.get("analyzedAt") else utc_now(),
        )


class FeedbackState(StrEnum):
    """Observable state of the feedback slot on a response."""

    ATTACHED = "attached"
    """Analysis finished and was stored."""

    ABSENT = "absent"
    """Analysis not stored: still running, or it failed."""

    NOT_APPLICABLE = "not_applicable"
    """Automated responses are never analysed."""


@dataclass
class FeedbackLookup:
    """Result of reading the feedback for one response."""

    response_id: UUID
    state: FeedbackState
    feedback: Optional[AIFeedback] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "response_id": str(self.response_id),
            "state": self.state.value,
            "feedback": self.feedback.to_dict() if self.feedback else None,
        }
