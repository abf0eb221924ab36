"""
Quality Classifier

Derives the review flag and training-data label from validated scores.
All thresholds come from ScoreThresholds.
"""

from crosscare.domain.enums.queue_enums import TrainingDataQuality
from crosscare.domain.models.feedback import FeedbackScores, ResponseContext, ScoreThresholds


class QualityClassifier:
    """Stateless classification of scored responses."""

    def flag_for_review(self, scores: FeedbackScores) -> bool:
        """True if any critical score is below NEEDS_IMPROVEMENT."""
        critical = (scores.cultural_sensitivity, scores.empathy, scores.professionalism)
        return any(score < ScoreThresholds.NEEDS_IMPROVEMENT for score in critical)

    def training_data_quality(
        self,
        scores: FeedbackScores,
        context: ResponseContext,
    ) -> TrainingDataQuality:
        """
        Label a scored exchange for training use.

        HIGH needs a GOOD mean plus complete context: prior history and
        a student message longer than MIN_CONTEXT_MESSAGE_LENGTH.
        """
        mean = scores.mean
        has_complete_context = (
            len(context.conversation_history) > 0
            and len(context.student_message) > ScoreThresholds.MIN_CONTEXT_MESSAGE_LENGTH
        )

        if mean >= ScoreThresholds.GOOD and has_complete_context:
            return TrainingDataQuality.HIGH
        if mean >= ScoreThresholds.NEEDS_IMPROVEMENT:
            return TrainingDataQuality.MEDIUM
        return TrainingDataQuality.LOW
