"""Response analysis pipeline."""

from crosscare.services.analysis.quality_classifier import QualityClassifier
from crosscare.services.analysis.response_analyzer import AnalysisTaskRunner, ResponseAnalyzer
from crosscare.services.analysis.result_parser import (
    MANUAL_REVIEW_NOTE,
    FeedbackParser,
    ParseResult,
    fallback_feedback,
)

__all__ = [
    "AnalysisTaskRunner",
    "FeedbackParser",
    "MANUAL_REVIEW_NOTE",
    "ParseResult",
    "QualityClassifier",
    "ResponseAnalyzer",
    "fallback_feedback",
]
