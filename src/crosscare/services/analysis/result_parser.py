"""
Feedback Parser

Turns free-form model output into validated feedback. The model is not
bound to return pure JSON, so the parser searches for the largest JSON
object anywhere in the text and repairs it field by field.

parse() is total: it never raises and always returns fully populated
feedback plus a success flag.
"""

import json
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from crosscare.config.logging_config import get_logger
from crosscare.domain.models.feedback import (
    CULTURAL_ANALYSIS_FIELDS,
    SCORE_FIELDS,
    SUGGESTION_FIELDS,
    AIFeedback,
    CulturalAnalysis,
    FeedbackScores,
    ImprovementSuggestions,
    ScoreThresholds,
)

logger = get_logger(__name__)

MANUAL_REVIEW_NOTE = "AI analysis unavailable - manual review recommended"

_ONE_DECIMAL = Decimal("0.1")


@dataclass
class ParseResult:
    """
    Parser output.

    Attributes:
        feedback: Validated feedback; review flag and quality label are
            left for the classifier
        success: False when no JSON object was found and the fallback
            analysis was substituted
    """

    feedback: AIFeedback
    success: bool


def fallback_feedback() -> AIFeedback:
    """
    Neutral feedback for a response that exists but could not be scored.

    Professionalism sits higher than the rest: an unanalysed response is
    not evidence of a poor one.
    """
    return AIFeedback(
        scores=FeedbackScores(
            cultural_sensitivity=5.0,
            cultural_awareness=5.0,
            empathy=5.0,
            professionalism=7.0,
            actionability=5.0,
            question_quality=5.0,
            language_appropriate=6.0,
            response_length=6.0,
            overall=5.5,
        ),
        cultural_analysis=CulturalAnalysis(),
        suggestions=ImprovementSuggestions(improvements=[MANUAL_REVIEW_NOTE]),
        analysis_succeeded=False,
    )


def extract_largest_object(text: str) -> Optional[dict[str, Any]]:
    """
    Find the largest JSON object embedded in text.

    Every "{" is tried as a start position; an object that decodes is
    skipped over as a whole, since nothing nested in it can be larger.
    """
    decoder = json.JSONDecoder()
    best: Optional[dict[str, Any]] = None
    best_size = -1

    position = text.find("{")
    while position != -1:
        try:
            value, end = decoder.raw_decode(text, position)
        except (ValueError, RecursionError):
            position = text.find("{", position + 1)
            continue

        if isinstance(value, dict) and end - position > best_size:
            best = value
            best_size = end - position
        position = text.find("{", end)

    return best


def validate_score(value: Any) -> float:
    """
    Coerce one raw score into [1, 10], rounded half-up to one decimal.

    Missing, boolean, non-numeric, non-finite and out-of-range values
    become the neutral score.
    """
    if value is None or isinstance(value, bool):
        return ScoreThresholds.NEUTRAL

    try:
        if isinstance(value, str):
            number = float(value.strip())
        elif isinstance(value, (int, float)):
            number = float(value)
        else:
            return ScoreThresholds.NEUTRAL
    except (ValueError, OverflowError):
        return ScoreThresholds.NEUTRAL

    if not math.isfinite(number):
        return ScoreThresholds.NEUTRAL
    if number < ScoreThresholds.MIN_SCORE or number > ScoreThresholds.MAX_SCORE:
        return ScoreThresholds.NEUTRAL

    return float(Decimal(repr(number)).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def validate_string_list(value: Any) -> list[str]:
    """A list of strings; anything else becomes empty, non-strings are dropped."""
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, str)]


def _section(payload: dict[str, Any], key: str) -> dict[str, Any]:
    section = payload.get(key)
    return section if isinstance(section, dict) else {}


class FeedbackParser:
    """
    Parses raw model text into AIFeedback.

    Usage:
        result = FeedbackParser().parse(raw_text)
        if not result.success:
            ...  # fallback values were used
    """

    def parse(self, raw_text: Any) -> ParseResult:
        """
        Parse model output.

        Args:
            raw_text: Untrusted model output

        Returns:
            ParseResult with fully populated feedback
        """
        if not isinstance(raw_text, str):
            logger.warning("Analysis output was not text", output_type=type(raw_text).__name__)
            return ParseResult(feedback=fallback_feedback(), success=False)

        payload = extract_largest_object(raw_text)
        if payload is None:
            logger.warning("No JSON object in analysis output", output_length=len(raw_text))
            return ParseResult(feedback=fallback_feedback(), success=False)

        raw_scores = _section(payload, "scores")
        raw_analysis = _section(payload, "culturalAnalysis")
        raw_suggestions = _section(payload, "suggestions")

        scores = FeedbackScores(**{
            attr: validate_score(raw_scores.get(key)) for attr, key in SCORE_FIELDS
        })
        missing = [key for _, key in SCORE_FIELDS if key not in raw_scores]
        if missing:
            logger.info("Analysis scores missing", fields=missing)

        feedback = AIFeedback(
            scores=scores,
            cultural_analysis=CulturalAnalysis(**{
                attr: validate_string_list(raw_analysis.get(key))
                for attr, key in CULTURAL_ANALYSIS_FIELDS
            }),
            suggestions=ImprovementSuggestions(**{
                attr: validate_string_list(raw_suggestions.get(key))
                for attr, key in SUGGESTION_FIELDS
            }),
            analysis_succeeded=True,
        )
        return ParseResult(feedback=feedback, success=True)
