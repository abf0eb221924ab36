"""Metrics infrastructure package."""

from crosscare.infrastructure.metrics.prometheus_metrics import (
    # Queue metrics
    QUEUE_REQUESTS_TOTAL,
    QUEUE_CLAIMS_TOTAL,
    QUEUE_RELEASES_TOTAL,
    QUEUE_EXPIRED_CLAIMS_TOTAL,
    QUEUE_ARCHIVED_TOTAL,
    QUEUE_SUBMISSIONS_TOTAL,
    # Analysis metrics
    ANALYSIS_RUNS_TOTAL,
    ANALYSIS_DURATION,
    ANALYSIS_FLAGGED_TOTAL,
    # LLM metrics
    LLM_REQUESTS_TOTAL,
    LLM_LATENCY,
    LLM_TOKENS_USED,
    # Helpers
    track_claim,
    track_release,
    track_submission,
    track_llm_request,
    track_analysis,
    update_system_info,
    # Router
    metrics_router,
)

__all__ = [
    "QUEUE_REQUESTS_TOTAL",
    "QUEUE_CLAIMS_TOTAL",
    "QUEUE_RELEASES_TOTAL",
    "QUEUE_EXPIRED_CLAIMS_TOTAL",
    "QUEUE_ARCHIVED_TOTAL",
    "QUEUE_SUBMISSIONS_TOTAL",
    "ANALYSIS_RUNS_TOTAL",
    "ANALYSIS_DURATION",
    "ANALYSIS_FLAGGED_TOTAL",
    "LLM_REQUESTS_TOTAL",
    "LLM_LATENCY",
    "LLM_TOKENS_USED",
    "track_claim",
    "track_release",
    "track_submission",
    "track_llm_request",
    "track_analysis",
    "update_system_info",
    "metrics_router",
]
