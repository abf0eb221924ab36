"""
Prometheus Metrics

Queue and analysis metrics, exposed at /metrics for Prometheus scraping.

Metrics are decoupled from business logic: callers only increment and
observe, and never block on a metrics operation.
"""

from fastapi import APIRouter, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    Info,
    generate_latest,
)

# =============================================================================
# QUEUE METRICS
# =============================================================================

QUEUE_REQUESTS_TOTAL = Counter(
    "crosscare_queue_requests_total",
    "Support requests entering the queue",
    ["response_mode", "priority"],
)

QUEUE_CLAIMS_TOTAL = Counter(
    "crosscare_queue_claims_total",
    "Claim attempts by outcome",
    ["outcome"],  # claimed, already_claimed
)

QUEUE_RELEASES_TOTAL = Counter(
    "crosscare_queue_releases_total",
    "Release attempts by outcome",
    ["outcome"],  # released, not_owner, not_claimed
)

QUEUE_EXPIRED_CLAIMS_TOTAL = Counter(
    "crosscare_queue_expired_claims_total",
    "Claims returned to pending by the expiry sweep",
)

QUEUE_ARCHIVED_TOTAL = Counter(
    "crosscare_queue_archived_total",
    "Answered items moved to archived",
)

QUEUE_SUBMISSIONS_TOTAL = Counter(
    "crosscare_queue_submissions_total",
    "Response submissions by responder type and outcome",
    ["responder_type", "outcome"],  # answered, expired, not_owner, not_claimed, invalid
)

# =============================================================================
# ANALYSIS METRICS
# =============================================================================

ANALYSIS_RUNS_TOTAL = Counter(
    "crosscare_analysis_runs_total",
    "Response analyses by outcome",
    ["outcome"],  # attached, not_attached, timeout, error
)

ANALYSIS_DURATION = Histogram(
    "crosscare_analysis_duration_seconds",
    "End-to-end analysis duration including persistence",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0],
)

ANALYSIS_FLAGGED_TOTAL = Counter(
    "crosscare_analysis_flagged_total",
    "Analysed responses flagged for human review",
)

# =============================================================================
# LLM METRICS
# =============================================================================

LLM_REQUESTS_TOTAL = Counter(
    "crosscare_llm_requests_total",
    "Total LLM requests by provider",
    ["provider", "status"],  # success, error, rate_limited, timeout
)

LLM_LATENCY = Histogram(
    "crosscare_llm_latency_seconds",
    "LLM response latency",
    ["provider"],
    buckets=[0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 20.0],
)

LLM_TOKENS_USED = Counter(
    "crosscare_llm_tokens_total",
    "Total tokens used by LLM",
    ["provider", "type"],  # input, output
)

# =============================================================================
# SYSTEM INFO
# =============================================================================

SYSTEM_INFO = Info(
    "crosscare_system",
    "CrossCare system information",
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def track_claim(outcome: str) -> None:
    QUEUE_CLAIMS_TOTAL.labels(outcome=outcome).inc()


def track_release(outcome: str) -> None:
    QUEUE_RELEASES_TOTAL.labels(outcome=outcome).inc()


def track_submission(responder_type: str, outcome: str) -> None:
    QUEUE_SUBMISSIONS_TOTAL.labels(responder_type=responder_type, outcome=outcome).inc()


def track_llm_request(
    provider: str,
    status: str,
    duration_seconds: float,
    usage: dict | None = None,
) -> None:
    """Record one LLM call."""
    LLM_REQUESTS_TOTAL.labels(provider=provider, status=status).inc()
    LLM_LATENCY.labels(provider=provider).observe(duration_seconds)
    if usage:
        LLM_TOKENS_USED.labels(provider=provider, type="input").inc(usage.get("prompt_tokens", 0))
        LLM_TOKENS_USED.labels(provider=provider, type="output").inc(usage.get("completion_tokens", 0))


def track_analysis(outcome: str, duration_seconds: float | None = None) -> None:
    """Record the outcome of one analysis task."""
    ANALYSIS_RUNS_TOTAL.labels(outcome=outcome).inc()
    if duration_seconds is not None:
        ANALYSIS_DURATION.observe(duration_seconds)


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

metrics_router = APIRouter(tags=["metrics"])


@metrics_router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )


def update_system_info(environment: str, version: str) -> None:
    """Update system info metric with current environment."""
    SYSTEM_INFO.info({
        "version": version,
        "environment": environment,
    })
