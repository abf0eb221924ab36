"""
Sentry Error Tracking Integration

Error tracking with sensitive data scrubbing. Conversation text
(student messages, counselor responses, model output) never leaves the
process: those keys are replaced with their length, using the same
field rules as the log pipeline.
"""

import re
from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from crosscare.config.logging_config import get_logger, redact_fields

logger = get_logger(__name__)

# Credentials embedded in free-form strings (SQL, exception messages)
INLINE_SECRET_PATTERNS = [
    re.compile(r"(password|api[_-]?key|secret|authorization)[\"']?\s*[:=]\s*[\"']?[^\"'\s,}]+", re.IGNORECASE),
    re.compile(r"bearer\s+[a-zA-Z0-9\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"sk-[A-Za-z0-9_\-]{8,}"),
]


def _scrub_string(value: str) -> str:
    for pattern in INLINE_SECRET_PATTERNS:
        value = pattern.sub("[REDACTED]", value)
    return value


def _scrub_strings(value: Any) -> Any:
    if isinstance(value, str):
        return _scrub_string(value)
    if isinstance(value, dict):
        return {key: _scrub_strings(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_scrub_strings(item) for item in value]
    return value


def _scrub_dict(data: dict) -> dict:
    """Field redaction, then inline secret scrubbing of what is left."""
    return _scrub_strings(redact_fields(data))


def before_send(event: dict, hint: dict) -> Optional[dict]:
    """Scrub request data, breadcrumbs and extras before sending."""
    request = event.get("request")
    if isinstance(request, dict):
        if isinstance(request.get("data"), dict):
            request["data"] = _scrub_dict(request["data"])
        elif isinstance(request.get("data"), str):
            # Raw bodies carry conversation text
            request["data"] = f"<{len(request['data'])} chars>"
        if isinstance(request.get("headers"), dict):
            request["headers"] = _scrub_dict(request["headers"])

    for breadcrumb in event.get("breadcrumbs", {}).get("values", []):
        if isinstance(breadcrumb.get("data"), dict):
            breadcrumb["data"] = _scrub_dict(breadcrumb["data"])

    if isinstance(event.get("extra"), dict):
        event["extra"] = _scrub_dict(event["extra"])

    return event


def before_breadcrumb(breadcrumb: dict, hint: dict) -> Optional[dict]:
    """Sanitize SQL breadcrumbs."""
    if breadcrumb.get("category") == "sql" and "message" in breadcrumb:
        breadcrumb["message"] = _scrub_string(breadcrumb["message"])
    return breadcrumb


def init_sentry(
    dsn: str,
    environment: str = "development",
    release: str = "crosscare@0.1.0",
    sample_rate: float = 1.0,
    traces_sample_rate: float = 0.1,
) -> bool:
    """
    Initialize Sentry error tracking.

    Args:
        dsn: Sentry DSN
        environment: Environment name
        release: Release version
        sample_rate: Error sample rate (1.0 = all errors)
        traces_sample_rate: Performance tracing rate

    Returns:
        True if Sentry was initialized
    """
    if not dsn:
        logger.warning("Sentry DSN not configured, error tracking disabled")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        sample_rate=sample_rate,
        traces_sample_rate=traces_sample_rate,
        before_send=before_send,
        before_breadcrumb=before_breadcrumb,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            AsyncioIntegration(),
            LoggingIntegration(
                level=None,
                event_level=None,
            ),
        ],
        send_default_pii=False,
        attach_stacktrace=True,
        max_breadcrumbs=50,
    )

    logger.info(
        "Sentry initialized",
        environment=environment,
        release=release,
    )
    return True


def capture_exception_with_context(
    exception: BaseException,
    tags: Optional[dict[str, str]] = None,
    extra: Optional[dict] = None,
) -> Optional[str]:
    """
    Capture exception with additional context.

    Returns: Sentry event ID, or None when Sentry is disabled
    """
    with sentry_sdk.new_scope() as scope:
        for key, value in (tags or {}).items():
            scope.set_tag(key, value)
        if extra:
            for key, value in _scrub_dict(extra).items():
                scope.set_extra(key, value)

        return sentry_sdk.capture_exception(exception)
