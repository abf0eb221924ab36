"""Monitoring infrastructure package."""

from crosscare.infrastructure.monitoring.sentry_integration import (
    capture_exception_with_context,
    init_sentry,
)

__all__ = [
    "init_sentry",
    "capture_exception_with_context",
]
