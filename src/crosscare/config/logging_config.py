"""
CrossCare Logging Configuration

Structured logging built on structlog:
- JSON output outside development, console output in development
- Secret redaction by key name
- Conversation text replaced by its length, so student messages
  and counselor replies never reach log storage

PRIVACY: Never pass raw message text under a key other than those
listed in CONVERSATION_KEYS.
"""

import logging
import sys
from typing import Any, Mapping

import structlog

from crosscare import __version__
from crosscare.config.settings import Settings


# Any key containing one of these is a secret
SECRET_KEY_FRAGMENTS: frozenset[str] = frozenset({
    "password",
    "secret",
    "api_key",
    "apikey",
    "authorization",
    "bearer",
    "credential",
    "private_key",
    "dsn",
})

# Keys whose values are free text written by students or counselors
CONVERSATION_KEYS: frozenset[str] = frozenset({
    "content",
    "student_message",
    "counselor_response",
    "raw_text",
    "prompt",
})


def redact_field(key: Any, value: Any) -> Any:
    """
    Redacted form of a single field.

    Secrets become "[REDACTED]"; conversation text becomes
    "<N chars>" so its size is still visible when debugging.
    Containers are redacted recursively.
    """
    normalized = str(key).lower().replace("-", "_")
    if normalized in CONVERSATION_KEYS and isinstance(value, str):
        return f"<{len(value)} chars>"
    if any(fragment in normalized for fragment in SECRET_KEY_FRAGMENTS):
        return "[REDACTED]"
    if isinstance(value, Mapping):
        return redact_fields(value)
    if isinstance(value, list):
        return [redact_field(key, item) for item in value]
    return value


def redact_fields(data: Mapping[Any, Any]) -> dict[Any, Any]:
    """Apply redact_field to every entry of a mapping."""
    return {key: redact_field(key, value) for key, value in data.items()}


def _redact_event(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    return redact_fields(event_dict)


def _add_service_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add service-level context to all log entries."""
    event_dict["service"] = "crosscare-queue"
    event_dict["version"] = __version__
    return event_dict


def get_processors(is_development: bool) -> list[Any]:
    """
    Get structlog processors based on environment.

    Args:
        is_development: Whether running in development mode

    Returns:
        List of log processors
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _redact_event,
        _add_service_context,
    ]

    if is_development:
        shared_processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        shared_processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])

    return shared_processors


def configure_logging(settings: Settings) -> None:
    """
    Configure application logging.

    Should be called once during application startup.

    Args:
        settings: Application settings
    """
    is_development = settings.env == "development"
    log_level = getattr(logging, settings.log_level.upper())

    structlog.configure(
        processors=get_processors(is_development),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    # Noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def bind_correlation_id(correlation_id: str) -> None:
    """
    Bind correlation ID to current context.

    All subsequent log entries in this context will include
    the correlation ID for request tracing.
    """
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    """Clear all context variables (call at end of request)."""
    structlog.contextvars.clear_contextvars()
