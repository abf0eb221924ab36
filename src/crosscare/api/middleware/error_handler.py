"""
Error Handler Middleware

Consistent error handling and response formatting. Queue errors map to
HTTP status codes; anything else is logged with the correlation ID and
returned as a sanitized 500.
"""

import traceback
from uuid import uuid4

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from crosscare.config.logging_config import bind_correlation_id, clear_context, get_logger
from crosscare.services.queue.errors import (
    ConflictError,
    ItemNotFoundError,
    ResponseNotFoundError,
    ValidationError,
)

logger = get_logger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Provides:
    - Correlation ID tracking for all requests
    - Consistent error response format
    - Error logging with context
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
        bind_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers["X-Correlation-ID"] = correlation_id
            return response

        except Exception as e:
            logger.error(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error_type=type(e).__name__,
                error_message=str(e),
                traceback=traceback.format_exc(),
            )

            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "Internal server error",
                    "correlation_id": correlation_id,
                    "message": "An unexpected error occurred. Please try again.",
                },
                headers={"X-Correlation-ID": correlation_id},
            )

        finally:
            clear_context()


def _error_body(error: str, exc: Exception, **extra) -> dict:
    return {"error": error, "message": str(exc), **extra}


async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    """409 for lost races and stale state. The client should re-fetch."""
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body(
            type(exc).__name__,
            exc,
            item_id=str(exc.item_id),
            current_status=exc.current_status.value if exc.current_status else None,
        ),
    )


async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body("ValidationError", exc, field=exc.field),
    )


async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=_error_body(type(exc).__name__, exc),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map queue errors to HTTP responses."""
    app.add_exception_handler(ConflictError, conflict_handler)
    app.add_exception_handler(ValidationError, validation_handler)
    app.add_exception_handler(ItemNotFoundError, not_found_handler)
    app.add_exception_handler(ResponseNotFoundError, not_found_handler)
