"""
CrossCare FastAPI Application Entry Point

Main application initialization with:
- Lifespan management (database, queue maintenance, analysis tasks)
- CORS configuration
- Error handling middleware and queue exception handlers
- Router registration
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crosscare import __version__
from crosscare.api.dependencies import QueueServices, build_queue_services
from crosscare.api.middleware.error_handler import (
    ErrorHandlerMiddleware,
    register_exception_handlers,
)
from crosscare.api.v1.router import api_router
from crosscare.config import get_settings
from crosscare.config.logging_config import configure_logging, get_logger
from crosscare.infrastructure.database import SqlQueueStore, get_db_manager
from crosscare.infrastructure.llm import get_llm_provider
from crosscare.infrastructure.metrics import update_system_info
from crosscare.infrastructure.monitoring import init_sentry

settings = get_settings()
configure_logging(settings)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Services handed to create_application() are used as-is; otherwise
    they are built on the global database manager.
    """
    logger.info(
        "Starting CrossCare application",
        env=settings.env,
        version=__version__,
    )

    owns_database = app.state.services is None
    db = get_db_manager()
    try:
        if owns_database:
            await db.initialize()
            logger.info("Database connection initialized")
            app.state.services = build_queue_services(
                settings,
                SqlQueueStore(db),
                provider=get_llm_provider(),
            )

        services: QueueServices = app.state.services
        services.maintenance.start()

        yield

    finally:
        logger.info("Shutting down CrossCare application")

        if app.state.services is not None:
            await app.state.services.shutdown()

        if owns_database:
            await db.close()

        logger.info("CrossCare application shutdown complete")


def create_application(services: Optional[QueueServices] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        services: Pre-built services (tests); built at startup if omitted

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="CrossCare API",
        description="Counselor work queue with cultural-competency feedback",
        version=__version__,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ErrorHandlerMiddleware)
    register_exception_handlers(app)

    app.include_router(
        api_router,
        prefix=f"/api/{settings.api_version}",
    )

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        return {
            "name": "CrossCare API",
            "version": __version__,
            "status": "operational",
        }

    return app


init_sentry(
    settings.monitoring.dsn,
    environment=settings.env,
    release=f"crosscare@{__version__}",
    traces_sample_rate=settings.monitoring.traces_sample_rate,
)
update_system_info(settings.env, __version__)

app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "crosscare.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.env == "development",
        log_level=settings.log_level.lower(),
    )
