"""
Database Connection Management

Async SQLAlchemy engine and session lifecycle:
- Connection pooling (PostgreSQL) or a file database (SQLite, tests/dev)
- Health checks
- Graceful shutdown
- One transaction per session() block

SECURITY: Connection strings contain credentials and must
never be logged.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from crosscare.config import get_settings
from crosscare.config.logging_config import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base for all ORM models.

    All database models should inherit from this base.
    """
    pass


class DatabaseManager:
    """
    Manages database connections and sessions.

    Usage:
        db = DatabaseManager()
        await db.initialize()
        async with db.session() as session:
            # use session
        await db.close()
    """

    def __init__(self, url: Optional[str] = None) -> None:
        """
        Initialize database manager (connection not established).

        Args:
            url: Async database URL (defaults to settings)
        """
        self._url = url
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._initialized = False

    def _engine_options(self, url: str) -> dict[str, Any]:
        settings = get_settings()
        if url.startswith("sqlite"):
            # Writers wait on the database lock instead of failing fast
            return {"connect_args": {"timeout": 30}, "echo": settings.debug}
        return {
            "pool_size": settings.database.pool_size,
            "max_overflow": settings.database.max_overflow,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
            "echo": settings.debug,
        }

    async def initialize(self) -> None:
        """
        Initialize database engine and session factory.

        Should be called once during application startup.
        """
        if self._initialized:
            logger.warning("Database already initialized")
            return

        url = self._url or get_settings().database.async_url
        self._engine = create_async_engine(url, **self._engine_options(url))

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        self._initialized = True
        logger.info("Database engine initialized", dialect=self._engine.dialect.name)

    async def create_schema(self) -> None:
        """
        Create all tables that do not exist yet.

        Development and tests only; production schemas come from Alembic.
        """
        if not self._engine:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        # Registers the ORM tables on Base.metadata
        import crosscare.infrastructure.database.models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """
        Close database connections.

        Should be called during application shutdown.
        """
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._initialized = False
            logger.info("Database connections closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a database session that commits on success.

        Any exception rolls the whole block back and propagates.

        Yields:
            AsyncSession: Database session
        """
        if not self._session_factory:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except BaseException:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """True when a trivial query round-trips."""
        if not self._engine:
            return False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False


_db_manager: DatabaseManager | None = None


def get_db_manager() -> DatabaseManager:
    """
    Get the global database manager instance.

    Returns:
        DatabaseManager: Singleton database manager
    """
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager
