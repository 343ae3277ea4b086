"""
Database connection and session management for the Job Board API.

This module handles database connectivity, session management, and provides
utilities for database operations using SQLAlchemy with async support.

Features:
- Async SQLAlchemy engine and session management
- Connection pooling and health checking
- Table creation at startup
- Transaction management utilities
- Pagination helpers
"""

import asyncio
import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

import sqlalchemy as sa
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.core.config import get_settings

# Get settings
settings = get_settings()

# Setup logging
logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def utcnow() -> datetime:
    """Timezone-aware current UTC time used for timestamp defaults."""
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_async_url(db_url: str) -> str:
    """Convert a plain database URL to its async driver form."""
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif db_url.startswith("sqlite:"):
        db_url = db_url.replace("sqlite:", "sqlite+aiosqlite:", 1)
    return db_url


class DatabaseManager:
    """Database connection and session manager."""

    def __init__(self):
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None
        self._initialized = False

    @property
    def engine(self) -> AsyncEngine:
        """Get the database engine."""
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._engine

    @property
    def sessionmaker(self) -> async_sessionmaker:
        """Get the session maker."""
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._sessionmaker

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def bind(self, engine: AsyncEngine) -> None:
        """Attach an externally created engine (used by the test suite)."""
        self._engine = engine
        self._sessionmaker = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=True,
        )
        self._initialized = True

    async def initialize(self) -> None:
        """Initialize database connection and session factory."""
        if self._initialized:
            logger.warning("Database already initialized")
            return

        try:
            engine = create_async_engine(
                to_async_url(settings.database_url),
                **self._get_engine_config()
            )
            self.bind(engine)
            self._setup_event_listeners()
            await self._test_connection()
            logger.info("Database initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

    async def close(self) -> None:
        """Close database connections."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            self._initialized = False
            logger.info("Database connections closed")

    def _get_engine_config(self) -> Dict[str, Any]:
        """Get engine configuration."""
        config: Dict[str, Any] = {
            "echo": settings.database_echo,
            "pool_pre_ping": True,
        }

        if "sqlite" in settings.database_url:
            # SQLite doesn't support connection pooling
            config.update({
                "poolclass": NullPool,
                "connect_args": {"check_same_thread": False}
            })
        else:
            config.update({
                "pool_size": settings.database_pool_size,
                "max_overflow": settings.database_max_overflow,
                "pool_timeout": settings.database_pool_timeout,
                "pool_recycle": settings.database_pool_recycle,
            })

        return config

    def _setup_event_listeners(self) -> None:
        """Set up SQLAlchemy event listeners."""

        @event.listens_for(self._engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """Enforce foreign keys on SQLite."""
            if "sqlite" in settings.database_url:
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    async def _test_connection(self) -> None:
        """Test database connection."""
        async with self.engine.begin() as conn:
            result = await conn.execute(text("SELECT 1"))
            result.fetchall()
        logger.info("Database connection test successful")

    async def create_all_tables(self) -> None:
        """Create all database tables."""
        # Register every model on Base.metadata
        import app.models  # noqa: F401

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("All database tables created successfully")
        except SQLAlchemyError as e:
            logger.error(f"Failed to create database tables: {e}")
            raise

    async def check_health(self) -> Dict[str, Any]:
        """Check database health."""
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        try:
            async with self.sessionmaker() as session:
                await session.execute(text("SELECT 1"))

            return {
                "status": "healthy",
                "response_time": loop.time() - start_time,
            }

        except Exception as e:
            return {
                "status": "unhealthy",
                "error": str(e),
                "response_time": loop.time() - start_time,
            }


# Global database manager instance
db_manager = DatabaseManager()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    Yields:
        AsyncSession: Database session
    """
    async with db_manager.sessionmaker() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager to get a standalone database session.

    Used by best-effort side effects (audit logs, notifications) so their
    failures never touch the request's own transaction.

    Yields:
        AsyncSession: Database session
    """
    async with db_manager.sessionmaker() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise


@asynccontextmanager
async def get_db_transaction(session: Optional[AsyncSession] = None) -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database transactions.

    Automatically commits on success or rolls back on error. When a session
    is supplied the transaction runs on it, otherwise a new session is opened.

    Args:
        session: Existing session to run the transaction on

    Yields:
        AsyncSession: Database session within a transaction
    """
    if session is not None:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database transaction rolled back: {e}")
            raise
        return

    async with db_manager.sessionmaker() as own_session:
        try:
            yield own_session
            await own_session.commit()
        except Exception as e:
            await own_session.rollback()
            logger.error(f"Database transaction rolled back: {e}")
            raise


async def init_db() -> None:
    """Initialize database connection and create tables."""
    await db_manager.initialize()
    await db_manager.create_all_tables()


async def close_db() -> None:
    """Close database connections."""
    await db_manager.close()


async def check_db_health() -> Dict[str, Any]:
    """Check database health and return status."""
    return await db_manager.check_health()


def paginate_query(query, page: int = 1, page_size: int = 20):
    """
    Add pagination to a SQLAlchemy select.

    Args:
        query: SQLAlchemy select object
        page: Page number (1-based)
        page_size: Number of items per page

    Returns:
        Paginated query
    """
    offset = (max(page, 1) - 1) * page_size
    return query.offset(offset).limit(page_size)


async def count_query_results(session: AsyncSession, query) -> int:
    """
    Count total results for a select.

    Args:
        session: Database session
        query: SQLAlchemy select object

    Returns:
        Total count of results
    """
    count_query = sa.select(sa.func.count()).select_from(query.order_by(None).subquery())
    result = await session.execute(count_query)
    return result.scalar_one()


def pagination_meta(page: int, limit: int, total: int) -> Dict[str, int]:
    """Pagination block returned by list endpoints."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }
