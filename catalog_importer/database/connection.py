"""
Database Connection Management

Async engine and session factory construction with SQLAlchemy 2.0.
The process entry point (CLI or API lifespan) owns the engine and passes
the session factory to the importer and accessors explicitly.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from catalog_importer.config import Settings, get_settings
from catalog_importer.database.models import Base

logger = structlog.get_logger(__name__)


def create_engine_from_settings(settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Create the async database engine.

    Args:
        settings: Application settings (defaults to the cached settings)

    Returns:
        AsyncEngine: Engine for the configured database URL
    """
    settings = settings or get_settings()
    url = settings.database.async_url

    engine_config = {
        "echo": settings.database.echo,
        "pool_pre_ping": True,  # Verify connections before use
    }

    # asyncpg pools connections itself
    if make_url(url).get_backend_name() == "postgresql":
        engine_config["poolclass"] = NullPool

    engine = create_async_engine(url, **engine_config)
    logger.info(
        "Database engine created",
        backend=engine.dialect.name,
        database=engine.url.database,
    )
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory handed to the importer and accessors."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """
    Create all catalog tables that do not exist yet.

    Existing tables are left untouched; there is no migration step.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured", tables=sorted(Base.metadata.tables))


async def verify_connection(engine: AsyncEngine) -> None:
    """Run a trivial query; raises if the database is unreachable."""
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection established", database=engine.url.database)
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Open a session that commits on success and rolls back on error.

    Yields:
        AsyncSession: Database session

    Example:
        async with session_scope(session_factory) as db:
            result = await db.execute(query)
    """
    session = session_factory()
    try:
        yield session
        await session.commit()
    except Exception as e:
        logger.debug("Database session error, rolling back", error=str(e), error_type=type(e).__name__)
        await session.rollback()
        raise
    finally:
        await session.close()


async def check_database_health(session_factory: async_sessionmaker[AsyncSession]) -> dict:
    """
    Check database health status.

    Returns:
        dict: Health status with latency information
    """
    try:
        start = time.perf_counter()
        async with session_scope(session_factory) as db:
            await db.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }
