"""
Database engine and session management (SQLAlchemy 2.0, async).
PostgreSQL via asyncpg in production, SQLite via aiosqlite for local runs and tests.
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from urllib.parse import urlparse
from typing import AsyncGenerator, Tuple
import logging

from app.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

SUPPORTED_SCHEMES = ("sqlite+aiosqlite", "postgresql+asyncpg", "postgresql")


def engine_options(url: str) -> dict:
    """Engine keyword arguments for a database URL."""
    options = {"echo": False}
    if url.startswith("postgresql"):
        options.update({
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
            "connect_args": {"server_settings": {"application_name": "decor-showcase-backend"}},
        })
    return options


engine: AsyncEngine = create_async_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a session.
    Commits when the request handler returns, rolls back if it raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {str(e)}", exc_info=True)
            raise


def describe_database_url(url: str) -> Tuple[bool, str]:
    """
    Check a DATABASE_URL without connecting.

    Returns:
        tuple: (is_valid, human readable description or problem)
    """
    if not url:
        return False, "DATABASE_URL is empty"

    parsed = urlparse(url)
    if parsed.scheme not in SUPPORTED_SCHEMES:
        return False, f"Unsupported scheme '{parsed.scheme}', expected one of {', '.join(SUPPORTED_SCHEMES)}"

    if parsed.scheme.startswith("sqlite"):
        return True, f"SQLite database at {url.split(':///', 1)[-1] or ':memory:'}"

    if not parsed.hostname:
        return False, "No hostname found in DATABASE_URL"
    return True, f"PostgreSQL at {parsed.hostname}:{parsed.port or 5432}{parsed.path or '/postgres'}"


async def init_db():
    """
    Verify connectivity and create missing tables when CREATE_TABLES_ON_STARTUP is set.

    Raises:
        ValueError: If DATABASE_URL is malformed
    """
    is_valid, description = describe_database_url(settings.DATABASE_URL)
    if not is_valid:
        logger.error(f"Invalid DATABASE_URL: {description}")
        raise ValueError(f"Invalid DATABASE_URL: {description}")
    logger.info(f"Connecting to {description}")

    # Registers the tables on Base.metadata
    import app.models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if settings.CREATE_TABLES_ON_STARTUP:
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Database tables created (if missing)")
    except Exception as e:
        logger.error(f"Database connection failed ({type(e).__name__}): {str(e)}\nTarget: {description}")
        raise

    logger.info("Database connection initialized successfully")


async def close_db():
    """Dispose of pooled connections on shutdown."""
    await engine.dispose()
    logger.info("Database connections closed")
