"""
Database configuration.

Provides async SQLAlchemy engine and session factory.
"""

from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config.settings import settings
from app.models.base import Base


def _engine_options(database_url: str) -> dict[str, Any]:
    """Pool and timeout options for the configured backend."""
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "pool_recycle": 300,  # Recycle connections every 5 minutes
        "pool_timeout": 30,  # Wait max 30 seconds for connection
        "connect_args": {
            "command_timeout": settings.database_command_timeout
        },
    }


# Create async engine
engine: AsyncEngine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    **_engine_options(settings.database_url),
)

# Create async session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def init_db(create_tables: bool = False) -> None:
    """
    Initialize database.

    Args:
        create_tables: Create missing tables (development only,
            production schema is managed by Alembic)
    """
    # Register all tables on the metadata
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        if create_tables:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized")


async def close_db() -> None:
    """Close database connection."""
    await engine.dispose()
    logger.info("Database connection closed")
