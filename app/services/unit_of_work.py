"""
Unit of work helper.

One ledger operation is one database transaction: commit on success,
roll back on any error.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.services.exceptions import ConcurrentUpdateError


@asynccontextmanager
async def atomic(
    session: AsyncSession, operation: str
) -> AsyncIterator[None]:
    """
    Run the block as a single committed transaction.

    A lost version check (another writer updated the same row) is
    reported as ConcurrentUpdateError. Nothing is retried here.

    Args:
        session: Database session
        operation: Operation name for logs

    Raises:
        ConcurrentUpdateError: If a versioned row changed underneath
    """
    try:
        yield
        await session.commit()
    except StaleDataError as e:
        await session.rollback()
        logger.warning(
            f"Concurrent update detected during {operation}",
            extra={"operation": operation},
        )
        raise ConcurrentUpdateError(
            f"Concurrent update during {operation}, please retry"
        ) from e
    except Exception:
        await session.rollback()
        raise
