#!/usr/bin/env python3
"""Initialize database tables and seed default tasks."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger  # noqa: E402

from app.config.database import (  # noqa: E402
    async_session_maker,
    close_db,
    init_db,
)
from app.config.settings import settings  # noqa: E402
from app.utils.logging_config import setup_logging  # noqa: E402
from app.utils.task_init import ensure_default_tasks  # noqa: E402


async def main() -> None:
    """Create all tables, then seed the default task set."""
    setup_logging(settings)
    logger.info("Creating database tables...")

    try:
        await init_db(create_tables=True)

        if settings.seed_default_tasks:
            async with async_session_maker() as session:
                created = await ensure_default_tasks(session)
            logger.info(f"Default tasks seeded: {created}")
    finally:
        await close_db()

    logger.info("Database initialized")


if __name__ == "__main__":
    asyncio.run(main())
