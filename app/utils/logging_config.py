"""
Logging configuration.

Installs loguru sinks for the ledger process.
"""

import sys

from loguru import logger

from app.config.settings import Settings


def setup_logging(settings: Settings) -> None:
    """
    Configure loguru sinks.

    Replaces the default sink with stderr plus a daily rotated file.

    Args:
        settings: Application settings
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level,
        )

    logger.info(
        "Logging configured",
        extra={
            "environment": settings.environment,
            "level": settings.log_level,
        },
    )
