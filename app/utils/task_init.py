"""
Default task seeding.

Runs once at startup: inserts the default task set when the tasks table
is empty.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import TaskAction, TaskType, VerificationMethod
from app.repositories.task_repository import TaskRepository

DEFAULT_TASKS = [
    {
        "title": "Join TRX Earn Channel",
        "description": (
            "Join our official Telegram channel for updates and news"
        ),
        "type": TaskType.TELEGRAM_CHANNEL.value,
        "url": "https://t.me/trxearnofficial",
        "reward": Decimal("0.01"),
        "required_action": TaskAction.JOIN.value,
    },
    {
        "title": "Join TRX Updates",
        "description": "Stay updated with the latest TRX news",
        "type": TaskType.TELEGRAM_CHANNEL.value,
        "url": "https://t.me/trxearnupdates",
        "reward": Decimal("0.015"),
        "required_action": TaskAction.JOIN.value,
    },
    {
        "title": "Start Support Bot",
        "description": "Start our support bot for help and assistance",
        "type": TaskType.TELEGRAM_BOT.value,
        "url": "https://t.me/trxearnsupportbot",
        "reward": Decimal("0.008"),
        "required_action": TaskAction.START.value,
    },
    {
        "title": "Visit Our Website",
        "description": "Check out our official website",
        "type": TaskType.EXTERNAL_LINK.value,
        "url": "https://trxearn.com",
        "reward": Decimal("0.005"),
        "required_action": TaskAction.VISIT.value,
    },
]


async def ensure_default_tasks(session: AsyncSession) -> int:
    """
    Seed default tasks if none exist.

    Args:
        session: Database session

    Returns:
        Number of tasks created (0 if tasks already existed)
    """
    task_repo = TaskRepository(session)

    existing = await task_repo.count()
    if existing > 0:
        logger.debug(
            f"Tasks already present ({existing}), skipping default seed"
        )
        return 0

    for data in DEFAULT_TASKS:
        await task_repo.create(
            verification_method=VerificationMethod.MANUAL.value,
            **data,
        )
    await session.commit()

    logger.info(f"Seeded {len(DEFAULT_TASKS)} default tasks")
    return len(DEFAULT_TASKS)
