"""
Task repositories.

Data access layer for Task and TaskCompletion models.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import Task, TaskCompletion
from app.repositories.base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Task repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize task repository."""
        super().__init__(Task, session)

    async def get_active(self) -> list[Task]:
        """
        Get active tasks, oldest first.

        Returns:
            List of active tasks
        """
        return await self.find_all(order_by=Task.id.asc(), is_active=True)

    async def get_all_ordered(self) -> list[Task]:
        """Get every task including inactive ones."""
        return await self.find_all(order_by=Task.id.asc())


class TaskCompletionRepository(BaseRepository[TaskCompletion]):
    """TaskCompletion repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize task completion repository."""
        super().__init__(TaskCompletion, session)

    async def is_completed(self, user_id: int, task_id: int) -> bool:
        """
        Check if user completed a task.

        Args:
            user_id: User ID
            task_id: Task ID

        Returns:
            True if completed
        """
        return await self.exists(user_id=user_id, task_id=task_id)

    async def get_completed_task_ids(self, user_id: int) -> set[int]:
        """
        Get IDs of tasks completed by user.

        Args:
            user_id: User ID

        Returns:
            Set of task IDs
        """
        stmt = select(TaskCompletion.task_id).where(
            TaskCompletion.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def get_user_totals(self, user_id: int) -> tuple[int, Decimal]:
        """
        Get completion count and total reward for user.

        Args:
            user_id: User ID

        Returns:
            Tuple of (completed count, total reward)
        """
        stmt = select(
            func.count(TaskCompletion.id),
            func.sum(TaskCompletion.reward),
        ).where(TaskCompletion.user_id == user_id)
        count, total = (await self.session.execute(stmt)).one()
        if total is None:
            return count or 0, Decimal("0")
        return count, Decimal(str(total))

    async def count_for_task(self, task_id: int) -> int:
        """Count completions of a task."""
        return await self.count(task_id=task_id)
