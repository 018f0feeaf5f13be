"""
Task service.

Task catalogue management and per-account task views. Completion and
its reward go through LedgerService.complete_task.
"""

from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import RewardConfig, settings
from app.models.enums import TaskAction, TaskType, VerificationMethod
from app.models.task import Task
from app.repositories.task_repository import (
    TaskCompletionRepository,
    TaskRepository,
)
from app.services.exceptions import InvalidAmountError, TaskNotFoundError
from app.services.ledger_service import LedgerService
from app.services.results import TaskCompletionResult
from app.services.unit_of_work import atomic
from app.utils.validation import sanitize_input, to_money

UPDATABLE_FIELDS = {
    "title",
    "description",
    "type",
    "url",
    "reward",
    "is_active",
    "required_action",
    "verification_method",
}


class TaskService:
    """Task service."""

    def __init__(
        self,
        session: AsyncSession,
        config: RewardConfig | None = None,
    ) -> None:
        """
        Initialize task service.

        Args:
            session: Database session
            config: Reward parameters (defaults to global settings)
        """
        self.session = session
        self.config = config or settings.reward_config()
        self.ledger = LedgerService(session, self.config)
        self.task_repo = TaskRepository(session)
        self.completion_repo = TaskCompletionRepository(session)

    @staticmethod
    def _reward(value: Decimal | int | float | str) -> Decimal:
        try:
            reward = to_money(value)
        except ValueError as e:
            raise InvalidAmountError(str(e)) from e
        if reward <= 0:
            raise InvalidAmountError(f"Task reward must be positive: {value}")
        return reward

    async def get_task(self, task_id: int) -> Task:
        """
        Get task by ID.

        Raises:
            TaskNotFoundError: If task does not exist
        """
        task = await self.task_repo.get_by_id(task_id)
        if not task:
            raise TaskNotFoundError(task_id)
        return task

    async def list_active(self) -> list[Task]:
        """Get tasks currently offered."""
        return await self.task_repo.get_active()

    async def list_all(self) -> list[Task]:
        """Get every task, including deactivated ones."""
        return await self.task_repo.get_all_ordered()

    async def list_for_user(self, telegram_id: int) -> list[dict[str, Any]]:
        """
        Get active tasks with the account's completion flags.

        Args:
            telegram_id: Telegram user ID

        Returns:
            List of task dicts with ``completed``
        """
        user = await self.ledger.get_account(telegram_id)
        completed = await self.completion_repo.get_completed_task_ids(
            user.id
        )
        tasks = await self.task_repo.get_active()

        return [
            {
                "id": task.id,
                "title": task.title,
                "description": task.description,
                "type": task.type,
                "url": task.url,
                "reward": task.reward,
                "required_action": task.required_action,
                "completed": task.id in completed,
            }
            for task in tasks
        ]

    async def get_user_task_stats(
        self, telegram_id: int
    ) -> dict[str, Any]:
        """
        Get task progress of an account.

        Returns:
            Dict with completed/available counts and task earnings
        """
        user = await self.ledger.get_account(telegram_id)
        completed_count, earned = await self.completion_repo.get_user_totals(
            user.id
        )
        completed = await self.completion_repo.get_completed_task_ids(
            user.id
        )
        active = await self.task_repo.get_active()
        available = [t for t in active if t.id not in completed]

        return {
            "completed_tasks": completed_count,
            "available_tasks": len(available),
            "total_task_earnings": earned,
            "potential_earnings": sum(
                (t.reward for t in available), Decimal("0")
            ),
        }

    async def create_task(
        self,
        title: str,
        url: str,
        reward: Decimal | int | float | str,
        type: str = TaskType.EXTERNAL_LINK.value,
        description: str = "",
        required_action: str = TaskAction.VISIT.value,
        verification_method: str = VerificationMethod.MANUAL.value,
        is_active: bool = True,
    ) -> Task:
        """
        Create a task.

        Raises:
            InvalidAmountError: If reward is not positive
            ValueError: If type, action or verification method is unknown
        """
        async with atomic(self.session, "task_create"):
            task = await self.task_repo.create(
                title=sanitize_input(title, 255),
                description=sanitize_input(description, 2000),
                type=TaskType(type).value,
                url=sanitize_input(url, 500),
                reward=self._reward(reward),
                is_active=is_active,
                required_action=TaskAction(required_action).value,
                verification_method=VerificationMethod(
                    verification_method
                ).value,
            )

        logger.info(
            f"Task created: {task.title}",
            extra={"task_id": task.id, "reward": str(task.reward)},
        )
        return task

    async def update_task(self, task_id: int, **fields: Any) -> Task:
        """
        Update task fields.

        Raises:
            TaskNotFoundError: If task does not exist
            InvalidAmountError: If new reward is not positive
            ValueError: If an unknown field is given
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {sorted(unknown)}")

        if "reward" in fields:
            fields["reward"] = self._reward(fields["reward"])
        if "type" in fields:
            fields["type"] = TaskType(fields["type"]).value
        if "required_action" in fields:
            fields["required_action"] = TaskAction(
                fields["required_action"]
            ).value
        if "verification_method" in fields:
            fields["verification_method"] = VerificationMethod(
                fields["verification_method"]
            ).value

        async with atomic(self.session, "task_update"):
            task = await self.task_repo.update(task_id, **fields)
            if not task:
                raise TaskNotFoundError(task_id)

        logger.info(
            f"Task {task_id} updated",
            extra={"fields": sorted(fields)},
        )
        return task

    async def delete_task(self, task_id: int) -> bool:
        """
        Delete a task.

        A task that has completions is deactivated instead, so the
        completion records stay intact.

        Returns:
            True if deleted, False if deactivated

        Raises:
            TaskNotFoundError: If task does not exist
        """
        async with atomic(self.session, "task_delete"):
            task = await self.task_repo.get_by_id(task_id)
            if not task:
                raise TaskNotFoundError(task_id)

            if await self.completion_repo.count_for_task(task_id):
                task.is_active = False
                deleted = False
            else:
                await self.task_repo.delete(task_id)
                deleted = True

        logger.info(
            f"Task {task_id} {'deleted' if deleted else 'deactivated'}"
        )
        return deleted

    async def verify_task(
        self, telegram_id: int, task_id: int, verified: bool
    ) -> TaskCompletionResult | None:
        """
        Apply a manual verification decision.

        Args:
            telegram_id: Telegram user ID
            task_id: Task ID
            verified: Verification outcome

        Returns:
            Completion result if verified, None if refused
        """
        if not verified:
            logger.info(
                f"Task {task_id} verification refused for user "
                f"{telegram_id}"
            )
            return None
        return await self.ledger.complete_task(telegram_id, task_id)
