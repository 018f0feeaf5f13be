"""
Ledger service.

Balance mutations and the rewarded operations built on them (ads and
tasks). Every mutation appends a Transaction row.
"""

import math
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import RewardConfig, settings
from app.models.base import utc_now
from app.models.enums import TransactionType
from app.models.transaction import Transaction
from app.models.user import User
from app.repositories.task_repository import (
    TaskCompletionRepository,
    TaskRepository,
)
from app.repositories.transaction_repository import (
    TransactionRepository,
)
from app.repositories.user_repository import UserRepository
from app.services.exceptions import (
    AccountBlockedError,
    AccountNotFoundError,
    AlreadyCompletedError,
    CooldownError,
    InsufficientBalanceError,
    InvalidAmountError,
    TaskInactiveError,
    TaskNotFoundError,
)
from app.services.results import AdWatchResult, TaskCompletionResult
from app.services.unit_of_work import atomic
from app.utils.validation import to_money

if TYPE_CHECKING:
    from app.services.referral_service import ReferralService


class LedgerService:
    """
    Ledger service.

    ``credit`` and ``debit`` only flush: the calling operation owns the
    transaction. ``watch_ad`` and ``complete_task`` commit.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: RewardConfig | None = None,
    ) -> None:
        """
        Initialize ledger service.

        Args:
            session: Database session
            config: Reward parameters (defaults to global settings)
        """
        self.session = session
        self.config = config or settings.reward_config()
        self.user_repo = UserRepository(session)
        self.transaction_repo = TransactionRepository(session)
        self.task_repo = TaskRepository(session)
        self.completion_repo = TaskCompletionRepository(session)
        self._referral_service: "ReferralService | None" = None

    @property
    def referral_service(self) -> "ReferralService":
        """Referral engine sharing this ledger."""
        if self._referral_service is None:
            from app.services.referral_service import ReferralService

            self._referral_service = ReferralService(
                self.session, self.config, ledger=self
            )
        return self._referral_service

    @staticmethod
    def _positive_amount(amount: Decimal | int | float | str) -> Decimal:
        try:
            value = to_money(amount)
        except ValueError as e:
            raise InvalidAmountError(str(e)) from e
        if value <= 0:
            raise InvalidAmountError(f"Amount must be positive: {amount}")
        return value

    async def credit(
        self,
        user: User,
        amount: Decimal | int | float | str,
        category: TransactionType | str,
        description: str | None = None,
        reference_type: str | None = None,
        reference_id: int | None = None,
    ) -> Transaction:
        """
        Increase balance and total earned.

        Args:
            user: Account (loaded in the current transaction)
            amount: Positive amount
            category: Transaction category
            description: Human readable description
            reference_type: Originating entity kind
            reference_id: Originating entity ID

        Returns:
            Appended transaction

        Raises:
            InvalidAmountError: If amount is not positive
        """
        value = self._positive_amount(amount)

        balance_before = user.balance
        user.balance = balance_before + value
        user.total_earned = user.total_earned + value

        transaction = await self.transaction_repo.create(
            user_id=user.id,
            type=str(category),
            amount=value,
            balance_before=balance_before,
            balance_after=user.balance,
            description=description,
            reference_type=reference_type,
            reference_id=reference_id,
        )

        logger.info(
            f"Credited {value} TRX to user {user.telegram_id}",
            extra={
                "user_id": user.id,
                "category": str(category),
                "amount": str(value),
                "balance": str(user.balance),
            },
        )
        return transaction

    async def debit(
        self,
        user: User,
        amount: Decimal | int | float | str,
        category: TransactionType | str,
        description: str | None = None,
        reference_type: str | None = None,
        reference_id: int | None = None,
    ) -> Transaction:
        """
        Decrease balance and increase total withdrawn.

        Args:
            user: Account (loaded in the current transaction)
            amount: Positive amount
            category: Transaction category
            description: Human readable description
            reference_type: Originating entity kind
            reference_id: Originating entity ID

        Returns:
            Appended transaction (negative amount)

        Raises:
            InvalidAmountError: If amount is not positive
            InsufficientBalanceError: If amount exceeds balance
        """
        value = self._positive_amount(amount)
        if value > user.balance:
            raise InsufficientBalanceError(value, user.balance)

        balance_before = user.balance
        user.balance = balance_before - value
        user.total_withdrawn = user.total_withdrawn + value

        transaction = await self.transaction_repo.create(
            user_id=user.id,
            type=str(category),
            amount=-value,
            balance_before=balance_before,
            balance_after=user.balance,
            description=description,
            reference_type=reference_type,
            reference_id=reference_id,
        )

        logger.info(
            f"Debited {value} TRX from user {user.telegram_id}",
            extra={
                "user_id": user.id,
                "category": str(category),
                "amount": str(value),
                "balance": str(user.balance),
            },
        )
        return transaction

    async def lock_account(self, telegram_id: int) -> User:
        """
        Load account with a row lock, refusing blocked accounts.

        Raises:
            AccountNotFoundError: If account does not exist
            AccountBlockedError: If account is blocked
        """
        user = await self.user_repo.get_by_telegram_id_for_update(
            telegram_id
        )
        if not user:
            raise AccountNotFoundError(telegram_id)
        if user.is_blocked:
            raise AccountBlockedError(telegram_id)
        return user

    def cooldown_remaining(
        self, user: User, now: datetime | None = None
    ) -> int:
        """
        Seconds until the next ad may be watched (0 if allowed now).

        Args:
            user: Account
            now: Current time (naive UTC)
        """
        if user.last_ad_watch is None:
            return 0

        now = now or utc_now()
        cooldown = self.config.ad_cooldown_seconds
        elapsed = (now - user.last_ad_watch).total_seconds()
        if elapsed >= cooldown:
            return 0
        return min(cooldown, math.ceil(cooldown - elapsed))

    async def watch_ad(
        self, telegram_id: int, now: datetime | None = None
    ) -> AdWatchResult:
        """
        Record an ad view and credit the ad reward.

        Counter, timestamp, credit and referral verification commit
        together. The referrer reward for a fresh verification runs
        afterwards in its own transaction.

        Args:
            telegram_id: Telegram user ID
            now: View time (naive UTC, defaults to now)

        Returns:
            AdWatchResult

        Raises:
            AccountNotFoundError: If account does not exist
            AccountBlockedError: If account is blocked
            CooldownError: If cooldown has not elapsed
        """
        now = now or utc_now()
        reward = self.config.ad_reward

        async with atomic(self.session, "watch_ad"):
            user = await self.lock_account(telegram_id)

            remaining = self.cooldown_remaining(user, now)
            if remaining > 0:
                logger.info(
                    f"Ad cooldown active for user {telegram_id}",
                    extra={"remaining_seconds": remaining},
                )
                raise CooldownError(remaining)

            user.ads_watched += 1
            user.last_ad_watch = now
            await self.credit(
                user,
                reward,
                TransactionType.AD_VIEW,
                description="Ad view reward",
            )
            became_verified = await self.referral_service.try_verify(user)

        balance = user.balance
        ads_watched = user.ads_watched

        referral_effect = None
        if became_verified:
            referral_effect = (
                await self.referral_service.reward_referrer_for_verification(
                    user
                )
            )

        return AdWatchResult(
            reward=reward,
            balance=balance,
            ads_watched=ads_watched,
            cooldown_seconds=self.config.ad_cooldown_seconds,
            became_verified=became_verified,
            referral_effect=referral_effect,
        )

    async def complete_task(
        self, telegram_id: int, task_id: int
    ) -> TaskCompletionResult:
        """
        Complete a task and credit its reward once.

        Args:
            telegram_id: Telegram user ID
            task_id: Task ID

        Returns:
            TaskCompletionResult

        Raises:
            AccountNotFoundError: If account does not exist
            AccountBlockedError: If account is blocked
            TaskNotFoundError: If task does not exist
            TaskInactiveError: If task is deactivated
            AlreadyCompletedError: If task was already completed
        """
        try:
            async with atomic(self.session, "complete_task"):
                user = await self.lock_account(telegram_id)

                task = await self.task_repo.get_by_id(task_id, refresh=True)
                if not task:
                    raise TaskNotFoundError(task_id)
                if not task.is_active:
                    raise TaskInactiveError(f"Task {task_id} is not active")
                if await self.completion_repo.is_completed(user.id, task_id):
                    raise AlreadyCompletedError(
                        f"Task {task_id} already completed"
                    )

                reward = task.reward
                await self.completion_repo.create(
                    user_id=user.id, task_id=task_id, reward=reward
                )
                await self.credit(
                    user,
                    reward,
                    TransactionType.TASK_COMPLETION,
                    description=f"Task completed: {task.title}",
                    reference_type="task",
                    reference_id=task_id,
                )
        except IntegrityError as e:
            # Unique (user_id, task_id) lost a race
            raise AlreadyCompletedError(
                f"Task {task_id} already completed"
            ) from e

        logger.info(
            f"User {telegram_id} completed task {task_id}",
            extra={"task_id": task_id, "reward": str(reward)},
        )
        return TaskCompletionResult(
            task_id=task_id,
            reward=reward,
            balance=user.balance,
            total_earned=user.total_earned,
        )

    async def get_account(self, telegram_id: int) -> User:
        """Get account without locking."""
        user = await self.user_repo.get_by_telegram_id(telegram_id)
        if not user:
            raise AccountNotFoundError(telegram_id)
        return user

    async def get_ad_status(
        self, telegram_id: int, now: datetime | None = None
    ) -> dict[str, Any]:
        """
        Get whether the account may watch an ad now.

        Args:
            telegram_id: Telegram user ID
            now: Current time (naive UTC)

        Returns:
            Dict with can_watch, remaining_seconds and ad figures
        """
        user = await self.get_account(telegram_id)
        remaining = self.cooldown_remaining(user, now)

        return {
            "can_watch": remaining == 0 and not user.is_blocked,
            "remaining_seconds": remaining,
            "ads_watched": user.ads_watched,
            "last_ad_watch": user.last_ad_watch,
            "reward": self.config.ad_reward,
            "cooldown_seconds": self.config.ad_cooldown_seconds,
            "is_blocked": user.is_blocked,
        }

    async def get_ad_stats(self, telegram_id: int) -> dict[str, Any]:
        """
        Get ad earnings and referral verification progress.

        Args:
            telegram_id: Telegram user ID

        Returns:
            Dict with ads watched, earnings and ads needed to verify
        """
        user = await self.get_account(telegram_id)
        earned = await self.transaction_repo.get_sum_for_user(
            user.id, TransactionType.AD_VIEW.value
        )

        ads_needed = 0
        if user.referrer_id is not None and not user.is_verified_referral:
            ads_needed = max(
                0, self.config.verification_threshold - user.ads_watched
            )

        return {
            "ads_watched": user.ads_watched,
            "earned_from_ads": earned,
            "reward_per_ad": self.config.ad_reward,
            "is_verified_referral": user.is_verified_referral,
            "ads_needed_for_verification": ads_needed,
        }

    async def get_transactions(
        self,
        telegram_id: int,
        limit: int = 50,
        offset: int = 0,
        category: str | None = None,
    ) -> list[Transaction]:
        """
        Get account transaction history, newest first.

        Args:
            telegram_id: Telegram user ID
            limit: Page size
            offset: Offset
            category: Optional category filter

        Returns:
            List of transactions
        """
        user = await self.get_account(telegram_id)
        return await self.transaction_repo.get_by_user(
            user.id, type=category, limit=limit, offset=offset
        )
