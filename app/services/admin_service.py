"""
Admin service.

Administrative account actions with audit logging, plus dashboard
figures.
"""

from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import RewardConfig, settings
from app.models.admin_action import AdminAction
from app.models.base import utc_now
from app.models.enums import AdminActionType, TransactionType
from app.models.user import User
from app.repositories.admin_action_repository import (
    AdminActionRepository,
)
from app.repositories.task_repository import (
    TaskCompletionRepository,
    TaskRepository,
)
from app.repositories.user_repository import UserRepository
from app.repositories.withdrawal_repository import WithdrawalRepository
from app.services.exceptions import (
    AccountNotFoundError,
    InvalidAmountError,
)
from app.services.ledger_service import LedgerService
from app.services.unit_of_work import atomic
from app.services.withdrawal_service import WithdrawalService
from app.utils.validation import sanitize_input, to_money


def _user_summary(user: User) -> dict[str, Any]:
    return {
        "telegram_id": user.telegram_id,
        "username": user.username,
        "first_name": user.first_name,
        "balance": user.balance,
        "total_earned": user.total_earned,
        "ads_watched": user.ads_watched,
        "is_blocked": user.is_blocked,
        "created_at": user.created_at,
    }


class AdminService:
    """Admin service."""

    def __init__(
        self,
        session: AsyncSession,
        config: RewardConfig | None = None,
    ) -> None:
        """
        Initialize admin service.

        Args:
            session: Database session
            config: Reward parameters (defaults to global settings)
        """
        self.session = session
        self.config = config or settings.reward_config()
        self.ledger = LedgerService(session, self.config)
        self.withdrawal_service = WithdrawalService(session, self.config)
        self.user_repo = UserRepository(session)
        self.action_repo = AdminActionRepository(session)
        self.withdrawal_repo = WithdrawalRepository(session)
        self.task_repo = TaskRepository(session)
        self.completion_repo = TaskCompletionRepository(session)

    def is_admin(self, telegram_id: int) -> bool:
        """Check if Telegram ID is a configured admin."""
        return telegram_id in settings.get_admin_ids()

    async def _lock_user(self, telegram_id: int) -> User:
        user = await self.user_repo.get_by_telegram_id_for_update(
            telegram_id
        )
        if not user:
            raise AccountNotFoundError(telegram_id)
        return user

    async def set_blocked(
        self,
        telegram_id: int,
        blocked: bool,
        reason: str | None = None,
        admin_id: int | None = None,
    ) -> User:
        """
        Block or unblock an account.

        Args:
            telegram_id: Telegram ID of the target account
            blocked: New block status
            reason: Block reason
            admin_id: Telegram ID of the admin

        Returns:
            Updated user

        Raises:
            AccountNotFoundError: If account does not exist
        """
        async with atomic(self.session, "admin_set_blocked"):
            user = await self._lock_user(telegram_id)
            user.is_blocked = blocked
            if blocked:
                user.block_reason = sanitize_input(reason) or None
                user.blocked_at = utc_now()
            else:
                user.block_reason = None
                user.blocked_at = None

            await self.action_repo.create(
                admin_id=admin_id,
                action_type=(
                    AdminActionType.USER_BLOCKED.value
                    if blocked
                    else AdminActionType.USER_UNBLOCKED.value
                ),
                target_user_id=user.id,
                details={"reason": user.block_reason},
            )

        logger.info(
            f"User {telegram_id} {'blocked' if blocked else 'unblocked'}",
            extra={"admin_id": admin_id, "reason": reason},
        )
        return user

    async def adjust_balance(
        self,
        telegram_id: int,
        amount: Decimal | int | float | str,
        reason: str,
        admin_id: int | None = None,
    ) -> User:
        """
        Manually credit (positive) or debit (negative) an account.

        Args:
            telegram_id: Telegram ID of the target account
            amount: Signed adjustment
            reason: Reason, stored on the transaction and audit row
            admin_id: Telegram ID of the admin

        Returns:
            Updated user

        Raises:
            AccountNotFoundError: If account does not exist
            InvalidAmountError: If amount is zero or not a number
            InsufficientBalanceError: If a debit exceeds the balance
        """
        try:
            value = to_money(amount)
        except ValueError as e:
            raise InvalidAmountError(str(e)) from e
        if value == 0:
            raise InvalidAmountError("Adjustment amount must not be zero")

        reason = sanitize_input(reason) or "Admin adjustment"

        async with atomic(self.session, "admin_adjust_balance"):
            user = await self._lock_user(telegram_id)
            balance_before = user.balance

            if value > 0:
                await self.ledger.credit(
                    user,
                    value,
                    TransactionType.ADMIN_CREDIT,
                    description=reason,
                )
            else:
                await self.ledger.debit(
                    user,
                    -value,
                    TransactionType.ADMIN_DEBIT,
                    description=reason,
                )

            await self.action_repo.create(
                admin_id=admin_id,
                action_type=AdminActionType.BALANCE_ADJUSTMENT.value,
                target_user_id=user.id,
                details={
                    "amount": str(value),
                    "reason": reason,
                    "balance_before": str(balance_before),
                    "balance_after": str(user.balance),
                },
            )

        logger.info(
            f"Balance of user {telegram_id} adjusted by {value} TRX",
            extra={"admin_id": admin_id, "reason": reason},
        )
        return user

    async def list_users(
        self,
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
        blocked: bool | None = None,
    ) -> dict[str, Any]:
        """
        List accounts for the admin panel.

        Returns:
            Dict with ``users`` and ``pagination``
        """
        page = max(page, 1)
        users, total = await self.user_repo.search(
            search=sanitize_input(search, 100) or None,
            is_blocked=blocked,
            limit=limit,
            offset=(page - 1) * limit,
        )

        return {
            "users": [_user_summary(u) for u in users],
            "pagination": {"page": page, "limit": limit, "total": total},
        }

    async def get_user_details(self, telegram_id: int) -> dict[str, Any]:
        """
        Get full account view with recent activity.

        Raises:
            AccountNotFoundError: If account does not exist
        """
        user = await self.user_repo.get_by_telegram_id(telegram_id)
        if not user:
            raise AccountNotFoundError(telegram_id)

        transactions = await self.ledger.transaction_repo.get_by_user(
            user.id, limit=50
        )
        withdrawals = await self.withdrawal_repo.get_by_user(user.id)
        referrals = await self.user_repo.get_referrals(user.id)
        actions = await self.action_repo.get_by_target_user(
            user.id, limit=20
        )

        return {
            "user": {
                **_user_summary(user),
                "last_name": user.last_name,
                "total_withdrawn": user.total_withdrawn,
                "referral_code": user.referral_code,
                "referrer_id": user.referrer_id,
                "is_verified_referral": user.is_verified_referral,
                "block_reason": user.block_reason,
                "wallet_address": user.wallet_address,
            },
            "transactions": transactions,
            "withdrawals": withdrawals,
            "referrals": [_user_summary(r) for r in referrals],
            "admin_actions": actions,
        }

    async def get_dashboard_stats(self) -> dict[str, Any]:
        """
        Get platform overview.

        Returns:
            Dict with ``overview``, ``withdrawal_stats`` and
            ``recent_users``
        """
        totals = await self.user_repo.get_totals()
        recent = await self.user_repo.get_recent(limit=10)

        return {
            "overview": {
                **totals,
                "total_tasks": await self.task_repo.count(),
                "total_task_completions": await self.completion_repo.count(),
            },
            "withdrawal_stats": await self.withdrawal_service.get_total_stats(),
            "recent_users": [_user_summary(u) for u in recent],
        }

    async def get_logs(
        self,
        limit: int = 100,
        offset: int = 0,
        action_type: str | None = None,
    ) -> list[AdminAction]:
        """Get admin audit log, newest first."""
        return await self.action_repo.get_recent(
            limit=limit, offset=offset, action_type=action_type
        )
