"""
Withdrawal service.

Withdrawal requests and their lifecycle:

    pending -> approved -> completed
    pending -> rejected   (refund)
    pending -> cancelled  (refund, owner only)

The gross amount is debited when the request is created. Approval is
the settlement point for the commission: it is then either paid to a
verified referrer or retained. ``complete`` only records the settlement
reference.
"""

from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import RewardConfig, settings
from app.models.admin_action import AdminAction
from app.models.base import utc_now
from app.models.enums import (
    AdminActionType,
    TransactionType,
    WithdrawalStatus,
)
from app.models.user import User
from app.models.withdrawal import Withdrawal
from app.repositories.user_repository import UserRepository
from app.repositories.withdrawal_repository import WithdrawalRepository
from app.services.exceptions import (
    AccessDeniedError,
    AccountBlockedError,
    AccountNotFoundError,
    BelowMinimumError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidAmountError,
    NotApprovedError,
    NotPendingError,
    PendingWithdrawalExistsError,
    WithdrawalNotFoundError,
)
from app.services.ledger_service import LedgerService
from app.services.results import EffectStatus, WithdrawalTransitionResult
from app.services.unit_of_work import atomic
from app.utils.validation import (
    quantize_money,
    sanitize_input,
    to_money,
    validate_trx_address,
)


class WithdrawalService:
    """Withdrawal service."""

    def __init__(
        self,
        session: AsyncSession,
        config: RewardConfig | None = None,
    ) -> None:
        """
        Initialize withdrawal service.

        Args:
            session: Database session
            config: Reward parameters (defaults to global settings)
        """
        self.session = session
        self.config = config or settings.reward_config()
        self.ledger = LedgerService(session, self.config)
        self.referral_service = self.ledger.referral_service
        self.user_repo = UserRepository(session)
        self.withdrawal_repo = WithdrawalRepository(session)

    def calculate_commission(self, amount: Decimal) -> tuple[Decimal, Decimal]:
        """
        Split a gross amount into commission and net amount.

        Args:
            amount: Gross amount

        Returns:
            Tuple of (commission, net_amount)
        """
        commission = quantize_money(amount * self.config.commission_rate)
        return commission, amount - commission

    async def request(
        self,
        telegram_id: int,
        amount: Decimal | int | float | str,
        to_address: str,
    ) -> Withdrawal:
        """
        Create a withdrawal request and debit the gross amount.

        Args:
            telegram_id: Telegram user ID
            amount: Gross amount (TRX)
            to_address: Destination TRX address

        Returns:
            Pending withdrawal

        Raises:
            AccountNotFoundError: If account does not exist
            AccountBlockedError: If account is blocked
            InvalidAmountError: If amount is not positive
            BelowMinimumError: If amount < minimum withdrawal
            InsufficientBalanceError: If amount > balance
            InvalidAddressError: If address is not a TRX address
            PendingWithdrawalExistsError: If a request is already pending
        """
        try:
            value = to_money(amount)
        except ValueError as e:
            raise InvalidAmountError(str(e)) from e
        address = (to_address or "").strip()

        async with atomic(self.session, "withdrawal_request"):
            user = await self.ledger.lock_account(telegram_id)

            if value <= 0:
                raise InvalidAmountError(f"Amount must be positive: {amount}")
            if value < self.config.minimum_withdrawal:
                raise BelowMinimumError(value, self.config.minimum_withdrawal)
            if value > user.balance:
                raise InsufficientBalanceError(value, user.balance)
            if not validate_trx_address(address):
                raise InvalidAddressError(
                    f"Invalid TRX wallet address: {address!r}"
                )
            # Checked under the account lock
            if await self.withdrawal_repo.has_pending(user.id):
                raise PendingWithdrawalExistsError(
                    "You have a pending withdrawal request. "
                    "Please wait for it to be processed."
                )

            commission, net_amount = self.calculate_commission(value)
            withdrawal = await self.withdrawal_repo.create(
                user_id=user.id,
                amount=value,
                commission=commission,
                net_amount=net_amount,
                to_address=address,
                status=WithdrawalStatus.PENDING.value,
            )
            await self.ledger.debit(
                user,
                value,
                TransactionType.WITHDRAWAL,
                description=f"Withdrawal request to {address}",
                reference_type="withdrawal",
                reference_id=withdrawal.id,
            )

        logger.info(
            f"Withdrawal {withdrawal.id} requested by user {telegram_id}",
            extra={
                "withdrawal_id": withdrawal.id,
                "amount": str(value),
                "commission": str(commission),
                "net_amount": str(net_amount),
            },
        )
        return withdrawal

    async def _lock_withdrawal(self, withdrawal_id: int) -> Withdrawal:
        withdrawal = await self.withdrawal_repo.get_by_id_for_update(
            withdrawal_id
        )
        if not withdrawal:
            raise WithdrawalNotFoundError(withdrawal_id)
        return withdrawal

    async def _lock_owner(self, withdrawal: Withdrawal) -> User:
        user = await self.user_repo.get_by_id_for_update(withdrawal.user_id)
        if not user:
            raise AccountNotFoundError(withdrawal.user_id)
        return user

    def _audit(
        self,
        admin_id: int | None,
        action_type: AdminActionType,
        withdrawal: Withdrawal,
    ) -> None:
        if admin_id is None:
            return
        self.session.add(
            AdminAction(
                admin_id=admin_id,
                action_type=action_type.value,
                target_user_id=withdrawal.user_id,
                details={
                    "withdrawal_id": withdrawal.id,
                    "amount": str(withdrawal.amount),
                    "commission": str(withdrawal.commission),
                    "tx_hash": withdrawal.tx_hash,
                },
            )
        )

    async def approve(
        self,
        withdrawal_id: int,
        tx_hash: str | None = None,
        notes: str = "",
        admin_id: int | None = None,
    ) -> WithdrawalTransitionResult:
        """
        Approve a pending withdrawal and distribute its commission.

        Args:
            withdrawal_id: Withdrawal ID
            tx_hash: Settlement reference, if already known
            notes: Admin notes
            admin_id: Telegram ID of the approving admin

        Returns:
            WithdrawalTransitionResult with the commission outcome

        Raises:
            WithdrawalNotFoundError: If withdrawal does not exist
            NotPendingError: If withdrawal is not pending
        """
        async with atomic(self.session, "withdrawal_approve"):
            withdrawal = await self._lock_withdrawal(withdrawal_id)
            if not withdrawal.is_pending:
                raise NotPendingError(withdrawal_id, withdrawal.status)

            withdrawal.status = WithdrawalStatus.APPROVED.value
            withdrawal.processed_at = utc_now()
            withdrawal.processed_by = admin_id
            withdrawal.tx_hash = (
                sanitize_input(tx_hash, max_length=128) if tx_hash else None
            )
            withdrawal.admin_notes = sanitize_input(notes)
            self._audit(
                admin_id, AdminActionType.WITHDRAWAL_APPROVED, withdrawal
            )

        logger.info(
            f"Withdrawal {withdrawal_id} approved",
            extra={
                "withdrawal_id": withdrawal_id,
                "admin_id": admin_id,
                "net_amount": str(withdrawal.net_amount),
            },
        )

        effect = await self.referral_service.distribute_commission(
            withdrawal
        )
        if effect.status == EffectStatus.FAILED:
            # Rollback of the payout expired the instance
            await self.session.refresh(withdrawal)

        return WithdrawalTransitionResult(withdrawal, effect)

    async def _refund(
        self,
        withdrawal: Withdrawal,
        user: User,
        status: WithdrawalStatus,
        notes: str,
    ) -> None:
        withdrawal.status = status.value
        withdrawal.processed_at = utc_now()
        withdrawal.admin_notes = notes
        await self.ledger.credit(
            user,
            withdrawal.amount,
            TransactionType.WITHDRAWAL_REFUND,
            description=f"Withdrawal {withdrawal.id} {status.value}",
            reference_type="withdrawal",
            reference_id=withdrawal.id,
        )

    async def reject(
        self,
        withdrawal_id: int,
        notes: str = "",
        admin_id: int | None = None,
    ) -> Withdrawal:
        """
        Reject a pending withdrawal and refund the full amount.

        Args:
            withdrawal_id: Withdrawal ID
            notes: Rejection reason
            admin_id: Telegram ID of the rejecting admin

        Returns:
            Rejected withdrawal

        Raises:
            WithdrawalNotFoundError: If withdrawal does not exist
            NotPendingError: If withdrawal is not pending
        """
        async with atomic(self.session, "withdrawal_reject"):
            withdrawal = await self._lock_withdrawal(withdrawal_id)
            if not withdrawal.is_pending:
                raise NotPendingError(withdrawal_id, withdrawal.status)

            user = await self._lock_owner(withdrawal)
            withdrawal.processed_by = admin_id
            await self._refund(
                withdrawal,
                user,
                WithdrawalStatus.REJECTED,
                sanitize_input(notes),
            )
            self._audit(
                admin_id, AdminActionType.WITHDRAWAL_REJECTED, withdrawal
            )

        logger.info(
            f"Withdrawal {withdrawal_id} rejected, "
            f"{withdrawal.amount} TRX refunded",
            extra={"withdrawal_id": withdrawal_id, "admin_id": admin_id},
        )
        return withdrawal

    async def cancel(
        self, withdrawal_id: int, telegram_id: int
    ) -> Withdrawal:
        """
        Cancel own pending withdrawal and refund the full amount.

        Args:
            withdrawal_id: Withdrawal ID
            telegram_id: Telegram ID of the requesting owner

        Returns:
            Cancelled withdrawal

        Raises:
            WithdrawalNotFoundError: If withdrawal does not exist
            AccessDeniedError: If caller does not own the withdrawal
            AccountBlockedError: If owner is blocked
            NotPendingError: If withdrawal is not pending
        """
        async with atomic(self.session, "withdrawal_cancel"):
            withdrawal = await self._lock_withdrawal(withdrawal_id)
            user = await self._lock_owner(withdrawal)
            if user.telegram_id != telegram_id:
                raise AccessDeniedError(
                    f"Withdrawal {withdrawal_id} does not belong to "
                    f"user {telegram_id}"
                )
            if user.is_blocked:
                raise AccountBlockedError(telegram_id)
            if not withdrawal.is_pending:
                raise NotPendingError(withdrawal_id, withdrawal.status)

            await self._refund(
                withdrawal, user, WithdrawalStatus.CANCELLED, "Cancelled by user"
            )

        logger.info(
            f"Withdrawal {withdrawal_id} cancelled by owner",
            extra={"withdrawal_id": withdrawal_id, "telegram_id": telegram_id},
        )
        return withdrawal

    async def complete(
        self,
        withdrawal_id: int,
        tx_hash: str,
        notes: str = "",
        admin_id: int | None = None,
    ) -> Withdrawal:
        """
        Record settlement of an approved withdrawal.

        No balance or commission effect.

        Args:
            withdrawal_id: Withdrawal ID
            tx_hash: Settlement reference (on-chain transaction id)
            notes: Admin notes (kept if empty)
            admin_id: Telegram ID of the admin

        Returns:
            Completed withdrawal

        Raises:
            WithdrawalNotFoundError: If withdrawal does not exist
            NotApprovedError: If withdrawal is not approved
        """
        async with atomic(self.session, "withdrawal_complete"):
            withdrawal = await self._lock_withdrawal(withdrawal_id)
            if withdrawal.status != WithdrawalStatus.APPROVED.value:
                raise NotApprovedError(withdrawal_id, withdrawal.status)

            withdrawal.status = WithdrawalStatus.COMPLETED.value
            withdrawal.completed_at = utc_now()
            withdrawal.tx_hash = sanitize_input(tx_hash, max_length=128)
            if notes:
                withdrawal.admin_notes = sanitize_input(notes)
            if admin_id is not None:
                withdrawal.processed_by = admin_id
            self._audit(
                admin_id, AdminActionType.WITHDRAWAL_COMPLETED, withdrawal
            )

        logger.info(
            f"Withdrawal {withdrawal_id} completed",
            extra={"withdrawal_id": withdrawal_id, "tx_hash": tx_hash},
        )
        return withdrawal

    async def get_withdrawal(
        self, withdrawal_id: int, telegram_id: int | None = None
    ) -> Withdrawal:
        """
        Get withdrawal, optionally checking ownership.

        Raises:
            WithdrawalNotFoundError: If withdrawal does not exist
            AccessDeniedError: If telegram_id is given and is not the owner
        """
        withdrawal = await self.withdrawal_repo.get_by_id(withdrawal_id)
        if not withdrawal:
            raise WithdrawalNotFoundError(withdrawal_id)

        if telegram_id is not None:
            owner = await self.user_repo.get_by_id(withdrawal.user_id)
            if not owner or owner.telegram_id != telegram_id:
                raise AccessDeniedError(
                    f"Withdrawal {withdrawal_id} does not belong to "
                    f"user {telegram_id}"
                )
        return withdrawal

    async def get_history(
        self, telegram_id: int, limit: int = 20
    ) -> dict[str, Any]:
        """
        Get withdrawal history of an account.

        Returns:
            Dict with withdrawals (newest first), total withdrawn and
            the amount currently pending
        """
        user = await self.ledger.get_account(telegram_id)
        withdrawals = await self.withdrawal_repo.get_by_user(
            user.id, limit=limit
        )
        pending_amount = sum(
            (w.amount for w in withdrawals if w.is_pending), Decimal("0")
        )

        return {
            "withdrawals": withdrawals,
            "total_withdrawn": user.total_withdrawn,
            "pending_amount": pending_amount,
        }

    async def get_user_stats(self, telegram_id: int) -> dict[str, Any]:
        """
        Get withdrawal statistics of an account.

        Returns:
            Dict with request counts per status and amount figures
        """
        user = await self.ledger.get_account(telegram_id)
        totals = await self.withdrawal_repo.get_status_totals(user.id)

        counts = {
            status.value: int(totals.get(status.value, {}).get("count", 0))
            for status in WithdrawalStatus
        }
        total_requests = sum(counts.values())
        total_commissions = sum(
            (
                totals[status.value]["commission"]
                for status in WithdrawalStatus
                if status.is_paid_out and status.value in totals
            ),
            Decimal("0"),
        )
        # Average over paid-out requests only
        paid_count = sum(
            counts[status.value]
            for status in WithdrawalStatus
            if status.is_paid_out
        )
        paid_amount = sum(
            (
                totals[status.value]["amount"]
                for status in WithdrawalStatus
                if status.is_paid_out and status.value in totals
            ),
            Decimal("0"),
        )
        average = (
            quantize_money(paid_amount / paid_count)
            if paid_count
            else Decimal("0")
        )

        return {
            "total_requests": total_requests,
            **counts,
            "total_amount": user.total_withdrawn,
            "total_commissions": total_commissions,
            "average_amount": average,
            "minimum_withdrawal": self.config.minimum_withdrawal,
            "commission_rate": self.config.commission_rate * 100,
            "current_balance": user.balance,
        }

    async def get_pending(self, limit: int = 100) -> list[Withdrawal]:
        """Get pending withdrawals for admin review."""
        return await self.withdrawal_repo.list_by_status(
            WithdrawalStatus.PENDING.value, limit=limit
        )

    async def list_withdrawals(
        self, status: str | None = None, limit: int = 100
    ) -> list[Withdrawal]:
        """List withdrawals, optionally by status."""
        if status is not None:
            status = WithdrawalStatus(status).value
        return await self.withdrawal_repo.list_by_status(status, limit=limit)

    async def get_total_stats(self) -> dict[str, Any]:
        """
        Get platform-wide withdrawal statistics.

        Amount and commission totals include approved and completed
        withdrawals only.

        Returns:
            Dict with counts per status and paid out totals
        """
        totals = await self.withdrawal_repo.get_status_totals()

        stats: dict[str, Any] = {
            status.value: int(totals.get(status.value, {}).get("count", 0))
            for status in WithdrawalStatus
        }
        stats["total"] = sum(
            int(t["count"]) for t in totals.values()
        )

        paid_out = [
            totals[status.value]
            for status in WithdrawalStatus
            if status.is_paid_out and status.value in totals
        ]
        stats["total_amount"] = sum(
            (t["amount"] for t in paid_out), Decimal("0")
        )
        stats["total_commission"] = sum(
            (t["commission"] for t in paid_out), Decimal("0")
        )
        return stats
