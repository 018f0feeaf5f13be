"""
Reconciliation service.

Audit checks over the transaction log. Detects accounts whose balance
disagrees with their transactions and referrer payouts that were never
applied (best-effort credits that failed).
"""

from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.models.enums import TransactionType, WithdrawalStatus
from app.models.referral_commission import ReferralCommission
from app.models.transaction import Transaction
from app.models.user import User
from app.models.withdrawal import Withdrawal
from app.repositories.transaction_repository import (
    TransactionRepository,
)
from app.repositories.user_repository import UserRepository
from app.services.exceptions import AccountNotFoundError


class ReconciliationService:
    """Service for ledger reconciliation."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize reconciliation service."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.transaction_repo = TransactionRepository(session)

    async def check_account(self, telegram_id: int) -> dict[str, Any]:
        """
        Compare an account with its transaction log.

        Both sum(transactions) and the balance must equal
        total_earned - total_withdrawn.

        Args:
            telegram_id: Telegram user ID

        Returns:
            Dict with the three figures and ``consistent``

        Raises:
            AccountNotFoundError: If account does not exist
        """
        user = await self.user_repo.get_by_telegram_id(telegram_id)
        if not user:
            raise AccountNotFoundError(telegram_id)

        transaction_sum = await self.transaction_repo.get_sum_for_user(
            user.id
        )
        expected = user.total_earned - user.total_withdrawn

        return {
            "telegram_id": telegram_id,
            "balance": user.balance,
            "expected_balance": expected,
            "transaction_sum": transaction_sum,
            "consistent": (
                transaction_sum == expected and user.balance == expected
            ),
        }

    async def find_inconsistent_accounts(self) -> list[dict[str, Any]]:
        """
        Find accounts whose balance disagrees with their transactions.

        Returns:
            List of dicts with telegram_id, balance and transaction_sum
        """
        tx_sum = (
            select(
                Transaction.user_id,
                func.sum(Transaction.amount).label("total"),
            )
            .group_by(Transaction.user_id)
            .subquery()
        )
        stmt = select(
            User.telegram_id,
            User.balance,
            User.total_earned,
            User.total_withdrawn,
            func.coalesce(tx_sum.c.total, 0),
        ).outerjoin(tx_sum, tx_sum.c.user_id == User.id)

        result = await self.session.execute(stmt)
        inconsistent = []
        for telegram_id, balance, earned, withdrawn, total in result.all():
            total = Decimal(str(total))
            if balance != total or earned - withdrawn != total:
                inconsistent.append(
                    {
                        "telegram_id": telegram_id,
                        "balance": balance,
                        "transaction_sum": total,
                    }
                )
        return inconsistent

    async def find_unpaid_verifications(self) -> list[dict[str, Any]]:
        """
        Find verified referrals whose referrer was never rewarded.

        Returns:
            List of dicts with referred and referrer IDs
        """
        reward = aliased(Transaction)
        stmt = (
            select(User.id, User.telegram_id, User.referrer_id)
            .outerjoin(
                reward,
                and_(
                    reward.user_id == User.referrer_id,
                    reward.type
                    == TransactionType.REFERRAL_VERIFICATION.value,
                    reward.reference_type == "user",
                    reward.reference_id == User.id,
                ),
            )
            .where(
                User.is_verified_referral.is_(True),
                User.referrer_id.is_not(None),
                reward.id.is_(None),
            )
        )

        result = await self.session.execute(stmt)
        return [
            {
                "user_id": user_id,
                "telegram_id": telegram_id,
                "referrer_id": referrer_id,
            }
            for user_id, telegram_id, referrer_id in result.all()
        ]

    async def find_unpaid_commissions(self) -> list[dict[str, Any]]:
        """
        Find settled withdrawals of verified referrals without payout.

        Returns:
            List of dicts with withdrawal, owner and referrer IDs
        """
        stmt = (
            select(
                Withdrawal.id,
                Withdrawal.user_id,
                User.referrer_id,
                Withdrawal.commission,
            )
            .join(User, User.id == Withdrawal.user_id)
            .outerjoin(
                ReferralCommission,
                ReferralCommission.withdrawal_id == Withdrawal.id,
            )
            .where(
                Withdrawal.status.in_(
                    [
                        WithdrawalStatus.APPROVED.value,
                        WithdrawalStatus.COMPLETED.value,
                    ]
                ),
                Withdrawal.commission > 0,
                User.referrer_id.is_not(None),
                User.is_verified_referral.is_(True),
                ReferralCommission.id.is_(None),
            )
        )

        result = await self.session.execute(stmt)
        return [
            {
                "withdrawal_id": withdrawal_id,
                "user_id": user_id,
                "referrer_id": referrer_id,
                "commission": commission,
            }
            for withdrawal_id, user_id, referrer_id, commission in result.all()
        ]

    async def perform_reconciliation(self) -> dict[str, Any]:
        """
        Run all checks.

        Unpaid commissions include payouts skipped because the referrer
        was blocked; they are reported for review, not as errors of the
        ledger itself.

        Returns:
            Dict with the findings and ``ok``
        """
        logger.info("Starting ledger reconciliation")

        inconsistent = await self.find_inconsistent_accounts()
        unpaid_verifications = await self.find_unpaid_verifications()
        unpaid_commissions = await self.find_unpaid_commissions()

        report = {
            "inconsistent_accounts": inconsistent,
            "unpaid_verifications": unpaid_verifications,
            "unpaid_commissions": unpaid_commissions,
            "ok": not (
                inconsistent or unpaid_verifications or unpaid_commissions
            ),
        }

        if report["ok"]:
            logger.info("Ledger reconciliation passed")
        else:
            logger.error(
                "Ledger reconciliation found discrepancies",
                extra={
                    "inconsistent_accounts": len(inconsistent),
                    "unpaid_verifications": len(unpaid_verifications),
                    "unpaid_commissions": len(unpaid_commissions),
                },
            )
        return report
