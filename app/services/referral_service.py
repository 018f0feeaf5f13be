"""
Referral service.

Referral verification, referrer rewards, withdrawal commission payouts
and referral reporting.

Referrer credits touch a second account, so they run in their own
transaction after the triggering operation has committed. They never
raise: the outcome is returned as a SecondaryEffect.
"""

from datetime import datetime, timedelta
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import RewardConfig, settings
from app.models.base import utc_now
from app.models.enums import TransactionType
from app.models.user import User
from app.models.withdrawal import Withdrawal
from app.repositories.referral_commission_repository import (
    ReferralCommissionRepository,
)
from app.repositories.transaction_repository import (
    TransactionRepository,
)
from app.repositories.user_repository import UserRepository
from app.services.exceptions import AccountNotFoundError
from app.services.ledger_service import LedgerService
from app.services.results import EffectStatus, SecondaryEffect

REFERRAL_EARNING_TYPES = [
    TransactionType.REFERRAL_COMMISSION.value,
    TransactionType.REFERRAL_VERIFICATION.value,
]


class ReferralService:
    """
    Referral service.

    Referrers are resolved through UserRepository by ``referrer_id``;
    accounts hold no ORM link to each other.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: RewardConfig | None = None,
        ledger: LedgerService | None = None,
    ) -> None:
        """
        Initialize referral service.

        Args:
            session: Database session
            config: Reward parameters (defaults to global settings)
            ledger: Ledger to credit through (shared with the caller)
        """
        self.session = session
        self.config = config or settings.reward_config()
        self.ledger = ledger or LedgerService(session, self.config)
        self.user_repo = UserRepository(session)
        self.commission_repo = ReferralCommissionRepository(session)
        self.transaction_repo = TransactionRepository(session)

    def referral_link(self, user: User) -> str:
        """Get Telegram deep link carrying the referral code."""
        return (
            f"https://t.me/{settings.bot_username}"
            f"?start={user.referral_code}"
        )

    async def try_verify(self, user: User) -> bool:
        """
        Mark a referred account verified once it watched enough ads.

        Runs inside the caller's transaction. Returns True only on the
        call that flips the flag.

        Args:
            user: Referred account (locked by the caller)

        Returns:
            True if the account became verified now
        """
        if user.referrer_id is None or user.is_verified_referral:
            return False
        if user.ads_watched < self.config.verification_threshold:
            return False

        user.is_verified_referral = True
        await self.session.flush()

        logger.info(
            f"User {user.telegram_id} became a verified referral",
            extra={
                "user_id": user.id,
                "referrer_id": user.referrer_id,
                "ads_watched": user.ads_watched,
            },
        )
        return True

    async def reward_referrer_for_verification(
        self, user: User
    ) -> SecondaryEffect:
        """
        Pay the one-time verification reward to the referrer.

        Call after the verification itself has committed.

        Args:
            user: Freshly verified account

        Returns:
            SecondaryEffect describing what happened
        """
        kind = TransactionType.REFERRAL_VERIFICATION.value
        amount = self.config.referral_reward
        user_id = user.id
        referrer_id = user.referrer_id

        if referrer_id is None:
            return SecondaryEffect(
                kind, EffectStatus.SKIPPED, amount, reason="no_referrer"
            )

        try:
            referrer = await self.user_repo.get_by_id_for_update(
                referrer_id
            )
            skip_reason = self._skip_reason(referrer)
            if skip_reason:
                await self.session.commit()
                logger.warning(
                    f"Verification reward skipped: {skip_reason}",
                    extra={"user_id": user_id, "referrer_id": referrer_id},
                )
                return SecondaryEffect(
                    kind,
                    EffectStatus.SKIPPED,
                    amount,
                    referrer_id,
                    reason=skip_reason,
                )

            await self.ledger.credit(
                referrer,
                amount,
                TransactionType.REFERRAL_VERIFICATION,
                description=f"Referral verified: {user.display_name}",
                reference_type="user",
                reference_id=user_id,
            )
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(
                f"Failed to pay verification reward: {e}",
                extra={"user_id": user_id, "referrer_id": referrer_id},
            )
            return SecondaryEffect(
                kind, EffectStatus.FAILED, amount, referrer_id, reason=str(e)
            )

        return SecondaryEffect(kind, EffectStatus.APPLIED, amount, referrer_id)

    async def distribute_commission(
        self, withdrawal: Withdrawal
    ) -> SecondaryEffect:
        """
        Pay a settled withdrawal's commission to a verified referrer.

        Without a verified referrer the commission stays with the
        platform. Call after the approval has committed.

        Args:
            withdrawal: Approved withdrawal

        Returns:
            SecondaryEffect describing what happened
        """
        kind = TransactionType.REFERRAL_COMMISSION.value
        withdrawal_id = withdrawal.id
        owner_id = withdrawal.user_id
        amount = withdrawal.commission
        referrer_id: int | None = None

        def skipped(reason: str) -> SecondaryEffect:
            logger.info(
                f"Commission retained for withdrawal {withdrawal_id}: "
                f"{reason}",
                extra={"withdrawal_id": withdrawal_id, "amount": str(amount)},
            )
            return SecondaryEffect(
                kind, EffectStatus.SKIPPED, amount, referrer_id, reason
            )

        if amount <= 0:
            return skipped("zero_commission")

        try:
            if await self.commission_repo.get_by_withdrawal(withdrawal_id):
                return skipped("already_distributed")

            # Verification may have committed in another session
            owner = await self.user_repo.get_by_id(owner_id, refresh=True)
            if not owner or owner.referrer_id is None:
                return skipped("no_referrer")
            referrer_id = owner.referrer_id
            if not owner.is_verified_referral:
                return skipped("referral_not_verified")

            referrer = await self.user_repo.get_by_id_for_update(
                referrer_id
            )
            skip_reason = self._skip_reason(referrer)
            if skip_reason:
                await self.session.commit()
                return skipped(skip_reason)

            await self.ledger.credit(
                referrer,
                amount,
                TransactionType.REFERRAL_COMMISSION,
                description=(
                    f"Referral commission from {owner.display_name}"
                ),
                reference_type="withdrawal",
                reference_id=withdrawal_id,
            )
            await self.commission_repo.create(
                referrer_id=referrer_id,
                referred_id=owner_id,
                withdrawal_id=withdrawal_id,
                amount=amount,
            )
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(
                f"Failed to distribute referral commission: {e}",
                extra={
                    "withdrawal_id": withdrawal_id,
                    "referrer_id": referrer_id,
                    "amount": str(amount),
                },
            )
            return SecondaryEffect(
                kind, EffectStatus.FAILED, amount, referrer_id, reason=str(e)
            )

        logger.info(
            f"Referral commission {amount} TRX paid to user {referrer_id}",
            extra={"withdrawal_id": withdrawal_id, "referred_id": owner_id},
        )
        return SecondaryEffect(kind, EffectStatus.APPLIED, amount, referrer_id)

    @staticmethod
    def _skip_reason(referrer: User | None) -> str | None:
        if referrer is None:
            return "referrer_missing"
        if referrer.is_blocked:
            return "referrer_blocked"
        return None

    async def _get_user(self, telegram_id: int) -> User:
        user = await self.user_repo.get_by_telegram_id(telegram_id)
        if not user:
            raise AccountNotFoundError(telegram_id)
        return user

    async def get_referral_info(self, telegram_id: int) -> dict[str, Any]:
        """
        Get referral overview for an account.

        Args:
            telegram_id: Telegram user ID

        Returns:
            Dict with code, link, referral counts and earnings
        """
        user = await self._get_user(telegram_id)
        referrals = await self.user_repo.get_referrals(user.id)
        verified = sum(1 for r in referrals if r.is_verified_referral)

        commissions = await self.commission_repo.get_total_for_referrer(
            user.id
        )
        verification_rewards = await self.transaction_repo.get_sum_for_user(
            user.id, TransactionType.REFERRAL_VERIFICATION.value
        )

        return {
            "referral_code": user.referral_code,
            "referral_link": self.referral_link(user),
            "total_referrals": len(referrals),
            "verified_referrals": verified,
            "pending_verification": len(referrals) - verified,
            "total_referral_earnings": commissions + verification_rewards,
            "referrals": [
                {
                    "telegram_id": r.telegram_id,
                    "username": r.username,
                    "first_name": r.first_name,
                    "ads_watched": r.ads_watched,
                    "is_verified": r.is_verified_referral,
                    "total_earned": r.total_earned,
                    "joined_at": r.created_at,
                }
                for r in referrals
            ],
            "verification_requirement": self.config.verification_threshold,
            "verification_reward": self.config.referral_reward,
            "commission_rate": self.config.commission_rate * 100,
        }

    async def get_referral_stats(
        self, telegram_id: int, now: datetime | None = None
    ) -> dict[str, Any]:
        """
        Get referral earnings statistics.

        Daily counts from midnight UTC; weekly and monthly windows are
        7 and 30 days back from that midnight.

        Args:
            telegram_id: Telegram user ID
            now: Current time (naive UTC)

        Returns:
            Dict with commission totals per period and recent payouts
        """
        user = await self._get_user(telegram_id)
        now = now or utc_now()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)

        total_commissions = await self.commission_repo.get_total_for_referrer(
            user.id
        )
        verification_rewards = await self.transaction_repo.get_sum_for_user(
            user.id, TransactionType.REFERRAL_VERIFICATION.value
        )
        daily, weekly, monthly = [
            await self.commission_repo.get_total_for_referrer(
                user.id, since=since
            )
            for since in (
                today,
                today - timedelta(days=7),
                today - timedelta(days=30),
            )
        ]
        recent = await self.commission_repo.get_for_referrer(
            user.id, limit=10
        )

        return {
            "total_commissions": total_commissions,
            "verification_rewards": verification_rewards,
            "total_referral_earnings": (
                total_commissions + verification_rewards
            ),
            "daily_earnings": daily,
            "weekly_earnings": weekly,
            "monthly_earnings": monthly,
            "recent_commissions": [
                {
                    "id": c.id,
                    "referred_id": c.referred_id,
                    "withdrawal_id": c.withdrawal_id,
                    "amount": c.amount,
                    "created_at": c.created_at,
                }
                for c in recent
            ],
            "total_referrals": await self.user_repo.count_referrals(user.id),
            "verified_referrals": await self.user_repo.count_referrals(
                user.id, verified=True
            ),
        }

    async def validate_referral_code(self, code: str) -> dict[str, Any]:
        """
        Check a referral code before registration.

        Args:
            code: Referral code

        Returns:
            Dict with ``valid`` and the referrer's public profile
        """
        referrer = await self.user_repo.get_by_referral_code(
            code.strip().upper()
        )
        if not referrer:
            return {"valid": False}

        return {
            "valid": True,
            "referrer": {
                "username": referrer.username,
                "first_name": referrer.first_name,
                "total_referrals": await self.user_repo.count_referrals(
                    referrer.id
                ),
            },
        }

    async def get_leaderboard(self, limit: int = 10) -> list[dict[str, Any]]:
        """
        Rank referrers by referral earnings.

        Earnings are commissions plus verification rewards, taken from
        the transaction log.

        Args:
            limit: Max entries

        Returns:
            List of leaderboard entries, highest earnings first
        """
        totals = await self.transaction_repo.get_totals_by_user(
            REFERRAL_EARNING_TYPES, limit=limit
        )

        leaderboard = []
        for user_id, earnings in totals:
            user = await self.user_repo.get_by_id(user_id)
            if not user:
                continue
            leaderboard.append(
                {
                    "telegram_id": user.telegram_id,
                    "username": user.username,
                    "first_name": user.first_name,
                    "total_referrals": await self.user_repo.count_referrals(
                        user.id
                    ),
                    "total_referral_earnings": earnings,
                    "total_earned": user.total_earned,
                }
            )
        return leaderboard
