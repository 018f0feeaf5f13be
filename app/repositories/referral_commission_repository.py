"""
ReferralCommission repository.

Data access layer for ReferralCommission model.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.referral_commission import ReferralCommission
from app.repositories.base import BaseRepository


class ReferralCommissionRepository(
    BaseRepository[ReferralCommission]
):
    """ReferralCommission repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral commission repository."""
        super().__init__(ReferralCommission, session)

    async def get_by_withdrawal(
        self, withdrawal_id: int
    ) -> ReferralCommission | None:
        """
        Get commission paid for a withdrawal.

        Args:
            withdrawal_id: Withdrawal ID

        Returns:
            Commission or None
        """
        return await self.get_by(withdrawal_id=withdrawal_id)

    async def get_for_referrer(
        self, referrer_id: int, limit: int | None = None
    ) -> list[ReferralCommission]:
        """
        Get commissions earned by a referrer, newest first.

        Args:
            referrer_id: Referrer user ID
            limit: Optional limit

        Returns:
            List of commissions
        """
        stmt = (
            select(ReferralCommission)
            .where(ReferralCommission.referrer_id == referrer_id)
            .order_by(
                ReferralCommission.created_at.desc(),
                ReferralCommission.id.desc(),
            )
        )
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_total_for_referrer(
        self, referrer_id: int, since: datetime | None = None
    ) -> Decimal:
        """
        Get total commission earned by a referrer.

        Args:
            referrer_id: Referrer user ID
            since: Only count commissions created at or after this time

        Returns:
            Total amount
        """
        stmt = select(func.sum(ReferralCommission.amount)).where(
            ReferralCommission.referrer_id == referrer_id
        )
        if since is not None:
            stmt = stmt.where(ReferralCommission.created_at >= since)
        result = await self.session.execute(stmt)
        total = result.scalar()
        return Decimal(str(total)) if total is not None else Decimal("0")
