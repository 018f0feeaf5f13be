"""
Withdrawal repository.

Data access layer for Withdrawal model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import WithdrawalStatus
from app.models.withdrawal import Withdrawal
from app.repositories.base import BaseRepository


class WithdrawalRepository(BaseRepository[Withdrawal]):
    """Withdrawal repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal repository."""
        super().__init__(Withdrawal, session)

    async def get_by_user(
        self,
        user_id: int,
        limit: int | None = None,
        status: str | None = None,
    ) -> list[Withdrawal]:
        """
        Get user withdrawals, newest first.

        Args:
            user_id: User ID
            limit: Optional limit
            status: Optional status filter

        Returns:
            List of withdrawals
        """
        stmt = select(Withdrawal).where(Withdrawal.user_id == user_id)
        if status:
            stmt = stmt.where(Withdrawal.status == status)
        stmt = stmt.order_by(
            Withdrawal.created_at.desc(), Withdrawal.id.desc()
        )
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def has_pending(self, user_id: int) -> bool:
        """
        Check if user has a pending withdrawal.

        Args:
            user_id: User ID

        Returns:
            True if a pending withdrawal exists
        """
        return await self.exists(
            user_id=user_id, status=WithdrawalStatus.PENDING.value
        )

    async def list_by_status(
        self, status: str | None = None, limit: int = 100
    ) -> list[Withdrawal]:
        """
        List withdrawals, newest first.

        Args:
            status: Optional status filter
            limit: Max results

        Returns:
            List of withdrawals
        """
        stmt = select(Withdrawal)
        if status:
            stmt = stmt.where(Withdrawal.status == status)
        stmt = stmt.order_by(
            Withdrawal.created_at.desc(), Withdrawal.id.desc()
        ).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_status_totals(
        self, user_id: int | None = None
    ) -> dict[str, dict[str, Decimal | int]]:
        """
        Aggregate count, amount and commission per status.

        Args:
            user_id: Optional owner filter

        Returns:
            Dict status -> {count, amount, commission}
        """
        stmt = select(
            Withdrawal.status,
            func.count(Withdrawal.id),
            func.coalesce(func.sum(Withdrawal.amount), 0),
            func.coalesce(func.sum(Withdrawal.commission), 0),
        ).group_by(Withdrawal.status)
        if user_id is not None:
            stmt = stmt.where(Withdrawal.user_id == user_id)

        result = await self.session.execute(stmt)
        totals: dict[str, dict[str, Decimal | int]] = {}
        for status, count, amount, commission in result.all():
            totals[status] = {
                "count": count,
                "amount": Decimal(str(amount)),
                "commission": Decimal(str(commission)),
            }
        return totals
