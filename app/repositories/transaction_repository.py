"""
Transaction repository.

Data access layer for Transaction model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.transaction import Transaction
from app.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def get_by_user(
        self,
        user_id: int,
        type: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Transaction]:
        """
        Get transactions by user, newest first.

        Args:
            user_id: User ID
            type: Optional category filter
            limit: Max number of results
            offset: Number of results to skip

        Returns:
            List of transactions
        """
        stmt = select(Transaction).where(Transaction.user_id == user_id)
        if type:
            stmt = stmt.where(Transaction.type == type)
        stmt = stmt.order_by(
            Transaction.created_at.desc(), Transaction.id.desc()
        )
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_sum_for_user(
        self, user_id: int, type: str | None = None
    ) -> Decimal:
        """
        Get sum of transaction amounts for user.

        Args:
            user_id: User ID
            type: Optional category filter

        Returns:
            Signed total
        """
        stmt = select(func.sum(Transaction.amount)).where(
            Transaction.user_id == user_id
        )
        if type:
            stmt = stmt.where(Transaction.type == type)
        result = await self.session.execute(stmt)
        total = result.scalar()
        return Decimal(str(total)) if total is not None else Decimal("0")

    async def get_totals_by_user(
        self, types: list[str], limit: int = 10
    ) -> list[tuple[int, Decimal]]:
        """
        Rank users by the sum of the given categories.

        Args:
            types: Transaction categories to sum
            limit: Max users

        Returns:
            List of (user_id, total), highest first
        """
        total = func.sum(Transaction.amount).label("total")
        stmt = (
            select(Transaction.user_id, total)
            .where(Transaction.type.in_(types))
            .group_by(Transaction.user_id)
            .order_by(total.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [
            (user_id, Decimal(str(amount)))
            for user_id, amount in result.all()
        ]
