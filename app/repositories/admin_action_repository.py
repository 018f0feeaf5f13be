"""
AdminAction repository.

Data access layer for AdminAction model.
"""

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.admin_action import AdminAction
from app.repositories.base import BaseRepository


class AdminActionRepository(BaseRepository[AdminAction]):
    """AdminAction repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize admin action repository."""
        super().__init__(AdminAction, session)

    async def get_recent(
        self,
        limit: int = 100,
        offset: int = 0,
        admin_id: int | None = None,
        action_type: str | None = None,
    ) -> list[AdminAction]:
        """
        Get recent admin actions.

        Args:
            limit: Max number of results (default: 100)
            offset: Number of results to skip
            admin_id: Optional admin ID filter
            action_type: Optional action type filter

        Returns:
            List of recent admin actions
        """
        stmt = select(AdminAction)

        if admin_id:
            stmt = stmt.where(AdminAction.admin_id == admin_id)
        if action_type:
            stmt = stmt.where(AdminAction.action_type == action_type)

        stmt = (
            stmt.order_by(desc(AdminAction.created_at), desc(AdminAction.id))
            .offset(offset)
            .limit(limit)
        )

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_target_user(
        self,
        target_user_id: int,
        limit: int | None = None,
    ) -> list[AdminAction]:
        """
        Get actions targeting specific user.

        Args:
            target_user_id: Target user ID
            limit: Max number of results

        Returns:
            List of admin actions
        """
        stmt = (
            select(AdminAction)
            .where(AdminAction.target_user_id == target_user_id)
            .order_by(desc(AdminAction.created_at), desc(AdminAction.id))
        )

        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
