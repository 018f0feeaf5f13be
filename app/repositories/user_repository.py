"""
User repository.

Data access layer for User model.
"""

from decimal import Decimal

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_telegram_id(
        self, telegram_id: int
    ) -> User | None:
        """
        Get user by Telegram ID.

        Args:
            telegram_id: Telegram user ID

        Returns:
            User or None
        """
        return await self.get_by(telegram_id=telegram_id)

    async def get_by_telegram_id_for_update(
        self, telegram_id: int
    ) -> User | None:
        """
        Get user by Telegram ID with a row lock.

        Args:
            telegram_id: Telegram user ID

        Returns:
            Locked user or None
        """
        stmt = (
            select(User)
            .where(User.telegram_id == telegram_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_referral_code(
        self, referral_code: str
    ) -> User | None:
        """
        Get user by referral code.

        Args:
            referral_code: Referral code

        Returns:
            User or None
        """
        return await self.get_by(referral_code=referral_code)

    async def get_referrals(self, user_id: int) -> list[User]:
        """
        Get users referred by a user, newest first.

        Args:
            user_id: Referrer user ID

        Returns:
            List of referred users
        """
        stmt = (
            select(User)
            .where(User.referrer_id == user_id)
            .order_by(User.created_at.desc(), User.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_referrals(
        self, user_id: int, verified: bool | None = None
    ) -> int:
        """
        Count users referred by a user.

        Args:
            user_id: Referrer user ID
            verified: Optional verification filter

        Returns:
            Number of referrals
        """
        stmt = select(func.count(User.id)).where(User.referrer_id == user_id)
        if verified is not None:
            stmt = stmt.where(User.is_verified_referral == verified)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def search(
        self,
        search: str | None = None,
        is_blocked: bool | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[User], int]:
        """
        Search users for the admin listing.

        Args:
            search: Substring of username, first name or Telegram ID
            is_blocked: Optional block status filter
            limit: Page size
            offset: Offset

        Returns:
            Tuple of (users newest first, total matching)
        """
        conditions = []
        if is_blocked is not None:
            conditions.append(User.is_blocked == is_blocked)
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(User.username).like(pattern),
                    func.lower(User.first_name).like(pattern),
                    cast(User.telegram_id, String).like(f"%{search}%"),
                )
            )

        count_stmt = select(func.count(User.id)).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        stmt = (
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc(), User.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_recent(self, limit: int = 10) -> list[User]:
        """
        Get most recently registered users.

        Args:
            limit: Max users

        Returns:
            List of users
        """
        return await self.find_all(
            limit=limit, order_by=User.created_at.desc()
        )

    async def get_totals(self) -> dict[str, Decimal | int]:
        """
        Aggregate platform-wide account figures.

        Returns:
            Dict with user counts, earned/withdrawn sums and referral counts
        """
        stmt = select(
            func.count(User.id),
            func.count(User.id).filter(User.ads_watched > 0),
            func.coalesce(func.sum(User.total_earned), 0),
            func.coalesce(func.sum(User.total_withdrawn), 0),
            func.count(User.referrer_id),
            func.count(User.id).filter(User.is_verified_referral.is_(True)),
            func.count(User.id).filter(User.is_blocked.is_(True)),
        )
        (
            total_users,
            active_users,
            total_earned,
            total_withdrawn,
            total_referrals,
            verified_referrals,
            blocked_users,
        ) = (await self.session.execute(stmt)).one()

        return {
            "total_users": total_users,
            "active_users": active_users,
            "total_earned": Decimal(str(total_earned)),
            "total_withdrawn": Decimal(str(total_withdrawn)),
            "total_referrals": total_referrals,
            "verified_referrals": verified_referrals,
            "blocked_users": blocked_users,
        }
