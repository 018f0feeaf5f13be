"""
User model.

Represents a registered Telegram user (ledger account) in the system.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DECIMAL,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, utc_now


class User(Base):
    """
    User model - ledger accounts.

    The referrer is a weak reference: ``referrer_id`` is a plain column,
    resolved through ``UserRepository`` lookups. There is deliberately no
    ORM relationship between referrer and referred accounts.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            'balance >= 0', name='check_user_balance_non_negative'
        ),
        CheckConstraint(
            'total_earned >= 0',
            name='check_user_total_earned_non_negative'
        ),
        CheckConstraint(
            'total_withdrawn >= 0',
            name='check_user_total_withdrawn_non_negative'
        ),
        CheckConstraint(
            'ads_watched >= 0',
            name='check_user_ads_watched_non_negative'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Telegram data (external identity)
    telegram_id: Mapped[int] = mapped_column(
        BigInteger, unique=True, index=True, nullable=False
    )
    username: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )
    first_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    last_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    wallet_address: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )

    # Balances
    balance: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 6), default=Decimal("0"), nullable=False
    )
    total_earned: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 6), default=Decimal("0"), nullable=False
    )
    total_withdrawn: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 6), default=Decimal("0"), nullable=False
    )

    # Ads
    ads_watched: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    last_ad_watch: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    # Referral
    referral_code: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, index=True
    )
    referrer_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    is_verified_referral: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # Status flags
    is_blocked: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    block_reason: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )
    blocked_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    # Optimistic lock counter
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def display_name(self) -> str:
        """Get name for display."""
        if self.username:
            return f"@{self.username}"
        if self.first_name:
            return self.first_name
        return str(self.telegram_id)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, telegram_id={self.telegram_id}, "
            f"username={self.username}, balance={self.balance})>"
        )
