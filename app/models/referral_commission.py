"""
ReferralCommission model.

Audit trail of withdrawal commissions paid out to referrers.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DECIMAL,
    DateTime,
    ForeignKey,
    Index,
    Integer,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, utc_now


class ReferralCommission(Base):
    """
    ReferralCommission entity.

    Written once, together with the referrer credit, when an approved
    withdrawal of a verified referral redirects its commission to the
    referrer. Distinct from Transaction: used for referral earnings
    reporting and reconciliation.

    Attributes:
        id: Primary key
        referrer_id: User who received the commission
        referred_id: User who made the withdrawal
        withdrawal_id: Originating withdrawal (unique)
        amount: Commission amount
        created_at: Payout timestamp
    """

    __tablename__ = "referral_commissions"

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    referrer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    referred_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # At most one commission per withdrawal
    withdrawal_id: Mapped[int] = mapped_column(
        ForeignKey("withdrawals.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 6), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"ReferralCommission(id={self.id}, "
            f"referrer_id={self.referrer_id}, "
            f"withdrawal_id={self.withdrawal_id}, "
            f"amount={self.amount})"
        )


Index(
    "idx_referral_commission_referrer_created",
    ReferralCommission.referrer_id,
    ReferralCommission.created_at,
)
