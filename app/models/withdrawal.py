"""
Withdrawal model.

Withdrawal requests and their lifecycle state.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DECIMAL,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, utc_now
from app.models.enums import WithdrawalStatus


class Withdrawal(Base):
    """
    Withdrawal entity.

    The gross ``amount`` is debited from the user balance when the request
    is created. ``commission`` is withheld by the platform (or paid to a
    verified referrer on approval), ``net_amount`` is what gets sent to
    ``to_address``.

    Attributes:
        id: Primary key
        user_id: Owner (FK to users)
        amount: Requested gross amount
        commission: Commission withheld
        net_amount: amount - commission
        to_address: Destination TRX address
        status: WithdrawalStatus value
        tx_hash: Settlement reference (on-chain transaction id)
        admin_notes: Notes from the admin or owner
        processed_by: Telegram ID of the admin who processed it
        created_at: Request timestamp
        processed_at: Approval / rejection / cancellation timestamp
        completed_at: Settlement timestamp
    """

    __tablename__ = "withdrawals"
    __table_args__ = (
        CheckConstraint(
            'amount > 0', name='check_withdrawal_amount_positive'
        ),
        CheckConstraint(
            'commission >= 0', name='check_withdrawal_commission_non_negative'
        ),
        CheckConstraint(
            'net_amount >= 0', name='check_withdrawal_net_amount_non_negative'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Amounts
    amount: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 6), nullable=False
    )
    commission: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 6), nullable=False
    )
    net_amount: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 6), nullable=False
    )

    to_address: Mapped[str] = mapped_column(
        String(64), nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=WithdrawalStatus.PENDING.value,
        index=True,
    )

    # Processing
    tx_hash: Mapped[str | None] = mapped_column(
        String(128), nullable=True
    )
    admin_notes: Mapped[str] = mapped_column(
        Text, nullable=False, default=""
    )
    processed_by: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )

    # Optimistic lock counter
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False, index=True
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def status_enum(self) -> WithdrawalStatus:
        """Get status as enum."""
        return WithdrawalStatus(self.status)

    @property
    def is_pending(self) -> bool:
        """Check if withdrawal awaits a decision."""
        return self.status == WithdrawalStatus.PENDING.value

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"Withdrawal(id={self.id}, "
            f"user_id={self.user_id}, "
            f"amount={self.amount}, "
            f"status={self.status!r})"
        )


Index(
    "idx_withdrawal_user_status",
    Withdrawal.user_id,
    Withdrawal.status,
)
Index(
    "idx_withdrawal_status_created",
    Withdrawal.status,
    Withdrawal.created_at,
)
