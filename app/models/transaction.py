"""
Transaction model.

Append-only ledger of every balance mutation.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DECIMAL,
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


class Transaction(Base):
    """
    Transaction model - one row per balance mutation.

    ``amount`` is signed: credits are positive, debits negative.
    ``balance_after`` is the account balance right after the mutation.
    Rows are never updated once written.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint(
            'amount <> 0', name='check_transaction_amount_non_zero'
        ),
        CheckConstraint(
            'balance_before >= 0',
            name='check_transaction_balance_before_non_negative'
        ),
        CheckConstraint(
            'balance_after >= 0',
            name='check_transaction_balance_after_non_negative'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # User reference
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Category (see TransactionType)
    type: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True
    )

    # Signed amount
    amount: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 6), nullable=False
    )

    # Balance tracking
    balance_before: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 6), nullable=False
    )
    balance_after: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 6), nullable=False
    )

    description: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )

    # Reference to the originating entity (withdrawal, task, user)
    reference_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    reference_type: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
        index=True,
    )

    @property
    def is_credit(self) -> bool:
        """Check if transaction increased the balance."""
        return self.amount > 0

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, user_id={self.user_id}, "
            f"type={self.type}, amount={self.amount})>"
        )


Index(
    "idx_transaction_user_created",
    Transaction.user_id,
    Transaction.created_at,
)
Index(
    "idx_transaction_reference",
    Transaction.reference_type,
    Transaction.reference_id,
)
