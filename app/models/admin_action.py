"""
AdminAction model.

Audit logging for admin actions with details.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, utc_now


class AdminAction(Base):
    """
    AdminAction entity.

    Audit log for admin actions:
    - Action type tracking (USER_BLOCKED, BALANCE_ADJUSTMENT, etc.)
    - Target user tracking (nullable)
    - JSON details for flexible data storage

    Attributes:
        id: Primary key
        admin_id: Telegram ID of the admin (nullable for system actions)
        action_type: Type of action (AdminActionType value)
        target_user_id: Target user ID (nullable, FK to users)
        details: Action details (JSON, nullable)
        created_at: Action timestamp (indexed)
    """

    __tablename__ = "admin_actions"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    admin_id: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True, index=True
    )

    action_type: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True
    )

    target_user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True, index=True
    )

    details: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"AdminAction(id={self.id}, "
            f"admin_id={self.admin_id}, "
            f"action_type={self.action_type!r})"
        )


Index(
    "idx_admin_action_type_created",
    AdminAction.action_type,
    AdminAction.created_at,
)
