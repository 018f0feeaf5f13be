"""
Task models.

Rewarded tasks and per-user completions.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DECIMAL,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, utc_now
from app.models.enums import TaskAction, VerificationMethod


class Task(TimestampMixin, Base):
    """Task model - rewarded actions (join a channel, start a bot...)."""

    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint('reward > 0', name='check_task_reward_positive'),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(
        Text, nullable=False, default=""
    )
    type: Mapped[str] = mapped_column(
        String(50), nullable=False
    )  # telegram_channel, telegram_bot, external_link
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    reward: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 6), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False, index=True
    )
    required_action: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TaskAction.VISIT.value
    )
    verification_method: Mapped[str] = mapped_column(
        String(20), nullable=False, default=VerificationMethod.MANUAL.value
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Task(id={self.id}, title={self.title!r}, reward={self.reward})>"


class TaskCompletion(Base):
    """
    TaskCompletion model - the set of tasks a user has completed.

    The (user_id, task_id) unique constraint makes completion idempotent.
    """

    __tablename__ = "task_completions"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "task_id", name="uq_task_completion_user_task"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    task_id: Mapped[int] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Reward actually credited (task reward may change later)
    reward: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 6), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TaskCompletion(user_id={self.user_id}, "
            f"task_id={self.task_id})>"
        )
