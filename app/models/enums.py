"""
Database enums.

Centralized enums used across database models.
"""

from enum import StrEnum


class TransactionType(StrEnum):
    """Ledger transaction categories."""

    AD_VIEW = "ad_view"
    TASK_COMPLETION = "task_completion"
    REFERRAL_VERIFICATION = "referral_verification"
    REFERRAL_COMMISSION = "referral_commission"
    WITHDRAWAL = "withdrawal"
    WITHDRAWAL_REFUND = "withdrawal_refund"
    ADMIN_CREDIT = "admin_credit"
    ADMIN_DEBIT = "admin_debit"


class WithdrawalStatus(StrEnum):
    """Withdrawal lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"  # Settled: commission distributed
    COMPLETED = "completed"  # Settlement reference recorded
    REJECTED = "rejected"  # Refunded by admin
    CANCELLED = "cancelled"  # Refunded on owner request

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is possible."""
        return self in (
            WithdrawalStatus.COMPLETED,
            WithdrawalStatus.REJECTED,
            WithdrawalStatus.CANCELLED,
        )

    @property
    def is_paid_out(self) -> bool:
        """Check if status counts as paid out in statistics."""
        return self in (WithdrawalStatus.APPROVED, WithdrawalStatus.COMPLETED)


class TaskType(StrEnum):
    """Task type values."""

    TELEGRAM_CHANNEL = "telegram_channel"
    TELEGRAM_BOT = "telegram_bot"
    EXTERNAL_LINK = "external_link"


class TaskAction(StrEnum):
    """Action the user must perform to complete a task."""

    JOIN = "join"
    START = "start"
    VISIT = "visit"


class VerificationMethod(StrEnum):
    """How task completion is verified."""

    MANUAL = "manual"
    AUTOMATIC = "automatic"


class AdminActionType(StrEnum):
    """Audited admin action values."""

    USER_BLOCKED = "user_blocked"
    USER_UNBLOCKED = "user_unblocked"
    BALANCE_ADJUSTMENT = "balance_adjustment"
    WITHDRAWAL_APPROVED = "withdrawal_approved"
    WITHDRAWAL_REJECTED = "withdrawal_rejected"
    WITHDRAWAL_COMPLETED = "withdrawal_completed"
