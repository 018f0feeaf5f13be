"""
Operation results.

Value objects returned by ledger operations. Best-effort secondary
writes (referrer credits) report through SecondaryEffect instead of
raising.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum

from app.models.withdrawal import Withdrawal


class EffectStatus(StrEnum):
    """Outcome of a secondary write."""

    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class SecondaryEffect:
    """
    Outcome of a cross-account write.

    Attributes:
        kind: Transaction category of the credit
        status: EffectStatus value
        amount: Amount credited (or that would have been)
        beneficiary_id: Referrer user ID, if known
        reason: Why it was skipped, or the error if it failed
    """

    kind: str
    status: EffectStatus
    amount: Decimal = Decimal("0")
    beneficiary_id: int | None = None
    reason: str | None = None

    @property
    def applied(self) -> bool:
        return self.status == EffectStatus.APPLIED

    @property
    def failed(self) -> bool:
        return self.status == EffectStatus.FAILED


@dataclass(frozen=True)
class AdWatchResult:
    """Result of a rewarded ad view."""

    reward: Decimal
    balance: Decimal
    ads_watched: int
    cooldown_seconds: int
    became_verified: bool = False
    referral_effect: SecondaryEffect | None = None


@dataclass(frozen=True)
class TaskCompletionResult:
    """Result of a task completion."""

    task_id: int
    reward: Decimal
    balance: Decimal
    total_earned: Decimal


@dataclass(frozen=True)
class WithdrawalTransitionResult:
    """Withdrawal after a transition plus the commission outcome."""

    withdrawal: Withdrawal
    commission_effect: SecondaryEffect | None = None
