"""
Services.

Business logic layer.
"""

# Core Services
from app.services.account_service import AccountService

# Admin Services
from app.services.admin_service import AdminService
from app.services.exceptions import LedgerError
from app.services.ledger_service import LedgerService
from app.services.reconciliation_service import ReconciliationService
from app.services.referral_service import ReferralService
from app.services.results import (
    AdWatchResult,
    EffectStatus,
    SecondaryEffect,
    TaskCompletionResult,
    WithdrawalTransitionResult,
)
from app.services.task_service import TaskService
from app.services.withdrawal_service import WithdrawalService

__all__ = [
    # Core
    "AccountService",
    "LedgerService",
    "ReferralService",
    "WithdrawalService",
    "TaskService",
    # Admin
    "AdminService",
    "ReconciliationService",
    # Results & errors
    "AdWatchResult",
    "EffectStatus",
    "LedgerError",
    "SecondaryEffect",
    "TaskCompletionResult",
    "WithdrawalTransitionResult",
]
