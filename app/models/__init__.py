"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.admin_action import AdminAction
from app.models.base import Base
from app.models.enums import (
    AdminActionType,
    TaskAction,
    TaskType,
    TransactionType,
    VerificationMethod,
    WithdrawalStatus,
)
from app.models.referral_commission import ReferralCommission
from app.models.task import Task, TaskCompletion
from app.models.transaction import Transaction

# Core Models
from app.models.user import User
from app.models.withdrawal import Withdrawal

__all__ = [
    # Base
    "Base",
    # Enums
    "AdminActionType",
    "TaskAction",
    "TaskType",
    "TransactionType",
    "VerificationMethod",
    "WithdrawalStatus",
    # Core Models
    "User",
    "Transaction",
    "Withdrawal",
    "ReferralCommission",
    "Task",
    "TaskCompletion",
    # Admin Models
    "AdminAction",
]
