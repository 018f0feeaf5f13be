"""
Repositories.

Data access layer for all models.
"""

# Admin Repositories
from app.repositories.admin_action_repository import (
    AdminActionRepository,
)
from app.repositories.base import BaseRepository

# Referral Repositories
from app.repositories.referral_commission_repository import (
    ReferralCommissionRepository,
)

# Task Repositories
from app.repositories.task_repository import (
    TaskCompletionRepository,
    TaskRepository,
)
from app.repositories.transaction_repository import (
    TransactionRepository,
)

# Core Repositories
from app.repositories.user_repository import UserRepository
from app.repositories.withdrawal_repository import (
    WithdrawalRepository,
)

__all__ = [
    # Base
    "BaseRepository",
    # Core
    "UserRepository",
    "TransactionRepository",
    "WithdrawalRepository",
    # Referral
    "ReferralCommissionRepository",
    # Tasks
    "TaskRepository",
    "TaskCompletionRepository",
    # Admin
    "AdminActionRepository",
]
