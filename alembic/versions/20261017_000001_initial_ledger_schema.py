"""initial ledger schema

Revision ID: 20261017_000001
Revises:
Create Date: 2026-10-17 00:00:01.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261017_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.DECIMAL(precision=18, scale=6)


def upgrade() -> None:
    # Accounts
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
        sa.Column("username", sa.String(length=255), nullable=True),
        sa.Column("first_name", sa.String(length=255), nullable=True),
        sa.Column("last_name", sa.String(length=255), nullable=True),
        sa.Column("wallet_address", sa.String(length=64), nullable=True),
        sa.Column("balance", MONEY, nullable=False),
        sa.Column("total_earned", MONEY, nullable=False),
        sa.Column("total_withdrawn", MONEY, nullable=False),
        sa.Column("ads_watched", sa.Integer(), nullable=False),
        sa.Column("last_ad_watch", sa.DateTime(), nullable=True),
        sa.Column("referral_code", sa.String(length=32), nullable=False),
        sa.Column("referrer_id", sa.Integer(), nullable=True),
        sa.Column("is_verified_referral", sa.Boolean(), nullable=False),
        sa.Column("is_blocked", sa.Boolean(), nullable=False),
        sa.Column("block_reason", sa.String(length=500), nullable=True),
        sa.Column("blocked_at", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["referrer_id"], ["users.id"], ondelete="SET NULL"
        ),
        sa.CheckConstraint(
            "balance >= 0", name="check_user_balance_non_negative"
        ),
        sa.CheckConstraint(
            "total_earned >= 0", name="check_user_total_earned_non_negative"
        ),
        sa.CheckConstraint(
            "total_withdrawn >= 0",
            name="check_user_total_withdrawn_non_negative",
        ),
        sa.CheckConstraint(
            "ads_watched >= 0", name="check_user_ads_watched_non_negative"
        ),
    )
    op.create_index(
        "ix_users_telegram_id", "users", ["telegram_id"], unique=True
    )
    op.create_index(
        "ix_users_referral_code", "users", ["referral_code"], unique=True
    )
    op.create_index("ix_users_username", "users", ["username"])
    op.create_index("ix_users_referrer_id", "users", ["referrer_id"])
    op.create_index("ix_users_is_blocked", "users", ["is_blocked"])
    op.create_index("ix_users_created_at", "users", ["created_at"])

    # Ledger
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("balance_before", MONEY, nullable=False),
        sa.Column("balance_after", MONEY, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("reference_id", sa.Integer(), nullable=True),
        sa.Column("reference_type", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "amount <> 0", name="check_transaction_amount_non_zero"
        ),
        sa.CheckConstraint(
            "balance_before >= 0",
            name="check_transaction_balance_before_non_negative",
        ),
        sa.CheckConstraint(
            "balance_after >= 0",
            name="check_transaction_balance_after_non_negative",
        ),
    )
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"])
    op.create_index("ix_transactions_type", "transactions", ["type"])
    op.create_index(
        "ix_transactions_created_at", "transactions", ["created_at"]
    )
    op.create_index(
        "idx_transaction_user_created",
        "transactions",
        ["user_id", "created_at"],
    )
    op.create_index(
        "idx_transaction_reference",
        "transactions",
        ["reference_type", "reference_id"],
    )

    # Withdrawals
    op.create_table(
        "withdrawals",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("commission", MONEY, nullable=False),
        sa.Column("net_amount", MONEY, nullable=False),
        sa.Column("to_address", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("tx_hash", sa.String(length=128), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=False),
        sa.Column("processed_by", sa.BigInteger(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "amount > 0", name="check_withdrawal_amount_positive"
        ),
        sa.CheckConstraint(
            "commission >= 0",
            name="check_withdrawal_commission_non_negative",
        ),
        sa.CheckConstraint(
            "net_amount >= 0",
            name="check_withdrawal_net_amount_non_negative",
        ),
    )
    op.create_index("ix_withdrawals_user_id", "withdrawals", ["user_id"])
    op.create_index("ix_withdrawals_status", "withdrawals", ["status"])
    op.create_index(
        "ix_withdrawals_created_at", "withdrawals", ["created_at"]
    )
    op.create_index(
        "idx_withdrawal_user_status", "withdrawals", ["user_id", "status"]
    )
    op.create_index(
        "idx_withdrawal_status_created",
        "withdrawals",
        ["status", "created_at"],
    )

    # Referral commissions
    op.create_table(
        "referral_commissions",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("referrer_id", sa.Integer(), nullable=False),
        sa.Column("referred_id", sa.Integer(), nullable=False),
        sa.Column("withdrawal_id", sa.Integer(), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("withdrawal_id"),
        sa.ForeignKeyConstraint(
            ["referrer_id"], ["users.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["referred_id"], ["users.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["withdrawal_id"], ["withdrawals.id"], ondelete="CASCADE"
        ),
    )
    op.create_index(
        "ix_referral_commissions_referrer_id",
        "referral_commissions",
        ["referrer_id"],
    )
    op.create_index(
        "ix_referral_commissions_referred_id",
        "referral_commissions",
        ["referred_id"],
    )
    op.create_index(
        "idx_referral_commission_referrer_created",
        "referral_commissions",
        ["referrer_id", "created_at"],
    )

    # Tasks
    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("url", sa.String(length=500), nullable=False),
        sa.Column("reward", MONEY, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("required_action", sa.String(length=20), nullable=False),
        sa.Column(
            "verification_method", sa.String(length=20), nullable=False
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("reward > 0", name="check_task_reward_positive"),
    )
    op.create_index("ix_tasks_is_active", "tasks", ["is_active"])

    op.create_table(
        "task_completions",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("task_id", sa.Integer(), nullable=False),
        sa.Column("reward", MONEY, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "user_id", "task_id", name="uq_task_completion_user_task"
        ),
    )
    op.create_index(
        "ix_task_completions_user_id", "task_completions", ["user_id"]
    )
    op.create_index(
        "ix_task_completions_task_id", "task_completions", ["task_id"]
    )

    # Admin audit log
    op.create_table(
        "admin_actions",
        sa.Column("id", sa.Integer(), nullable=False, autoincrement=True),
        sa.Column("admin_id", sa.BigInteger(), nullable=True),
        sa.Column("action_type", sa.String(length=50), nullable=False),
        sa.Column("target_user_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["target_user_id"], ["users.id"]),
    )
    op.create_index("ix_admin_actions_admin_id", "admin_actions", ["admin_id"])
    op.create_index(
        "ix_admin_actions_action_type", "admin_actions", ["action_type"]
    )
    op.create_index(
        "ix_admin_actions_target_user_id", "admin_actions", ["target_user_id"]
    )
    op.create_index(
        "ix_admin_actions_created_at", "admin_actions", ["created_at"]
    )
    op.create_index(
        "idx_admin_action_type_created",
        "admin_actions",
        ["action_type", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("admin_actions")
    op.drop_table("task_completions")
    op.drop_table("tasks")
    op.drop_table("referral_commissions")
    op.drop_table("withdrawals")
    op.drop_table("transactions")
    op.drop_table("users")
