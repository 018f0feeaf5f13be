"""
Unit tests for AdminService.

Tests blocking, manual balance adjustments, listings and the audit log.
"""

from decimal import Decimal

import pytest

from app.models.enums import AdminActionType, TransactionType
from app.repositories.transaction_repository import TransactionRepository
from app.services.exceptions import (
    AccountBlockedError,
    AccountNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
)
from tests.conftest import VALID_TRX_ADDRESS

ADMIN_ID = 555000111


class TestBlocking:
    """Test block and unblock."""

    @pytest.mark.asyncio
    async def test_block_and_unblock(
        self,
        create_user_helper,  # pylint: disable=redefined-outer-name
        admin_service,  # pylint: disable=redefined-outer-name
    ):
        """Test block status, reason and audit rows."""
        user = await create_user_helper()

        blocked = await admin_service.set_blocked(
            user.telegram_id, True, reason="Spam", admin_id=ADMIN_ID
        )
        assert blocked.is_blocked is True
        assert blocked.block_reason == "Spam"
        assert blocked.blocked_at is not None

        unblocked = await admin_service.set_blocked(
            user.telegram_id, False, admin_id=ADMIN_ID
        )
        assert unblocked.is_blocked is False
        assert unblocked.block_reason is None

        logs = await admin_service.get_logs()
        assert [log.action_type for log in logs] == [
            AdminActionType.USER_UNBLOCKED.value,
            AdminActionType.USER_BLOCKED.value,
        ]
        assert all(log.admin_id == ADMIN_ID for log in logs)

    @pytest.mark.asyncio
    async def test_blocked_user_cannot_earn_or_withdraw(
        self,
        create_user_helper,  # pylint: disable=redefined-outer-name
        admin_service,  # pylint: disable=redefined-outer-name
    ):
        """Test block takes effect on ledger operations."""
        user = await create_user_helper(balance=Decimal("10"))
        telegram_id = user.telegram_id
        await admin_service.set_blocked(telegram_id, True, reason="Fraud")

        with pytest.raises(AccountBlockedError):
            await admin_service.ledger.watch_ad(telegram_id)
        with pytest.raises(AccountBlockedError):
            await admin_service.withdrawal_service.request(
                telegram_id, "5", VALID_TRX_ADDRESS
            )

    @pytest.mark.asyncio
    async def test_block_unknown_user(
        self,
        admin_service,  # pylint: disable=redefined-outer-name
    ):
        """Test unknown account."""
        with pytest.raises(AccountNotFoundError):
            await admin_service.set_blocked(1, True)


class TestBalanceAdjustment:
    """Test manual adjustments."""

    @pytest.mark.asyncio
    async def test_credit_and_debit(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        create_user_helper,  # pylint: disable=redefined-outer-name
        admin_service,  # pylint: disable=redefined-outer-name
        transaction_sum,  # pylint: disable=redefined-outer-name
    ):
        """Test adjustments go through the ledger and the audit log."""
        user = await create_user_helper()

        await admin_service.adjust_balance(
            user.telegram_id, "2.5", "Contest prize", admin_id=ADMIN_ID
        )
        updated = await admin_service.adjust_balance(
            user.telegram_id, "-1", "Correction", admin_id=ADMIN_ID
        )

        assert updated.balance == Decimal("1.5")
        assert updated.total_earned == Decimal("2.5")
        assert updated.total_withdrawn == Decimal("1")
        assert await transaction_sum(user) == Decimal("1.5")

        history = await TransactionRepository(db_session).get_by_user(
            user.id
        )
        assert [t.type for t in history] == [
            TransactionType.ADMIN_DEBIT.value,
            TransactionType.ADMIN_CREDIT.value,
        ]
        assert history[0].description == "Correction"

        logs = await admin_service.get_logs(
            action_type=AdminActionType.BALANCE_ADJUSTMENT.value
        )
        assert len(logs) == 2
        assert logs[0].details["balance_after"] == "1.500000"

    @pytest.mark.asyncio
    async def test_debit_beyond_balance(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        create_user_helper,  # pylint: disable=redefined-outer-name
        admin_service,  # pylint: disable=redefined-outer-name
    ):
        """Test adjustments cannot make the balance negative."""
        user = await create_user_helper(balance=Decimal("1"))

        with pytest.raises(InsufficientBalanceError):
            await admin_service.adjust_balance(
                user.telegram_id, "-2", "Too much"
            )

        await db_session.refresh(user)
        assert user.balance == Decimal("1")
        assert await admin_service.get_logs() == []

    @pytest.mark.asyncio
    async def test_zero_adjustment(
        self,
        create_user_helper,  # pylint: disable=redefined-outer-name
        admin_service,  # pylint: disable=redefined-outer-name
    ):
        """Test zero adjustment is refused."""
        user = await create_user_helper()

        with pytest.raises(InvalidAmountError):
            await admin_service.adjust_balance(user.telegram_id, "0", "noop")


class TestAdminViews:
    """Test listings and dashboard."""

    @pytest.mark.asyncio
    async def test_list_users(
        self,
        create_user_helper,  # pylint: disable=redefined-outer-name
        admin_service,  # pylint: disable=redefined-outer-name
    ):
        """Test paginated listing with filters."""
        await create_user_helper(username="bob")
        await create_user_helper(username="bobby", is_blocked=True)
        await create_user_helper(username="carol")

        page = await admin_service.list_users(search="bob")
        blocked = await admin_service.list_users(blocked=True)

        assert page["pagination"]["total"] == 2
        assert {u["username"] for u in page["users"]} == {"bob", "bobby"}
        assert [u["username"] for u in blocked["users"]] == ["bobby"]

    @pytest.mark.asyncio
    async def test_user_details(
        self,
        create_user_helper,  # pylint: disable=redefined-outer-name
        admin_service,  # pylint: disable=redefined-outer-name
    ):
        """Test detail view aggregates recent activity."""
        referrer = await create_user_helper()
        await create_user_helper(referrer=referrer)
        await admin_service.adjust_balance(
            referrer.telegram_id, "1", "Bonus", admin_id=ADMIN_ID
        )

        details = await admin_service.get_user_details(referrer.telegram_id)

        assert details["user"]["balance"] == Decimal("1")
        assert len(details["transactions"]) == 1
        assert len(details["referrals"]) == 1
        assert len(details["admin_actions"]) == 1
        assert details["withdrawals"] == []

    @pytest.mark.asyncio
    async def test_dashboard_stats(
        self,
        create_user_helper,  # pylint: disable=redefined-outer-name
        create_task_helper,  # pylint: disable=redefined-outer-name
        admin_service,  # pylint: disable=redefined-outer-name
    ):
        """Test platform overview."""
        user = await create_user_helper(balance=Decimal("10"))
        await create_task_helper()
        withdrawal = await admin_service.withdrawal_service.request(
            user.telegram_id, "4", VALID_TRX_ADDRESS
        )
        await admin_service.withdrawal_service.approve(withdrawal.id)

        stats = await admin_service.get_dashboard_stats()

        assert stats["overview"]["total_users"] == 1
        assert stats["overview"]["total_tasks"] == 1
        assert stats["overview"]["total_task_completions"] == 0
        assert stats["overview"]["total_withdrawn"] == Decimal("4")
        assert stats["withdrawal_stats"]["approved"] == 1
        assert stats["withdrawal_stats"]["total_commission"] == Decimal("0.4")
        assert len(stats["recent_users"]) == 1

    @pytest.mark.asyncio
    async def test_is_admin(
        self,
        admin_service,  # pylint: disable=redefined-outer-name
        monkeypatch,
    ):
        """Test admin check against configured IDs."""
        monkeypatch.setattr(
            "app.services.admin_service.settings.admin_telegram_ids",
            f"{ADMIN_ID}, 42",
        )

        assert admin_service.is_admin(ADMIN_ID) is True
        assert admin_service.is_admin(42) is True
        assert admin_service.is_admin(7) is False
