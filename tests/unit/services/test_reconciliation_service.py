"""
Unit tests for ReconciliationService.

Tests the audit checks over the transaction log after realistic
sequences of ledger operations.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import update

from app.models.user import User
from app.services.exceptions import AccountNotFoundError
from tests.conftest import VALID_TRX_ADDRESS

T0 = datetime(2026, 10, 17, 12, 0, 0)


class TestReconciliation:
    """Test reconciliation checks."""

    @pytest.mark.critical
    @pytest.mark.asyncio
    async def test_full_lifecycle_is_consistent(
        self,
        create_user_helper,  # pylint: disable=redefined-outer-name
        ledger_service,  # pylint: disable=redefined-outer-name
        withdrawal_service,  # pylint: disable=redefined-outer-name
        reconciliation_service,  # pylint: disable=redefined-outer-name
    ):
        """
        GIVEN: A referrer and a referred user
        WHEN: The user verifies, withdraws twice (one approved, one rejected)
        THEN: Every account matches its transaction log
        """
        referrer = await create_user_helper()
        user = await create_user_helper(
            referrer=referrer, balance=Decimal("20")
        )
        telegram_id = user.telegram_id

        for i in range(5):
            await ledger_service.watch_ad(
                telegram_id, now=T0 + timedelta(seconds=15 * i)
            )
        first = await withdrawal_service.request(
            telegram_id, "10", VALID_TRX_ADDRESS
        )
        await withdrawal_service.approve(first.id)
        await withdrawal_service.complete(first.id, "0xabc")
        second = await withdrawal_service.request(
            telegram_id, "5", VALID_TRX_ADDRESS
        )
        await withdrawal_service.reject(second.id, notes="Try later")

        report = await reconciliation_service.perform_reconciliation()
        referrer_check = await reconciliation_service.check_account(
            referrer.telegram_id
        )
        user_check = await reconciliation_service.check_account(telegram_id)

        assert report["ok"] is True
        assert report["inconsistent_accounts"] == []
        assert referrer_check["consistent"] is True
        assert referrer_check["balance"] == Decimal("1.005")
        assert user_check["consistent"] is True
        assert user_check["balance"] == Decimal("10.005")

    @pytest.mark.asyncio
    async def test_detects_tampered_balance(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        create_user_helper,  # pylint: disable=redefined-outer-name
        reconciliation_service,  # pylint: disable=redefined-outer-name
    ):
        """Test a balance changed outside the ledger is reported."""
        user = await create_user_helper(balance=Decimal("3"))
        telegram_id = user.telegram_id

        await db_session.execute(
            update(User)
            .where(User.id == user.id)
            .values(balance=Decimal("4"))
            .execution_options(synchronize_session=False)
        )
        await db_session.commit()
        await db_session.refresh(user)

        inconsistent = await reconciliation_service.find_inconsistent_accounts()
        check = await reconciliation_service.check_account(telegram_id)
        report = await reconciliation_service.perform_reconciliation()

        assert inconsistent == [
            {
                "telegram_id": telegram_id,
                "balance": Decimal("4"),
                "transaction_sum": Decimal("3"),
            }
        ]
        assert check["consistent"] is False
        assert check["transaction_sum"] == Decimal("3")
        assert report["ok"] is False

    @pytest.mark.asyncio
    async def test_blocked_referrer_commission_reported(
        self,
        create_user_helper,  # pylint: disable=redefined-outer-name
        withdrawal_service,  # pylint: disable=redefined-outer-name
        reconciliation_service,  # pylint: disable=redefined-outer-name
    ):
        """Test retained commission of a verified referral is listed."""
        referrer = await create_user_helper(is_blocked=True)
        user = await create_user_helper(
            referrer=referrer,
            is_verified_referral=True,
            balance=Decimal("10"),
        )
        withdrawal = await withdrawal_service.request(
            user.telegram_id, "10", VALID_TRX_ADDRESS
        )
        await withdrawal_service.approve(withdrawal.id)

        unpaid = await reconciliation_service.find_unpaid_commissions()

        assert unpaid == [
            {
                "withdrawal_id": withdrawal.id,
                "user_id": user.id,
                "referrer_id": referrer.id,
                "commission": Decimal("1"),
            }
        ]

    @pytest.mark.asyncio
    async def test_check_unknown_account(
        self,
        reconciliation_service,  # pylint: disable=redefined-outer-name
    ):
        """Test unknown Telegram ID."""
        with pytest.raises(AccountNotFoundError):
            await reconciliation_service.check_account(1)
