"""
Pytest configuration and shared fixtures.

Tests run against an in-memory SQLite database by default; set
TEST_DATABASE_URL to run them against PostgreSQL instead.
"""

import itertools
import os
from collections.abc import AsyncGenerator, Callable
from decimal import Decimal
from typing import Any

# Settings are read at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FILE", "")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.config.settings import RewardConfig  # noqa: E402
from app.models import Base, Task, User  # noqa: E402
from app.models.enums import TransactionType  # noqa: E402
from app.repositories import (  # noqa: E402
    TransactionRepository,
    UserRepository,
)
from app.services import (  # noqa: E402
    AccountService,
    AdminService,
    LedgerService,
    ReconciliationService,
    ReferralService,
    TaskService,
    WithdrawalService,
)

# Valid base58 TRON address
VALID_TRX_ADDRESS = "TJRabPrwbZy45sbavfcjinPJC18kjpRTv8"


# ==================== PYTEST CONFIGURATION ====================


def pytest_configure(config: Any) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "critical: marks tests as critical")


# ==================== DATABASE FIXTURES ====================

# Test database URL
TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:"
)


@pytest_asyncio.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine with a fresh schema for each test."""
    options: dict[str, Any] = {}
    if TEST_DATABASE_URL.startswith("sqlite"):
        # One shared connection keeps the in-memory database alive
        options = {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, **options)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(
    async_engine: AsyncEngine,  # pylint: disable=redefined-outer-name
) -> AsyncGenerator[AsyncSession, None]:
    """
    Create database session for tests.

    Args:
        async_engine: Async database engine

    Yields:
        AsyncSession: Database session
    """
    async_session = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def reward_config() -> RewardConfig:
    """Reward parameters used throughout the tests."""
    return RewardConfig(
        ad_reward=Decimal("0.001"),
        ad_cooldown_seconds=15,
        referral_reward=Decimal("0.005"),
        verification_threshold=5,
        minimum_withdrawal=Decimal("3.5"),
        commission_rate=Decimal("0.10"),
    )


# ==================== HELPERS ====================

_telegram_ids = itertools.count(700000001)


@pytest.fixture
def create_user_helper(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    reward_config: RewardConfig,  # pylint: disable=redefined-outer-name
) -> Callable[..., Any]:
    """
    Helper function to create users dynamically.

    A starting balance is booked as an admin credit so the account's
    transaction log stays consistent.
    """

    async def _create_user(
        telegram_id: int | None = None,
        username: str | None = None,
        balance: Decimal = Decimal("0"),
        referrer: User | None = None,
        **kwargs: Any,
    ) -> User:
        if telegram_id is None:
            telegram_id = next(_telegram_ids)
        if username is None:
            username = f"user_{telegram_id}"

        user = await UserRepository(db_session).create(
            telegram_id=telegram_id,
            username=username,
            referral_code=f"TEST{telegram_id}",
            referrer_id=referrer.id if referrer else None,
            **kwargs,
        )
        if balance > 0:
            await LedgerService(db_session, reward_config).credit(
                user, balance, TransactionType.ADMIN_CREDIT, "Test funding"
            )
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def create_task_helper(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> Callable[..., Any]:
    """Helper function to create tasks dynamically."""

    async def _create_task(
        title: str = "Join channel",
        reward: Decimal = Decimal("0.01"),
        is_active: bool = True,
        **kwargs: Any,
    ) -> Task:
        data: dict[str, Any] = {
            "type": "telegram_channel",
            "url": "https://t.me/trxearnofficial",
            "description": "",
        }
        data.update(kwargs)
        task = Task(title=title, reward=reward, is_active=is_active, **data)
        db_session.add(task)
        await db_session.commit()
        await db_session.refresh(task)
        return task

    return _create_task


@pytest.fixture
def transaction_sum(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> Callable[..., Any]:
    """Sum of all transaction amounts of a user."""

    async def _sum(user: User) -> Decimal:
        return await TransactionRepository(db_session).get_sum_for_user(
            user.id
        )

    return _sum


# ==================== SERVICE FIXTURES ====================


@pytest.fixture
def account_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    reward_config: RewardConfig,  # pylint: disable=redefined-outer-name
) -> AccountService:
    """Account service instance."""
    return AccountService(db_session, reward_config)


@pytest.fixture
def ledger_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    reward_config: RewardConfig,  # pylint: disable=redefined-outer-name
) -> LedgerService:
    """Ledger service instance."""
    return LedgerService(db_session, reward_config)


@pytest.fixture
def referral_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    reward_config: RewardConfig,  # pylint: disable=redefined-outer-name
) -> ReferralService:
    """Referral service instance."""
    return ReferralService(db_session, reward_config)


@pytest.fixture
def withdrawal_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    reward_config: RewardConfig,  # pylint: disable=redefined-outer-name
) -> WithdrawalService:
    """Withdrawal service instance."""
    return WithdrawalService(db_session, reward_config)


@pytest.fixture
def task_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    reward_config: RewardConfig,  # pylint: disable=redefined-outer-name
) -> TaskService:
    """Task service instance."""
    return TaskService(db_session, reward_config)


@pytest.fixture
def admin_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    reward_config: RewardConfig,  # pylint: disable=redefined-outer-name
) -> AdminService:
    """Admin service instance."""
    return AdminService(db_session, reward_config)


@pytest.fixture
def reconciliation_service(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> ReconciliationService:
    """Reconciliation service instance."""
    return ReconciliationService(db_session)
