"""
Account service.

Business logic for account registration and profile management.
"""

import secrets
from typing import Any

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import RewardConfig, settings
from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.services.exceptions import (
    AccountNotFoundError,
    DuplicateAccountError,
    InvalidAddressError,
)
from app.services.ledger_service import LedgerService
from app.services.unit_of_work import atomic
from app.utils.validation import sanitize_input, validate_trx_address

# Bounded retries for referral code collisions (64-bit codes)
REFERRAL_CODE_ATTEMPTS = 5


class AccountService:
    """
    Account service.

    Handles registration, lookups and profile updates. Balances are
    never touched here; see LedgerService.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: RewardConfig | None = None,
    ) -> None:
        """
        Initialize account service.

        Args:
            session: Database session
            config: Reward parameters (defaults to global settings)
        """
        self.session = session
        self.config = config or settings.reward_config()
        self.user_repo = UserRepository(session)
        self.ledger = LedgerService(session, self.config)

    async def get_by_id(self, telegram_id: int) -> User:
        """
        Get account by Telegram ID.

        Args:
            telegram_id: Telegram user ID

        Returns:
            User

        Raises:
            AccountNotFoundError: If account does not exist
        """
        user = await self.user_repo.get_by_telegram_id(telegram_id)
        if not user:
            raise AccountNotFoundError(telegram_id)
        return user

    async def get_by_referral_code(self, referral_code: str) -> User:
        """
        Get account by referral code.

        Args:
            referral_code: Referral code (case-insensitive)

        Returns:
            User

        Raises:
            AccountNotFoundError: If no account owns the code
        """
        code = referral_code.strip().upper()
        user = await self.user_repo.get_by_referral_code(code)
        if not user:
            raise AccountNotFoundError(code)
        return user

    async def generate_referral_code(self) -> str:
        """
        Draw a referral code not used by any account.

        The unique index on users.referral_code still guards the
        insert itself.

        Returns:
            16 hex characters (64 random bits)
        """
        for _ in range(REFERRAL_CODE_ATTEMPTS):
            code = secrets.token_hex(8).upper()
            if not await self.user_repo.get_by_referral_code(code):
                return code
            logger.warning("Referral code collision, drawing again")
        raise RuntimeError("Could not generate a unique referral code")

    async def create(
        self,
        telegram_id: int,
        username: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        referral_code: str | None = None,
    ) -> User:
        """
        Register a new account.

        An unknown referral code is ignored: the account is created
        without a referrer.

        Args:
            telegram_id: Telegram user ID
            username: Telegram username
            first_name: First name
            last_name: Last name
            referral_code: Code of the inviting account

        Returns:
            Created user

        Raises:
            DuplicateAccountError: If the Telegram ID is registered
        """
        if await self.user_repo.get_by_telegram_id(telegram_id):
            raise DuplicateAccountError(telegram_id)

        referrer_id = None
        if referral_code:
            referrer = await self.user_repo.get_by_referral_code(
                referral_code.strip().upper()
            )
            if referrer:
                referrer_id = referrer.id
            else:
                logger.info(
                    f"Unknown referral code {referral_code!r} "
                    f"for user {telegram_id}"
                )

        code = await self.generate_referral_code()

        try:
            async with atomic(self.session, "account_create"):
                user = await self.user_repo.create(
                    telegram_id=telegram_id,
                    username=sanitize_input(username, 255) or None,
                    first_name=sanitize_input(first_name, 255) or None,
                    last_name=sanitize_input(last_name, 255) or None,
                    referral_code=code,
                    referrer_id=referrer_id,
                )
        except IntegrityError as e:
            # Registration race on the unique telegram_id
            if await self.user_repo.get_by_telegram_id(telegram_id):
                raise DuplicateAccountError(telegram_id) from e
            raise

        logger.info(
            f"Account created: {telegram_id}",
            extra={
                "user_id": user.id,
                "referrer_id": referrer_id,
                "referral_code": code,
            },
        )
        return user

    async def get_or_create(
        self,
        telegram_id: int,
        username: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        referral_code: str | None = None,
    ) -> tuple[User, bool]:
        """
        Get account on login, registering it on first sight.

        Profile fields of an existing account are refreshed from the
        latest Telegram data.

        Returns:
            Tuple of (user, created)
        """
        user = await self.user_repo.get_by_telegram_id(telegram_id)
        if not user:
            try:
                user = await self.create(
                    telegram_id,
                    username=username,
                    first_name=first_name,
                    last_name=last_name,
                    referral_code=referral_code,
                )
                return user, True
            except DuplicateAccountError:
                user = await self.get_by_id(telegram_id)

        changed = False
        for field, value in (
            ("username", username),
            ("first_name", first_name),
            ("last_name", last_name),
        ):
            value = sanitize_input(value, 255) or None
            if value and getattr(user, field) != value:
                setattr(user, field, value)
                changed = True
        if changed:
            user = await self.persist(user)

        return user, False

    async def persist(self, user: User) -> User:
        """
        Save profile changes made to an account.

        Args:
            user: Account with modified profile fields

        Returns:
            Saved user

        Raises:
            ConcurrentUpdateError: If the account changed meanwhile
        """
        async with atomic(self.session, "account_persist"):
            self.session.add(user)
            await self.session.flush()
        return user

    async def set_wallet_address(
        self, telegram_id: int, address: str
    ) -> User:
        """
        Save the default TRX withdrawal address.

        Raises:
            AccountNotFoundError: If account does not exist
            InvalidAddressError: If address is not a TRX address
        """
        address = (address or "").strip()
        if not validate_trx_address(address):
            raise InvalidAddressError(
                f"Invalid TRX wallet address: {address!r}"
            )

        user = await self.get_by_id(telegram_id)
        user.wallet_address = address
        user = await self.persist(user)

        logger.info(f"Wallet address updated for user {telegram_id}")
        return user

    async def get_referrals(self, telegram_id: int) -> list[User]:
        """Get accounts referred by this account, newest first."""
        user = await self.get_by_id(telegram_id)
        return await self.user_repo.get_referrals(user.id)

    async def get_profile(self, telegram_id: int) -> dict[str, Any]:
        """
        Get public account snapshot.

        Returns:
            Dict with balances, counters and referral data
        """
        user = await self.get_by_id(telegram_id)
        referrer = (
            await self.user_repo.get_by_id(user.referrer_id)
            if user.referrer_id
            else None
        )

        return {
            "telegram_id": user.telegram_id,
            "username": user.username,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "balance": user.balance,
            "total_earned": user.total_earned,
            "total_withdrawn": user.total_withdrawn,
            "ads_watched": user.ads_watched,
            "last_ad_watch": user.last_ad_watch,
            "can_watch_ad": (
                not user.is_blocked
                and self.ledger.cooldown_remaining(user) == 0
            ),
            "referral_code": user.referral_code,
            "referred_by": referrer.telegram_id if referrer else None,
            "is_verified_referral": user.is_verified_referral,
            "wallet_address": user.wallet_address,
            "is_blocked": user.is_blocked,
            "created_at": user.created_at,
        }
