"""
Ledger exceptions.

Every refused ledger operation raises a subclass of LedgerError. The
``code`` attribute is stable and meant for callers that map errors to
responses.
"""

from decimal import Decimal


class LedgerError(Exception):
    """Base error for ledger operations."""

    code = "ledger_error"


class NotFoundError(LedgerError):
    """Referenced entity does not exist."""

    code = "not_found"


class AccountNotFoundError(NotFoundError):
    code = "account_not_found"

    def __init__(self, identity: int | str) -> None:
        self.identity = identity
        super().__init__(f"Account {identity} not found")


class TaskNotFoundError(NotFoundError):
    code = "task_not_found"

    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class WithdrawalNotFoundError(NotFoundError):
    code = "withdrawal_not_found"

    def __init__(self, withdrawal_id: int) -> None:
        self.withdrawal_id = withdrawal_id
        super().__init__(f"Withdrawal {withdrawal_id} not found")


class InvalidAmountError(LedgerError):
    """Amount is not a positive number."""

    code = "invalid_amount"


class BelowMinimumError(LedgerError):
    """Withdrawal amount is below the configured minimum."""

    code = "below_minimum"

    def __init__(self, amount: Decimal, minimum: Decimal) -> None:
        self.amount = amount
        self.minimum = minimum
        super().__init__(
            f"Minimum withdrawal is {minimum} TRX (requested {amount})"
        )


class InsufficientBalanceError(LedgerError):
    """Debit exceeds the available balance."""

    code = "insufficient_balance"

    def __init__(self, requested: Decimal, available: Decimal) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient balance: requested {requested}, "
            f"available {available}"
        )


class InvalidAddressError(LedgerError):
    """Destination is not a valid TRX address."""

    code = "invalid_address"


class PendingWithdrawalExistsError(LedgerError):
    """Account already has a pending withdrawal."""

    code = "pending_exists"


class CooldownError(LedgerError):
    """Ad watched again before the cooldown elapsed."""

    code = "cooldown"

    def __init__(self, remaining_seconds: int) -> None:
        self.remaining_seconds = remaining_seconds
        super().__init__(
            f"Please wait {remaining_seconds} seconds before watching "
            f"another ad"
        )


class AlreadyCompletedError(LedgerError):
    """Task was already completed by this account."""

    code = "already_completed"


class TaskInactiveError(LedgerError):
    """Task exists but is no longer offered."""

    code = "task_inactive"


class InvalidWithdrawalStateError(LedgerError):
    """Withdrawal is not in a state that allows the transition."""

    code = "invalid_state"

    def __init__(self, withdrawal_id: int, status: str) -> None:
        self.withdrawal_id = withdrawal_id
        self.status = status
        super().__init__(
            f"Withdrawal {withdrawal_id} is {status}, transition not allowed"
        )


class NotPendingError(InvalidWithdrawalStateError):
    code = "not_pending"


class NotApprovedError(InvalidWithdrawalStateError):
    code = "not_approved"


class AccountBlockedError(LedgerError):
    """Account is blocked by an administrator."""

    code = "blocked"

    def __init__(self, telegram_id: int) -> None:
        self.telegram_id = telegram_id
        super().__init__(f"Account {telegram_id} is blocked")


class DuplicateAccountError(LedgerError):
    """Account with this identity already exists."""

    code = "duplicate_account"

    def __init__(self, telegram_id: int) -> None:
        self.telegram_id = telegram_id
        super().__init__(f"Account {telegram_id} already exists")


class AccessDeniedError(LedgerError):
    """Caller does not own the entity."""

    code = "access_denied"


class ConcurrentUpdateError(LedgerError):
    """Entity was modified by a concurrent operation."""

    code = "concurrent_update"
