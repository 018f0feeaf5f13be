"""Validation utilities."""

import re
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

# Six fractional digits, like the ledger columns
MONEY_QUANT = Decimal("0.000001")

TRX_ADDRESS_PATTERN = re.compile(r"^T[A-Za-z1-9]{33}$")


def validate_trx_address(address: str | None) -> bool:
    """
    Validate TRON wallet address.

    Base58 form: ``T`` followed by 33 characters.

    Args:
        address: Wallet address

    Returns:
        True if valid
    """
    if not address or not isinstance(address, str):
        return False

    return bool(TRX_ADDRESS_PATTERN.match(address))


def to_money(value: Decimal | int | float | str) -> Decimal:
    """
    Convert caller input to a ledger amount.

    Floats go through ``str`` so 0.1 stays 0.1. Digits beyond the sixth
    fractional place are truncated, never rounded up.

    Args:
        value: Amount as Decimal, int, float or numeric string

    Returns:
        Decimal with 6 fractional digits

    Raises:
        ValueError: If value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e

    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")

    return amount.quantize(MONEY_QUANT, rounding=ROUND_DOWN)


def quantize_money(amount: Decimal) -> Decimal:
    """Round a computed amount (e.g. a commission) half-up to 6 digits."""
    return amount.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def sanitize_input(text: str | None, max_length: int = 500) -> str:
    """
    Sanitize user input.

    Args:
        text: User input
        max_length: Maximum length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Trim whitespace
    text = text.strip()

    # Limit length
    if len(text) > max_length:
        text = text[:max_length]

    # Remove null bytes
    text = text.replace("\x00", "")

    return text
