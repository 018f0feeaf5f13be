"""
Unit tests for validation utilities.
"""

from decimal import Decimal

import pytest

from app.utils.validation import (
    quantize_money,
    sanitize_input,
    to_money,
    validate_trx_address,
)


class TestTrxAddress:
    """Test TRX address validation."""

    @pytest.mark.parametrize(
        "address,valid",
        [
            ("TJRabPrwbZy45sbavfcjinPJC18kjpRTv8", True),
            ("TJRabPrwbZy45sbavfcjinPJC18kjpRTv", False),
            ("AJRabPrwbZy45sbavfcjinPJC18kjpRTv8", False),
            ("TJRabPrwbZy45sbavfcjinPJC18kjpRT_8", False),
            ("", False),
            (None, False),
        ],
    )
    def test_validate_trx_address(self, address, valid):
        """Test base58 form T + 33 characters."""
        assert validate_trx_address(address) is valid


class TestMoney:
    """Test money conversion."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Decimal("1.5"), Decimal("1.5")),
            (3, Decimal("3")),
            (0.1, Decimal("0.1")),
            ("0.0000019", Decimal("0.000001")),
            ("-2.5", Decimal("-2.5")),
        ],
    )
    def test_to_money(self, value, expected):
        """Test conversion truncates to six digits."""
        assert to_money(value) == expected

    @pytest.mark.parametrize("value", [True, "abc", "Infinity", "NaN"])
    def test_to_money_invalid(self, value):
        """Test non-numeric input."""
        with pytest.raises(ValueError):
            to_money(value)

    def test_quantize_money_rounds_half_up(self):
        """Test computed amounts round half-up."""
        assert quantize_money(Decimal("0.0000005")) == Decimal("0.000001")
        assert quantize_money(Decimal("0.0000004")) == Decimal("0")


class TestSanitizeInput:
    """Test input sanitizing."""

    def test_sanitize_input(self):
        """Test trimming, truncation and null bytes."""
        assert sanitize_input(None) == ""
        assert sanitize_input("  hi  ") == "hi"
        assert sanitize_input("a\x00b") == "ab"
        assert sanitize_input("x" * 10, max_length=4) == "xxxx"
