"""Tests for amount parsing."""

import pytest
from decimal import Decimal

from rentrecon.utils.amount_parser import parse_amount, parse_bank_amount


def test_parse_bank_amount_comma_separator():
    """Test German amounts with thousands dots."""
    assert parse_bank_amount("950,00") == Decimal("950.00")
    assert parse_bank_amount("1.234,56") == Decimal("1234.56")
    assert parse_bank_amount("-120,50") == Decimal("-120.50")
    assert parse_bank_amount('"950,00 EUR"') == Decimal("950.00")


def test_parse_bank_amount_dot_separator():
    """Test English amounts with thousands commas."""
    assert parse_bank_amount("1,234.56", decimal_separator=".") == Decimal("1234.56")
    assert parse_bank_amount("$12.50", decimal_separator=".") == Decimal("12.50")


def test_parse_bank_amount_trailing_minus():
    assert parse_bank_amount("950,00-") == Decimal("-950.00")


def test_parse_bank_amount_invalid():
    """Test that non-numbers yield None."""
    assert parse_bank_amount(None) is None
    assert parse_bank_amount("") is None
    assert parse_bank_amount("abc") is None
    assert parse_bank_amount("NaN") is None


def test_parse_amount():
    """Test parsing amounts typed on the command line."""
    assert parse_amount("123.45") == Decimal("123.45")
    assert parse_amount("123,45") == Decimal("123.45")
    assert parse_amount("€123.45") == Decimal("123.45")
    assert parse_amount("1,234.56") == Decimal("1234.56")


def test_parse_amount_invalid():
    with pytest.raises(ValueError):
        parse_amount("")
    with pytest.raises(ValueError):
        parse_amount("twelve")
