"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
from typing import Optional
import re

_NOISE_RE = re.compile(r"[\"'\s$€£¥]|EUR|USD|GBP|CHF")


def parse_bank_amount(value: Optional[str], decimal_separator: str = ",") -> Optional[Decimal]:
    """Parse an amount from a bank export honouring the decimal separator.

    With a comma separator thousands dots are dropped first ("1.234,56");
    with a dot separator thousands commas are dropped first ("1,234.56").
    Quotes, whitespace and currency markers are ignored, and a trailing
    minus ("950,00-") is accepted.

    Args:
        value: Raw amount string
        decimal_separator: "," or "."

    Returns:
        Decimal amount, or None if the value is not a number
    """
    if value is None:
        return None
    cleaned = _NOISE_RE.sub("", value)
    if not cleaned:
        return None

    if cleaned.endswith("-") and not cleaned.startswith("-"):
        cleaned = "-" + cleaned[:-1]

    if decimal_separator == ",":
        cleaned = cleaned.replace(".", "").replace(",", ".")
    else:
        cleaned = cleaned.replace(",", "")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string typed by an operator into a Decimal.

    Handles various formats:
    - "123.45"
    - "123,45"
    - "€123.45"
    - "1,234.56"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()
    # A lone comma is a decimal comma; otherwise commas group thousands
    separator = "," if "," in amount_str and "." not in amount_str else "."
    amount = parse_bank_amount(amount_str, decimal_separator=separator)
    if amount is None:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return amount
