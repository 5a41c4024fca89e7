"""Deduplication fingerprints for bank transactions."""

import hashlib
from datetime import date
from decimal import Decimal
from typing import Optional

from rentrecon.parsers.base import RawTransaction

FIELD_DELIMITER = "|"
USAGE_TEXT_PREFIX_LENGTH = 140


def canonical_amount(amount: Decimal) -> str:
    """Render an amount as a fixed two-decimal string (e.g. '-950.00')."""
    return f"{Decimal(amount).quantize(Decimal('0.01')):f}"


def compute_fingerprint(
    user_id: str,
    booking_date: date,
    amount: Decimal,
    iban: Optional[str] = None,
    usage_text: Optional[str] = None,
    reference: Optional[str] = None,
) -> str:
    """SHA256(user|date|amount|IBAN|usage prefix|reference), hex encoded.

    The same real bank line imported from two files (or two export formats
    carrying the same fields) yields the same key.
    """
    parts = [
        str(user_id),
        booking_date.isoformat() if booking_date else "",
        canonical_amount(amount) if amount is not None else "",
        iban.strip().upper() if iban else "",
        usage_text.strip()[:USAGE_TEXT_PREFIX_LENGTH] if usage_text else "",
        reference.strip() if reference else "",
    ]
    key = FIELD_DELIMITER.join(parts)
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def fingerprint_for(user_id: str, raw: RawTransaction) -> str:
    """Fingerprint a parsed transaction, preferring the bank reference over the end-to-end id."""
    return compute_fingerprint(
        user_id,
        raw.booking_date,
        raw.amount,
        iban=raw.counterparty_iban,
        usage_text=raw.usage_text,
        reference=raw.bank_reference or raw.end_to_end_id,
    )
