"""Base parser: shared interface and the canonical raw transaction record."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from rentrecon.domain.entities import Direction

DEFAULT_CURRENCY = "EUR"


@dataclass
class RawTransaction:
    """Intermediate representation output by parsers, before persistence."""

    booking_date: date
    amount: Decimal  # signed: negative=debit, positive=credit
    direction: Direction
    currency: str = DEFAULT_CURRENCY
    value_date: Optional[date] = None
    counterparty_name: Optional[str] = None
    counterparty_iban: Optional[str] = None
    usage_text: Optional[str] = None
    end_to_end_id: Optional[str] = None
    mandate_id: Optional[str] = None
    bank_reference: Optional[str] = None
    raw_data: dict[str, Any] = field(default_factory=dict)


class BankParser(ABC):
    """Abstract base for bank export parsers.

    Attributes:
        skipped_count: Number of rows skipped during the last parse() because
            their date or amount could not be read. Bank exports routinely end
            in summary or blank rows, so these are not errors.
    """

    def __init__(self):
        self.skipped_count: int = 0

    @abstractmethod
    def parse(self, content: Union[str, bytes]) -> list[RawTransaction]:
        """Parse a bank export and return normalized transactions.

        Raises:
            FormatError: If the content as a whole cannot be parsed
        """


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip surrounding whitespace and quotes; empty strings become None."""
    if value is None:
        return None
    value = value.strip().strip('"').strip()
    return value or None


def clean_iban(value: Optional[str]) -> Optional[str]:
    """Remove all whitespace from an IBAN; empty values become None."""
    value = clean_text(value)
    if value is None:
        return None
    return "".join(value.split()) or None
