"""CSV parser for bank exports with a configurable column mapping.

Bank CSV exports have no fixed schema: every bank names its columns
differently, uses its own delimiter, decimal separator and date format, and
often prefixes the header with a few lines of account metadata. The
column mapping is the contract. It can be stored and reused per bank (see
rentrecon.domain.csv_mapping) and pre-filled with detect_csv_mapping().
"""

import csv
import io
from dataclasses import dataclass, asdict, fields
from typing import Any, Optional, Union

from rentrecon.domain.entities import Direction
from rentrecon.domain.errors import FormatError
from rentrecon.parsers.base import (
    DEFAULT_CURRENCY,
    BankParser,
    RawTransaction,
    clean_iban,
    clean_text,
)
from rentrecon.utils.amount_parser import parse_bank_amount
from rentrecon.utils.date_parser import BANK_DATE_FORMATS, parse_bank_date

CREDIT_INDICATORS = {"H", "HABEN", "CR", "CRDT", "CREDIT"}
DEBIT_INDICATORS = {"S", "SOLL", "DR", "DBIT", "DEBIT"}

# Tokens that mark a line as the header row
HEADER_TOKENS = ("buchung", "datum", "date", "betrag", "amount")
HEADER_SCAN_LINES = 10

# Header vocabularies (German and English bank exports), most specific first.
# Fields are resolved in this order and each header is used at most once.
FIELD_PATTERNS: dict[str, tuple[str, ...]] = {
    "value_date": ("wertstellung", "wertstellungsdatum", "valutadatum", "valuta", "value date"),
    "booking_date": ("buchungstag", "buchungsdatum", "booking date", "buchung", "datum", "date"),
    "amount": ("betrag", "betrag (eur)", "betrag in eur", "amount", "umsatz"),
    "counterparty_iban": ("iban", "kontonummer/iban", "kontonummer", "kontonr", "account number"),
    "counterparty_name": (
        "auftraggeber/empfänger",
        "beguenstigter/zahlungspflichtiger",
        "begünstigter/zahlungspflichtiger",
        "zahlungsbeteiligter",
        "empfänger",
        "auftraggeber",
        "counterparty",
        "payee",
        "payer",
        "name",
    ),
    "usage_text": (
        "verwendungszweck",
        "vorgang/verwendungszweck",
        "purpose",
        "beschreibung",
        "description",
        "buchungstext",
    ),
    "credit_debit_indicator": ("soll/haben", "soll-haben", "s/h", "credit/debit", "debit/credit", "cr/dr"),
    "currency": ("währung", "waehrung", "whrg", "currency"),
}


@dataclass
class CsvColumnMapping:
    """Column names and formatting hints for one bank's CSV export.

    Attributes:
        booking_date: Header of the booking date column (required)
        amount: Header of the signed amount column (required)
        value_date: Optional header of the value date column
        counterparty_name: Optional header of the payer/payee name column
        counterparty_iban: Optional header of the payer/payee IBAN column
        usage_text: Optional header of the remittance text column
        credit_debit_indicator: Optional header of a Soll/Haben style column
        currency: Optional header of the currency column
        delimiter: Field delimiter, detected from the header when None
        decimal_separator: "," (1.234,56) or "." (1,234.56)
        date_format: One of DD.MM.YYYY, YYYY-MM-DD, MM/DD/YYYY, or None to detect
        skip_rows: Number of non-blank lines before the header row
        encoding: Encoding used when the content is given as bytes
    """

    booking_date: str
    amount: str
    value_date: Optional[str] = None
    counterparty_name: Optional[str] = None
    counterparty_iban: Optional[str] = None
    usage_text: Optional[str] = None
    credit_debit_indicator: Optional[str] = None
    currency: Optional[str] = None
    delimiter: Optional[str] = None
    decimal_separator: str = ","
    date_format: Optional[str] = None
    skip_rows: int = 0
    encoding: str = "utf-8-sig"

    def __post_init__(self):
        if not self.booking_date or not self.amount:
            raise FormatError("CSV mapping requires a booking date column and an amount column")
        if self.decimal_separator not in (",", "."):
            raise FormatError(f"Invalid decimal separator '{self.decimal_separator}'. Must be ',' or '.'")
        if self.date_format is not None and self.date_format not in BANK_DATE_FORMATS:
            raise FormatError(
                f"Invalid date format '{self.date_format}'. Must be one of: {', '.join(BANK_DATE_FORMATS)}"
            )
        if self.skip_rows < 0:
            raise FormatError("skip_rows cannot be negative")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CsvColumnMapping":
        """Build a mapping from a stored dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def decode_content(content: Union[str, bytes], encoding: str = "utf-8-sig") -> str:
    """Return file content as text, decoding bytes with the given encoding."""
    if isinstance(content, bytes):
        try:
            text = content.decode(encoding or "utf-8-sig")
        except (UnicodeDecodeError, LookupError) as e:
            raise FormatError(f"Could not decode CSV file as {encoding}: {e}") from e
    else:
        text = content
    return text.lstrip("\ufeff")


def split_csv_line(line: str, delimiter: str) -> list[str]:
    """Split one line into trimmed fields, honouring quotes.

    A quoted delimiter does not break the field and doubled quotes inside a
    quoted field collapse to one literal quote.
    """
    row = next(csv.reader([line], delimiter=delimiter, skipinitialspace=True), [])
    return [value.strip() for value in row]


def read_rows(text: str, delimiter: str) -> list[list[str]]:
    """Read all non-blank rows of a delimited text."""
    reader = csv.reader(io.StringIO(text), delimiter=delimiter, skipinitialspace=True)
    rows = []
    for row in reader:
        values = [value.strip() for value in row]
        if any(values):
            rows.append(values)
    return rows


def detect_delimiter(line: str) -> str:
    """Pick the delimiter occurring most often in a line (ties prefer ';', then tab)."""
    semicolons = line.count(";")
    commas = line.count(",")
    tabs = line.count("\t")
    if semicolons >= commas and semicolons >= tabs:
        return ";"
    if tabs >= commas:
        return "\t"
    return ","


def _normalize_header(header: str) -> str:
    return header.strip().strip('"').strip().lower()


def _field(values: list[str], index: int) -> Optional[str]:
    if index < 0 or index >= len(values):
        return None
    return values[index]


def indicator_direction(indicator: Optional[str]) -> Optional[Direction]:
    """Map a Soll/Haben style indicator to a direction, or None if unknown."""
    if not indicator:
        return None
    value = indicator.strip().upper()
    if value in CREDIT_INDICATORS:
        return Direction.CREDIT
    if value in DEBIT_INDICATORS:
        return Direction.DEBIT
    return None


class CsvParser(BankParser):
    """Parse delimited bank exports according to a CsvColumnMapping."""

    def __init__(self, mapping: CsvColumnMapping):
        super().__init__()
        self.mapping = mapping

    def parse(self, content: Union[str, bytes]) -> list[RawTransaction]:
        """Parse a CSV export.

        Rows whose date or amount cannot be parsed are skipped and counted in
        skipped_count.

        Raises:
            FormatError: If the content cannot be decoded or a required column
                is missing
        """
        self.skipped_count = 0
        mapping = self.mapping
        text = decode_content(content, mapping.encoding)

        lines = [line for line in text.splitlines() if line.strip()]
        if len(lines) <= mapping.skip_rows + 1:
            return []

        delimiter = mapping.delimiter or detect_delimiter(lines[mapping.skip_rows])
        rows = read_rows(text, delimiter)
        if len(rows) <= mapping.skip_rows:
            return []

        headers = [h.strip().strip('"') for h in rows[mapping.skip_rows]]
        normalized = [_normalize_header(h) for h in headers]

        def column_index(name: Optional[str]) -> int:
            if not name:
                return -1
            wanted = _normalize_header(name)
            try:
                return normalized.index(wanted)
            except ValueError:
                return -1

        date_idx = column_index(mapping.booking_date)
        amount_idx = column_index(mapping.amount)
        if date_idx == -1 or amount_idx == -1:
            raise FormatError(
                f"Required columns not found. Looking for date='{mapping.booking_date}' "
                f"(found: {date_idx}), amount='{mapping.amount}' (found: {amount_idx}). "
                f"Available headers: {', '.join(headers)}"
            )

        value_date_idx = column_index(mapping.value_date)
        name_idx = column_index(mapping.counterparty_name)
        iban_idx = column_index(mapping.counterparty_iban)
        usage_idx = column_index(mapping.usage_text)
        indicator_idx = column_index(mapping.credit_debit_indicator)
        currency_idx = column_index(mapping.currency)

        transactions: list[RawTransaction] = []
        for values in rows[mapping.skip_rows + 1:]:
            booking_date = parse_bank_date(_field(values, date_idx), mapping.date_format)
            if booking_date is None:
                self.skipped_count += 1
                continue

            amount = parse_bank_amount(_field(values, amount_idx), mapping.decimal_separator)
            if amount is None:
                self.skipped_count += 1
                continue

            direction = indicator_direction(_field(values, indicator_idx))
            if direction is None:
                direction = Direction.CREDIT if amount >= 0 else Direction.DEBIT
            else:
                # Exports with an indicator column usually carry unsigned amounts
                amount = abs(amount) if direction is Direction.CREDIT else -abs(amount)

            value_date = None
            if value_date_idx >= 0:
                value_date = parse_bank_date(_field(values, value_date_idx), mapping.date_format)

            raw_data = {header: (_field(values, idx) or "") for idx, header in enumerate(headers)}

            transactions.append(
                RawTransaction(
                    booking_date=booking_date,
                    value_date=value_date,
                    amount=amount,
                    direction=direction,
                    currency=clean_text(_field(values, currency_idx)) or DEFAULT_CURRENCY,
                    counterparty_name=clean_text(_field(values, name_idx)),
                    counterparty_iban=clean_iban(_field(values, iban_idx)),
                    usage_text=clean_text(_field(values, usage_idx)),
                    raw_data=raw_data,
                )
            )

        return transactions


@dataclass
class CsvMappingSuggestion:
    """Auto-detected mapping proposal, to be confirmed before use."""

    delimiter: str
    skip_rows: int
    headers: list[str]
    decimal_separator: Optional[str] = None
    date_format: Optional[str] = None
    booking_date: Optional[str] = None
    value_date: Optional[str] = None
    amount: Optional[str] = None
    counterparty_name: Optional[str] = None
    counterparty_iban: Optional[str] = None
    usage_text: Optional[str] = None
    credit_debit_indicator: Optional[str] = None
    currency: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.booking_date and self.amount)

    def columns(self) -> dict[str, Optional[str]]:
        """Return the detected column for each mappable field (None if not found)."""
        return {name: getattr(self, name) for name in FIELD_PATTERNS}

    def to_mapping(self, **overrides: Any) -> CsvColumnMapping:
        """Turn the confirmed suggestion into a CsvColumnMapping.

        Args:
            **overrides: Fields the operator corrected

        Raises:
            FormatError: If the date or amount column is still unknown
        """
        values = {
            "booking_date": self.booking_date,
            "amount": self.amount,
            "value_date": self.value_date,
            "counterparty_name": self.counterparty_name,
            "counterparty_iban": self.counterparty_iban,
            "usage_text": self.usage_text,
            "credit_debit_indicator": self.credit_debit_indicator,
            "currency": self.currency,
            "delimiter": self.delimiter,
            "date_format": self.date_format,
            "skip_rows": self.skip_rows,
        }
        if self.decimal_separator:
            values["decimal_separator"] = self.decimal_separator
        values.update({k: v for k, v in overrides.items() if v is not None})

        missing = [name for name in ("booking_date", "amount") if not values.get(name)]
        if missing:
            raise FormatError(
                f"Could not detect required columns: {', '.join(missing)}. "
                f"Available headers: {', '.join(self.headers)}"
            )
        return CsvColumnMapping(**values)


def _guess_decimal_separator(sample: Optional[str]) -> Optional[str]:
    if not sample:
        return None
    comma = sample.rfind(",")
    dot = sample.rfind(".")
    if comma == -1 and dot == -1:
        return None
    return "," if comma > dot else "."


def _guess_date_format(sample: Optional[str]) -> Optional[str]:
    for date_format in BANK_DATE_FORMATS:
        if parse_bank_date(sample, date_format) is not None:
            return date_format
    return None


def _match_header(patterns: tuple[str, ...], headers: list[str], taken: set[int]) -> int:
    lowered = [_normalize_header(h) for h in headers]
    # Exact names win over substrings so "Betrag" beats "Ursprungsbetrag"
    for exact in (True, False):
        for pattern in patterns:
            for idx, header in enumerate(lowered):
                if idx in taken:
                    continue
                if (header == pattern) if exact else (pattern in header):
                    return idx
    return -1


def detect_csv_mapping(content: Union[str, bytes], encoding: str = "utf-8-sig") -> CsvMappingSuggestion:
    """Guess header row, delimiter and column assignments of a bank CSV.

    Scans the first lines for a header containing date or amount tokens,
    votes on the delimiter and assigns headers using German and English bank
    vocabularies. The result only pre-fills a mapping; it is never used for
    an import without confirmation.

    Raises:
        FormatError: If the content has fewer than two non-blank lines
    """
    text = decode_content(content, encoding)
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        raise FormatError("CSV file needs a header row and at least one data row")

    skip_rows = 0
    for idx, line in enumerate(lines[:HEADER_SCAN_LINES]):
        lowered = line.lower()
        if any(token in lowered for token in HEADER_TOKENS):
            skip_rows = idx
            break

    delimiter = detect_delimiter(lines[skip_rows])
    headers = [h.strip('"') for h in split_csv_line(lines[skip_rows], delimiter)]
    suggestion = CsvMappingSuggestion(delimiter=delimiter, skip_rows=skip_rows, headers=headers)

    taken: set[int] = set()
    for field_name, patterns in FIELD_PATTERNS.items():
        idx = _match_header(patterns, headers, taken)
        if idx >= 0:
            taken.add(idx)
            setattr(suggestion, field_name, headers[idx])

    if skip_rows + 1 < len(lines):
        sample = split_csv_line(lines[skip_rows + 1], delimiter)
        if suggestion.amount is not None:
            suggestion.decimal_separator = _guess_decimal_separator(
                _field(sample, headers.index(suggestion.amount))
            )
        if suggestion.booking_date is not None:
            suggestion.date_format = _guess_date_format(
                _field(sample, headers.index(suggestion.booking_date))
            )

    return suggestion
