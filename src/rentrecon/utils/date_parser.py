"""Date parsing utilities."""

import re
from datetime import date, datetime
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

# Formats bank exports use for booking and value dates
BANK_DATE_FORMATS = ("DD.MM.YYYY", "YYYY-MM-DD", "MM/DD/YYYY")

_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DOT_RE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{2}|\d{4})$")
_SLASH_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_MONTH_ISO_RE = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{1,2})$")
_MONTH_BANK_RE = re.compile(r"^(?P<month>\d{1,2})[./](?P<year>\d{4})$")

# Two-digit years above the pivot belong to the 1900s
TWO_DIGIT_YEAR_PIVOT = 50


def _expand_year(year: str) -> int:
    value = int(year)
    if len(year) == 2:
        return 1900 + value if value > TWO_DIGIT_YEAR_PIVOT else 2000 + value
    return value


def _build(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_bank_date(value: Optional[str], date_format: Optional[str] = None) -> Optional[date]:
    """Parse a date as found in bank exports.

    Supports DD.MM.YYYY, YYYY-MM-DD and MM/DD/YYYY (two-digit years allowed
    for the dotted and slashed forms). When date_format is given only that
    form is tried; otherwise the form is recognised from the separators.

    Args:
        value: Raw date string
        date_format: Optional format hint (one of BANK_DATE_FORMATS)

    Returns:
        Date object, or None if the value is not a valid date
    """
    if not value:
        return None
    text = value.strip().strip('"').strip()

    if date_format in (None, "YYYY-MM-DD"):
        match = _ISO_RE.match(text)
        if match:
            return _build(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if date_format:
            return None

    if date_format in (None, "DD.MM.YYYY"):
        match = _DOT_RE.match(text)
        if match:
            day, month, year = match.groups()
            return _build(_expand_year(year), int(month), int(day))
        if date_format:
            return None

    if date_format in (None, "MM/DD/YYYY"):
        match = _SLASH_RE.match(text)
        if match:
            month, day, year = match.groups()
            return _build(_expand_year(year), int(month), int(day))

    return None


def parse_filter_date(value: str) -> date:
    """Parse a date given on the command line to filter transactions.

    Accepts the same forms bank exports use, so a date can be copied
    straight from a statement.

    Raises:
        ValueError: If the value is not a valid date in one of BANK_DATE_FORMATS
    """
    parsed = parse_bank_date(value)
    if parsed is None:
        raise ValueError(f"Could not parse date '{value}'. Use one of: {', '.join(BANK_DATE_FORMATS)}")
    return parsed


def parse_month(value: str) -> tuple[date, date]:
    """Return the first and last day of a rent month.

    Accepts "2025-03", "03.2025", "03/2025" and month names such as
    "March 2025".

    Raises:
        ValueError: If the value does not name a month
    """
    text = value.strip()
    start = None

    match = _MONTH_ISO_RE.match(text) or _MONTH_BANK_RE.match(text)
    if match:
        start = _build(int(match.group("year")), int(match.group("month")), 1)
    elif any(c.isalpha() for c in text):
        try:
            start = date_parser.parse(text, default=datetime(date.today().year, 1, 1)).date().replace(day=1)
        except (ValueError, OverflowError):
            start = None

    if start is None:
        raise ValueError(f"Could not parse month '{value}'. Use YYYY-MM, MM.YYYY or a month name")
    return start, start + relativedelta(day=31)
