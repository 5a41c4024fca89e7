"""Parsers for bank statement exports."""

from rentrecon.parsers.base import BankParser, RawTransaction
from rentrecon.parsers.camt053 import Camt053Parser
from rentrecon.parsers.csv_parser import (
    CsvColumnMapping,
    CsvMappingSuggestion,
    CsvParser,
    detect_csv_mapping,
)

__all__ = [
    "BankParser",
    "RawTransaction",
    "Camt053Parser",
    "CsvColumnMapping",
    "CsvMappingSuggestion",
    "CsvParser",
    "detect_csv_mapping",
]
