"""Utility functions for rentrecon."""

from rentrecon.utils.date_parser import parse_bank_date, parse_filter_date, parse_month
from rentrecon.utils.amount_parser import parse_amount, parse_bank_amount

__all__ = ["parse_bank_date", "parse_filter_date", "parse_month", "parse_amount", "parse_bank_amount"]
