"""Utility functions for spendtrack."""

from spendtrack.utils.date_parser import parse_date, get_date_range
from spendtrack.utils.amount_parser import parse_amount, parse_balance
from spendtrack.utils.dates import to_datetime, day_of, same_day

__all__ = ["parse_date", "get_date_range", "parse_amount", "parse_balance", "to_datetime", "day_of", "same_day"]
