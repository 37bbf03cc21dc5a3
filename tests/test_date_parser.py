"""Tests for date parser with relative dates."""

import pytest
from datetime import date

from spendtrack.utils.date_parser import parse_date, get_date_range

# A Wednesday
TODAY = date(2024, 5, 15)


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("today", date(2024, 5, 15)),
        ("Yesterday", date(2024, 5, 14)),
        ("tomorrow", date(2024, 5, 16)),
        ("3 days ago", date(2024, 5, 12)),
        ("1 day ago", date(2024, 5, 14)),
        ("in 5 days", date(2024, 5, 20)),
        ("last week", date(2024, 5, 6)),
        ("this week", date(2024, 5, 13)),
        ("next week", date(2024, 5, 20)),
        ("last month", date(2024, 4, 1)),
        ("next month", date(2024, 6, 1)),
        ("this year", date(2024, 1, 1)),
        ("last year", date(2023, 1, 1)),
        ("last monday", date(2024, 5, 13)),
        ("last wednesday", date(2024, 5, 8)),
    ],
)
def test_parse_relative_dates(text, expected):
    assert parse_date(text, today=TODAY) == expected


def test_parse_invalid_date():
    """Test that invalid dates raise ValueError."""
    with pytest.raises(ValueError):
        parse_date("not a date")


@pytest.mark.parametrize(
    "period,expected",
    [
        ("this-month", (date(2024, 5, 1), date(2024, 5, 15))),
        ("this-year", (date(2024, 1, 1), date(2024, 5, 15))),
        ("this-week", (date(2024, 5, 13), date(2024, 5, 15))),
        ("last-month", (date(2024, 4, 1), date(2024, 4, 30))),
        ("last-year", (date(2023, 1, 1), date(2023, 12, 31))),
        ("last-week", (date(2024, 5, 6), date(2024, 5, 12))),
    ],
)
def test_get_date_range(period, expected):
    assert get_date_range(period, today=TODAY) == expected


def test_get_date_range_unknown_period():
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("next-decade")
