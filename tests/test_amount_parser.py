"""Tests for amount parsing."""

from decimal import Decimal

import pytest

from spendtrack.utils.amount_parser import parse_amount, parse_balance


@pytest.mark.parametrize(
    "text,expected",
    [
        ("123.45", Decimal("123.45")),
        ("$1,234.56", Decimal("1234.56")),
        ("-$20", Decimal("-20")),
        ("(42.10)", Decimal("-42.10")),
        ("0", Decimal("0")),
        (" €7.5 ", Decimal("7.5")),
    ],
)
def test_parse_balance(text, expected):
    assert parse_balance(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "NaN", "Infinity"])
def test_parse_balance_invalid(text):
    with pytest.raises(ValueError):
        parse_balance(text)


def test_parse_amount_requires_positive():
    assert parse_amount("9.99") == Decimal("9.99")
    with pytest.raises(ValueError, match="positive"):
        parse_amount("-9.99")
    with pytest.raises(ValueError):
        parse_amount("0")
