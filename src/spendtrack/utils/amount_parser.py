"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_balance(amount_str: str) -> Decimal:
    """Parse a signed money string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-$123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount (may be zero or negative)

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and thousands separators
    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Amount '{amount_str}' is not a finite number")
    return -amount if is_negative else amount


def parse_amount(amount_str: str) -> Decimal:
    """Parse a transaction amount, which must be positive.

    The transaction type carries the direction, so negative amounts are
    rejected rather than flipped.

    Raises:
        ValueError: If amount string cannot be parsed or is not positive
    """
    amount = parse_balance(amount_str)
    if amount <= 0:
        raise ValueError(f"Amount '{amount_str.strip()}' must be a positive number")
    return amount
