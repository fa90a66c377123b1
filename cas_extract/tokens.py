"""
Token-level normalization for CAS transaction rows.

Numeric tokens use Indian locale formatting (``1,23,456.78``) and wrap
negative values in parentheses. Dates are fixed-width ``DD-Mon-YYYY``
tokens that are kept verbatim rather than converted to ``date`` objects,
since statements carry markers such as financial-year starts that are
meaningful as printed.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

DATE_TOKEN_PATTERN = re.compile(r"^(\d{2}-[A-Za-z]{3}-\d{4})")
DATE_RANGE_PATTERN = re.compile(r"^To\s+\d{2}-[A-Za-z]{3}-\d{4}", re.IGNORECASE)

# Whole-token shapes used when slotting a row into amount/nav/units/balance
SIGNED_NUMBER_TOKEN = re.compile(r"^[(\d,.)]+$")
UNSIGNED_NUMBER_TOKEN = re.compile(r"^[\d,.]+$")
LEADING_AMOUNT_PATTERN = re.compile(r"^([\d,.]+)")


def parse_numeric_value(value: object) -> Optional[Decimal]:
    """
    Parse a locale-formatted numeric token.

    ``"1,000.50"`` -> ``Decimal("1000.50")``, ``"(1,000.50)"`` ->
    ``Decimal("-1000.50")``. Whitespace is trimmed and commas stripped.

    Args:
        value: Token to parse.

    Returns:
        Finite Decimal, or None for empty, non-string or non-numeric input.
    """
    if not value or not isinstance(value, str):
        return None

    value = value.strip()
    is_negative = len(value) > 1 and value.startswith("(") and value.endswith(")")
    if is_negative:
        value = value[1:-1]

    value = value.replace(",", "").strip()
    if not value:
        return None

    try:
        parsed = Decimal(value)
    except InvalidOperation:
        return None

    if not parsed.is_finite():
        return None
    return -parsed if is_negative else parsed


def match_date_token(line: object) -> Optional[str]:
    """
    Return the ``DD-Mon-YYYY`` token at the start of a line, verbatim.

    Args:
        line: Text line (leading whitespace is ignored).

    Returns:
        The matched date literal, or None.
    """
    if not isinstance(line, str):
        return None
    match = DATE_TOKEN_PATTERN.match(line.strip())
    return match.group(1) if match else None


def is_transaction_start(line: object) -> bool:
    """Check whether a line begins with a transaction date token."""
    return match_date_token(line) is not None


def is_date_range(text: str) -> bool:
    """Check for the ``To DD-Mon-YYYY`` remainder of a page-header date range."""
    return bool(DATE_RANGE_PATTERN.match(text.strip()))


def is_signed_number_token(token: str) -> bool:
    return bool(SIGNED_NUMBER_TOKEN.match(token))


def is_unsigned_number_token(token: str) -> bool:
    return bool(UNSIGNED_NUMBER_TOKEN.match(token))
