"""
Number Parsing and Formatting Module

All numeric fields of an MGNREGA record arrive as text and may be empty or
junk. parse_or_zero is the single place where such text becomes a number;
the formatters render values using the Indian crore/lakh scale.
"""

# Standard library imports
import re
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Union

# Constants
CRORE = 10_000_000
LAKH = 100_000
THOUSAND = 1_000
CURRENCY_SYMBOL = '₹'

_LEADING_NUMBER = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')

Number = Union[int, float]


def parse_or_zero(raw: Any) -> float:
    """
    Parse a raw field value as a float, defaulting to 0.

    Text is read like a lenient float parser: leading whitespace is skipped
    and the longest leading decimal literal is used, so "12.5 lakh" gives
    12.5. Anything without a leading number ("", "NA", None) gives 0.0, as
    do NaN and infinities.

    Example:
        >>> parse_or_zero("245.41")
        245.41
        >>> parse_or_zero("")
        0.0
    """
    if raw is None or isinstance(raw, bool):
        return 0.0

    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        match = _LEADING_NUMBER.match(str(raw))
        if not match:
            return 0.0
        value = float(match.group(1))

    if math.isnan(value) or math.isinf(value) or value == 0:
        return 0.0
    return value


def _fixed(value: float, places: int) -> str:
    # Round half up on the exact binary value of the float
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def _plain(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _scaled(value: float) -> str:
    if value >= CRORE:
        return f"{_fixed(value / CRORE, 1)} Cr"
    if value >= LAKH:
        return f"{_fixed(value / LAKH, 1)} L"
    if value >= THOUSAND:
        return f"{_fixed(value / THOUSAND, 1)} K"
    return _plain(value)


def format_number(raw: Any) -> str:
    """
    Format a count with the crore/lakh/thousand scale.

    Example:
        >>> format_number("12345678")
        '1.2 Cr'
        >>> format_number("150000")
        '1.5 L'
        >>> format_number("2500")
        '2.5 K'
        >>> format_number("42")
        '42'
    """
    return _scaled(parse_or_zero(raw))


def format_currency(raw: Any) -> str:
    """Format an amount like format_number, prefixed with the rupee sign."""
    return CURRENCY_SYMBOL + _scaled(parse_or_zero(raw))


def format_wage(raw: Any) -> str:
    """Format a per-day wage rate with two decimals, e.g. '₹245.41'."""
    return f"{CURRENCY_SYMBOL}{_fixed(parse_or_zero(raw), 2)}"


def _as_given(raw: Any) -> str:
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return _plain(parse_or_zero(raw))
    return str(raw or '0')


def format_percentage(raw: Any) -> str:
    """Render the value as given with a percent sign; empty values become '0%'."""
    return f"{_as_given(raw)}%"


def format_days(raw: Any) -> str:
    """Render a day count as given by the API; empty values become '0'."""
    return _as_given(raw)


def format_share(part: Number, whole: Number) -> Union[str, None]:
    """Percentage of part in whole with one decimal, or None when whole is 0."""
    if not whole:
        return None
    return _fixed(part / whole * 100, 1)
