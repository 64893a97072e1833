"""
Decimal Math Utilities for Canton Tax Calculations.

Provides precise decimal arithmetic so that a tax breakdown always sums
exactly to its total burden. Calculator code should use these helpers
instead of float arithmetic and only convert to float at the API boundary.

Why Decimal?
- Float: 240000 * 0.085 = 20400.000000000004
- Decimal: 240000 * Decimal("0.085") = 20400.000

Amounts are in CHF. Display formatting follows the Swiss convention of an
apostrophe as thousands separator (e.g. 54'804).
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union, Optional

# Type alias for values that can be converted to Decimal
Numeric = Union[int, float, str, Decimal]

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Args:
        value: Value to convert (int, float, str, or Decimal)

    Returns:
        Decimal representation

    Raises:
        InvalidOperation: If the value cannot be parsed as a number

    Examples:
        >>> to_decimal(100)
        Decimal('100')
        >>> to_decimal(0.085)
        Decimal('0.085')
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidOperation(f"Boolean is not a numeric amount: {value!r}")
    if isinstance(value, float):
        # Convert float to string first to preserve representation
        return Decimal(str(value))
    return Decimal(value)


def is_finite(value: Numeric) -> bool:
    """Return True when value converts to a finite Decimal (no NaN/Infinity)."""
    try:
        return to_decimal(value).is_finite()
    except (InvalidOperation, ValueError, TypeError):
        return False


def round_half_up(value: Numeric) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Python's built-in round() uses banker's rounding; scores use the
    commercial rule instead.

    Examples:
        >>> round_half_up(37.5)
        38
        >>> round_half_up(-2.5)
        -3
    """
    return int(to_decimal(value).quantize(ONE, rounding=ROUND_HALF_UP))


def divide(a: Numeric, b: Numeric, default: Optional[Numeric] = None) -> Decimal:
    """
    Divide a by b with Decimal precision.

    Args:
        a: Dividend
        b: Divisor
        default: Value to return if division by zero (None raises error)

    Raises:
        InvalidOperation: If b is zero and no default provided
    """
    b_dec = to_decimal(b)
    if b_dec == 0:
        if default is not None:
            return to_decimal(default)
        raise InvalidOperation("Division by zero")
    return to_decimal(a) / b_dec


def percent(value: Numeric, percentage: Numeric) -> Decimal:
    """
    Apply a percentage expressed in points (8.5 for 8.5%).

    Examples:
        >>> percent(240000, 8.5)
        Decimal('20400')
    """
    return to_decimal(value) * to_decimal(percentage) / HUNDRED


def clamp(value: Numeric, minimum: Numeric, maximum: Numeric) -> Decimal:
    """
    Clamp value between minimum and maximum.

    Examples:
        >>> clamp(150, 0, 100)
        Decimal('100')
    """
    return max(to_decimal(minimum), min(to_decimal(value), to_decimal(maximum)))


def to_float(value: Decimal) -> float:
    """
    Convert Decimal back to float for API responses.

    Use sparingly - prefer keeping as Decimal internally.
    """
    return float(value)


def _swiss_grouping(formatted: str) -> str:
    return formatted.replace(",", "'")


def format_swiss_number(value: Numeric, decimal_places: int = 0) -> str:
    """
    Format a number with Swiss thousands grouping.

    Examples:
        >>> format_swiss_number(12583.44)
        "12'583"
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    rounded = to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    return _swiss_grouping(f"{rounded:,.{decimal_places}f}")

