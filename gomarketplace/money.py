"""
Money Utilities - Safe Decimal operations for prices.

Avoids float precision issues by using Decimal throughout.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Union

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")


def to_decimal(value: Union[str, int, float, Decimal, None]) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    if value is None:
        return Decimal("0")

    if isinstance(value, Decimal):
        return value

    try:
        # Go through str so 0.1 stays 0.1
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def round_money(value: Union[str, int, float, Decimal]) -> Decimal:
    """Round monetary value to cents."""
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def multiply(value: Union[str, int, float, Decimal], factor: Union[int, Decimal]) -> Decimal:
    """Multiply a price by a factor (usually a quantity)."""
    return to_decimal(value) * to_decimal(factor)


def sum_money(values: Iterable[Union[str, int, float, Decimal]]) -> Decimal:
    """Sum prices and round the result to cents."""
    total = Decimal("0")
    for value in values:
        total += to_decimal(value)
    return round_money(total)


def to_float(value: Union[str, int, float, Decimal]) -> float:
    """
    Convert Decimal to float for display layers that expect plain numbers.
    """
    return float(round_money(value))
