"""
Money and Rate Arithmetic Module

Fixed-point Decimal helpers for principal, interest rate, EMI and balance
values. NEVER uses float for monetary values: every amount that is stored or
returned is quantized to 2 places with ROUND_HALF_UP, while intermediate
rate math keeps at least 10 fractional digits.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext
from typing import Any, Optional

from .errors import InvalidArgumentError

# Set global decimal context for financial precision
getcontext().prec = 28

ZERO = Decimal('0')
ONE = Decimal('1')
CENT = Decimal('0.01')             # Monetary precision (2 places)
RATE_PLACES = Decimal('0.0000000001')  # Intermediate rate precision (10 places)

# Inputs above these bounds cannot be quantized within the 28-digit context
MAX_DECIMAL_INPUT = Decimal('1000000000000000')  # 10^15
MAX_INT_INPUT = 10000

CURRENCY_SYMBOLS = "₹$€£"


def round_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up"""
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidArgumentError(f"Amount {value} is out of range")


def round_rate(value: Decimal) -> Decimal:
    """Round an intermediate rate to 10 decimal places, half-up"""
    try:
        return value.quantize(RATE_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidArgumentError(f"Rate {value} is out of range")


def parse_decimal(value: Any, field_name: str = "value") -> Decimal:
    """
    Convert request input to Decimal

    Accepts Decimal, int, float (converted through str) and strings with
    an optional leading currency symbol and thousands separators. Any other
    stray character makes the string unparseable. Magnitudes of 10^15 or
    more are rejected.

    Args:
        value: Raw input value
        field_name: Name used in error messages

    Returns:
        Decimal value

    Raises:
        InvalidArgumentError: If the value cannot be parsed, is not finite
            or is out of range
    """
    if isinstance(value, bool) or value is None:
        raise InvalidArgumentError(f"{field_name} must be a number")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        # Remove a leading currency symbol, whitespace and thousands separators
        clean_value = value.strip().lstrip(CURRENCY_SYMBOLS).strip().replace(',', '')
        if not clean_value:
            raise InvalidArgumentError(f"{field_name} must be a number, got '{value}'")
        try:
            result = Decimal(clean_value)
        except InvalidOperation:
            raise InvalidArgumentError(f"Cannot convert {field_name} '{value}' to a decimal")
    else:
        raise InvalidArgumentError(f"{field_name} must be a number")

    if not result.is_finite():
        raise InvalidArgumentError(f"{field_name} must be a finite number")
    if abs(result) >= MAX_DECIMAL_INPUT:
        raise InvalidArgumentError(f"{field_name} is out of range")
    return result


def parse_money(value: Any, field_name: str = "amount") -> Decimal:
    """Parse a monetary amount and round it to 2 places"""
    return round_money(parse_decimal(value, field_name))


def parse_positive_int(value: Any, field_name: str = "value") -> int:
    """Parse a strictly positive integer (tenure in months and similar)"""
    if isinstance(value, bool) or value is None:
        raise InvalidArgumentError(f"{field_name} must be an integer")
    if isinstance(value, int):
        result = value
    else:
        try:
            result = int(str(value).strip())
        except ValueError:
            raise InvalidArgumentError(f"{field_name} must be an integer, got '{value}'")
    if result <= 0:
        raise InvalidArgumentError(f"{field_name} must be positive")
    if result > MAX_INT_INPUT:
        raise InvalidArgumentError(f"{field_name} must not exceed {MAX_INT_INPUT}")
    return result


def money_to_str(value: Optional[Decimal]) -> Optional[str]:
    """Serialize a monetary amount as a fixed 2-place decimal string"""
    if value is None:
        return None
    return str(round_money(value))


def format_money(amount: Decimal, symbol: str = "₹") -> str:
    """Format for display, e.g. ₹1,234.50"""
    return f"{symbol}{round_money(amount):,.2f}"
