"""Money helpers - Decimal amounts with cent precision.

Every amount that crosses a module boundary in giftsettle is a ``Decimal``
rounded to two places with ROUND_HALF_UP. Wire payloads carry plain numbers,
so ``to_decimal`` accepts ints, floats and numeric strings.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

MONEY_PRECISION = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_money(value: Decimal) -> Decimal:
    """Return value rounded to two decimal places with HALF_UP strategy."""
    return value.quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Decimal:
    """Coerce a wire value into a cent-rounded Decimal.

    Floats go through ``str`` first so 0.1 stays 0.10 instead of picking up
    binary noise.

    Args:
        value: int, float, Decimal or numeric string
        default: Returned when value is None or not numeric. If omitted,
            invalid input raises ValueError.

    Returns:
        Decimal: The rounded amount
    """
    if isinstance(value, bool):
        value = None
    if value is None or value == "":
        if default is not None:
            return default
        raise ValueError("Amount is required")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        if default is not None:
            return default
        raise ValueError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        if default is not None:
            return default
        raise ValueError(f"Invalid amount: {value!r}")
    return quantize_money(amount)


def format_money(value: Decimal) -> str:
    """Render money as a dollar string with exactly two decimal places."""
    return f"${quantize_money(value):.2f}"


def to_wire(value: Decimal) -> float:
    """Convert a Decimal amount into the JSON number sent to services."""
    return float(quantize_money(value))
