"""
Money helpers.

All rebate amounts are kept as Decimal with two decimal places and
rounded half away from zero.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from rebate_core.config.constants import MONEY_QUANTUM


def to_decimal(value: Decimal | float | int | str | None) -> Decimal:
    """
    Convert a numeric value to Decimal without binary float noise.

    Floats go through str() so 19.005 stays 19.005 instead of
    19.00499999999999900524038.

    Args:
        value: Number, numeric string or None

    Returns:
        Decimal value (0 for None)

    Raises:
        ValueError: If the value is not numeric or not finite
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValueError(f"Not a monetary value: {value!r}")
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a monetary value: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a finite monetary value: {value!r}")
    return result


def round2(value: Decimal | float | int | str | None) -> Decimal:
    """
    Round to two decimal places, half away from zero.

    Decimal's ROUND_HALF_UP rounds ties away from zero for both signs:
    19.005 -> 19.01, -19.005 -> -19.01, 19.004 -> 19.00.
    """
    return to_decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def multiply_money(amount: Decimal | float | int | str, rate: Decimal | float | str) -> Decimal:
    """Multiply an amount by a rate and round the product to cents."""
    return round2(to_decimal(amount) * to_decimal(rate))
