"""
Quantity and price normalization to exchange filters.

Inputs may be floats, strings or Decimals; arithmetic is done in Decimal
so flooring to a step never drifts (0.3 / 0.1 is exactly 3 here).
"""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from ..errors import BelowMinimumQuantityError, InvalidAmountError, NotionalTooLowError

Number = Union[Decimal, float, int, str]

# Base-asset precision used by the exchange for quantities and prices
WIRE_PRECISION = Decimal("0.00000001")


def to_decimal(value: Number) -> Decimal:
    """Convert a local numeric input to Decimal (floats via their repr)."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Expected a number, got {value!r}")
    try:
        return Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a number: {value!r}") from e


def to_positive_amount(value: Number, field: str = "amount") -> Decimal:
    """
    Convert operator input (spend, reference price) to a positive Decimal.

    Raises:
        InvalidAmountError: value unparsable, not finite, or not above zero
    """
    try:
        amount = to_decimal(value)
    except (TypeError, ValueError) as e:
        raise InvalidAmountError(f"{field} is not a number: {value!r}",
                                 field=field, value=value) from e

    if not amount.is_finite() or amount <= 0:
        raise InvalidAmountError(f"{field} must be a positive number, got {value!r}",
                                 field=field, value=value)
    return amount


def floor_to_increment(value: Number, increment: Number) -> Decimal:
    """Largest multiple of `increment` not above `value`."""
    value_d = to_decimal(value)
    increment_d = to_decimal(increment)
    if increment_d <= 0:
        raise ValueError(f"Increment must be positive, got {increment}")
    steps = (value_d / increment_d).to_integral_value(rounding=ROUND_FLOOR)
    return steps * increment_d


def adjust_to_lot_size(quantity: Number, min_qty: Number, step_size: Number) -> float:
    """
    Floor a quantity to the LOT_SIZE step.

    Args:
        quantity: Desired quantity
        min_qty: LOT_SIZE minQty
        step_size: LOT_SIZE stepSize

    Returns:
        Quantity floored to a multiple of step_size, at 8 decimals

    Raises:
        BelowMinimumQuantityError: quantity below min_qty
    """
    quantity_d = to_decimal(quantity)
    min_qty_d = to_decimal(min_qty)

    if quantity_d < min_qty_d:
        raise BelowMinimumQuantityError(
            f"Quantity {quantity_d} lower than min allowed ({min_qty_d})",
            quantity=quantity_d,
            min_qty=min_qty_d,
        )

    adjusted = floor_to_increment(quantity_d, step_size)
    return float(adjusted.quantize(WIRE_PRECISION, rounding=ROUND_HALF_UP))


def adjust_to_tick_size(price: Number, tick_size: Number) -> str:
    """
    Floor a price to the PRICE_FILTER tick.

    Returns:
        Price as a fixed 8-decimal string, e.g. "100.45000000"
    """
    adjusted = floor_to_increment(price, tick_size)
    return f"{adjusted.quantize(WIRE_PRECISION, rounding=ROUND_HALF_UP):f}"


def validate_notional(price: Number, quantity: Number, min_notional: Number) -> float:
    """
    Check an order's value against the exchange minimum.

    Returns:
        The notional value price * quantity

    Raises:
        NotionalTooLowError: notional below min_notional
    """
    notional = to_decimal(price) * to_decimal(quantity)
    min_notional_d = to_decimal(min_notional)

    if notional < min_notional_d:
        raise NotionalTooLowError(
            f"Notional value {notional} lower than min ({min_notional_d})",
            notional=notional,
            min_notional=min_notional_d,
        )

    return float(notional)
