"""Take-profit / stop-loss bracket construction"""

from decimal import Decimal
from typing import Union

from ..data.models import BracketPlan, ExchangeFilters
from ..errors import InvalidPercentageError
from .normalizer import Number, adjust_to_tick_size, to_decimal, to_positive_amount


def percentage_to_multiplier(percentage: float, is_loss: bool = False) -> float:
    """1 + pct/100 for gains, 1 - pct/100 for losses."""
    if is_loss:
        return 1 - (percentage / 100)
    return 1 + (percentage / 100)


def calculate_price_with_percentage(base_price: Union[float, Decimal], percentage: float,
                                    is_loss: bool = False) -> Union[float, Decimal]:
    """
    Move a price up (gain) or down (loss) by a percentage.

    Decimal prices stay Decimal so the result can be floored to a tick
    without float error. Going up then down by the same percentage does
    not return to the start: 100 * 1.1 * 0.9 == 99.
    """
    if isinstance(base_price, Decimal):
        pct = to_decimal(percentage) / 100
        multiplier = 1 - pct if is_loss else 1 + pct
        return base_price * multiplier
    return base_price * percentage_to_multiplier(percentage, is_loss)


def calculate_percentage_change(original_price: float, current_price: float) -> float:
    """Percent move from original_price to current_price."""
    if original_price == 0:
        raise ValueError("Original price must be non-zero")
    return ((current_price - original_price) / original_price) * 100


def validate_bracket_percentages(take_profit_percentage: float,
                                 stop_loss_percentage: float) -> None:
    """
    Raises:
        InvalidPercentageError: take profit not positive, or stop loss
            outside (0, 100) which would give a non-positive price
    """
    if take_profit_percentage <= 0:
        raise InvalidPercentageError(
            f"Take profit percentage must be positive, got {take_profit_percentage}",
            percentage=take_profit_percentage,
        )
    if not 0 < stop_loss_percentage < 100:
        raise InvalidPercentageError(
            f"Stop loss percentage must be between 0 and 100, got {stop_loss_percentage}",
            percentage=stop_loss_percentage,
        )


def plan_bracket(
    symbol: str,
    quantity: Number,
    reference_price: Number,
    filters: ExchangeFilters,
    take_profit_percentage: float,
    stop_loss_percentage: float,
) -> BracketPlan:
    """
    Derive both OCO legs from one reference price and floor them to the tick.

    Raises:
        InvalidPercentageError: percentages unusable, or the stop-loss leg
            floors to zero at this tick size
        InvalidAmountError: reference price unparsable or not positive
    """
    validate_bracket_percentages(take_profit_percentage, stop_loss_percentage)

    reference = to_positive_amount(reference_price, "reference_price")

    take_profit_raw = calculate_price_with_percentage(reference, take_profit_percentage)
    stop_loss_raw = calculate_price_with_percentage(reference, stop_loss_percentage, is_loss=True)

    take_profit_price = adjust_to_tick_size(take_profit_raw, filters.tick_size)
    stop_loss_price = adjust_to_tick_size(stop_loss_raw, filters.tick_size)

    if Decimal(stop_loss_price) <= 0:
        raise InvalidPercentageError(
            f"Stop loss price {stop_loss_price} is not positive at tick size {filters.tick_size}",
            percentage=stop_loss_percentage,
            symbol=symbol,
        )

    return BracketPlan(
        symbol=symbol,
        quantity=to_decimal(quantity),
        reference_price=reference,
        take_profit_price=take_profit_price,
        stop_loss_price=stop_loss_price,
    )
