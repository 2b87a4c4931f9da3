"""Order sizing against exchange lot, tick and notional constraints"""

from .bracket import (
    calculate_percentage_change,
    calculate_price_with_percentage,
    percentage_to_multiplier,
    plan_bracket,
)
from .normalizer import (
    adjust_to_lot_size,
    adjust_to_tick_size,
    to_positive_amount,
    validate_notional,
)

__all__ = [
    "adjust_to_lot_size",
    "adjust_to_tick_size",
    "validate_notional",
    "to_positive_amount",
    "percentage_to_multiplier",
    "calculate_price_with_percentage",
    "calculate_percentage_change",
    "plan_bracket",
]
