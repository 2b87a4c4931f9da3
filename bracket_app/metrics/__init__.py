"""Technical indicators computed from exchange klines"""

from .rsi import RSICalculator, calculate_rsi, latest_rsi

__all__ = [
    "RSICalculator",
    "calculate_rsi",
    "latest_rsi",
]
