"""RSI (Relative Strength Index) with Wilder smoothing"""

from collections.abc import Sequence
from typing import Union

from ..data.models import Kline
from ..errors import InsufficientDataError

# Used as RS when the average loss is zero. Pins RSI at 100 - 100/101
# (about 99.01) instead of dividing by zero, so a series with no losses
# saturates just under 100 rather than reaching it.
NO_LOSS_RS = 100.0


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    rs = NO_LOSS_RS if avg_loss == 0 else avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def calculate_rsi(closes: Sequence[float], period: int = 14) -> list[float]:
    """
    Calculate RSI values for a series of closing prices

    The first `period` differences seed the average gain and loss; each
    later bar updates them with Wilder smoothing:

        avg = (avg * (period - 1) + current) / period
        RSI = 100 - 100 / (1 + avg_gain / avg_loss)

    Args:
        closes: Closing prices in chronological order (oldest first)
        period: RSI period (default 14)

    Returns:
        One RSI value per close from index `period` onwards, oldest first:
        the seed value, then one smoothed value per later bar.

    Raises:
        InsufficientDataError: fewer than period + 1 closes
    """
    if period <= 0:
        raise ValueError(f"RSI period must be positive, got {period}")

    if len(closes) < period + 1:
        raise InsufficientDataError(
            f"Not enough data to calculate RSI: need {period + 1} closes, got {len(closes)}",
            required_count=period + 1,
            available_count=len(closes),
        )

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        diff = closes[i] - closes[i - 1]
        if diff >= 0:
            gains += diff
        else:
            losses -= diff

    avg_gain = gains / period
    avg_loss = losses / period

    rsis = [_rsi_from_averages(avg_gain, avg_loss)]
    for i in range(period + 1, len(closes)):
        diff = closes[i] - closes[i - 1]
        gain = diff if diff > 0 else 0.0
        loss = -diff if diff < 0 else 0.0

        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

        rsis.append(_rsi_from_averages(avg_gain, avg_loss))

    return rsis


def latest_rsi(closes: Sequence[float], period: int = 14) -> float:
    """Most recent RSI value."""
    return calculate_rsi(closes, period)[-1]


def closes_from_klines(klines: Sequence[Union[Kline, float]]) -> list[float]:
    """Closing prices as floats; indicator math does not need decimal precision."""
    return [float(k.close) if isinstance(k, Kline) else float(k) for k in klines]


class RSICalculator:
    """RSI over exchange klines"""

    def __init__(self, period: int = 14):
        self.period = period

    def calculate_with_klines(self, klines: Sequence[Kline]) -> list[float]:
        """RSI series from kline closes."""
        return calculate_rsi(closes_from_klines(klines), self.period)

    def latest_with_klines(self, klines: Sequence[Kline]) -> float:
        """Latest RSI value from kline closes."""
        return latest_rsi(closes_from_klines(klines), self.period)
