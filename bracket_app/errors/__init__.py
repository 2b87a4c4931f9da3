"""
Error classification for the trading engine.

Validation errors are terminal and raised before any order is submitted;
upstream data errors flag incomplete exchange payloads; transport errors
wrap exchange client failures and carry a retryable flag.
"""

from .base import TradingError
from .validation import (
    TradingValidationError,
    InsufficientDataError,
    BelowMinimumQuantityError,
    NotionalTooLowError,
    InsufficientBalanceError,
    InvalidPercentageError,
    InvalidAmountError,
    MissingCredentialsError,
)
from .upstream import (
    UpstreamDataError,
    FilterNotFoundError,
    OrderListNotFoundError,
    MalformedResponseError,
    TransportError,
)

__all__ = [
    "TradingError",
    # Validation Errors
    "TradingValidationError",
    "InsufficientDataError",
    "BelowMinimumQuantityError",
    "NotionalTooLowError",
    "InsufficientBalanceError",
    "InvalidPercentageError",
    "InvalidAmountError",
    "MissingCredentialsError",
    # Upstream Errors
    "UpstreamDataError",
    "FilterNotFoundError",
    "OrderListNotFoundError",
    "MalformedResponseError",
    "TransportError",
]
