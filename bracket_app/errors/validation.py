"""
Local validation failures.

These are raised before anything is submitted to the exchange. They are
terminal: repeating the same call with the same inputs fails the same way.
"""

from decimal import Decimal
from typing import Optional, Union

from .base import TradingError

Number = Union[float, Decimal]


class TradingValidationError(TradingError):
    """Base class for terminal, locally detected validation failures."""

    retryable = False


class InsufficientDataError(TradingValidationError):
    """Price series too short for the requested indicator period."""

    def __init__(self, message: str, required_count: Optional[int] = None,
                 available_count: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.required_count = required_count
        self.available_count = available_count


class BelowMinimumQuantityError(TradingValidationError):
    """Quantity under the exchange LOT_SIZE minimum."""

    def __init__(self, message: str, quantity: Optional[Number] = None,
                 min_qty: Optional[Number] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.quantity = quantity
        self.min_qty = min_qty


class NotionalTooLowError(TradingValidationError):
    """Order value (price * quantity) under the exchange minimum notional."""

    def __init__(self, message: str, notional: Optional[Number] = None,
                 min_notional: Optional[Number] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.notional = notional
        self.min_notional = min_notional


class InsufficientBalanceError(TradingValidationError):
    """Account lacks the funds or asset for the requested action."""

    def __init__(self, message: str, asset: Optional[str] = None,
                 available: Optional[Number] = None,
                 required: Optional[Number] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.asset = asset
        self.available = available
        self.required = required


class InvalidPercentageError(TradingValidationError):
    """Percentage that would produce a non-positive bracket price."""

    def __init__(self, message: str, percentage: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.percentage = percentage


class InvalidAmountError(TradingValidationError):
    """Operator-supplied amount or price that is unparsable or not positive."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Optional[object] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class MissingCredentialsError(TradingValidationError):
    """Signed request attempted without both API key and secret."""
