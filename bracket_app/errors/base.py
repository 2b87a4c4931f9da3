"""
Root of the trading error hierarchy.

Every failure raised by the sizing helpers, the exchange client or the
trading engine derives from TradingError so callers can catch one type
and still tell terminal validation failures from retryable transport ones.
"""

from typing import Any, Dict, Optional


class TradingError(Exception):
    """Base class for all errors surfaced by the trading engine."""

    retryable = False

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 symbol: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.symbol = symbol
        self.operation = operation

    def with_context(self, symbol: Optional[str] = None,
                     operation: Optional[str] = None) -> "TradingError":
        """
        Attach the symbol/operation of an enclosing call and return self.

        The outermost caller wins; values set closer to the failure are kept
        in `context` as `inner_symbol` / `inner_operation`.
        """
        if symbol is not None:
            if self.symbol is not None and self.symbol != symbol:
                self.context.setdefault("inner_symbol", self.symbol)
            self.symbol = symbol
        if operation is not None:
            if self.operation is not None and self.operation != operation:
                self.context.setdefault("inner_operation", self.operation)
            self.operation = operation
        return self

    def __str__(self) -> str:
        prefix = ":".join(part for part in (self.operation, self.symbol) if part)
        if prefix:
            return f"[{prefix}] {self.message}"
        return self.message
