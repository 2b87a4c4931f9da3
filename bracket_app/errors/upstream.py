"""
Failures originating on the exchange side.

Upstream data errors mean the exchange answered but the payload lacks
something we need; transport errors mean the call itself failed.
"""

from typing import Any, Dict, Optional

from .base import TradingError


class UpstreamDataError(TradingError):
    """Exchange response is missing required data."""

    retryable = False


class FilterNotFoundError(UpstreamDataError):
    """Required symbol filter absent from exchange metadata."""

    def __init__(self, message: str, filter_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.filter_type = filter_type


class OrderListNotFoundError(UpstreamDataError):
    """OCO status query returned no list status."""

    def __init__(self, message: str, order_list_id: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.order_list_id = order_list_id


class MalformedResponseError(UpstreamDataError):
    """A numeric field could not be parsed as a decimal."""

    def __init__(self, message: str, field: Optional[str] = None,
                 raw_value: Optional[Any] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.raw_value = raw_value


class TransportError(TradingError):
    """Network, HTTP, auth or rate-limit failure talking to the exchange."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 error_code: Optional[int] = None, retryable: bool = False,
                 details: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.error_code = error_code
        self.retryable = retryable
        self.details = details or {}
