"""
Canonical data models for exchange state and order flow.

All prices and quantities crossing the exchange boundary are Decimals;
every model is immutable and rebuilt on each engine call.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class OrderSide(Enum):
    """Order direction."""
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class ExchangeFilters:
    """Per-symbol trading constraints from exchange metadata."""
    symbol: str
    tick_size: Decimal       # PRICE_FILTER minimum price increment
    step_size: Decimal       # LOT_SIZE minimum quantity increment
    min_qty: Decimal         # LOT_SIZE minimum quantity
    min_notional: Decimal    # NOTIONAL / MIN_NOTIONAL minimum order value


@dataclass(frozen=True)
class Kline:
    """Single candlestick; only the fields the indicators need."""
    open_time: int           # ms since epoch
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    close_time: int


@dataclass(frozen=True)
class OrderIntent:
    """Order about to be submitted: quantity or quote amount, never both."""
    symbol: str
    side: OrderSide
    quantity: Optional[Decimal] = None
    quote_amount: Optional[Decimal] = None

    def __post_init__(self):
        if (self.quantity is None) == (self.quote_amount is None):
            raise ValueError("OrderIntent needs exactly one of quantity or quote_amount")


@dataclass(frozen=True)
class Fill:
    """One execution of a market order."""
    price: Decimal
    quantity: Decimal
    commission: Decimal = Decimal("0")
    commission_asset: Optional[str] = None


@dataclass(frozen=True)
class OrderReport:
    """Exchange acknowledgement of a submitted market order."""
    symbol: str
    order_id: int
    side: OrderSide
    status: str
    executed_qty: Decimal
    cumulative_quote_qty: Decimal
    fills: tuple[Fill, ...] = ()

    @property
    def average_fill_price(self) -> Decimal:
        """Quantity-weighted mean fill price, 0 when nothing filled."""
        total_qty = sum((f.quantity for f in self.fills), Decimal("0"))
        if total_qty == 0:
            return Decimal("0")
        total_quote = sum((f.price * f.quantity for f in self.fills), Decimal("0"))
        return total_quote / total_qty


@dataclass(frozen=True)
class BracketPlan:
    """Take-profit and stop-loss legs derived from one reference price."""
    symbol: str
    quantity: Decimal
    reference_price: Decimal
    take_profit_price: str   # 8-decimal wire string
    stop_loss_price: str     # 8-decimal wire string


@dataclass(frozen=True)
class OrderList:
    """OCO order list as reported by the exchange."""
    symbol: str
    order_list_id: int
    list_status_type: Optional[str] = None
    list_order_status: Optional[str] = None
    order_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class OcoOrderResult:
    """Submitted bracket together with the exchange order list."""
    plan: BracketPlan
    order_list: OrderList


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Tagged outcome of an engine operation."""

    value: Optional[T] = None
    success: bool = True
    error: Optional[Exception] = None
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, value: T) -> "OperationResult[T]":
        """Create successful result."""
        return cls(value=value, success=True)

    @classmethod
    def failure(cls, error: Exception) -> "OperationResult[T]":
        """Create failed result, keeping the retryable flag of the error."""
        return cls(
            success=False,
            error=error,
            retryable=bool(getattr(error, "retryable", False)),
            details={
                "symbol": getattr(error, "symbol", None),
                "operation": getattr(error, "operation", None),
                "message": str(error),
            },
        )
