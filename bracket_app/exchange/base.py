"""Abstract exchange client consumed by the trading engine."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Optional

from ..data.models import ExchangeFilters, Kline, OrderIntent, OrderList, OrderReport, OrderSide


class ExchangeClient(ABC):
    """
    Spot exchange operations the engine depends on.

    Implementations convert every price and quantity to Decimal on ingress
    and raise TransportError for any failure of the call itself.
    """

    @abstractmethod
    async def get_account_balances(self) -> dict[str, Decimal]:
        """Free balance per asset."""

    @abstractmethod
    async def get_symbol_filters(self, symbol: str) -> ExchangeFilters:
        """
        Tick size, lot size and minimum notional for a trading pair.

        Raises:
            FilterNotFoundError: a required filter is absent
        """

    @abstractmethod
    async def get_klines(self, symbol: str, interval: str,
                         limit: Optional[int] = None) -> list[Kline]:
        """Candles oldest first."""

    @abstractmethod
    async def get_ticker_price(self, symbol: str) -> Decimal:
        """Last traded price."""

    @abstractmethod
    async def submit_market_order(self, intent: OrderIntent) -> OrderReport:
        """Market order by base quantity or quote amount."""

    @abstractmethod
    async def submit_oco_order(self, symbol: str, side: OrderSide, quantity: Decimal,
                               above_stop_price: str, below_stop_price: str) -> OrderList:
        """OCO with a TAKE_PROFIT leg above and a STOP_LOSS leg below."""

    @abstractmethod
    async def cancel_order_list(self, symbol: str, order_list_id: int) -> dict[str, Any]:
        """Cancel an OCO order list, returning the exchange confirmation."""

    @abstractmethod
    async def get_order_list_status(self, order_list_id: int) -> Optional[str]:
        """listOrderStatus of an order list, None if the exchange reports none."""

    async def close(self) -> None:
        """Release network resources."""

    async def __aenter__(self) -> "ExchangeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
