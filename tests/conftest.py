"""Pytest configuration and shared fixtures."""

from decimal import Decimal
from typing import Any, Dict, Optional

import pytest

from bracket_app.config.defaults import (
    AppConfig,
    ExchangeCredentials,
    ExchangeParams,
    LoggingParams,
    ThresholdParams,
    TradingParams,
)
from bracket_app.data.models import (
    ExchangeFilters,
    Fill,
    Kline,
    OrderIntent,
    OrderList,
    OrderReport,
    OrderSide,
)
from bracket_app.exchange.base import ExchangeClient


class FakeExchangeClient(ExchangeClient):
    """In-memory exchange recording every call in order."""

    def __init__(self, balances=None, filters=None, klines=None, price=None,
                 order_list_status="EXECUTING"):
        self.balances = balances or {}
        self.filters = filters
        self.klines = klines or []
        self.price = price
        self.order_list_status = order_list_status
        self.errors: Dict[str, Exception] = {}
        self.calls: list[str] = []
        self.submitted: list[Any] = []

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]

    async def get_account_balances(self):
        self._record("get_account_balances")
        return dict(self.balances)

    async def get_symbol_filters(self, symbol):
        self._record("get_symbol_filters")
        return self.filters

    async def get_klines(self, symbol, interval, limit=None):
        self._record("get_klines")
        return list(self.klines)

    async def get_ticker_price(self, symbol):
        self._record("get_ticker_price")
        return self.price

    async def submit_market_order(self, intent: OrderIntent):
        self._record("submit_market_order")
        self.submitted.append(intent)
        return OrderReport(
            symbol=intent.symbol,
            order_id=1001,
            side=intent.side,
            status="FILLED",
            executed_qty=intent.quantity or Decimal("0.5"),
            cumulative_quote_qty=intent.quote_amount or Decimal("150"),
            fills=(
                Fill(price=Decimal("300"), quantity=Decimal("0.2")),
                Fill(price=Decimal("301"), quantity=Decimal("0.3")),
            ),
        )

    async def submit_oco_order(self, symbol, side, quantity, above_stop_price, below_stop_price):
        self._record("submit_oco_order")
        self.submitted.append({
            "symbol": symbol,
            "side": side,
            "quantity": quantity,
            "above_stop_price": above_stop_price,
            "below_stop_price": below_stop_price,
        })
        return OrderList(symbol=symbol, order_list_id=77, list_status_type="EXEC_STARTED",
                         list_order_status="EXECUTING", order_ids=(1, 2))

    async def cancel_order_list(self, symbol, order_list_id):
        self._record("cancel_order_list")
        return {"symbol": symbol, "orderListId": order_list_id, "listOrderStatus": "ALL_DONE"}

    async def get_order_list_status(self, order_list_id) -> Optional[str]:
        self._record("get_order_list_status")
        return self.order_list_status


@pytest.fixture
def bnb_filters() -> ExchangeFilters:
    """Filters resembling BNBUSDT."""
    return ExchangeFilters(
        symbol="BNBUSDT",
        tick_size=Decimal("0.01"),
        step_size=Decimal("0.001"),
        min_qty=Decimal("0.001"),
        min_notional=Decimal("5"),
    )


@pytest.fixture
def app_config() -> AppConfig:
    """Default configuration with dummy credentials."""
    return AppConfig(
        exchange=ExchangeParams(base_url="https://testnet.binance.vision"),
        trading=TradingParams(),
        thresholds=ThresholdParams(),
        logging=LoggingParams(),
        credentials=ExchangeCredentials(api_key="test-key", api_secret="test-secret"),
    )


@pytest.fixture
def fake_client(bnb_filters) -> FakeExchangeClient:
    """Exchange holding 1.2345678 BNB and 100 USDT."""
    return FakeExchangeClient(
        balances={"BNB": Decimal("1.2345678"), "USDT": Decimal("100")},
        filters=bnb_filters,
        klines=make_klines([44, 44.25, 44.5, 43.75, 44.5, 44.75, 45, 45.5,
                            45.25, 44.75, 44.5, 44.25, 44, 43.5, 44]),
        price=Decimal("300.12"),
    )


def make_klines(closes) -> list[Kline]:
    """Klines with the given closes, one minute apart."""
    klines = []
    for i, close in enumerate(closes):
        price = Decimal(str(close))
        klines.append(Kline(
            open_time=1_700_000_000_000 + i * 60_000,
            open=price,
            high=price,
            low=price,
            close=price,
            volume=Decimal("10"),
            close_time=1_700_000_000_000 + i * 60_000 + 59_999,
        ))
    return klines


@pytest.fixture
def exchange_info_payload() -> Dict[str, Any]:
    """Trimmed /api/v3/exchangeInfo response for BNBUSDT."""
    return {
        "timezone": "UTC",
        "symbols": [{
            "symbol": "BNBUSDT",
            "status": "TRADING",
            "baseAsset": "BNB",
            "quoteAsset": "USDT",
            "filters": [
                {"filterType": "PRICE_FILTER", "minPrice": "0.01000000",
                 "maxPrice": "1000000.00000000", "tickSize": "0.01000000"},
                {"filterType": "LOT_SIZE", "minQty": "0.00100000",
                 "maxQty": "900000.00000000", "stepSize": "0.00100000"},
                {"filterType": "NOTIONAL", "minNotional": "5.00000000",
                 "applyMinToMarket": True, "maxNotional": "9000000.00000000"},
            ],
        }],
    }


@pytest.fixture
def account_payload() -> Dict[str, Any]:
    """Trimmed /api/v3/account response."""
    return {
        "canTrade": True,
        "balances": [
            {"asset": "BTC", "free": "0.00000000", "locked": "0.00000000"},
            {"asset": "BNB", "free": "1.23456780", "locked": "0.00000000"},
            {"asset": "USDT", "free": "250.50000000", "locked": "10.00000000"},
        ],
    }


@pytest.fixture
def market_order_payload() -> Dict[str, Any]:
    """FULL /api/v3/order response for a market buy."""
    return {
        "symbol": "BNBUSDT",
        "orderId": 28,
        "orderListId": -1,
        "status": "FILLED",
        "side": "BUY",
        "type": "MARKET",
        "executedQty": "0.50000000",
        "cummulativeQuoteQty": "150.30000000",
        "fills": [
            {"price": "300.00000000", "qty": "0.20000000",
             "commission": "0.00020000", "commissionAsset": "BNB"},
            {"price": "301.00000000", "qty": "0.30000000",
             "commission": "0.00030000", "commissionAsset": "BNB"},
        ],
    }


@pytest.fixture
def oco_payload() -> Dict[str, Any]:
    """/api/v3/orderList/oco response."""
    return {
        "orderListId": 1,
        "contingencyType": "OCO",
        "listStatusType": "EXEC_STARTED",
        "listOrderStatus": "EXECUTING",
        "symbol": "BNBUSDT",
        "orders": [
            {"symbol": "BNBUSDT", "orderId": 2, "clientOrderId": "a"},
            {"symbol": "BNBUSDT", "orderId": 3, "clientOrderId": "b"},
        ],
    }


@pytest.fixture
def kline_factory():
    """Build klines from a list of closes."""
    return make_klines


@pytest.fixture
def client_factory(bnb_filters):
    """Build a FakeExchangeClient, defaulting to BNBUSDT filters."""
    def _build(**kwargs) -> FakeExchangeClient:
        kwargs.setdefault("filters", bnb_filters)
        return FakeExchangeClient(**kwargs)
    return _build
