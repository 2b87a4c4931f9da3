"""Unit tests for the trading engine orchestration."""

from dataclasses import replace
from decimal import Decimal

import pytest

from bracket_app.config.defaults import ThresholdParams
from bracket_app.data.models import OrderSide
from bracket_app.engine import TradingEngine
from bracket_app.errors import (
    BelowMinimumQuantityError,
    FilterNotFoundError,
    InsufficientBalanceError,
    InsufficientDataError,
    InvalidAmountError,
    InvalidPercentageError,
    NotionalTooLowError,
    OrderListNotFoundError,
    TransportError,
)


@pytest.fixture
def engine(fake_client, app_config) -> TradingEngine:
    return TradingEngine(fake_client, app_config)


class TestEngineBasics:
    """Test suite for balances, pairs and market data."""

    def test_pair_for(self, engine) -> None:
        assert engine.pair_for("BNB") == "BNBUSDT"

    @pytest.mark.asyncio
    async def test_asset_balance(self, engine, fake_client) -> None:
        assert await engine.get_asset_balance("BNB") == Decimal("1.2345678")
        assert fake_client.calls == ["get_account_balances"]

    @pytest.mark.asyncio
    async def test_missing_asset_is_zero(self, engine) -> None:
        assert await engine.get_asset_balance("DOGE") == Decimal("0")

    @pytest.mark.asyncio
    async def test_quote_balance(self, engine) -> None:
        assert await engine.get_quote_balance() == Decimal("100")

    @pytest.mark.asyncio
    async def test_ticker_price(self, engine) -> None:
        assert await engine.get_ticker_price("BNBUSDT") == Decimal("300.12")

    @pytest.mark.asyncio
    async def test_rsi(self, engine, fake_client) -> None:
        rsi = await engine.get_rsi("BNBUSDT", "15m", 14)

        assert rsi == pytest.approx(50.0)
        assert fake_client.calls == ["get_klines"]

    @pytest.mark.asyncio
    async def test_rsi_not_enough_klines(self, engine) -> None:
        with pytest.raises(InsufficientDataError) as exc_info:
            await engine.get_rsi("BNBUSDT", period=30)

        assert exc_info.value.symbol == "BNBUSDT"
        assert exc_info.value.operation == "get_rsi"

    @pytest.mark.asyncio
    async def test_exchange_filters(self, engine, bnb_filters) -> None:
        assert await engine.get_exchange_filters("BNBUSDT") == bnb_filters

    @pytest.mark.asyncio
    async def test_exchange_filters_missing(self, engine, fake_client) -> None:
        fake_client.errors["get_symbol_filters"] = FilterNotFoundError(
            "No LOT_SIZE filter found", filter_type="LOT_SIZE"
        )

        with pytest.raises(FilterNotFoundError) as exc_info:
            await engine.get_exchange_filters("BNBUSDT")

        assert exc_info.value.operation == "get_exchange_filters"
        assert exc_info.value.symbol == "BNBUSDT"


class TestMarketOrders:
    """Test suite for market buy and sell sequencing."""

    @pytest.mark.asyncio
    async def test_market_buy(self, engine, fake_client) -> None:
        report = await engine.create_market_order("BNB", "50")

        assert fake_client.calls == ["get_account_balances", "submit_market_order"]
        intent = fake_client.submitted[0]
        assert intent.symbol == "BNBUSDT"
        assert intent.side is OrderSide.BUY
        assert intent.quote_amount == Decimal("50")
        assert intent.quantity is None
        assert report.average_fill_price == Decimal("300.6")

    @pytest.mark.asyncio
    async def test_market_buy_insufficient_quote(self, engine, fake_client) -> None:
        with pytest.raises(InsufficientBalanceError) as exc_info:
            await engine.create_market_order("BNB", 150)

        error = exc_info.value
        assert error.asset == "USDT"
        assert error.available == Decimal("100")
        assert error.required == Decimal("150")
        assert error.operation == "create_market_order"
        assert error.symbol == "BNBUSDT"
        assert fake_client.submitted == []

    @pytest.mark.asyncio
    async def test_market_sell(self, engine, fake_client) -> None:
        await engine.sell_market_order("BNB")

        assert fake_client.calls == [
            "get_account_balances", "get_symbol_filters", "submit_market_order",
        ]
        intent = fake_client.submitted[0]
        assert intent.side is OrderSide.SELL
        assert intent.quantity == Decimal("1.234")

    @pytest.mark.asyncio
    async def test_market_sell_zero_balance_before_filters(self, client_factory, app_config) -> None:
        client = client_factory(balances={"BNB": Decimal("0")})
        engine = TradingEngine(client, app_config)

        with pytest.raises(InsufficientBalanceError):
            await engine.sell_market_order("BNB")

        assert client.calls == ["get_account_balances"]

    @pytest.mark.asyncio
    async def test_market_sell_below_min_qty(self, client_factory, app_config) -> None:
        client = client_factory(balances={"BNB": Decimal("0.0004")})
        engine = TradingEngine(client, app_config)

        with pytest.raises(BelowMinimumQuantityError) as exc_info:
            await engine.sell_market_order("BNB")

        assert exc_info.value.operation == "sell_market_order"
        assert client.submitted == []

    @pytest.mark.asyncio
    async def test_transport_error_propagates_with_context(self, engine, fake_client) -> None:
        fake_client.errors["submit_market_order"] = TransportError(
            "Exchange timeout", retryable=True
        )

        with pytest.raises(TransportError) as exc_info:
            await engine.sell_market_order("BNB")

        assert exc_info.value.retryable is True
        assert exc_info.value.operation == "sell_market_order"
        assert exc_info.value.symbol == "BNBUSDT"

    @pytest.mark.asyncio
    async def test_balance_failure_reports_order_operation(self, engine, fake_client) -> None:
        """Test that a failed balance lookup is reported against the order, not the lookup."""
        fake_client.errors["get_account_balances"] = TransportError("down", retryable=True)

        with pytest.raises(TransportError) as exc_info:
            await engine.sell_market_order("BNB")

        error = exc_info.value
        assert error.operation == "sell_market_order"
        assert error.symbol == "BNBUSDT"
        assert error.context["inner_operation"] == "get_asset_balance"
        assert error.context["inner_symbol"] == "BNB"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["abc", "0", "-5", "NaN"])
    async def test_market_buy_invalid_amount_rejected_before_network(
        self, engine, fake_client, amount
    ) -> None:
        with pytest.raises(InvalidAmountError) as exc_info:
            await engine.create_market_order("BNB", amount)

        assert exc_info.value.field == "quote_amount"
        assert exc_info.value.operation == "create_market_order"
        assert exc_info.value.symbol == "BNBUSDT"
        assert fake_client.calls == []
        assert fake_client.submitted == []


class TestOcoOrders:
    """Test suite for OCO bracket sequencing."""

    @pytest.mark.asyncio
    async def test_create_oco(self, engine, fake_client) -> None:
        result = await engine.create_oco_order("BNB", "300")

        assert fake_client.calls == [
            "get_account_balances", "get_symbol_filters", "submit_oco_order",
        ]
        submitted = fake_client.submitted[0]
        assert submitted["symbol"] == "BNBUSDT"
        assert submitted["side"] is OrderSide.SELL
        assert submitted["quantity"] == Decimal("1.234")
        assert submitted["above_stop_price"] == "450.00000000"
        assert submitted["below_stop_price"] == "298.50000000"

        assert result.plan.take_profit_price == "450.00000000"
        assert result.plan.stop_loss_price == "298.50000000"
        assert result.order_list.order_list_id == 77

    @pytest.mark.asyncio
    async def test_create_oco_zero_balance(self, client_factory, app_config) -> None:
        client = client_factory(balances={})
        engine = TradingEngine(client, app_config)

        with pytest.raises(InsufficientBalanceError):
            await engine.create_oco_order("BNB", 300)

        assert client.calls == ["get_account_balances"]

    @pytest.mark.asyncio
    async def test_create_oco_below_min_qty(self, client_factory, app_config) -> None:
        client = client_factory(balances={"BNB": Decimal("0.0009")})
        engine = TradingEngine(client, app_config)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await engine.create_oco_order("BNB", 300)

        assert exc_info.value.required == Decimal("0.001")
        assert client.calls == ["get_account_balances", "get_symbol_filters"]

    @pytest.mark.asyncio
    async def test_create_oco_invalid_stop_loss_rejected_before_network(
        self, fake_client, app_config
    ) -> None:
        config = replace(app_config, thresholds=ThresholdParams(stop_loss_percentage=100.0))
        engine = TradingEngine(fake_client, config)

        with pytest.raises(InvalidPercentageError) as exc_info:
            await engine.create_oco_order("BNB", 300)

        assert exc_info.value.operation == "create_oco_order"
        assert fake_client.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", ["0", "-300", "abc"])
    async def test_create_oco_invalid_reference_rejected_before_network(
        self, engine, fake_client, price
    ) -> None:
        with pytest.raises(InvalidAmountError) as exc_info:
            await engine.create_oco_order("BNB", price)

        assert exc_info.value.field == "reference_price"
        assert exc_info.value.operation == "create_oco_order"
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_create_oco_notional_too_low(self, client_factory, app_config) -> None:
        # 0.01 BNB at a 298.50 stop is 2.985 USDT, under the 5 USDT minimum
        client = client_factory(balances={"BNB": Decimal("0.01")})
        engine = TradingEngine(client, app_config)

        with pytest.raises(NotionalTooLowError):
            await engine.create_oco_order("BNB", 300)

        assert "submit_oco_order" not in client.calls

    @pytest.mark.asyncio
    async def test_cancel_oco(self, engine, fake_client) -> None:
        confirmation = await engine.cancel_oco_order("BNB", 77)

        assert confirmation["orderListId"] == 77
        assert fake_client.calls == ["cancel_order_list"]

    @pytest.mark.asyncio
    async def test_oco_status(self, engine) -> None:
        assert await engine.get_oco_order_status(77) == "EXECUTING"

    @pytest.mark.asyncio
    async def test_oco_status_missing(self, client_factory, app_config) -> None:
        engine = TradingEngine(client_factory(order_list_status=None), app_config)

        with pytest.raises(OrderListNotFoundError) as exc_info:
            await engine.get_oco_order_status(77)

        assert exc_info.value.order_list_id == 77


class TestTaggedResults:
    """Test suite for OperationResult wrapping."""

    @pytest.mark.asyncio
    async def test_success(self, engine) -> None:
        result = await engine.run(engine.get_quote_balance())

        assert result.success is True
        assert result.value == Decimal("100")
        assert result.error is None

    @pytest.mark.asyncio
    async def test_terminal_failure(self, engine) -> None:
        result = await engine.run(engine.create_market_order("BNB", 1000))

        assert result.success is False
        assert result.retryable is False
        assert isinstance(result.error, InsufficientBalanceError)
        assert result.details["operation"] == "create_market_order"

    @pytest.mark.asyncio
    async def test_invalid_input_is_terminal_failure(self, engine, fake_client) -> None:
        result = await engine.run(engine.create_oco_order("BNB", "0"))

        assert result.success is False
        assert result.retryable is False
        assert isinstance(result.error, InvalidAmountError)
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_retryable_failure(self, engine, fake_client) -> None:
        fake_client.errors["get_account_balances"] = TransportError("down", retryable=True)

        result = await engine.run(engine.get_quote_balance())

        assert result.success is False
        assert result.retryable is True


class TestBracketRefresh:
    """Test suite for the price update trigger."""

    def test_refresh_after_rise(self, engine) -> None:
        assert engine.needs_bracket_refresh(300, 302) is True

    def test_no_refresh_below_trigger(self, engine) -> None:
        assert engine.needs_bracket_refresh(300, 301) is False

    def test_no_refresh_on_drop(self, engine) -> None:
        assert engine.needs_bracket_refresh(300, 290) is False
