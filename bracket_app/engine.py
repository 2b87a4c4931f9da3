"""
Order orchestration engine.

Sequences balance lookup, exchange filter lookup, sizing and submission
for market buys, market sells and OCO bracket orders. Each step is one
awaited exchange call; nothing is cached between operations and nothing
is retried.
"""

from collections.abc import Awaitable
from decimal import Decimal
from typing import Any, Optional, TypeVar

import structlog

from .config.defaults import AppConfig
from .data.models import (
    ExchangeFilters,
    OcoOrderResult,
    OperationResult,
    OrderIntent,
    OrderReport,
    OrderSide,
)
from .data.parsers import format_decimal
from .errors import (
    InsufficientBalanceError,
    OrderListNotFoundError,
    TradingError,
)
from .exchange.base import ExchangeClient
from .logging.config import get_order_logger, log_order_rejection, log_order_submission
from .metrics.rsi import RSICalculator
from .sizing.bracket import calculate_percentage_change, plan_bracket, validate_bracket_percentages
from .sizing.normalizer import adjust_to_lot_size, to_decimal, to_positive_amount, validate_notional

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class TradingEngine:
    """
    Coordinates exchange calls for one account.

    Operations:
    Balance → Filters → Lot/Tick sizing → Bracket → Submission
    """

    def __init__(self, client: ExchangeClient, config: AppConfig) -> None:
        """Initialize the engine with an exchange client and resolved config."""
        self.client = client
        self.config = config
        self.logger = logger
        self.order_logger = get_order_logger(__name__)
        self.logger.info(
            "Trading engine initialized",
            quote_asset=config.trading.quote_asset,
            take_profit_percentage=config.thresholds.take_profit_percentage,
            stop_loss_percentage=config.thresholds.stop_loss_percentage,
        )

    @property
    def quote_asset(self) -> str:
        return self.config.trading.quote_asset

    def pair_for(self, asset: str) -> str:
        """Trading pair for a base asset, e.g. BNB -> BNBUSDT."""
        return f"{asset}{self.quote_asset}"

    async def run(self, operation: Awaitable[T]) -> OperationResult[T]:
        """
        Await an engine operation and tag its outcome.

        TradingError subclasses become a failed result carrying the
        retryable flag; any other exception propagates.
        """
        try:
            value = await operation
        except TradingError as e:
            return OperationResult.failure(e)
        return OperationResult.ok(value)

    # ==========================================================
    # BALANCES & MARKET DATA
    # ==========================================================

    async def get_asset_balance(self, asset: str) -> Decimal:
        """Free balance of an asset, 0 when the account holds none."""
        try:
            balances = await self.client.get_account_balances()
        except TradingError as e:
            e.with_context(symbol=asset, operation="get_asset_balance")
            raise

        balance = balances.get(asset, Decimal("0"))
        self.logger.info("Balance fetched", asset=asset, free=str(balance))
        return balance

    async def get_quote_balance(self) -> Decimal:
        """Free balance of the quote asset (USDT by default)."""
        return await self.get_asset_balance(self.quote_asset)

    async def get_ticker_price(self, symbol: str) -> Decimal:
        try:
            return await self.client.get_ticker_price(symbol)
        except TradingError as e:
            e.with_context(symbol=symbol, operation="get_ticker_price")
            raise

    async def get_rsi(self, symbol: str, interval: Optional[str] = None,
                      period: Optional[int] = None) -> float:
        """Latest RSI for a trading pair."""
        interval = interval or self.config.trading.interval
        period = period or self.config.trading.rsi_period

        try:
            klines = await self.client.get_klines(symbol, interval, self.config.trading.kline_limit)
            rsi = RSICalculator(period).latest_with_klines(klines)
        except TradingError as e:
            e.with_context(symbol=symbol, operation="get_rsi")
            raise

        self.logger.info("RSI calculated", symbol=symbol, interval=interval,
                         period=period, candles=len(klines), rsi=rsi)
        return rsi

    async def get_exchange_filters(self, symbol: str) -> ExchangeFilters:
        """
        Tick, lot and notional filters for a pair, fetched fresh.

        Raises:
            FilterNotFoundError: any of the three filters is missing
        """
        try:
            filters = await self.client.get_symbol_filters(symbol)
        except TradingError as e:
            e.with_context(symbol=symbol, operation="get_exchange_filters")
            raise

        self.logger.debug(
            "Exchange filters fetched",
            symbol=symbol,
            tick_size=str(filters.tick_size),
            step_size=str(filters.step_size),
            min_qty=str(filters.min_qty),
            min_notional=str(filters.min_notional),
        )
        return filters

    # ==========================================================
    # MARKET ORDERS
    # ==========================================================

    async def create_market_order(self, asset: str, quote_amount: Any) -> OrderReport:
        """
        Market buy spending `quote_amount` of the quote asset.

        Raises:
            InvalidAmountError: spend unparsable or not positive
            InsufficientBalanceError: quote balance below the requested spend
        """
        symbol = self.pair_for(asset)
        operation = "create_market_order"

        try:
            amount = to_positive_amount(quote_amount, "quote_amount")
            balance = await self.get_quote_balance()
            if balance < amount:
                log_order_rejection(self.order_logger, operation, symbol,
                                    "insufficient quote balance",
                                    {"available": str(balance), "required": str(amount)})
                raise InsufficientBalanceError(
                    f"Insufficient {self.quote_asset} balance to place market order",
                    asset=self.quote_asset,
                    available=balance,
                    required=amount,
                )

            intent = OrderIntent(symbol=symbol, side=OrderSide.BUY, quote_amount=amount)
            log_order_submission(self.order_logger, operation, symbol,
                                 {"side": intent.side.value,
                                  "quoteOrderQty": format_decimal(amount)})
            report = await self.client.submit_market_order(intent)
        except TradingError as e:
            e.with_context(symbol=symbol, operation=operation)
            raise

        self.order_logger.info(
            "Market buy executed",
            symbol=symbol,
            order_id=report.order_id,
            executed_qty=str(report.executed_qty),
            average_fill_price=str(report.average_fill_price),
        )
        return report

    async def sell_market_order(self, asset: str) -> OrderReport:
        """
        Market sell of the whole free balance of `asset`, floored to the lot step.

        Raises:
            InsufficientBalanceError: nothing to sell (checked before filter lookup)
            BelowMinimumQuantityError: balance below LOT_SIZE minQty
        """
        symbol = self.pair_for(asset)
        operation = "sell_market_order"

        try:
            balance = await self.get_asset_balance(asset)
            if balance == 0:
                log_order_rejection(self.order_logger, operation, symbol, "no balance to sell")
                raise InsufficientBalanceError(
                    f"Insufficient {asset} balance to place market order",
                    asset=asset,
                    available=balance,
                )

            filters = await self.get_exchange_filters(symbol)
            quantity = to_decimal(adjust_to_lot_size(balance, filters.min_qty, filters.step_size))
            self.logger.info("Adjusted quantity", symbol=symbol, balance=str(balance),
                             quantity=str(quantity))

            intent = OrderIntent(symbol=symbol, side=OrderSide.SELL, quantity=quantity)
            log_order_submission(self.order_logger, operation, symbol,
                                 {"side": intent.side.value,
                                  "quantity": format_decimal(quantity)})
            report = await self.client.submit_market_order(intent)
        except TradingError as e:
            e.with_context(symbol=symbol, operation=operation)
            raise

        self.order_logger.info(
            "Market sell executed",
            symbol=symbol,
            order_id=report.order_id,
            executed_qty=str(report.executed_qty),
            average_fill_price=str(report.average_fill_price),
        )
        return report

    # ==========================================================
    # OCO BRACKETS
    # ==========================================================

    async def create_oco_order(self, asset: str, reference_price: Any) -> OcoOrderResult:
        """
        Protect the free balance of `asset` with a take-profit / stop-loss OCO.

        Both legs are computed from `reference_price` using the configured
        percentages.

        Raises:
            InvalidPercentageError: configured percentages unusable
            InvalidAmountError: reference price unparsable or not positive
            InsufficientBalanceError: balance zero or below LOT_SIZE minQty
            NotionalTooLowError: stop-loss leg below minimum notional
        """
        symbol = self.pair_for(asset)
        operation = "create_oco_order"
        thresholds = self.config.thresholds

        try:
            validate_bracket_percentages(thresholds.take_profit_percentage,
                                         thresholds.stop_loss_percentage)
            reference = to_positive_amount(reference_price, "reference_price")

            balance = await self.get_asset_balance(asset)
            if balance == 0:
                log_order_rejection(self.order_logger, operation, symbol, "no balance to protect")
                raise InsufficientBalanceError(
                    f"Insufficient {asset} balance to place OCO order",
                    asset=asset,
                    available=balance,
                )

            filters = await self.get_exchange_filters(symbol)
            if balance < filters.min_qty:
                log_order_rejection(self.order_logger, operation, symbol,
                                    "balance below minimum quantity",
                                    {"available": str(balance), "min_qty": str(filters.min_qty)})
                raise InsufficientBalanceError(
                    f"Insufficient {asset} balance to place OCO order",
                    asset=asset,
                    available=balance,
                    required=filters.min_qty,
                )

            quantity = to_decimal(adjust_to_lot_size(balance, filters.min_qty, filters.step_size))
            self.logger.info("Adjusted quantity", symbol=symbol, balance=str(balance),
                             quantity=str(quantity))

            plan = plan_bracket(
                symbol,
                quantity,
                reference,
                filters,
                thresholds.take_profit_percentage,
                thresholds.stop_loss_percentage,
            )
            validate_notional(plan.stop_loss_price, plan.quantity, filters.min_notional)

            log_order_submission(self.order_logger, operation, symbol, {
                "side": OrderSide.SELL.value,
                "quantity": format_decimal(plan.quantity),
                "aboveStopPrice": plan.take_profit_price,
                "belowStopPrice": plan.stop_loss_price,
            })
            order_list = await self.client.submit_oco_order(
                symbol,
                OrderSide.SELL,
                plan.quantity,
                above_stop_price=plan.take_profit_price,
                below_stop_price=plan.stop_loss_price,
            )
        except TradingError as e:
            e.with_context(symbol=symbol, operation=operation)
            raise

        self.order_logger.info(
            "OCO order sent",
            symbol=symbol,
            order_list_id=order_list.order_list_id,
            take_profit=plan.take_profit_price,
            stop_loss=plan.stop_loss_price,
        )
        return OcoOrderResult(plan=plan, order_list=order_list)

    async def cancel_oco_order(self, asset: str, order_list_id: int) -> dict[str, Any]:
        """Cancel an OCO order list by id."""
        symbol = self.pair_for(asset)
        try:
            confirmation = await self.client.cancel_order_list(symbol, order_list_id)
        except TradingError as e:
            e.with_context(symbol=symbol, operation="cancel_oco_order")
            raise

        self.order_logger.info("OCO order cancelled", symbol=symbol, order_list_id=order_list_id)
        return confirmation

    async def get_oco_order_status(self, order_list_id: int) -> str:
        """
        listOrderStatus of an OCO order list.

        Raises:
            OrderListNotFoundError: the exchange reports no status
        """
        operation = "get_oco_order_status"
        try:
            status = await self.client.get_order_list_status(order_list_id)
        except TradingError as e:
            e.with_context(operation=operation)
            raise

        if not status:
            raise OrderListNotFoundError(
                f"No order list status found for {order_list_id}",
                order_list_id=order_list_id,
                operation=operation,
            )

        self.logger.info("OCO order status", order_list_id=order_list_id, status=status)
        return status

    def needs_bracket_refresh(self, entry_price: Any, current_price: Any) -> bool:
        """True once the price has risen by price_update_trigger percent."""
        change = calculate_percentage_change(float(entry_price), float(current_price))
        return change >= self.config.thresholds.price_update_trigger
