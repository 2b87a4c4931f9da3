"""Command line entry point for the bracket trading assistant."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import structlog

from .config.defaults import AppConfig
from .config.loader import ConfigLoader
from .data.models import OcoOrderResult, OperationResult, OrderReport
from .engine import TradingEngine
from .exchange.binance import BinanceSpotClient
from .logging.config import configure_logging

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_TERMINAL = 1
EXIT_RETRYABLE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bracket-app",
        description="Spot trading assistant: RSI, market orders and OCO brackets",
    )
    parser.add_argument("--config-dir", type=Path, default=None,
                        help="Directory holding settings.yaml")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON")

    commands = parser.add_subparsers(dest="command", required=True)

    rsi = commands.add_parser("rsi", help="Latest RSI for a trading pair")
    rsi.add_argument("symbol", nargs="?", default=None,
                     help="Trading pair, defaults to trading.default_symbol")
    rsi.add_argument("--interval", default=None, help="Kline interval, e.g. 15m")
    rsi.add_argument("--period", type=int, default=None, help="RSI period")

    balance = commands.add_parser("balance", help="Free balance of an asset")
    balance.add_argument("asset", nargs="?", default=None,
                         help="Asset, defaults to the quote asset")

    buy = commands.add_parser("buy", help="Market buy spending a quote amount")
    buy.add_argument("asset", help="Base asset, e.g. BNB")
    buy.add_argument("amount", help="Quote amount to spend")

    sell = commands.add_parser("sell", help="Market sell the whole free balance")
    sell.add_argument("asset", help="Base asset, e.g. BNB")

    oco = commands.add_parser("oco", help="Place a take-profit / stop-loss OCO")
    oco.add_argument("asset", help="Base asset, e.g. BNB")
    oco.add_argument("price", help="Reference price for both legs")

    oco_cancel = commands.add_parser("oco-cancel", help="Cancel an OCO order list")
    oco_cancel.add_argument("asset", help="Base asset, e.g. BNB")
    oco_cancel.add_argument("order_list_id", type=int)

    oco_status = commands.add_parser("oco-status", help="Status of an OCO order list")
    oco_status.add_argument("order_list_id", type=int)

    return parser


def dispatch(engine: TradingEngine, args: argparse.Namespace):
    """Coroutine for the selected subcommand."""
    if args.command == "rsi":
        symbol = args.symbol or engine.config.trading.default_symbol
        return engine.get_rsi(symbol, args.interval, args.period)
    if args.command == "balance":
        if args.asset:
            return engine.get_asset_balance(args.asset)
        return engine.get_quote_balance()
    if args.command == "buy":
        return engine.create_market_order(args.asset, args.amount)
    if args.command == "sell":
        return engine.sell_market_order(args.asset)
    if args.command == "oco":
        return engine.create_oco_order(args.asset, args.price)
    if args.command == "oco-cancel":
        return engine.cancel_oco_order(args.asset, args.order_list_id)
    if args.command == "oco-status":
        return engine.get_oco_order_status(args.order_list_id)
    raise ValueError(f"Unknown command: {args.command}")


def render(value: Any) -> str:
    """Human-readable summary of an operation result."""
    if isinstance(value, OrderReport):
        return json.dumps({
            "symbol": value.symbol,
            "orderId": value.order_id,
            "status": value.status,
            "executedQty": str(value.executed_qty),
            "averageFillPrice": str(value.average_fill_price),
        }, indent=2)
    if isinstance(value, OcoOrderResult):
        return json.dumps({
            "symbol": value.plan.symbol,
            "orderListId": value.order_list.order_list_id,
            "quantity": str(value.plan.quantity),
            "takeProfit": value.plan.take_profit_price,
            "stopLoss": value.plan.stop_loss_price,
        }, indent=2)
    if isinstance(value, dict):
        return json.dumps(value, indent=2, default=str)
    return str(value)


async def execute(args: argparse.Namespace, config: AppConfig) -> OperationResult:
    async with BinanceSpotClient(config.credentials, config.exchange) as client:
        engine = TradingEngine(client, config)
        return await engine.run(dispatch(engine, args))


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    loader = ConfigLoader.create(args.config_dir)

    try:
        settings = loader.load()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_TERMINAL

    configure_logging(
        level=args.log_level or settings.logging.level,
        format_json=args.json_logs or settings.logging.format_json,
    )

    result = asyncio.run(execute(args, settings))

    if result.success:
        print(render(result.value))
        return EXIT_OK

    logger.error("Operation failed", retryable=result.retryable, **result.details)
    print(f"Error: {result.error}", file=sys.stderr)
    return EXIT_RETRYABLE if result.retryable else EXIT_TERMINAL


if __name__ == "__main__":
    sys.exit(main())
