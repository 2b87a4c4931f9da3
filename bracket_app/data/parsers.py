"""
Binance Spot payload parsers.

Converts raw REST responses into the canonical models, turning every
price and quantity string into a Decimal on the way in. Floats are only
accepted for values we produced ourselves.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..errors import FilterNotFoundError, MalformedResponseError
from .models import ExchangeFilters, Fill, Kline, OrderList, OrderReport, OrderSide

PRICE_FILTER = "PRICE_FILTER"
LOT_SIZE = "LOT_SIZE"
NOTIONAL_FILTERS = ("NOTIONAL", "MIN_NOTIONAL")

# Kline array positions in /api/v3/klines responses
_KLINE_OPEN_TIME = 0
_KLINE_CLOSE = 4
_KLINE_CLOSE_TIME = 6


def parse_decimal(value: Any, field: str = "value") -> Decimal:
    """
    Parse a wire value into a Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1") rather than its
    binary expansion.

    Raises:
        MalformedResponseError: value is missing or not a finite number
    """
    if value is None or isinstance(value, bool):
        raise MalformedResponseError(f"Missing numeric field '{field}'", field=field, raw_value=value)

    try:
        if isinstance(value, float):
            result = Decimal(str(value))
        else:
            result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise MalformedResponseError(
            f"Field '{field}' is not a decimal: {value!r}", field=field, raw_value=value
        ) from e

    if not result.is_finite():
        raise MalformedResponseError(f"Field '{field}' is not finite: {value!r}",
                                     field=field, raw_value=value)
    return result


def parse_int(value: Any, field: str = "value") -> int:
    """
    Parse a wire identifier or millisecond timestamp.

    Raises:
        MalformedResponseError: value is missing or not an integer
    """
    if value is None or isinstance(value, bool):
        raise MalformedResponseError(f"Missing integer field '{field}'", field=field, raw_value=value)

    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise MalformedResponseError(
            f"Field '{field}' is not an integer: {value!r}", field=field, raw_value=value
        ) from e


def format_decimal(value: Any) -> str:
    """Render a number as a plain decimal string for the wire (no exponent)."""
    decimal_value = value if isinstance(value, Decimal) else parse_decimal(value)
    text = format(decimal_value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def parse_account_balances(payload: dict[str, Any]) -> dict[str, Decimal]:
    """Map asset -> free amount from a /api/v3/account response."""
    balances = {}
    for entry in payload.get("balances") or []:
        asset = entry.get("asset")
        if not asset:
            continue
        balances[asset] = parse_decimal(entry.get("free") or "0", field=f"balances.{asset}.free")
    return balances


def _find_filter(filters: list[dict[str, Any]], *filter_types: str) -> Optional[dict[str, Any]]:
    for entry in filters:
        if entry.get("filterType") in filter_types:
            return entry
    return None


def parse_symbol_filters(payload: dict[str, Any], symbol: str) -> ExchangeFilters:
    """
    Extract tick size, lot size and notional minimum from /api/v3/exchangeInfo.

    All three filters are required and checked together before any value
    is returned.

    Raises:
        FilterNotFoundError: symbol metadata or a required filter is absent
    """
    symbols = payload.get("symbols") or []
    if not symbols or not symbols[0]:
        raise FilterNotFoundError(f"No exchange info found for symbol {symbol}", symbol=symbol)

    filters = symbols[0].get("filters") or []
    if not filters:
        raise FilterNotFoundError(f"No filters found for symbol {symbol}", symbol=symbol)

    price_filter = _find_filter(filters, PRICE_FILTER)
    notional_filter = _find_filter(filters, *NOTIONAL_FILTERS)
    lot_filter = _find_filter(filters, LOT_SIZE)

    if not price_filter or not price_filter.get("tickSize"):
        raise FilterNotFoundError(f"No {PRICE_FILTER} filter found for symbol {symbol}",
                                  filter_type=PRICE_FILTER, symbol=symbol)
    if not notional_filter or not notional_filter.get("minNotional"):
        raise FilterNotFoundError(f"No NOTIONAL filter found for symbol {symbol}",
                                  filter_type="NOTIONAL", symbol=symbol)
    if not lot_filter or not lot_filter.get("stepSize") or not lot_filter.get("minQty"):
        raise FilterNotFoundError(f"No {LOT_SIZE} filter found for symbol {symbol}",
                                  filter_type=LOT_SIZE, symbol=symbol)

    return ExchangeFilters(
        symbol=symbols[0].get("symbol", symbol),
        tick_size=parse_decimal(price_filter["tickSize"], "tickSize"),
        step_size=parse_decimal(lot_filter["stepSize"], "stepSize"),
        min_qty=parse_decimal(lot_filter["minQty"], "minQty"),
        min_notional=parse_decimal(notional_filter["minNotional"], "minNotional"),
    )


def parse_klines(payload: list[list[Any]]) -> list[Kline]:
    """Parse /api/v3/klines rows, oldest first as the exchange returns them."""
    klines = []
    for index, row in enumerate(payload):
        if not isinstance(row, (list, tuple)) or len(row) <= _KLINE_CLOSE_TIME:
            raise MalformedResponseError(f"Kline row {index} has unexpected shape",
                                         field="klines", raw_value=row)
        klines.append(Kline(
            open_time=parse_int(row[_KLINE_OPEN_TIME], "openTime"),
            open=parse_decimal(row[1], "open"),
            high=parse_decimal(row[2], "high"),
            low=parse_decimal(row[3], "low"),
            close=parse_decimal(row[_KLINE_CLOSE], "close"),
            volume=parse_decimal(row[5], "volume"),
            close_time=parse_int(row[_KLINE_CLOSE_TIME], "closeTime"),
        ))
    return klines


def parse_ticker_price(payload: dict[str, Any]) -> Decimal:
    """Parse /api/v3/ticker/price."""
    return parse_decimal(payload.get("price"), "price")


def _parse_side(value: Any) -> OrderSide:
    try:
        return OrderSide(value)
    except ValueError as e:
        raise MalformedResponseError(f"Unknown order side: {value!r}",
                                     field="side", raw_value=value) from e


def parse_order_report(payload: dict[str, Any]) -> OrderReport:
    """Parse a FULL /api/v3/order response."""
    fills = tuple(
        Fill(
            price=parse_decimal(fill.get("price"), "fills.price"),
            quantity=parse_decimal(fill.get("qty"), "fills.qty"),
            commission=parse_decimal(fill.get("commission") or "0", "fills.commission"),
            commission_asset=fill.get("commissionAsset"),
        )
        for fill in payload.get("fills") or []
    )

    return OrderReport(
        symbol=payload.get("symbol", ""),
        order_id=parse_int(payload.get("orderId", 0), "orderId"),
        side=_parse_side(payload.get("side", OrderSide.BUY.value)),
        status=payload.get("status", ""),
        executed_qty=parse_decimal(payload.get("executedQty") or "0", "executedQty"),
        cumulative_quote_qty=parse_decimal(payload.get("cummulativeQuoteQty") or "0",
                                           "cummulativeQuoteQty"),
        fills=fills,
    )


def parse_order_list(payload: dict[str, Any]) -> OrderList:
    """Parse an order list from OCO create, cancel or query responses."""
    if not isinstance(payload, dict) or "orderListId" not in payload:
        raise MalformedResponseError("Order list response has no orderListId",
                                     field="orderListId", raw_value=payload)

    return OrderList(
        symbol=payload.get("symbol", ""),
        order_list_id=parse_int(payload["orderListId"], "orderListId"),
        list_status_type=payload.get("listStatusType"),
        list_order_status=payload.get("listOrderStatus"),
        order_ids=tuple(parse_int(order["orderId"], "orders.orderId")
                        for order in payload.get("orders") or [] if "orderId" in order),
    )
