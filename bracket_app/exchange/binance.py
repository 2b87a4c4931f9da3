"""
Binance Spot REST client

ExchangeClient implementation over httpx.AsyncClient.

- HMAC-SHA256 signed query strings for account and order endpoints
- One HTTP round-trip per call, no retries or caching
- Every numeric field parsed to Decimal via data.parsers
- Failures of the call itself raised as TransportError
"""

import hashlib
import hmac
import time
from decimal import Decimal
from typing import Any, Optional
from urllib.parse import urlencode

import httpx
import structlog

from ..config.defaults import ExchangeCredentials, ExchangeParams
from ..data.models import ExchangeFilters, Kline, OrderIntent, OrderList, OrderReport, OrderSide
from ..data.parsers import (
    format_decimal,
    parse_account_balances,
    parse_klines,
    parse_order_list,
    parse_order_report,
    parse_symbol_filters,
    parse_ticker_price,
)
from ..errors import MalformedResponseError, MissingCredentialsError, TransportError
from .base import ExchangeClient

logger = structlog.get_logger(__name__)

# Status codes Binance uses for rate limiting (429) and IP bans (418)
_RATE_LIMIT_STATUSES = (418, 429)


def sign_query(api_secret: str, query: str) -> str:
    """HMAC-SHA256 hex digest of a query string."""
    return hmac.new(api_secret.encode("utf-8"), query.encode("utf-8"), hashlib.sha256).hexdigest()


class BinanceSpotClient(ExchangeClient):
    """
    ExchangeClient for the Binance Spot REST API.

    Endpoints used:
      GET    /api/v3/account         - Balances (signed)
      GET    /api/v3/exchangeInfo    - Symbol filters
      GET    /api/v3/klines          - Candles
      GET    /api/v3/ticker/price    - Last price
      POST   /api/v3/order           - Market orders (signed)
      POST   /api/v3/orderList/oco   - OCO brackets (signed)
      DELETE /api/v3/orderList       - Cancel OCO (signed)
      GET    /api/v3/orderList       - OCO status (signed)
    """

    def __init__(
        self,
        credentials: ExchangeCredentials,
        params: Optional[ExchangeParams] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._credentials = credentials
        self._params = params or ExchangeParams()
        self._base_url = self._params.base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=self._params.timeout_seconds)
        logger.info("Binance client initialized", base_url=self._base_url)

    async def close(self) -> None:
        """Close the underlying httpx client to release connections."""
        if self._client:
            await self._client.aclose()

    def _timestamp(self) -> int:
        return int(time.time() * 1000)

    def _build_url(self, path: str, params: Optional[dict[str, Any]], signed: bool) -> str:
        params = {k: v for k, v in (params or {}).items() if v is not None}
        if signed:
            params["recvWindow"] = self._params.recv_window
            params["timestamp"] = self._timestamp()

        query = urlencode(params)
        if signed:
            signature = sign_query(self._credentials.api_secret, query)
            query = f"{query}&signature={signature}" if query else f"signature={signature}"

        url = f"{self._base_url}{path}"
        return f"{url}?{query}" if query else url

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        signed: bool = False,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            MissingCredentialsError: signed request without API key and secret
            TransportError: timeout, connection failure or non-2xx response
            MalformedResponseError: body is not JSON
        """
        if signed and not self._credentials.is_complete:
            raise MissingCredentialsError(
                f"API key and secret are required for {method} {path}"
            )

        url = self._build_url(path, params, signed)
        headers = {"X-MBX-APIKEY": self._credentials.api_key} if self._credentials.api_key else {}

        logger.debug("Exchange request", method=method, path=path, signed=signed)
        try:
            resp = await self._client.request(method, url, headers=headers)
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error("Exchange timeout", method=method, path=path)
            raise TransportError(f"Exchange timeout: {method} {path}", retryable=True) from e
        except httpx.HTTPStatusError as e:
            raise self._status_error(method, path, e.response) from e
        except httpx.HTTPError as e:
            logger.error("Exchange connection failed", method=method, path=path, error=str(e))
            raise TransportError(f"Exchange unavailable: {e}", retryable=True) from e

        try:
            return resp.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Exchange returned non-JSON body for {method} {path}",
                field="body",
                raw_value=resp.text[:200],
            ) from e

    def _status_error(self, method: str, path: str, response: httpx.Response) -> TransportError:
        status = response.status_code
        details: dict[str, Any] = {}
        try:
            body = response.json()
            if isinstance(body, dict):
                details = body
        except ValueError:
            details = {"msg": response.text[:200]}

        error_code = details.get("code")
        message = details.get("msg") or f"HTTP {status}"
        retryable = status in _RATE_LIMIT_STATUSES or status >= 500

        logger.error(
            "Exchange HTTP error",
            method=method,
            path=path,
            status_code=status,
            error_code=error_code,
            error_msg=message,
        )
        return TransportError(
            f"Exchange rejected {method} {path} ({status}): {message}",
            status_code=status,
            error_code=error_code,
            retryable=retryable,
            details=details,
        )

    # ==========================================================
    # ACCOUNT & MARKET DATA
    # ==========================================================

    async def get_account_balances(self) -> dict[str, Decimal]:
        payload = await self._request("GET", "/api/v3/account", signed=True)
        return parse_account_balances(payload)

    async def get_symbol_filters(self, symbol: str) -> ExchangeFilters:
        payload = await self._request("GET", "/api/v3/exchangeInfo", {"symbol": symbol})
        return parse_symbol_filters(payload, symbol)

    async def get_klines(self, symbol: str, interval: str,
                         limit: Optional[int] = None) -> list[Kline]:
        payload = await self._request(
            "GET", "/api/v3/klines", {"symbol": symbol, "interval": interval, "limit": limit}
        )
        return parse_klines(payload)

    async def get_ticker_price(self, symbol: str) -> Decimal:
        payload = await self._request("GET", "/api/v3/ticker/price", {"symbol": symbol})
        return parse_ticker_price(payload)

    # ==========================================================
    # ORDERS
    # ==========================================================

    async def submit_market_order(self, intent: OrderIntent) -> OrderReport:
        params = {
            "symbol": intent.symbol,
            "side": intent.side.value,
            "type": "MARKET",
            "newOrderRespType": "FULL",
        }
        if intent.quote_amount is not None:
            params["quoteOrderQty"] = format_decimal(intent.quote_amount)
        else:
            params["quantity"] = format_decimal(intent.quantity)

        payload = await self._request("POST", "/api/v3/order", params, signed=True)
        return parse_order_report(payload)

    async def submit_oco_order(self, symbol: str, side: OrderSide, quantity: Decimal,
                               above_stop_price: str, below_stop_price: str) -> OrderList:
        params = {
            "symbol": symbol,
            "side": side.value,
            "quantity": format_decimal(quantity),
            "aboveType": "TAKE_PROFIT",
            "aboveStopPrice": format_decimal(above_stop_price),
            "belowType": "STOP_LOSS",
            "belowStopPrice": format_decimal(below_stop_price),
        }
        payload = await self._request("POST", "/api/v3/orderList/oco", params, signed=True)
        return parse_order_list(payload)

    async def cancel_order_list(self, symbol: str, order_list_id: int) -> dict[str, Any]:
        return await self._request(
            "DELETE", "/api/v3/orderList",
            {"symbol": symbol, "orderListId": order_list_id},
            signed=True,
        )

    async def get_order_list_status(self, order_list_id: int) -> Optional[str]:
        payload = await self._request(
            "GET", "/api/v3/orderList", {"orderListId": order_list_id}, signed=True
        )
        if not isinstance(payload, dict):
            raise MalformedResponseError("Order list response is not an object",
                                         field="orderList", raw_value=payload)
        return payload.get("listOrderStatus") or None
