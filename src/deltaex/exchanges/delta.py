"""Delta Exchange adapter."""

from __future__ import annotations

import json
import logging
import time
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from .base import AiohttpTransport, ProxyConfig
from .catalog import Catalog, CurrencyCatalog, MarketCatalog
from .errors import (
    ArgumentsRequired,
    ErrorClassifier,
    ExchangeError,
    NetworkError,
    NotSupported,
    OrderSubmissionUncertain,
)
from .models import (
    Balance,
    Currency,
    DepositAddress,
    ExchangeStatus,
    LedgerEntry,
    Market,
    Order,
    OrderBook,
    Position,
    Ticker,
    Trade,
)
from .normalization import (
    TIMEFRAMES,
    amount_to_precision,
    parse_timeframe,
    price_to_precision,
    safe_float,
    safe_integer_product,
)
from .parsers import (
    MICROS_TO_MILLIS,
    OHLCV,
    parse_balance,
    parse_deposit_address,
    parse_ledger,
    parse_ohlcvs,
    parse_order,
    parse_order_book,
    parse_orders,
    parse_position,
    parse_ticker,
    parse_trades,
)
from .protocol import HttpTransport
from .signer import RequestSigner

logger = logging.getLogger(__name__)

MAX_CANDLES = 2000


class OrderListEndpoint(Enum):
    """Private endpoints that list orders with the same filters."""

    OPEN = "orders"
    CLOSED = "orders/history"


class DeltaClient:
    """Delta Exchange client.

    The HTTP stack is injected through ``transport``; by default an
    aiohttp session is created on first use.

    ``create_order``, ``create_orders``, ``edit_order`` and ``edit_orders``
    are not idempotent. A transport failure during them raises
    OrderSubmissionUncertain and is never retried here.
    """

    name = "delta"

    def __init__(
        self,
        api_key: str | None = None,
        api_secret: str | None = None,
        *,
        sandbox: bool = False,
        proxy: ProxyConfig | None = None,
        transport: HttpTransport | None = None,
        version: str = "v2",
        timeout_s: float = 10.0,
        common_currencies: Mapping[str, str] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.api_key = api_key
        self.api_secret = api_secret
        self.sandbox = sandbox
        self.proxy = proxy or ProxyConfig()
        self.clock = clock
        self.transport: HttpTransport = transport or AiohttpTransport(
            proxy=self.proxy, timeout_s=timeout_s
        )
        self.signer = RequestSigner(api_key, api_secret, version=version, clock=clock)
        self.classifier = ErrorClassifier(exchange_id=self.name)
        self.catalog = Catalog(common_currencies)

    def get_base_url(self) -> str:
        if self.sandbox:
            return "https://testnet-api.delta.exchange"
        return "https://api.delta.exchange"

    def seconds(self) -> int:
        return int(self.clock())

    async def request(
        self,
        path: str,
        api: str = "public",
        method: str = "GET",
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Sign, send and decode one call, raising classified errors."""
        signed = self.signer.sign(self.get_base_url(), path, api, method, params)
        logger.debug("%s %s", signed.method, signed.url.split("?")[0])

        response = await self.transport.fetch(signed.method, signed.url, signed.headers, signed.body)

        try:
            data = json.loads(response.text) if response.text else None
        except ValueError:
            data = None

        self.classifier.raise_for_response(data, response.text, response.status)

        if data is None:
            raise ExchangeError(f"{self.name} returned a non-JSON response: {response.text}", body=response.text)
        return data

    async def public_get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request(path, "public", "GET", params)

    async def private(self, method: str, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request(path, "private", method, params)

    async def _submit(self, method: str, path: str, params: dict[str, Any]) -> Any:
        """Send a non-idempotent private call."""
        try:
            return await self.private(method, path, params)
        except NetworkError as e:
            raise OrderSubmissionUncertain(
                f"{self.name} {method} {path} may have been applied, check open orders before retrying: {e}"
            ) from e

    @staticmethod
    def _result(response: Any, default: Any) -> Any:
        if isinstance(response, dict):
            result = response.get("result")
            if result is not None:
                return result
        return default

    # --- catalog -----------------------------------------------------------

    async def _fetch_assets(self) -> list[dict[str, Any]]:
        return self._result(await self.public_get("assets"), [])

    async def _fetch_products(self) -> list[dict[str, Any]]:
        return self._result(await self.public_get("products"), [])

    async def fetch_currencies(self) -> dict[str, Currency]:
        assets = await self._fetch_assets()
        return CurrencyCatalog.from_raw(assets, self.catalog.common_currencies).by_code

    async def fetch_markets(self) -> list[Market]:
        products = await self._fetch_products()
        return MarketCatalog.from_raw(products, self.catalog.common_currencies).markets

    async def load_markets(self, reload: bool = False) -> MarketCatalog:
        """Load currencies and markets once, or again if ``reload`` is set."""
        return await self.catalog.load(self._fetch_assets, self._fetch_products, reload=reload)

    async def market(self, symbol: str) -> Market:
        await self.load_markets()
        return self.catalog.market(symbol)

    # --- public ------------------------------------------------------------

    async def fetch_time(self) -> int | None:
        """Server time in milliseconds."""
        response = await self.public_get("settings")
        result = self._result(response, {})
        return safe_integer_product(result, "server_time", MICROS_TO_MILLIS)

    async def fetch_status(self) -> ExchangeStatus:
        response = await self.public_get("settings")
        result = self._result(response, {})
        under_maintenance = result.get("under_maintenance")
        status = "maintenance" if under_maintenance in ("true", True) else "ok"
        return ExchangeStatus(
            status=status,
            updated=safe_integer_product(result, "server_time", MICROS_TO_MILLIS),
        )

    async def fetch_ticker(self, symbol: str) -> Ticker:
        market = await self.market(symbol)
        response = await self.public_get("tickers/{symbol}", {"symbol": market.id})
        return parse_ticker(self._result(response, {}), market, self.catalog)

    async def fetch_tickers(self, symbols: Iterable[str] | None = None) -> dict[str, Ticker]:
        await self.load_markets()
        response = await self.public_get("tickers")
        tickers = {}
        for raw in self._result(response, []):
            ticker = parse_ticker(raw, None, self.catalog)
            if ticker.symbol is not None:
                tickers[ticker.symbol] = ticker

        if symbols is None:
            return tickers
        wanted = set(symbols)
        return {symbol: t for symbol, t in tickers.items() if symbol in wanted}

    async def fetch_order_book(self, symbol: str, limit: int | None = None) -> OrderBook:
        market = await self.market(symbol)
        params: dict[str, Any] = {"symbol": market.id}
        if limit is not None:
            params["depth"] = limit
        response = await self.public_get("l2orderbook/{symbol}", params)
        return parse_order_book(self._result(response, {}), market, self.catalog)

    async def fetch_trades(
        self,
        symbol: str,
        since: int | None = None,
        limit: int | None = None,
    ) -> list[Trade]:
        market = await self.market(symbol)
        response = await self.public_get("trades/{symbol}", {"symbol": market.id})
        return parse_trades(self._result(response, []), market, self.catalog, since, limit)

    def ohlcv_request(
        self,
        market: Market,
        timeframe: str = "1m",
        since: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Build the candle query window in seconds.

        Raises:
            NotSupported: If the timeframe has no exchange resolution
        """
        resolution = TIMEFRAMES.get(timeframe)
        if resolution is None:
            raise NotSupported(f"{self.name} does not support timeframe {timeframe}")

        duration = parse_timeframe(timeframe)
        limit = limit or MAX_CANDLES
        request: dict[str, Any] = {"symbol": market.id, "resolution": resolution}
        if since is None:
            end = self.seconds()
            request["end"] = end
            request["start"] = end - limit * duration
        else:
            start = int(since / 1000)
            request["start"] = start
            request["end"] = start + limit * duration
        return request

    async def fetch_ohlcv(
        self,
        symbol: str,
        timeframe: str = "1m",
        since: int | None = None,
        limit: int | None = None,
    ) -> list[OHLCV]:
        market = await self.market(symbol)
        request = self.ohlcv_request(market, timeframe, since, limit)
        response = await self.public_get("history/candles", request)
        return parse_ohlcvs(self._result(response, []), since, limit)

    # --- account -----------------------------------------------------------

    async def fetch_balance(self) -> dict[str, Balance]:
        await self.load_markets()
        response = await self.private("GET", "wallet/balances")
        return parse_balance(self._result(response, []), self.catalog)

    async def fetch_position(self, symbol: str) -> Position:
        market = await self.market(symbol)
        response = await self.private("GET", "positions", {"product_id": market.numeric_id})
        return parse_position(self._result(response, {}), market, self.catalog)

    async def fetch_positions(self) -> list[Position]:
        await self.load_markets()
        response = await self.private("GET", "positions/margined")
        return [parse_position(raw, None, self.catalog) for raw in self._result(response, [])]

    async def fetch_leverage(self, symbol: str) -> float | None:
        market = await self.market(symbol)
        response = await self.private("GET", "orders/leverage", {"product_id": market.numeric_id})
        return safe_float(self._result(response, {}), "leverage")

    async def set_leverage(self, leverage: float, symbol: str | None = None) -> None:
        """Set order leverage for a product."""
        if symbol is None:
            raise ArgumentsRequired(f"{self.name} set_leverage() requires a symbol argument")
        market = await self.market(symbol)
        await self.private(
            "POST",
            "orders/leverage",
            {"product_id": market.numeric_id, "leverage": str(leverage)},
        )

    async def fetch_ledger(
        self,
        code: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        *,
        after: str | None = None,
        before: str | None = None,
    ) -> list[LedgerEntry]:
        await self.load_markets()
        request: dict[str, Any] = {}
        if code is not None:
            request["asset_id"] = self.catalog.currency(code).numeric_id
        self._paginate(request, limit, after, before)
        response = await self.private("GET", "wallet/transactions", request)
        return parse_ledger(self._result(response, []), self.catalog, code, since, limit)

    async def fetch_deposit_address(self, code: str) -> DepositAddress:
        await self.load_markets()
        currency = self.catalog.currency(code)
        response = await self.private("GET", "deposits/address", {"asset_symbol": currency.id})
        return parse_deposit_address(self._result(response, {}), code)

    # --- orders ------------------------------------------------------------

    def order_request(
        self,
        market: Market,
        type: str,
        side: str,
        amount: float,
        price: float | None = None,
    ) -> dict[str, Any]:
        """Map a canonical order to the exchange payload.

        Market orders never carry ``limit_price``.
        """
        request: dict[str, Any] = {
            "product_id": market.numeric_id,
            "size": int(amount_to_precision(amount, market.amount_step)),
            "side": side,
            "order_type": f"{type}_order",
        }
        if type == "limit":
            if price is None:
                raise ArgumentsRequired(f"{self.name} limit orders require a price argument")
            request["limit_price"] = price_to_precision(price, market.tick_size)
        return request

    async def create_order(
        self,
        symbol: str,
        type: str,
        side: str,
        amount: float,
        price: float | None = None,
        params: dict[str, Any] | None = None,
    ) -> Order:
        """Place an order. Not idempotent."""
        market = await self.market(symbol)
        request = self.order_request(market, type, side, amount, price)
        request.update(params or {})
        logger.info("Creating %s %s order on %s size=%s", side, type, market.id, request["size"])
        response = await self._submit("POST", "orders", request)
        return parse_order(self._result(response, {}), market, self.catalog)

    async def create_orders(self, symbol: str, orders: list[dict[str, Any]]) -> list[Order]:
        """Place several orders on one product in a single batch call.

        Each entry holds ``type``, ``side``, ``amount`` and optionally ``price``.
        """
        market = await self.market(symbol)
        payload = []
        for order in orders:
            entry = self.order_request(
                market, order["type"], order["side"], order["amount"], order.get("price")
            )
            entry.pop("product_id")
            payload.append(entry)
        response = await self._submit(
            "POST", "orders/batch", {"product_id": market.numeric_id, "orders": payload}
        )
        return parse_orders(self._result(response, []), market, self.catalog)

    def edit_request(
        self,
        id: str,
        market: Market,
        amount: float | None = None,
        price: float | None = None,
    ) -> dict[str, Any]:
        request: dict[str, Any] = {"id": int(id), "product_id": market.numeric_id}
        if amount is not None:
            request["size"] = int(amount_to_precision(amount, market.amount_step))
        if price is not None:
            request["limit_price"] = price_to_precision(price, market.tick_size)
        return request

    async def edit_order(
        self,
        id: str,
        symbol: str,
        type: str | None = None,
        side: str | None = None,
        amount: float | None = None,
        price: float | None = None,
        params: dict[str, Any] | None = None,
    ) -> Order:
        """Change size and/or price of an open order. Not idempotent."""
        market = await self.market(symbol)
        request = self.edit_request(id, market, amount, price)
        request.update(params or {})
        response = await self._submit("PUT", "orders", request)
        return parse_order(self._result(response, {}), market, self.catalog)

    async def edit_orders(self, symbol: str, edits: list[dict[str, Any]]) -> list[Order]:
        """Edit several orders of one product. Each entry holds ``id`` and ``amount``/``price``."""
        market = await self.market(symbol)
        payload = []
        for edit in edits:
            entry = self.edit_request(edit["id"], market, edit.get("amount"), edit.get("price"))
            entry.pop("product_id")
            payload.append(entry)
        response = await self._submit(
            "PUT", "orders/batch", {"product_id": market.numeric_id, "orders": payload}
        )
        return parse_orders(self._result(response, []), market, self.catalog)

    async def cancel_order(self, id: str, symbol: str | None = None) -> Order:
        """Cancel an open order."""
        if symbol is None:
            raise ArgumentsRequired(f"{self.name} cancel_order() requires a symbol argument")
        market = await self.market(symbol)
        request = {"id": int(id), "product_id": market.numeric_id}
        response = await self.private("DELETE", "orders", request)
        return parse_order(self._result(response, {}), market, self.catalog)

    async def cancel_all_orders(self, symbol: str | None = None) -> dict[str, Any]:
        if symbol is None:
            raise ArgumentsRequired(f"{self.name} cancel_all_orders() requires a symbol argument")
        market = await self.market(symbol)
        return await self.private("DELETE", "orders/all", {"product_id": market.numeric_id})

    @staticmethod
    def _paginate(
        request: dict[str, Any],
        limit: int | None,
        after: str | None,
        before: str | None,
    ) -> None:
        if limit is not None:
            request["page_size"] = limit
        if after is not None:
            request["after"] = after
        if before is not None:
            request["before"] = before

    async def _filtered_request(
        self,
        symbol: str | None,
        since: int | None,
        limit: int | None,
        after: str | None,
        before: str | None,
    ) -> tuple[Market | None, dict[str, Any]]:
        await self.load_markets()
        request: dict[str, Any] = {}
        market = None
        if symbol is not None:
            market = self.catalog.market(symbol)
            request["product_ids"] = market.numeric_id
        if since is not None:
            # milliseconds to microseconds
            request["start_time"] = str(int(since) * 1000)
        self._paginate(request, limit, after, before)
        return market, request

    async def fetch_orders_from(
        self,
        endpoint: OrderListEndpoint,
        symbol: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        *,
        after: str | None = None,
        before: str | None = None,
    ) -> list[Order]:
        """List orders from ``endpoint`` with optional market/time/page filters."""
        market, request = await self._filtered_request(symbol, since, limit, after, before)
        response = await self.private("GET", endpoint.value, request)
        return parse_orders(self._result(response, []), market, self.catalog, since, limit)

    async def fetch_open_orders(
        self,
        symbol: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        **cursors: str | None,
    ) -> list[Order]:
        return await self.fetch_orders_from(OrderListEndpoint.OPEN, symbol, since, limit, **cursors)

    async def fetch_closed_orders(
        self,
        symbol: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        **cursors: str | None,
    ) -> list[Order]:
        return await self.fetch_orders_from(OrderListEndpoint.CLOSED, symbol, since, limit, **cursors)

    async def fetch_my_trades(
        self,
        symbol: str | None = None,
        since: int | None = None,
        limit: int | None = None,
        *,
        after: str | None = None,
        before: str | None = None,
    ) -> list[Trade]:
        market, request = await self._filtered_request(symbol, since, limit, after, before)
        response = await self.private("GET", "fills", request)
        return parse_trades(self._result(response, []), market, self.catalog, since, limit)

    async def close(self) -> None:
        """Close connections."""
        await self.transport.close()
