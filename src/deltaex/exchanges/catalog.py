"""Currency and market catalogs built from raw asset/product lists."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping

from .errors import BadSymbol, ExchangeError
from .models import ContractKind, Currency, Market
from .normalization import safe_currency_code, safe_float, safe_integer, safe_string

logger = logging.getLogger(__name__)

# raw contract_type -> (kind, swap, future, option)
CONTRACT_TYPES: dict[str, tuple[ContractKind, bool, bool, bool]] = {
    "perpetual_futures": (ContractKind.SWAP, True, False, False),
    "futures": (ContractKind.FUTURE, False, True, False),
    "call_options": (ContractKind.OPTION, False, False, True),
    "put_options": (ContractKind.OPTION, False, False, True),
    "move_options": (ContractKind.OPTION, False, False, True),
}

_PASS_THROUGH = (ContractKind.SPOT, False, False, False)


class CurrencyCatalog:
    """Assets indexed by unified code and by numeric id."""

    def __init__(self, currencies: Iterable[Currency] = ()):
        self.by_code: dict[str, Currency] = {}
        self.by_numeric_id: dict[int, Currency] = {}
        for currency in currencies:
            if currency.code is not None:
                self.by_code[currency.code] = currency
            if currency.numeric_id is not None:
                self.by_numeric_id[currency.numeric_id] = currency

    @staticmethod
    def parse_currency(
        raw: Mapping[str, Any],
        common_currencies: Mapping[str, str] | None = None,
    ) -> Currency:
        currency_id = safe_string(raw, "symbol")
        deposits_enabled = raw.get("deposit_status") == "enabled"
        withdrawals_enabled = raw.get("withdrawal_status") == "enabled"
        decimals = safe_integer(raw, "precision")
        return Currency(
            code=safe_currency_code(currency_id, common_currencies),
            id=currency_id,
            numeric_id=safe_integer(raw, "id"),
            name=safe_string(raw, "name"),
            precision=None if decimals is None else 1 / (10 ** decimals),
            withdrawal_fee=safe_float(raw, "base_withdrawal_fee"),
            active=deposits_enabled and withdrawals_enabled,
            withdraw_min=safe_float(raw, "min_withdrawal_amount"),
            info=dict(raw),
        )

    @classmethod
    def from_raw(
        cls,
        assets: Iterable[Mapping[str, Any]],
        common_currencies: Mapping[str, str] | None = None,
    ) -> "CurrencyCatalog":
        return cls(cls.parse_currency(asset, common_currencies) for asset in assets)

    def __len__(self) -> int:
        return len(self.by_code)

    def __contains__(self, code: object) -> bool:
        return code in self.by_code

    def get(self, code: str) -> Currency | None:
        return self.by_code.get(code)

    def resolve_numeric(self, numeric_id: Any) -> Currency | None:
        """Look up a currency by the numeric asset id carried in wallet rows."""
        if numeric_id is None:
            return None
        try:
            return self.by_numeric_id.get(int(numeric_id))
        except (TypeError, ValueError):
            return None


class MarketCatalog:
    """Products normalized into markets.

    Keeps every raw product, including ones without base/quote assets, so
    ``len(catalog)`` always matches the raw product count.
    """

    def __init__(self, markets: Iterable[Market] = ()):
        self.markets: list[Market] = list(markets)
        self.by_symbol: dict[str, Market] = {}
        self.by_id: dict[str, Market] = {}
        self.by_numeric_id: dict[int, Market] = {}
        for market in self.markets:
            if market.symbol is not None:
                self.by_symbol[market.symbol] = market
            if market.id is not None:
                self.by_id[market.id] = market
            if market.numeric_id is not None:
                self.by_numeric_id[market.numeric_id] = market

    @staticmethod
    def parse_market(
        raw: Mapping[str, Any],
        common_currencies: Mapping[str, str] | None = None,
    ) -> Market:
        underlying = raw.get("underlying_asset") or {}
        quoting = raw.get("quoting_asset") or {}
        base_id = safe_string(underlying, "symbol")
        quote_id = safe_string(quoting, "symbol")
        base = safe_currency_code(base_id, common_currencies)
        quote = safe_currency_code(quote_id, common_currencies)
        market_id = safe_string(raw, "symbol")

        contract_type = safe_string(raw, "contract_type")
        kind, swap, future, option = CONTRACT_TYPES.get(contract_type or "", _PASS_THROUGH)

        symbol = market_id
        if swap and base is not None and quote is not None:
            symbol = f"{base}/{quote}"

        return Market(
            id=market_id,
            numeric_id=safe_integer(raw, "id"),
            symbol=symbol,
            base=base,
            quote=quote,
            base_id=base_id,
            quote_id=quote_id,
            kind=kind,
            swap=swap,
            future=future,
            option=option,
            maker=safe_float(raw, "maker_commission_rate"),
            taker=safe_float(raw, "taker_commission_rate"),
            tick_size=safe_float(raw, "tick_size"),
            amount_step=1.0,
            position_size_limit=safe_float(raw, "position_size_limit"),
            min_cost=safe_float(raw, "min_size"),
            active=raw.get("state") == "live",
            info=dict(raw),
        )

    @classmethod
    def from_raw(
        cls,
        products: Iterable[Mapping[str, Any]],
        common_currencies: Mapping[str, str] | None = None,
    ) -> "MarketCatalog":
        return cls(cls.parse_market(product, common_currencies) for product in products)

    def __len__(self) -> int:
        return len(self.markets)

    def __iter__(self):
        return iter(self.markets)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self.by_symbol or symbol in self.by_id

    def market(self, symbol: str) -> Market:
        """Resolve a canonical symbol or a raw exchange id to a market."""
        market = self.by_symbol.get(symbol) or self.by_id.get(symbol)
        if market is None:
            raise BadSymbol(f"delta does not have market symbol {symbol}")
        return market

    def resolve_id(self, market_id: str | None) -> Market | None:
        if market_id is None:
            return None
        return self.by_id.get(market_id)

    def resolve_numeric(self, numeric_id: Any) -> Market | None:
        if numeric_id is None:
            return None
        try:
            return self.by_numeric_id.get(int(numeric_id))
        except (TypeError, ValueError):
            return None


class Catalog:
    """Currency and market catalogs owned by one client.

    ``load`` is a read-through cache: the first call fetches both lists,
    later calls reuse them until ``reload`` is requested. Concurrent first
    callers share a single fetch.
    """

    def __init__(self, common_currencies: Mapping[str, str] | None = None):
        self.common_currencies = common_currencies
        self.currencies = CurrencyCatalog()
        self.markets = MarketCatalog()
        self._loaded = False
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(
        self,
        fetch_assets: Callable[[], Awaitable[list[dict[str, Any]]]],
        fetch_products: Callable[[], Awaitable[list[dict[str, Any]]]],
        reload: bool = False,
    ) -> MarketCatalog:
        """Populate the catalogs if needed.

        Args:
            fetch_assets: Coroutine function returning raw asset records
            fetch_products: Coroutine function returning raw product records
            reload: Rebuild even if already populated

        Returns:
            The market catalog
        """
        if self._loaded and not reload:
            return self.markets

        async with self._lock:
            if self._loaded and not reload:
                return self.markets

            assets = await fetch_assets()
            products = await fetch_products()
            self.install(assets, products)

        return self.markets

    async def reload(
        self,
        fetch_assets: Callable[[], Awaitable[list[dict[str, Any]]]],
        fetch_products: Callable[[], Awaitable[list[dict[str, Any]]]],
    ) -> MarketCatalog:
        return await self.load(fetch_assets, fetch_products, reload=True)

    def install(
        self,
        assets: Iterable[Mapping[str, Any]],
        products: Iterable[Mapping[str, Any]],
    ) -> None:
        """Replace both catalogs wholesale from raw records."""
        currencies = CurrencyCatalog.from_raw(assets, self.common_currencies)
        markets = MarketCatalog.from_raw(products, self.common_currencies)
        self.currencies = currencies
        self.markets = markets
        self._loaded = True
        logger.info(
            "Loaded delta catalog: %d currencies, %d markets",
            len(currencies),
            len(markets),
        )

    def market(self, symbol: str) -> Market:
        return self.markets.market(symbol)

    def currency(self, code: str) -> Currency:
        currency = self.currencies.get(code)
        if currency is None:
            raise ExchangeError(f"delta does not have currency code {code}")
        return currency
