"""Pure functions turning raw Delta payloads into domain records."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence, TypeVar

from .catalog import Catalog
from .errors import InvalidAddress
from .models import (
    Balance,
    DepositAddress,
    LedgerEntry,
    Market,
    Order,
    OrderBook,
    Position,
    Ticker,
    Trade,
)
from .normalization import (
    parse_datetime_ms,
    safe_float,
    safe_integer,
    safe_integer_product,
    safe_string,
    safe_timestamp,
)

T = TypeVar("T")

# every timestamp field except candles is in microseconds
MICROS_TO_MILLIS = 0.001

OHLCV = tuple[int | None, float | None, float | None, float | None, float | None, float | None]


def safe_symbol(
    market_id: str | None,
    market: Market | None = None,
    catalog: Catalog | None = None,
) -> str | None:
    """Resolve a raw market id to a canonical symbol, falling back to the id."""
    if market_id is not None and catalog is not None:
        resolved = catalog.markets.resolve_id(market_id)
        if resolved is not None:
            return resolved.symbol
    if market is not None and (market_id is None or market_id == market.id):
        return market.symbol
    return market_id


def _symbol_for_product(
    product_id: Any,
    market: Market | None = None,
    catalog: Catalog | None = None,
) -> str | None:
    if catalog is not None:
        resolved = catalog.markets.resolve_numeric(product_id)
        if resolved is not None:
            return resolved.symbol
    if market is not None:
        return market.symbol
    return None


def filter_by_since_limit(
    items: Sequence[T],
    since: int | None = None,
    limit: int | None = None,
    key: str = "timestamp",
) -> list[T]:
    """Sort by timestamp, drop entries before ``since`` and cap at ``limit``."""
    def ts(item: Any) -> int:
        value = item[0] if isinstance(item, tuple) else getattr(item, key)
        return value if value is not None else 0

    result = sorted(items, key=ts)
    if since is not None:
        result = [item for item in result if ts(item) >= since]
    if limit is not None:
        result = result[:limit]
    return result


def parse_ticker(
    ticker: Mapping[str, Any],
    market: Market | None = None,
    catalog: Catalog | None = None,
) -> Ticker:
    timestamp = safe_integer_product(ticker, "timestamp", MICROS_TO_MILLIS)
    symbol = safe_symbol(safe_string(ticker, "symbol"), market, catalog)
    last = safe_float(ticker, "close")
    open_ = safe_float(ticker, "open")

    change = None
    average = None
    percentage = None
    if open_ is not None and last is not None:
        change = last - open_
        average = (last + open_) / 2
        if open_ != 0:
            percentage = change / open_ * 100

    base_volume = safe_float(ticker, "volume")
    quote_volume = safe_float(ticker, "turnover")
    vwap = None
    if base_volume and quote_volume is not None:
        vwap = quote_volume / base_volume

    return Ticker(
        symbol=symbol,
        timestamp=timestamp,
        high=safe_float(ticker, "high"),
        low=safe_float(ticker, "low"),
        open=open_,
        close=last,
        last=last,
        base_volume=base_volume,
        quote_volume=quote_volume,
        vwap=vwap,
        change=change,
        percentage=percentage,
        average=average,
        mark_price=safe_float(ticker, "mark_price"),
        spot_price=safe_float(ticker, "spot_price"),
        info=dict(ticker),
    )


def parse_trade(
    trade: Mapping[str, Any],
    market: Market | None = None,
    catalog: Catalog | None = None,
) -> Trade:
    """Parse a public trade or a private fill.

    Public trades do not carry a side. It comes from ``seller_role``: a
    taker seller is a sell, a maker seller is a buy.
    """
    if trade.get("timestamp") is not None:
        timestamp = safe_integer_product(trade, "timestamp", MICROS_TO_MILLIS)
    else:
        timestamp = parse_datetime_ms(trade.get("created_at"))

    price = safe_float(trade, "price")
    amount = safe_float(trade, "size")
    cost = None
    if price is not None and amount is not None:
        cost = price * amount

    market_id = safe_string(trade, "symbol")
    if market_id is not None:
        symbol = safe_symbol(market_id, market, catalog)
    else:
        symbol = _symbol_for_product(trade.get("product_id"), market, catalog)

    seller_role = safe_string(trade, "seller_role")
    if seller_role == "taker":
        side = "sell"
    elif seller_role == "maker":
        side = "buy"
    else:
        side = safe_string(trade, "side")

    return Trade(
        timestamp=timestamp,
        symbol=symbol,
        side=side,
        price=price,
        amount=amount,
        cost=cost,
        id=safe_string(trade, "id"),
        order=safe_string(trade, "order_id"),
        taker_or_maker=safe_string(trade, "role"),
        fee=safe_float(trade, "commission"),
        info=dict(trade),
    )


def parse_trades(
    trades: Iterable[Mapping[str, Any]],
    market: Market | None = None,
    catalog: Catalog | None = None,
    since: int | None = None,
    limit: int | None = None,
) -> list[Trade]:
    parsed = [parse_trade(trade, market, catalog) for trade in trades]
    return filter_by_since_limit(parsed, since, limit)


def parse_ohlcv(candle: Mapping[str, Any]) -> OHLCV:
    # candle time is in seconds, unlike every other timestamp
    return (
        safe_timestamp(candle, "time"),
        safe_float(candle, "open"),
        safe_float(candle, "high"),
        safe_float(candle, "low"),
        safe_float(candle, "close"),
        safe_float(candle, "volume"),
    )


def parse_ohlcvs(
    candles: Iterable[Mapping[str, Any]],
    since: int | None = None,
    limit: int | None = None,
) -> list[OHLCV]:
    return filter_by_since_limit([parse_ohlcv(c) for c in candles], since, limit)


def parse_order_book(
    book: Mapping[str, Any],
    market: Market | None = None,
    catalog: Catalog | None = None,
) -> OrderBook:
    def levels(side: str) -> list[tuple[float, float]]:
        result = []
        for level in book.get(side) or []:
            price = safe_float(level, "price")
            size = safe_float(level, "size")
            if price is not None and size is not None:
                result.append((price, size))
        return result

    return OrderBook(
        symbol=safe_symbol(safe_string(book, "symbol"), market, catalog),
        bids=sorted(levels("buy"), key=lambda lvl: lvl[0], reverse=True),
        asks=sorted(levels("sell"), key=lambda lvl: lvl[0]),
    )


def parse_order_type(order_type: str | None) -> str | None:
    if order_type is None:
        return None
    if order_type.endswith("_order"):
        return order_type[: -len("_order")]
    return order_type


def parse_order(
    order: Mapping[str, Any],
    market: Market | None = None,
    catalog: Catalog | None = None,
) -> Order:
    amount = safe_float(order, "size")
    remaining = safe_float(order, "unfilled_size")
    filled = None
    if amount is not None and remaining is not None:
        filled = amount - remaining

    product_id = safe_integer(order, "product_id")
    symbol = _symbol_for_product(product_id, market, catalog)

    return Order(
        id=safe_string(order, "id"),
        symbol=symbol,
        market_id=product_id,
        side=safe_string(order, "side"),
        type=parse_order_type(safe_string(order, "order_type")),
        price=safe_float(order, "limit_price"),
        amount=amount,
        filled=filled,
        remaining=remaining,
        status=safe_string(order, "state"),
        timestamp=parse_datetime_ms(order.get("created_at")),
        info=dict(order),
    )


def parse_orders(
    orders: Iterable[Mapping[str, Any]],
    market: Market | None = None,
    catalog: Catalog | None = None,
    since: int | None = None,
    limit: int | None = None,
) -> list[Order]:
    parsed = [parse_order(order, market, catalog) for order in orders]
    return filter_by_since_limit(parsed, since, limit)


def parse_balance(
    balances: Iterable[Mapping[str, Any]],
    catalog: Catalog | None = None,
) -> dict[str, Balance]:
    """Key wallet rows by currency code, resolved from the numeric asset id."""
    result: dict[str, Balance] = {}
    for row in balances:
        asset_id = safe_string(row, "asset_id")
        currency = catalog.currencies.resolve_numeric(asset_id) if catalog else None
        code = currency.code if currency is not None and currency.code else asset_id
        if code is None:
            continue
        result[code] = Balance(
            code=code,
            total=safe_float(row, "balance"),
            free=safe_float(row, "available_balance"),
        )
    return result


def parse_position(
    position: Mapping[str, Any],
    market: Market | None = None,
    catalog: Catalog | None = None,
) -> Position:
    product_id = safe_integer(position, "product_id")
    if product_id is None and market is not None:
        product_id = market.numeric_id
    return Position(
        symbol=_symbol_for_product(product_id, market, catalog),
        market_id=product_id,
        size=safe_float(position, "size"),
        entry_price=safe_float(position, "entry_price"),
        margin=safe_float(position, "margin"),
        liquidation_price=safe_float(position, "liquidation_price"),
        bankruptcy_price=safe_float(position, "bankruptcy_price"),
        adl_level=safe_integer(position, "adl_level"),
        timestamp=safe_integer_product(position, "timestamp", MICROS_TO_MILLIS),
        info=dict(position),
    )


def parse_ledger_entry(
    entry: Mapping[str, Any],
    catalog: Catalog | None = None,
) -> LedgerEntry:
    asset_id = safe_string(entry, "asset_id")
    currency = catalog.currencies.resolve_numeric(asset_id) if catalog else None
    code = currency.code if currency is not None else asset_id

    symbol = None
    if entry.get("product_id") is not None:
        symbol = _symbol_for_product(entry.get("product_id"), None, catalog)

    return LedgerEntry(
        id=safe_string(entry, "id"),
        currency=code,
        symbol=symbol,
        amount=safe_float(entry, "amount"),
        balance=safe_float(entry, "balance"),
        type=safe_string(entry, "transaction_type"),
        timestamp=parse_datetime_ms(entry.get("created_at")),
        info=dict(entry),
    )


def parse_ledger(
    entries: Iterable[Mapping[str, Any]],
    catalog: Catalog | None = None,
    code: str | None = None,
    since: int | None = None,
    limit: int | None = None,
) -> list[LedgerEntry]:
    parsed = [parse_ledger_entry(entry, catalog) for entry in entries]
    if code is not None:
        parsed = [entry for entry in parsed if entry.currency == code]
    return filter_by_since_limit(parsed, since, limit)


def parse_deposit_address(result: Mapping[str, Any], code: str) -> DepositAddress:
    address = safe_string(result, "address")
    if not address:
        raise InvalidAddress(f"delta returned no deposit address for {code}", body=str(result))
    return DepositAddress(
        currency=code,
        address=address,
        tag=None,
        status=safe_string(result, "status"),
        info=dict(result),
    )
