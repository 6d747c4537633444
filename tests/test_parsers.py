"""Tests for response parsers."""

from dataclasses import fields

import pytest

from deltaex.exchanges.catalog import Catalog
from deltaex.exchanges.errors import InvalidAddress
from deltaex.exchanges.parsers import (
    filter_by_since_limit,
    parse_balance,
    parse_deposit_address,
    parse_ledger,
    parse_ledger_entry,
    parse_ohlcv,
    parse_order,
    parse_order_book,
    parse_position,
    parse_ticker,
    parse_trade,
    parse_trades,
)


@pytest.fixture
def catalog(sample_assets, sample_products):
    catalog = Catalog()
    catalog.install(sample_assets, sample_products)
    return catalog


class TestParseTicker:
    """Tests for parse_ticker."""

    def test_derived_fields(self):
        ticker = parse_ticker({"open": 100, "close": 110})

        assert ticker.change == 10
        assert ticker.average == 105
        assert ticker.percentage == pytest.approx(10)
        assert ticker.last == 110

    def test_zero_open_has_no_percentage(self):
        ticker = parse_ticker({"open": 0, "close": 110})

        assert ticker.percentage is None
        assert ticker.change == 110

    def test_missing_open(self):
        ticker = parse_ticker({"close": 110})

        assert ticker.change is None
        assert ticker.average is None
        assert ticker.percentage is None

    def test_full_payload(self, catalog):
        raw = {
            "close": 15837.5,
            "high": 16354,
            "low": 15751.5,
            "mark_price": "15820.100867",
            "open": 16140.5,
            "product_id": 139,
            "size": 640552,
            "spot_price": "15827.050000000001",
            "symbol": "BTCUSDT",
            "timestamp": 1605373550208262,
            "turnover": 10298630.3735,
            "volume": 640.5520000000001,
        }

        ticker = parse_ticker(raw, catalog=catalog)

        assert ticker.symbol == "BTC/USDT"
        assert ticker.timestamp == 1605373550208
        assert ticker.high == 16354
        assert ticker.mark_price == pytest.approx(15820.100867)
        assert ticker.vwap == pytest.approx(10298630.3735 / 640.5520000000001)
        assert ticker.info is not raw

    def test_unknown_symbol_passes_through(self, catalog):
        assert parse_ticker({"symbol": "NEWCOIN"}, catalog=catalog).symbol == "NEWCOIN"


class TestParseTrade:
    """Tests for parse_trade."""

    def test_taker_seller_is_sell(self):
        trade = parse_trade({"seller_role": "taker", "buyer_role": "maker", "price": "10", "size": 3})

        assert trade.side == "sell"

    def test_maker_seller_is_buy(self):
        trade = parse_trade({"seller_role": "maker", "buyer_role": "taker", "price": "10", "size": 3})

        assert trade.side == "buy"

    def test_cost(self):
        trade = parse_trade({"price": "15896.5", "size": 241})

        assert trade.cost == pytest.approx(15896.5 * 241)

    def test_cost_missing_when_price_missing(self):
        assert parse_trade({"size": 241}).cost is None

    def test_public_trade_symbol_and_time(self, catalog):
        raw = {
            "buyer_role": "maker",
            "price": "15896.5",
            "seller_role": "taker",
            "size": 241,
            "symbol": "BTCUSDT",
            "timestamp": 1605376684714595,
        }

        trade = parse_trade(raw, catalog=catalog)

        assert trade.symbol == "BTC/USDT"
        assert trade.timestamp == 1605376684714

    def test_private_fill(self, catalog):
        raw = {
            "id": 77,
            "size": 5,
            "side": "buy",
            "price": "100.5",
            "role": "taker",
            "commission": "0.01",
            "created_at": "2020-11-15T20:25:53Z",
            "product_id": 200,
        }

        trade = parse_trade(raw, catalog=catalog)

        assert trade.id == "77"
        assert trade.side == "buy"
        assert trade.symbol == "BTCUSD_25Dec"
        assert trade.taker_or_maker == "taker"
        assert trade.fee == 0.01
        assert trade.timestamp == 1605471953000

    def test_null_timestamp_falls_back_to_created_at(self):
        trade = parse_trade({"timestamp": None, "created_at": "2020-11-15T20:25:53Z", "price": "1", "size": 1})

        assert trade.timestamp == 1605471953000

    def test_parse_trades_sorted_and_filtered(self):
        raw = [
            {"timestamp": 3000000, "price": 1, "size": 1},
            {"timestamp": 1000000, "price": 1, "size": 1},
            {"timestamp": 2000000, "price": 1, "size": 1},
        ]

        trades = parse_trades(raw, since=2000, limit=1)

        assert [t.timestamp for t in trades] == [2000]


class TestTimestampUnits:
    """Ticker microseconds and candle seconds land on the same ms scale."""

    def test_same_instant(self):
        seconds = 1605393120
        ticker = parse_ticker({"timestamp": seconds * 1_000_000})
        candle = parse_ohlcv({"time": seconds})

        assert ticker.timestamp == candle[0] == seconds * 1000


class TestParseOHLCV:
    """Tests for parse_ohlcv."""

    def test_tuple_order(self):
        candle = parse_ohlcv(
            {"time": 1605393120, "open": 15989, "high": 15990, "low": 15987.5, "close": 15988, "volume": 565}
        )

        assert candle == (1605393120000, 15989.0, 15990.0, 15987.5, 15988.0, 565.0)


class TestParseOrderBook:
    """Tests for parse_order_book."""

    def test_sides_and_sorting(self, catalog):
        raw = {
            "buy": [{"price": "15813.5", "size": 1279}, {"price": "15814.0", "size": 912}],
            "sell": [{"price": "15815.0", "size": 982}, {"price": "15814.5", "size": 625}],
            "symbol": "BTCUSDT",
        }

        book = parse_order_book(raw, catalog=catalog)

        assert book.symbol == "BTC/USDT"
        assert book.bids == [(15814.0, 912.0), (15813.5, 1279.0)]
        assert book.asks == [(15814.5, 625.0), (15815.0, 982.0)]

    def test_only_symbol_and_levels(self):
        book = parse_order_book({"buy": [], "sell": []})

        assert [f.name for f in fields(book)] == ["symbol", "bids", "asks"]


class TestParseOrder:
    """Tests for parse_order."""

    def test_fields(self, catalog):
        raw = {
            "id": 1212,
            "product_id": 139,
            "limit_price": "9200",
            "side": "buy",
            "size": 100,
            "unfilled_size": 50,
            "user_id": 1,
            "order_type": "limit_order",
            "state": "open",
            "created_at": "2020-11-15T20:25:53.000Z",
        }

        order = parse_order(raw, catalog=catalog)

        assert order.id == "1212"
        assert order.symbol == "BTC/USDT"
        assert order.market_id == 139
        assert order.type == "limit"
        assert order.price == 9200
        assert order.amount == 100
        assert order.remaining == 50
        assert order.filled == 50
        assert order.status == "open"
        assert order.timestamp == 1605471953000

    def test_state_passed_through(self):
        assert parse_order({"state": "cancelled"}).status == "cancelled"
        assert parse_order({"state": "closed"}).status == "closed"

    def test_microsecond_created_at(self):
        assert parse_order({"created_at": 1605471953000000}).timestamp == 1605471953000

    def test_market_order_type(self):
        assert parse_order({"order_type": "market_order"}).type == "market"
        assert parse_order({"order_type": "stop_limit"}).type == "stop_limit"


class TestParseBalance:
    """Tests for parse_balance."""

    def test_resolves_numeric_asset_id(self, catalog):
        rows = [
            {"asset_id": 2, "balance": "1.5", "available_balance": "1.0"},
            {"asset_id": 3, "balance": "100", "available_balance": "100"},
        ]

        balances = parse_balance(rows, catalog)

        assert set(balances) == {"BTC", "USDT"}
        assert balances["BTC"].total == 1.5
        assert balances["BTC"].free == 1.0
        assert balances["BTC"].used == pytest.approx(0.5)

    def test_unknown_asset_falls_back_to_id(self, catalog):
        balances = parse_balance([{"asset_id": 77, "balance": "1", "available_balance": "1"}], catalog)

        assert "77" in balances


class TestParsePosition:
    """Tests for parse_position."""

    def test_margined_position(self, catalog):
        raw = {
            "user_id": 0,
            "size": 10,
            "entry_price": "15000",
            "margin": "150",
            "liquidation_price": "14000",
            "bankruptcy_price": "13900",
            "adl_level": 2,
            "product_id": 139,
        }

        position = parse_position(raw, catalog=catalog)

        assert position.symbol == "BTC/USDT"
        assert position.size == 10
        assert position.entry_price == 15000
        assert position.adl_level == 2

    def test_single_position_uses_market(self, catalog):
        market = catalog.market("BTC/USDT")

        position = parse_position({"entry_price": None, "size": 0, "timestamp": 1605454074268079}, market, catalog)

        assert position.symbol == "BTC/USDT"
        assert position.market_id == 139
        assert position.entry_price is None
        assert position.timestamp == 1605454074268


class TestParseLedger:
    """Tests for ledger parsing."""

    def test_entry(self, catalog):
        raw = {
            "id": 10,
            "amount": "-0.5",
            "balance": "99.5",
            "transaction_type": "funding",
            "meta_data": {},
            "product_id": 139,
            "asset_id": 3,
            "created_at": "2020-11-15T20:25:53Z",
        }

        entry = parse_ledger_entry(raw, catalog)

        assert entry.currency == "USDT"
        assert entry.symbol == "BTC/USDT"
        assert entry.amount == -0.5
        assert entry.balance == 99.5
        assert entry.type == "funding"

    def test_filter_by_code(self, catalog):
        rows = [
            {"id": 1, "asset_id": 2, "created_at": "2020-11-15T20:25:53Z"},
            {"id": 2, "asset_id": 3, "created_at": "2020-11-15T20:25:54Z"},
        ]

        entries = parse_ledger(rows, catalog, code="BTC")

        assert [e.id for e in entries] == ["1"]


class TestParseDepositAddress:
    """Tests for parse_deposit_address."""

    def test_address(self):
        result = {"address": "0x0eda26523397534f814d553a065d8e46b4188e9a", "status": "active"}

        address = parse_deposit_address(result, "USDT")

        assert address.currency == "USDT"
        assert address.address.startswith("0x")
        assert address.tag is None

    def test_missing_address(self):
        with pytest.raises(InvalidAddress):
            parse_deposit_address({}, "USDT")


def test_filter_by_since_limit_tuples():
    candles = [(3, 0, 0, 0, 0, 0), (1, 0, 0, 0, 0, 0), (2, 0, 0, 0, 0, 0)]

    assert [c[0] for c in filter_by_since_limit(candles, since=2)] == [2, 3]
