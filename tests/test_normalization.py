"""Tests for normalization utilities."""

import pytest

from deltaex.exchanges.normalization import (
    amount_to_precision,
    parse_datetime_ms,
    parse_timeframe,
    price_to_precision,
    safe_currency_code,
    safe_float,
    safe_integer_product,
    safe_string,
    safe_timestamp,
)


class TestSafeCurrencyCode:
    """Tests for safe_currency_code function."""

    def test_alias(self):
        assert safe_currency_code("XBT") == "BTC"
        assert safe_currency_code("BCHSV") == "BSV"

    def test_case_and_whitespace(self):
        assert safe_currency_code(" usdt ") == "USDT"

    def test_none(self):
        assert safe_currency_code(None) is None

    def test_custom_table(self):
        assert safe_currency_code("XBT", {}) == "XBT"
        assert safe_currency_code("FOO", {"FOO": "BAR"}) == "BAR"


class TestSafeAccessors:
    """Tests for safe_* field readers."""

    def test_safe_string(self):
        assert safe_string({"a": 1}, "a") == "1"
        assert safe_string({"a": ""}, "a") is None
        assert safe_string(None, "a", "x") == "x"

    def test_safe_float(self):
        assert safe_float({"a": "1.5"}, "a") == 1.5
        assert safe_float({"a": "abc"}, "a") is None
        assert safe_float({}, "a", 0.0) == 0.0

    def test_microseconds_to_milliseconds(self):
        assert safe_integer_product({"t": 1605373550208262}, "t", 0.001) == 1605373550208
        assert safe_integer_product({"t": "1605373550208000"}, "t", 0.001) == 1605373550208
        assert safe_integer_product({}, "t", 0.001) is None

    def test_seconds_to_milliseconds(self):
        assert safe_timestamp({"time": 1605393120}, "time") == 1605393120000


class TestParseDatetime:
    """Tests for parse_datetime_ms function."""

    def test_iso_with_z(self):
        assert parse_datetime_ms("2020-11-15T20:25:53Z") == 1605471953000

    def test_iso_with_fraction(self):
        assert parse_datetime_ms("2020-11-15T20:25:53.250Z") == 1605471953250

    def test_microsecond_epoch(self):
        assert parse_datetime_ms(1605471953000000) == 1605471953000
        assert parse_datetime_ms("1605471953000000") == 1605471953000

    def test_invalid(self):
        assert parse_datetime_ms(None) is None
        assert parse_datetime_ms("not a date") is None


class TestParseTimeframe:
    """Tests for parse_timeframe function."""

    @pytest.mark.parametrize(
        "timeframe,seconds",
        [
            ("1m", 60),
            ("15m", 900),
            ("4h", 14400),
            ("1d", 86400),
            ("2w", 1209600),
            ("1M", 2592000),
        ],
    )
    def test_durations(self, timeframe, seconds):
        assert parse_timeframe(timeframe) == seconds

    @pytest.mark.parametrize("timeframe", ["", "m", "1x", "hm"])
    def test_invalid(self, timeframe):
        with pytest.raises(ValueError):
            parse_timeframe(timeframe)


class TestPrecision:
    """Tests for amount and price precision helpers."""

    def test_amount_truncates(self):
        assert amount_to_precision(10.9) == "10"
        assert amount_to_precision("0.1239", 0.001) == "0.123"

    def test_amount_without_step(self):
        assert amount_to_precision(1.25, None) == "1.25"

    def test_price_rounds_to_tick(self):
        assert price_to_precision(9200.3, 0.5) == "9200.5"
        assert price_to_precision(9200.2, 0.5) == "9200"
        assert price_to_precision("0.0012345", "0.000001") == "0.001235"

    def test_price_without_tick(self):
        assert price_to_precision(15000.0, None) == "15000"
