"""Normalization utilities for raw exchange values."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping

logger = logging.getLogger(__name__)

# Legacy or alternative tickers mapped to their common code
COMMON_CURRENCIES: dict[str, str] = {
    "XBT": "BTC",
    "BCC": "BCH",
    "BCHABC": "BCH",
    "BCHSV": "BSV",
    "DRK": "DASH",
}

TIMEFRAMES: dict[str, str] = {
    "1m": "1m",
    "3m": "3m",
    "5m": "5m",
    "15m": "15m",
    "30m": "30m",
    "1h": "1h",
    "2h": "2h",
    "4h": "4h",
    "6h": "6h",
    "1d": "1d",
    "7d": "7d",
    "1w": "1w",
    "2w": "2w",
    # no monthly resolution upstream, a fixed 30 day bucket stands in
    "1M": "30d",
}

_TIMEFRAME_UNITS = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 60 * 60 * 24,
    "w": 60 * 60 * 24 * 7,
    "M": 60 * 60 * 24 * 30,
    "y": 60 * 60 * 24 * 365,
}


def safe_currency_code(
    currency_id: str | None,
    common_currencies: Mapping[str, str] | None = None,
) -> str | None:
    """Convert an exchange asset symbol to a unified currency code.

    - XBT -> BTC
    - usdt -> USDT
    - None -> None

    Args:
        currency_id: Asset symbol as sent by the exchange
        common_currencies: Alias table (defaults to COMMON_CURRENCIES)

    Returns:
        Unified currency code
    """
    if currency_id is None:
        return None

    code = str(currency_id).strip().upper()
    aliases = COMMON_CURRENCIES if common_currencies is None else common_currencies
    return aliases.get(code, code)


def safe_string(data: Mapping[str, Any] | None, key: str, default: str | None = None) -> str | None:
    if not data:
        return default
    value = data.get(key)
    if value is None or value == "":
        return default
    return str(value)


def safe_float(data: Mapping[str, Any] | None, key: str, default: float | None = None) -> float | None:
    if not data:
        return default
    value = data.get(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def safe_integer(data: Mapping[str, Any] | None, key: str, default: int | None = None) -> int | None:
    value = safe_float(data, key)
    if value is None:
        return default
    return int(value)


def safe_integer_product(
    data: Mapping[str, Any] | None,
    key: str,
    factor: float,
    default: int | None = None,
) -> int | None:
    """Read a numeric field and scale it, e.g. microseconds to milliseconds.

    Scaling is done in Decimal so exact multiples never truncate one unit low.
    """
    if safe_float(data, key) is None:
        return default
    value = _to_decimal(data[key])
    return int(value * _to_decimal(factor))


def safe_timestamp(data: Mapping[str, Any] | None, key: str, default: int | None = None) -> int | None:
    """Read a seconds timestamp and return milliseconds."""
    return safe_integer_product(data, key, 1000, default)


def parse_datetime_ms(value: Any) -> int | None:
    """Parse an ISO8601 string or a microsecond epoch into milliseconds."""
    if value is None or value == "":
        return None

    if isinstance(value, (int, float)):
        return int(value) // 1000

    text = str(value).strip()
    if text.isdigit():
        return int(text) // 1000

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparseable datetime %r", value)
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def parse_timeframe(timeframe: str) -> int:
    """Return the duration of a timeframe token in seconds.

    Raises:
        ValueError: If the token is malformed
    """
    if not timeframe or len(timeframe) < 2:
        raise ValueError(f"Invalid timeframe: {timeframe!r}")

    amount, unit = timeframe[:-1], timeframe[-1]
    if unit not in _TIMEFRAME_UNITS or not amount.isdigit():
        raise ValueError(f"Invalid timeframe: {timeframe!r}")

    return int(amount) * _TIMEFRAME_UNITS[unit]


def _to_decimal(value: float | str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid number: {value!r}") from exc


def _format_decimal(value: Decimal) -> str:
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def amount_to_precision(amount: float | str, step: float | None = 1.0) -> str:
    """Truncate an amount down to a multiple of ``step``."""
    value = _to_decimal(amount)
    if not step:
        return _format_decimal(value)
    size = _to_decimal(step)
    snapped = (value / size).quantize(Decimal("1"), rounding=ROUND_DOWN) * size
    return _format_decimal(snapped)


def price_to_precision(price: float | str, tick_size: float | None) -> str:
    """Round a price to the nearest multiple of ``tick_size``."""
    value = _to_decimal(price)
    if not tick_size:
        return _format_decimal(value)
    tick = _to_decimal(tick_size)
    snapped = (value / tick).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * tick
    return _format_decimal(snapped)
