"""Canonical domain records produced by the Delta adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ContractKind(str, Enum):
    """Normalized contract family."""

    SPOT = "spot"
    SWAP = "swap"
    FUTURE = "future"
    OPTION = "option"


@dataclass(frozen=True)
class Currency:
    """An asset from the exchange catalog."""

    code: str | None
    id: str | None
    numeric_id: int | None
    name: str | None = None
    precision: float | None = None
    withdrawal_fee: float | None = None
    active: bool = False
    withdraw_min: float | None = None
    info: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


@dataclass(frozen=True)
class Market:
    """A tradable product normalized across contract families."""

    id: str | None
    numeric_id: int | None
    symbol: str | None
    base: str | None
    quote: str | None
    base_id: str | None
    quote_id: str | None
    kind: ContractKind
    swap: bool = False
    future: bool = False
    option: bool = False
    maker: float | None = None
    taker: float | None = None
    tick_size: float | None = None
    amount_step: float = 1.0
    position_size_limit: float | None = None
    min_cost: float | None = None
    active: bool = False
    info: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


@dataclass
class Ticker:
    symbol: str | None
    timestamp: int | None
    high: float | None = None
    low: float | None = None
    open: float | None = None
    close: float | None = None
    last: float | None = None
    base_volume: float | None = None
    quote_volume: float | None = None
    vwap: float | None = None
    change: float | None = None
    percentage: float | None = None
    average: float | None = None
    mark_price: float | None = None
    spot_price: float | None = None
    info: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class Trade:
    timestamp: int | None
    symbol: str | None
    side: str | None
    price: float | None
    amount: float | None
    cost: float | None = None
    id: str | None = None
    order: str | None = None
    taker_or_maker: str | None = None
    fee: float | None = None
    info: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class OrderBook:
    symbol: str | None
    bids: list[tuple[float, float]] = field(default_factory=list)
    asks: list[tuple[float, float]] = field(default_factory=list)


@dataclass
class Order:
    """An order as reported by the exchange.

    ``status`` is the exchange ``state`` field passed through unchanged.
    """

    id: str | None
    symbol: str | None
    market_id: int | None
    side: str | None
    type: str | None
    price: float | None
    amount: float | None
    filled: float | None = None
    remaining: float | None = None
    status: str | None = None
    timestamp: int | None = None
    info: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class Balance:
    """Wallet balance for a single currency."""

    code: str
    total: float | None
    free: float | None

    @property
    def used(self) -> float | None:
        if self.total is None or self.free is None:
            return None
        return self.total - self.free


@dataclass
class Position:
    symbol: str | None
    market_id: int | None
    size: float | None
    entry_price: float | None = None
    margin: float | None = None
    liquidation_price: float | None = None
    bankruptcy_price: float | None = None
    adl_level: int | None = None
    timestamp: int | None = None
    info: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class LedgerEntry:
    """A single balance-affecting wallet event (funding, fee, pnl, ...)."""

    id: str | None
    currency: str | None
    symbol: str | None
    amount: float | None
    balance: float | None
    type: str | None
    timestamp: int | None = None
    info: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class DepositAddress:
    currency: str
    address: str
    tag: str | None = None
    status: str | None = None
    info: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class ExchangeStatus:
    status: str
    updated: int | None = None
