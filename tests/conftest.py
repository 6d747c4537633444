"""Pytest configuration and fixtures."""

import json
from urllib.parse import urlsplit
from unittest.mock import AsyncMock

import pytest

from deltaex.exchanges.delta import DeltaClient
from deltaex.exchanges.protocol import HttpResponse

FIXED_NOW = 1605400000.0


@pytest.fixture
def api_key():
    """Test API key."""
    return "test_api_key_123456"


@pytest.fixture
def api_secret():
    """Test API secret."""
    return "test_api_secret_789012"


@pytest.fixture
def sample_assets():
    """Raw /v2/assets result."""
    return [
        {
            "id": 2,
            "symbol": "BTC",
            "name": "Bitcoin",
            "precision": 8,
            "deposit_status": "enabled",
            "withdrawal_status": "enabled",
            "base_withdrawal_fee": "0.0005",
            "min_withdrawal_amount": "0.001",
        },
        {
            "id": 3,
            "symbol": "USDT",
            "name": "Tether",
            "precision": 6,
            "deposit_status": "enabled",
            "withdrawal_status": "disabled",
            "base_withdrawal_fee": "1",
            "min_withdrawal_amount": "10",
        },
    ]


@pytest.fixture
def sample_products():
    """Raw /v2/products result covering every contract family."""
    btc = {"symbol": "BTC"}
    usdt = {"symbol": "USDT"}
    return [
        {
            "id": 139,
            "symbol": "BTCUSDT",
            "contract_type": "perpetual_futures",
            "underlying_asset": btc,
            "quoting_asset": usdt,
            "tick_size": "0.5",
            "position_size_limit": 100000,
            "maker_commission_rate": "0.0005",
            "taker_commission_rate": "0.0005",
            "state": "live",
        },
        {
            "id": 200,
            "symbol": "BTCUSD_25Dec",
            "contract_type": "futures",
            "underlying_asset": btc,
            "quoting_asset": usdt,
            "tick_size": "1",
            "state": "live",
        },
        {
            "id": 1584,
            "symbol": "P-BTC-D-151120",
            "contract_type": "put_options",
            "underlying_asset": btc,
            "quoting_asset": usdt,
            "tick_size": "0.001",
            "state": "expired",
        },
        {
            "id": 1585,
            "symbol": "C-BTC-D-151120",
            "contract_type": "call_options",
            "underlying_asset": btc,
            "quoting_asset": usdt,
            "tick_size": "0.001",
            "state": "live",
        },
        {
            "id": 1586,
            "symbol": "MV-BTC-151120",
            "contract_type": "move_options",
            "underlying_asset": btc,
            "quoting_asset": usdt,
            "tick_size": "0.1",
            "state": "live",
        },
        {
            "id": 1327,
            "symbol": "AAVEBTC",
            "contract_type": "spreads",
            "underlying_asset": {"symbol": "AAVE"},
            "quoting_asset": btc,
            "tick_size": "0.000001",
            "state": "live",
        },
        {
            "id": 999,
            "symbol": "BROKEN",
            "contract_type": "futures",
            "tick_size": "1",
            "state": "live",
        },
    ]


class FakeDelta:
    """Routes transport calls to canned responses keyed by (method, path)."""

    def __init__(self, routes):
        self.routes = dict(routes)
        self.calls = []
        self.transport = AsyncMock()
        self.transport.fetch = AsyncMock(side_effect=self._fetch)
        self.transport.close = AsyncMock()

    async def _fetch(self, method, url, headers=None, body=None):
        parts = urlsplit(url)
        self.calls.append(
            {
                "method": method,
                "path": parts.path,
                "query": parts.query,
                "headers": headers or {},
                "body": body,
            }
        )
        route = self.routes.get((method, parts.path))
        if route is None:
            return HttpResponse(404, json.dumps({"success": False, "error": {"code": "not_found"}}))
        if isinstance(route, HttpResponse):
            return route
        if isinstance(route, Exception):
            raise route
        return HttpResponse(200, json.dumps(route))

    def calls_to(self, method, path):
        return [c for c in self.calls if c["method"] == method and c["path"] == path]


@pytest.fixture
def fake_delta(sample_assets, sample_products):
    """Fake exchange with the catalog endpoints pre-populated."""
    return FakeDelta(
        {
            ("GET", "/v2/assets"): {"success": True, "result": sample_assets},
            ("GET", "/v2/products"): {"success": True, "result": sample_products},
        }
    )


@pytest.fixture
def client(fake_delta, api_key, api_secret):
    """Delta client wired to the fake transport with a frozen clock."""
    return DeltaClient(
        api_key,
        api_secret,
        transport=fake_delta.transport,
        clock=lambda: FIXED_NOW,
    )
