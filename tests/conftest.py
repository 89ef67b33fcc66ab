"""Shared fixtures: a recording fake exchange client and session/dispatcher wiring."""

from typing import Any, Dict, List, Optional

import pytest

from hyperliquid_mcp.config import Settings
from hyperliquid_mcp.dispatcher import Dispatcher
from hyperliquid_mcp.models import CancelSpec, Credentials, OrderSpec
from hyperliquid_mcp.session import SessionState

# Well-known throwaway key from the web3 documentation; never funded.
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_WALLET = "0x1234567890123456789012345678901234567890"

SPOT_META = {
    "tokens": [
        {"name": "USDC", "index": 0},
        {"name": "PURR", "index": 1},
        {"name": "HFUN", "index": 2},
    ],
    "universe": [
        {"name": "PURR/USDC", "tokens": [1, 0], "index": 0},
        {"name": "@1", "tokens": [2, 0], "index": 1},
    ],
}
SPOT_ASSET_CTXS = [
    {"coin": "PURR/USDC", "markPx": "2.5"},
    {"coin": "@1", "markPx": "40.125"},
]


class FakeExchangeClient:
    """In-memory stand-in for the ccxt-backed client that records every call."""

    def __init__(self, credentials: Credentials, address: Optional[str] = TEST_WALLET):
        self.credentials = credentials
        self._address = address
        self.calls: List[tuple] = []
        self.connected = False
        self.closed = False
        self.connect_error: Optional[Exception] = None
        self.perp_error: Optional[Exception] = None
        self.spot_error: Optional[Exception] = None
        self.order_book_error: Optional[Exception] = None
        self.submit_error: Optional[Exception] = None
        self.perp_summary: Dict[str, Any] = {"marginSummary": {"accountValue": "1000.0"}, "assetPositions": []}
        self.spot_summary: Dict[str, Any] = {
            "balances": [
                {"coin": "USDC", "token": 0, "hold": "0.0", "total": "100"},
                {"coin": "PURR", "token": 1, "hold": "0.0", "total": "10"},
            ]
        }
        self.spot_context: List[Any] = [SPOT_META, SPOT_ASSET_CTXS]

    @property
    def address(self) -> Optional[str]:
        return self._address

    async def connect(self) -> None:
        self.calls.append(("connect",))
        if self.connect_error:
            raise self.connect_error
        self.connected = True

    async def fetch_perp_summary(self, address: str) -> Dict[str, Any]:
        self.calls.append(("fetch_perp_summary", address))
        if self.perp_error:
            raise self.perp_error
        return self.perp_summary

    async def fetch_spot_summary(self, address: str) -> Dict[str, Any]:
        self.calls.append(("fetch_spot_summary", address))
        if self.spot_error:
            raise self.spot_error
        return self.spot_summary

    async def fetch_spot_market_context(self) -> List[Any]:
        self.calls.append(("fetch_spot_market_context",))
        return self.spot_context

    async def fetch_order_book(self, symbol: str) -> Dict[str, Any]:
        self.calls.append(("fetch_order_book", symbol))
        if self.order_book_error:
            raise self.order_book_error
        return {"symbol": symbol, "bids": [[99.5, 1.0]], "asks": [[100.5, 2.0]]}

    async def submit_order(self, order: OrderSpec) -> Dict[str, Any]:
        self.calls.append(("submit_order", order))
        if self.submit_error:
            raise self.submit_error
        return {"id": "12345", "status": "open"}

    async def submit_cancel(self, cancel: CancelSpec) -> Dict[str, Any]:
        self.calls.append(("submit_cancel", cancel))
        if self.submit_error:
            raise self.submit_error
        return {"id": cancel.order_id, "status": "canceled"}

    async def close(self) -> None:
        self.closed = True

    def called(self, name: str) -> bool:
        return any(call[0] == name for call in self.calls)


class FakeClientFactory:
    """Client factory that keeps every client it builds."""

    def __init__(self):
        self.built: List[FakeExchangeClient] = []
        self.connect_error: Optional[Exception] = None

    def __call__(self, credentials: Credentials) -> FakeExchangeClient:
        client = FakeExchangeClient(credentials)
        client.connect_error = self.connect_error
        self.built.append(client)
        return client

    @property
    def last(self) -> FakeExchangeClient:
        return self.built[-1]


CONFIG_ENV_VARS = (
    "HYPERLIQUID_TESTNET",
    "HYPERLIQUID_PRIVATE_KEY",
    "HYPERLIQUID_WALLET_ADDRESS",
    "HYPERLIQUID_VAULT_ADDRESS",
    "HYPERLIQUID_REQUEST_TIMEOUT",
    "HYPERLIQUID_MARKET_SLIPPAGE",
    "LOG_LEVEL",
    "MCP_TRANSPORT",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keeps the developer's shell and .env out of Settings."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings() -> Settings:
    return Settings(request_timeout=5.0)


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def session(settings: Settings, client_factory: FakeClientFactory) -> SessionState:
    return SessionState(settings, client_factory=client_factory)


@pytest.fixture
def dispatcher(session: SessionState) -> Dispatcher:
    return Dispatcher(session)
