"""Tests for the FastMCP front end: tool wiring and dynamic resource publication."""

import json

import pytest
from fastmcp import Client
from fastmcp.exceptions import ResourceError

from hyperliquid_mcp.config import Settings
from hyperliquid_mcp.dispatcher import Dispatcher
from hyperliquid_mcp.models import ACCOUNT_RESOURCE_URI, Credentials
from mcp_server import HyperliquidMCPServer, ResourcePublisher

from .conftest import TEST_WALLET, FakeClientFactory


class RecordingMCP:
    """Captures `resource(...)` registrations the way FastMCP receives them."""

    def __init__(self):
        self.resources = {}

    def resource(self, uri, name=None, description=None, mime_type=None):
        def decorator(fn):
            self.resources[uri] = {"name": name, "description": description, "mime_type": mime_type, "fn": fn}
            return fn
        return decorator


# =============================================================================
# ResourcePublisher
# =============================================================================


class TestResourcePublisher:
    def test_nothing_to_publish_initially(self, dispatcher) -> None:
        mcp = RecordingMCP()
        publisher = ResourcePublisher(mcp, dispatcher)
        assert publisher.sync() == []
        assert mcp.resources == {}

    @pytest.mark.asyncio
    async def test_publishes_each_resource_once(self, dispatcher) -> None:
        mcp = RecordingMCP()
        publisher = ResourcePublisher(mcp, dispatcher)

        await dispatcher.call_tool("create_strategy", {"name": "grid", "description": "BTC grid", "config": {}})
        added = publisher.sync()
        assert len(added) == 1
        assert publisher.sync() == []

        registered = mcp.resources[added[0]]
        assert registered["name"] == "grid"
        assert registered["description"] == "Trading strategy: BTC grid"
        assert registered["mime_type"] == "application/json"

    @pytest.mark.asyncio
    async def test_account_published_after_authentication(self, dispatcher) -> None:
        mcp = RecordingMCP()
        publisher = ResourcePublisher(mcp, dispatcher)

        await dispatcher.call_tool("authenticate", {"wallet_address": TEST_WALLET})
        assert publisher.sync() == [ACCOUNT_RESOURCE_URI]
        assert ACCOUNT_RESOURCE_URI in publisher.published

    @pytest.mark.asyncio
    async def test_reader_returns_json(self, dispatcher) -> None:
        mcp = RecordingMCP()
        publisher = ResourcePublisher(mcp, dispatcher)
        envelope = await dispatcher.call_tool("create_strategy", {"name": "m", "description": "d", "config": {"n": 1}})
        [uri] = publisher.sync()

        payload = json.loads(await mcp.resources[uri]["fn"]())
        assert payload["id"] == envelope["result"]["strategy_id"]
        assert payload["config"] == {"n": 1}

    @pytest.mark.asyncio
    async def test_reader_surfaces_errors(self, session) -> None:
        mcp = RecordingMCP()
        dispatcher = Dispatcher(session)
        await dispatcher.call_tool("authenticate", {"wallet_address": TEST_WALLET})
        ResourcePublisher(mcp, dispatcher).sync()

        # credentials disappear between listing and reading
        await session.set_credentials(Credentials())
        with pytest.raises(ResourceError, match="NotAuthenticated"):
            await mcp.resources[ACCOUNT_RESOURCE_URI]["fn"]()


# =============================================================================
# HyperliquidMCPServer
# =============================================================================


class TestHyperliquidMCPServer:
    def test_environment_credentials_publish_account(self) -> None:
        server = HyperliquidMCPServer(Settings(wallet_address=TEST_WALLET), client_factory=FakeClientFactory())
        assert server.publisher.published == {ACCOUNT_RESOURCE_URI}

    def test_tool_metadata_comes_from_registry(self) -> None:
        server = HyperliquidMCPServer(Settings(), client_factory=FakeClientFactory())
        metadata = server._tool_metadata("place_order")
        assert metadata["name"] == "place_order"
        assert "trading" in metadata["tags"]

    @pytest.mark.asyncio
    async def test_call_drops_unset_optionals(self) -> None:
        factory = FakeClientFactory()
        server = HyperliquidMCPServer(Settings(), client_factory=factory)

        envelope = await server.call("authenticate", wallet_address=TEST_WALLET, private_key=None, testnet=None)
        assert envelope["ok"] is True
        assert factory.last.credentials.testnet is True
        assert ACCOUNT_RESOURCE_URI in server.publisher.published

    @pytest.mark.asyncio
    async def test_call_publishes_new_strategies(self) -> None:
        server = HyperliquidMCPServer(Settings(), client_factory=FakeClientFactory())
        envelope = await server.call("create_strategy", name="grid", description="BTC grid", config={})

        strategy_id = envelope["result"]["strategy_id"]
        assert f"hyperliquid://strategy/{strategy_id}" in server.publisher.published

    @pytest.mark.asyncio
    async def test_call_failure_is_an_envelope(self) -> None:
        server = HyperliquidMCPServer(Settings(), client_factory=FakeClientFactory())
        envelope = await server.call("get_account_info")
        assert envelope == {
            "ok": False,
            "error": {"code": "NotAuthenticated", "message": "No credentials provided. Please authenticate first."},
        }

    @pytest.mark.asyncio
    async def test_create_strategy_through_mcp_client(self) -> None:
        server = HyperliquidMCPServer(Settings(), client_factory=FakeClientFactory())

        async with Client(server.mcp) as client:
            await client.call_tool("create_strategy", {"name": "grid", "description": "BTC grid", "config": {"levels": 5}})
            resources = await client.list_resources()

        [record] = server.session.list_strategies()
        assert (record.name, record.description, record.config) == ("grid", "BTC grid", {"levels": 5})
        assert f"hyperliquid://strategy/{record.id}" in {str(resource.uri) for resource in resources}
