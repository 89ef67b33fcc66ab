# mcp_server.py

import json
import logging
from contextlib import asynccontextmanager
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Set, Union

from fastmcp import FastMCP
from fastmcp.exceptions import ResourceError
from pydantic import Field

from hyperliquid_mcp.config import Settings, configure_logging, load_settings
from hyperliquid_mcp.dispatcher import Dispatcher
from hyperliquid_mcp.errors import HyperliquidMCPError
from hyperliquid_mcp.session import ClientFactory, SessionState

logger = logging.getLogger("hyperliquid_mcp.server")


class ResourcePublisher:
    """Mirrors the dispatcher's resource list onto the FastMCP server.

    FastMCP only lists resources that were registered with it, so the account
    resource (once credentials exist) and each new strategy are registered as
    they appear. Reads always go back through the dispatcher.
    """

    def __init__(self, mcp: FastMCP, dispatcher: Dispatcher):
        self._mcp = mcp
        self._dispatcher = dispatcher
        self._published: Set[str] = set()

    @property
    def published(self) -> Set[str]:
        return set(self._published)

    def sync(self) -> List[str]:
        added = []
        for ref in self._dispatcher.list_resources():
            if ref.uri in self._published:
                continue
            self._mcp.resource(
                ref.uri,
                name=ref.name,
                description=ref.description,
                mime_type=ref.mime_type,
            )(self._reader(ref.uri))
            self._published.add(ref.uri)
            added.append(ref.uri)
        if added:
            logger.debug("Published resources: %s", added)
        return added

    def _reader(self, uri: str) -> Callable[[], Any]:
        async def read_resource() -> str:
            try:
                payload = await self._dispatcher.read_resource(uri)
            except HyperliquidMCPError as e:
                raise ResourceError(f"{e.code.value}: {e.message}")
            return json.dumps(payload, indent=2, default=str)
        return read_resource


class HyperliquidMCPServer:
    """FastMCP front end owning one session, its dispatcher and the resource publisher.

    Args:
        settings: Runtime settings; read from the environment when omitted.
        client_factory: Optional exchange client factory (tests inject fakes here).
    """

    def __init__(self, settings: Optional[Settings] = None, client_factory: Optional[ClientFactory] = None):
        self.settings = settings if settings is not None else load_settings()
        self.session = SessionState(self.settings, client_factory=client_factory)
        self.dispatcher = Dispatcher(self.session)
        self.mcp = FastMCP("Hyperliquid MCP Server", lifespan=self._lifespan)
        self.publisher = ResourcePublisher(self.mcp, self.dispatcher)
        self._register_tools()
        self.publisher.sync()

    @asynccontextmanager
    async def _lifespan(self, server):
        try:
            yield
        finally:
            await self.session.close()

    async def call(self, tool_name: str, /, **arguments: Any) -> Dict:
        """Dispatches a tool call, dropping unset optionals so argument defaults apply."""
        envelope = await self.dispatcher.call_tool(tool_name, {k: v for k, v in arguments.items() if v is not None})
        self.publisher.sync()
        return envelope

    def _tool_metadata(self, name: str) -> Dict[str, Any]:
        entry = self.dispatcher.registry.get(name)
        return {"name": entry.name, "description": entry.description, "tags": set(entry.tags)}

    def _register_tools(self) -> None:
        mcp = self.mcp
        call = self.call

        # --- Authentication & Account ---

        @mcp.tool(**self._tool_metadata("authenticate"))
        async def authenticate_tool(
            private_key: Annotated[Optional[str], Field(description="Optional: Private key for signing (hex, '0x' prefix optional). Required for trading. Optional if wallet_address is provided.")] = None,
            wallet_address: Annotated[Optional[str], Field(description="Optional: Wallet address for read-only access. Optional if private_key is provided.")] = None,
            testnet: Annotated[Optional[bool], Field(description="Optional: Whether to use testnet. Defaults to true.")] = None,
            vault_address: Annotated[Optional[str], Field(description="Optional: Vault address to trade on behalf of.")] = None,
        ) -> Dict:
            """Internal use: Authenticates the session. Primary description is in @mcp.tool decorator."""
            return await call(
                "authenticate",
                private_key=private_key,
                wallet_address=wallet_address,
                testnet=testnet,
                vault_address=vault_address,
            )

        @mcp.tool(**self._tool_metadata("get_account_info"))
        async def get_account_info_tool() -> Dict:
            """Internal use: Fetches the account snapshot. Primary description is in @mcp.tool decorator."""
            return await call("get_account_info")

        # --- Market Data ---

        @mcp.tool(**self._tool_metadata("get_market_data"))
        async def get_market_data_tool(
            symbol: Annotated[str, Field(description="Symbol to get market data for (e.g., 'BTC-PERP', 'PURR-SPOT', or a ccxt symbol such as 'BTC/USDC:USDC').")],
        ) -> Dict:
            """Internal use: Fetches the order book. Primary description is in @mcp.tool decorator."""
            return await call("get_market_data", symbol=symbol)

        # --- Trading ---

        @mcp.tool(**self._tool_metadata("place_order"))
        async def place_order_tool(
            symbol: Annotated[str, Field(description="Symbol to trade (e.g., 'BTC-PERP', 'ETH-PERP', 'PURR-SPOT').")],
            side: Annotated[Literal["buy", "sell"], Field(description="Order side: 'buy' or 'sell'.")],
            size: Annotated[float, Field(description="Order size in base units. Must be greater than 0.", gt=0)],
            order_type: Annotated[Literal["limit", "market"], Field(description="Order type: 'limit' or 'market'.")],
            price: Annotated[Optional[float], Field(description="Limit price. Required for limit orders, ignored for market orders.")] = None,
            reduce_only: Annotated[Optional[bool], Field(description="Optional: Whether the order may only reduce a position. Defaults to false.")] = None,
        ) -> Dict:
            """Internal use: Places an order. Primary description is in @mcp.tool decorator."""
            return await call(
                "place_order",
                symbol=symbol,
                side=side,
                size=size,
                order_type=order_type,
                price=price,
                reduce_only=reduce_only,
            )

        @mcp.tool(**self._tool_metadata("cancel_order"))
        async def cancel_order_tool(
            symbol: Annotated[str, Field(description="Symbol of the order to cancel.")],
            order_id: Annotated[Union[str, int], Field(description="ID of the order to cancel.")],
        ) -> Dict:
            """Internal use: Cancels an order. Primary description is in @mcp.tool decorator."""
            return await call("cancel_order", symbol=symbol, order_id=order_id)

        # --- Strategies ---

        @mcp.tool(**self._tool_metadata("create_strategy"))
        async def create_strategy_tool(
            name: Annotated[str, Field(description="Name of the strategy.")],
            description: Annotated[str, Field(description="Description of the strategy.")],
            config: Annotated[Dict[str, Any], Field(description="Strategy configuration (any JSON object).")],
        ) -> Dict:
            """Internal use: Creates a strategy. Primary description is in @mcp.tool decorator."""
            return await call("create_strategy", name=name, description=description, config=config)

        @mcp.tool(**self._tool_metadata("activate_strategy"))
        async def activate_strategy_tool(
            strategy_id: Annotated[str, Field(description="ID of the strategy to activate/deactivate.")],
            active: Annotated[bool, Field(description="True to activate, false to deactivate.")],
        ) -> Dict:
            """Internal use: Toggles a strategy. Primary description is in @mcp.tool decorator."""
            return await call("activate_strategy", strategy_id=strategy_id, active=active)

        @mcp.tool(**self._tool_metadata("get_strategy"))
        async def get_strategy_tool(
            strategy_id: Annotated[str, Field(description="ID of the strategy.")],
        ) -> Dict:
            """Internal use: Reads a strategy. Primary description is in @mcp.tool decorator."""
            return await call("get_strategy", strategy_id=strategy_id)

        @mcp.tool(**self._tool_metadata("list_strategies"))
        async def list_strategies_tool() -> Dict:
            """Internal use: Lists strategies. Primary description is in @mcp.tool decorator."""
            return await call("list_strategies")

    def run(self) -> None:
        logger.info("Starting Hyperliquid MCP Server (%s, transport=%s)...", self.session.credentials.network, self.settings.transport)
        self.mcp.run(transport=self.settings.transport)


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    HyperliquidMCPServer(settings).run()


# --- Main execution (for running the server) ---
if __name__ == "__main__":
    main()
