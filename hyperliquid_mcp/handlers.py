# hyperliquid_mcp/handlers.py

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, List, TypeVar

from .account import fetch_account_snapshot
from .errors import HyperliquidMCPError, InternalError, NotAuthenticated
from .exchange import CCXT_GENERAL_EXCEPTIONS, ExchangeClient
from .models import CancelSpec, Credentials, OrderSpec
from .registry import ToolRegistry
from .schemas import (
    ActivateStrategyArguments,
    AuthenticateArguments,
    CancelOrderArguments,
    CreateStrategyArguments,
    MarketDataArguments,
    NoArguments,
    PlaceOrderArguments,
    StrategyIdArguments,
)
from .session import NO_CREDENTIALS_MESSAGE, SessionState

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def exchange_call(action: str, call: Awaitable[T]) -> T:
    """Awaits an exchange call, turning SDK failures into InternalError."""
    try:
        return await call
    except HyperliquidMCPError:
        raise
    except CCXT_GENERAL_EXCEPTIONS as e:
        raise InternalError(f"Failed to {action}: {e}")
    except Exception as e:
        logger.exception("Unexpected error while trying to %s", action)
        raise InternalError(f"Failed to {action}: {e}")


async def trading_client(session: SessionState) -> ExchangeClient:
    # credential checks first: get_client() may connect
    credentials = session.credentials
    if not credentials.has_identity:
        raise NotAuthenticated(NO_CREDENTIALS_MESSAGE)
    if not credentials.can_sign:
        raise NotAuthenticated("Private key is required for trading operations")
    return await session.get_client()


# --- Authentication & account ---

async def authenticate(session: SessionState, args: AuthenticateArguments) -> str:
    credentials = Credentials(
        private_key=args.private_key,
        wallet_address=args.wallet_address,
        testnet=args.testnet,
        vault_address=args.vault_address,
    )
    await session.set_credentials(credentials)
    await exchange_call("initialize Hyperliquid client", session.get_client())
    return f"Successfully authenticated with Hyperliquid {credentials.network}"


async def get_account_info(session: SessionState, args: NoArguments) -> Dict[str, Any]:
    client = await session.get_client()
    return await fetch_account_snapshot(client, session.credentials)


# --- Market data ---

async def get_market_data(session: SessionState, args: MarketDataArguments) -> Dict[str, Any]:
    client = await session.get_client()
    order_book = await exchange_call("fetch market data", client.fetch_order_book(args.symbol))
    return {
        "symbol": args.symbol,
        "order_book": order_book,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# --- Trading ---

async def place_order(session: SessionState, args: PlaceOrderArguments) -> Dict[str, Any]:
    client = await trading_client(session)
    order = OrderSpec(
        symbol=args.symbol,
        is_buy=args.side == "buy",
        size=args.size_decimal,
        order_type=args.order_type,
        price=args.price_decimal if args.order_type == "limit" else None,
        reduce_only=args.reduce_only,
        vault_address=session.credentials.vault_address,
    )
    result = await exchange_call("place order", client.submit_order(order))
    return {"order": order.to_dict(), "response": result}


async def cancel_order(session: SessionState, args: CancelOrderArguments) -> Dict[str, Any]:
    client = await trading_client(session)
    cancel = CancelSpec(
        symbol=args.symbol,
        order_id=args.order_id,
        vault_address=session.credentials.vault_address,
    )
    result = await exchange_call("cancel order", client.submit_cancel(cancel))
    return {"symbol": cancel.symbol, "order_id": cancel.order_id, "response": result}


# --- Strategies ---

async def create_strategy(session: SessionState, args: CreateStrategyArguments) -> Dict[str, Any]:
    strategy_id = await session.create_strategy(args.name, args.description, args.config)
    return {
        "strategy_id": strategy_id,
        "message": f'Created strategy "{args.name}" with ID: {strategy_id}',
    }


async def activate_strategy(session: SessionState, args: ActivateStrategyArguments) -> str:
    await session.set_strategy_active(args.strategy_id, args.active)
    return f"Strategy {args.strategy_id} {'activated' if args.active else 'deactivated'}"


async def get_strategy(session: SessionState, args: StrategyIdArguments) -> Dict[str, Any]:
    return session.get_strategy(args.strategy_id).to_dict()


async def list_strategies(session: SessionState, args: NoArguments) -> List[Dict[str, Any]]:
    return [strategy.to_dict() for strategy in session.list_strategies()]


def build_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(
        "authenticate",
        "Authenticate with Hyperliquid using a private key or wallet address. "
        "A wallet address alone gives read-only access; trading requires the private key. "
        "Defaults to testnet unless `testnet` is false.",
        AuthenticateArguments,
        authenticate,
        tags={"account", "auth"},
    )
    registry.register(
        "get_account_info",
        "Get perpetual positions and spot balances (with USD values) for the authenticated account.",
        NoArguments,
        get_account_info,
        tags={"account", "balance", "positions"},
    )
    registry.register(
        "get_market_data",
        "Get the current order book for a specific asset.",
        MarketDataArguments,
        get_market_data,
        tags={"market_data", "orderbook"},
    )
    registry.register(
        "place_order",
        "Place a limit or market order on Hyperliquid. `price` is required for limit orders. "
        "Requires authentication with a private key.",
        PlaceOrderArguments,
        place_order,
        tags={"trading", "order", "create"},
    )
    registry.register(
        "cancel_order",
        "Cancel an existing order. Requires authentication with a private key.",
        CancelOrderArguments,
        cancel_order,
        tags={"trading", "order", "cancel"},
    )
    registry.register(
        "create_strategy",
        "Create a new trading strategy record (inactive until activated).",
        CreateStrategyArguments,
        create_strategy,
        tags={"strategy"},
    )
    registry.register(
        "activate_strategy",
        "Activate or deactivate a strategy.",
        ActivateStrategyArguments,
        activate_strategy,
        tags={"strategy"},
    )
    registry.register(
        "get_strategy",
        "Get a strategy record by ID.",
        StrategyIdArguments,
        get_strategy,
        tags={"strategy"},
    )
    registry.register(
        "list_strategies",
        "List all strategy records in creation order.",
        NoArguments,
        list_strategies,
        tags={"strategy"},
    )
    return registry
