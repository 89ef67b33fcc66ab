# hyperliquid_mcp/exchange.py

import logging
from typing import Any, Dict, List, Optional, Protocol

import ccxt.async_support as ccxtasync
from eth_account import Account

from .config import Settings
from .errors import ConfigurationError, InternalError
from .models import CancelSpec, Credentials, OrderSpec

logger = logging.getLogger(__name__)

# --- Constants for CCXT Exception Handling ---
CCXT_GENERAL_EXCEPTIONS = (
    ccxtasync.AuthenticationError, # Covers PermissionDenied, AccountNotEnabled, AccountSuspended
    ccxtasync.ArgumentsRequired,
    ccxtasync.BadRequest,          # Covers BadSymbol
    ccxtasync.InsufficientFunds,
    ccxtasync.InvalidOrder,        # Covers OrderNotFound, OrderNotCached, etc.
    ccxtasync.NotSupported,
    ccxtasync.NetworkError,        # Covers DDoSProtection, RateLimitExceeded, ExchangeNotAvailable, RequestTimeout, OnMaintenance
    ccxtasync.BadResponse,         # Covers NullResponse
    ccxtasync.CancelPending,
    ccxtasync.ExchangeError,       # General ccxt exchange error, placed after more specific ones
    ValueError
)

QUOTE_ASSET = "USDC"


class ExchangeClient(Protocol):
    """The narrow surface of the exchange SDK the adapter relies on."""

    @property
    def address(self) -> str: ...

    async def connect(self) -> None: ...

    async def fetch_perp_summary(self, address: str) -> Dict[str, Any]: ...

    async def fetch_spot_summary(self, address: str) -> Dict[str, Any]: ...

    async def fetch_spot_market_context(self) -> List[Any]: ...

    async def fetch_order_book(self, symbol: str) -> Dict[str, Any]: ...

    async def submit_order(self, order: OrderSpec) -> Dict[str, Any]: ...

    async def submit_cancel(self, cancel: CancelSpec) -> Dict[str, Any]: ...

    async def close(self) -> None: ...


def resolve_symbol(symbol: str) -> str:
    """Maps `BTC-PERP` / `PURR-SPOT` shorthand onto ccxt unified symbols.

    Anything else (e.g. `BTC/USDC:USDC`) is assumed to already be a ccxt symbol.
    """
    symbol = symbol.strip()
    upper = symbol.upper()
    if upper.endswith("-PERP"):
        return f"{upper[:-len('-PERP')]}/{QUOTE_ASSET}:{QUOTE_ASSET}"
    if upper.endswith("-SPOT"):
        return f"{upper[:-len('-SPOT')]}/{QUOTE_ASSET}"
    return symbol


def derive_address(credentials: Credentials) -> Optional[str]:
    if credentials.wallet_address:
        return credentials.wallet_address
    if credentials.private_key:
        return Account.from_key(credentials.private_key).address
    return None


class CcxtHyperliquidClient:
    """Hyperliquid access through `ccxt.async_support.hyperliquid`.

    One instance is kept per authenticated session and reused across calls,
    so its HTTP session must be released with `close()` when it is replaced.

    Args:
        credentials: Validated session credentials. The wallet address is used
                     for account queries; when only a private key is given the
                     address is derived from it.
        market_slippage: Slippage ccxt applies around the reference price of
                         market orders (0.05 means 5%).
    """

    def __init__(self, credentials: Credentials, market_slippage: Optional[float] = None):
        self._address = derive_address(credentials)
        config: Dict[str, Any] = {
            'enableRateLimit': True,
            'options': {},
        }
        if self._address:
            config['walletAddress'] = self._address
        if credentials.private_key:
            config['privateKey'] = credentials.private_key
        if market_slippage is not None:
            config['options']['defaultSlippage'] = market_slippage
        self._exchange = ccxtasync.hyperliquid(config)
        if credentials.testnet:
            self._exchange.set_sandbox_mode(True)

    @property
    def address(self) -> str:
        if not self._address:
            raise ConfigurationError("Exchange client has no account address configured.")
        return self._address

    async def connect(self) -> None:
        await self._exchange.load_markets()

    async def fetch_perp_summary(self, address: str) -> Dict[str, Any]:
        return await self._exchange.public_post_info({'type': 'clearinghouseState', 'user': address})

    async def fetch_spot_summary(self, address: str) -> Dict[str, Any]:
        return await self._exchange.public_post_info({'type': 'spotClearinghouseState', 'user': address})

    async def fetch_spot_market_context(self) -> List[Any]:
        return await self._exchange.public_post_info({'type': 'spotMetaAndAssetCtxs'})

    async def fetch_order_book(self, symbol: str) -> Dict[str, Any]:
        return await self._exchange.fetch_order_book(resolve_symbol(symbol))

    async def _reference_price(self, symbol: str, is_buy: bool) -> float:
        # ccxt needs a price on hyperliquid market orders to bound slippage
        book = await self._exchange.fetch_order_book(symbol)
        levels = book.get('asks') if is_buy else book.get('bids')
        if not levels:
            raise InternalError(f"No {'asks' if is_buy else 'bids'} on the book for {symbol}; cannot price a market order.")
        return levels[0][0]

    async def submit_order(self, order: OrderSpec) -> Dict[str, Any]:
        symbol = resolve_symbol(order.symbol)
        params: Dict[str, Any] = {'reduceOnly': order.reduce_only}
        if order.vault_address:
            params['vaultAddress'] = order.vault_address
        if order.order_type == "limit":
            price = float(order.price)
        else:
            price = await self._reference_price(symbol, order.is_buy)
        logger.info("Submitting %s %s order on %s: size=%s price=%s", order.order_type, order.side, symbol, order.size, price)
        return await self._exchange.create_order(symbol, order.order_type, order.side, float(order.size), price, params)

    async def submit_cancel(self, cancel: CancelSpec) -> Dict[str, Any]:
        symbol = resolve_symbol(cancel.symbol)
        params: Dict[str, Any] = {}
        if cancel.vault_address:
            params['vaultAddress'] = cancel.vault_address
        logger.info("Cancelling order %s on %s", cancel.order_id, symbol)
        return await self._exchange.cancel_order(cancel.order_id, symbol, params)

    async def close(self) -> None:
        await self._exchange.close()


def create_exchange_client(credentials: Credentials, settings: Optional[Settings] = None) -> CcxtHyperliquidClient:
    slippage = float(settings.market_slippage) if settings is not None else None
    return CcxtHyperliquidClient(credentials, market_slippage=slippage)
