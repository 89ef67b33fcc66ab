# hyperliquid_mcp/account.py
"""Account snapshot aggregation.

The perpetual and spot sections are fetched independently: a failure in one
is logged and embedded as ``{"error": ...}`` while the other is still returned.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigurationError
from .exchange import ExchangeClient
from .models import Credentials

logger = logging.getLogger(__name__)

STABLE_COIN = "USDC"
STABLE_COIN_PRICE = Decimal("1.0")


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def build_price_map(spot_meta: Mapping[str, Any], asset_ctxs: List[Mapping[str, Any]]) -> Dict[str, Decimal]:
    """Maps each spot token name to the mark price of its USDC pair.

    Args:
        spot_meta: The `spotMeta` half of `spotMetaAndAssetCtxs`, holding the
                   `tokens` list and the pair `universe`.
        asset_ctxs: Per-pair contexts, aligned with the universe by index.
    """
    token_names = {token.get("index"): token.get("name") for token in spot_meta.get("tokens", [])}
    stable_index = next((index for index, name in token_names.items() if name == STABLE_COIN), 0)
    price_map: Dict[str, Decimal] = {}
    for pair in spot_meta.get("universe", []):
        pair_index = pair.get("index")
        tokens = pair.get("tokens") or []
        if pair_index is None or len(tokens) != 2 or pair_index >= len(asset_ctxs):
            continue
        base, quote = tokens
        if quote != stable_index or base not in token_names:
            continue
        mark_px = _to_decimal(asset_ctxs[pair_index].get("markPx"))
        if mark_px is not None:
            price_map[token_names[base]] = mark_px
    stable_price = price_map.get(STABLE_COIN)
    if stable_price is None or stable_price == 0:
        price_map[STABLE_COIN] = STABLE_COIN_PRICE
    return price_map


def value_spot_balances(balances: List[Mapping[str, Any]], price_map: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Adds `price` and `usd_value` (total x price) as decimal strings to each balance.

    Coins without a price are valued at 0, except the stable coin which
    defaults to 1.0 when its price is missing or zero.
    """
    valued = []
    for balance in balances:
        coin = balance.get("coin")
        total = _to_decimal(balance.get("total")) or Decimal("0")
        price = _to_decimal(price_map.get(coin))
        if coin == STABLE_COIN and not price:
            price = STABLE_COIN_PRICE
        if price is None:
            price = Decimal("0")
        usd_value = total * price
        logger.debug("Spot balance %s: amount=%s price=%s usd_value=%s", coin, total, price, usd_value)
        valued.append({**balance, "price": format(price, "f"), "usd_value": format(usd_value, "f")})
    return valued


async def _perpetuals_section(client: ExchangeClient, address: str) -> Dict[str, Any]:
    try:
        return await client.fetch_perp_summary(address)
    except Exception as e:
        logger.warning("Failed to fetch perpetuals state for %s: %s", address, e)
        return {"error": f"Failed to fetch perpetuals state: {e}"}


async def _spot_section(client: ExchangeClient, address: str) -> Dict[str, Any]:
    try:
        spot_state = await client.fetch_spot_summary(address)
        balances = (spot_state or {}).get("balances") or []
        if balances:
            spot_meta, asset_ctxs = await client.fetch_spot_market_context()
            price_map = build_price_map(spot_meta, asset_ctxs)
            logger.debug("Spot price map: %s", price_map)
            spot_state = {**spot_state, "balances": value_spot_balances(balances, price_map)}
        return spot_state
    except Exception as e:
        logger.warning("Failed to fetch spot state for %s: %s", address, e)
        return {"error": f"Failed to fetch spot state: {e}"}


async def fetch_account_snapshot(client: ExchangeClient, credentials: Credentials) -> Dict[str, Any]:
    """Builds the account snapshot served by `get_account_info` and the account resource.

    Raises:
        ConfigurationError: If the client cannot report the account address.
    """
    try:
        address = client.address
    except AttributeError:
        raise ConfigurationError("Exchange client does not expose an account address.")
    if not address:
        raise ConfigurationError("Exchange client has no account address configured.")

    perpetuals = await _perpetuals_section(client, address)
    spot = await _spot_section(client, address)
    return {
        "address": address,
        "network": credentials.network,
        "perpetuals": perpetuals,
        "spot": spot,
    }
