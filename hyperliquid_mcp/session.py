# hyperliquid_mcp/session.py

import asyncio
import copy
import logging
import random
import time
from dataclasses import replace
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from .config import Settings
from .errors import NotAuthenticated, NotFound
from .exchange import ExchangeClient, create_exchange_client
from .models import Credentials, StrategyRecord
from .schemas import normalize_private_key

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Credentials], ExchangeClient]

NO_CREDENTIALS_MESSAGE = "No credentials provided. Please authenticate first."


def generate_strategy_id() -> str:
    return f"strategy-{int(time.time() * 1000)}-{random.randint(0, 999)}"


def credentials_from_settings(settings: Settings) -> Credentials:
    """Initial credentials, pre-populated from the environment when configured."""
    private_key = settings.private_key
    if private_key:
        private_key = normalize_private_key(private_key)
    return Credentials(
        private_key=private_key,
        wallet_address=settings.wallet_address,
        testnet=settings.testnet,
        vault_address=settings.vault_address,
    )


class SessionState:
    """Credentials, the exchange client handle and strategy records of one server.

    Mutations are serialized with an asyncio lock; readers see the last
    committed state. The exchange client is built lazily from the stored
    credentials and reused until the credentials are replaced.

    Args:
        settings: Runtime settings. Supplies the default network and is passed
                  to the default client factory.
        client_factory: Builds an (unconnected) exchange client from
                        credentials. Defaults to the ccxt-backed client.
    """

    def __init__(self, settings: Optional[Settings] = None, client_factory: Optional[ClientFactory] = None):
        self.settings = settings or Settings()
        self._client_factory = client_factory or partial(create_exchange_client, settings=self.settings)
        self._credentials = credentials_from_settings(self.settings)
        self._client: Optional[ExchangeClient] = None
        self._strategies: Dict[str, StrategyRecord] = {}
        self._lock = asyncio.Lock()

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def has_client(self) -> bool:
        return self._client is not None

    # --- Credentials & client ---

    async def set_credentials(self, credentials: Credentials) -> None:
        async with self._lock:
            previous = self._client
            self._credentials = credentials
            self._client = None
        logger.info(
            "Credentials replaced (network=%s, address=%s, signing=%s)",
            credentials.network, credentials.wallet_address, credentials.can_sign,
        )
        if previous is not None:
            await self._close_client(previous)

    async def get_client(self) -> ExchangeClient:
        """Returns the connected exchange client, building it on first use.

        Raises:
            NotAuthenticated: If no private key or wallet address is stored.
        """
        client = self._client
        if client is not None:
            return client
        async with self._lock:
            if self._client is not None:
                return self._client
            credentials = self._credentials
            if not credentials.has_identity:
                raise NotAuthenticated(NO_CREDENTIALS_MESSAGE)
            client = self._client_factory(credentials)
            try:
                await client.connect()
            except BaseException:
                await self._close_client(client)
                raise
            self._client = client
            logger.info("Connected exchange client on %s", credentials.network)
            return client

    async def close(self) -> None:
        async with self._lock:
            client, self._client = self._client, None
        if client is not None:
            await self._close_client(client)

    @staticmethod
    async def _close_client(client: ExchangeClient) -> None:
        try:
            await client.close()
        except Exception:
            logger.warning("Failed to close exchange client cleanly", exc_info=True)

    # --- Strategies ---

    async def create_strategy(self, name: str, description: str, config: Dict[str, Any]) -> str:
        async with self._lock:
            strategy_id = generate_strategy_id()
            while strategy_id in self._strategies:
                strategy_id = generate_strategy_id()
            self._strategies[strategy_id] = StrategyRecord(
                id=strategy_id,
                name=name,
                description=description,
                config=copy.deepcopy(config),
                active=False,
            )
        logger.info("Created strategy %s (%s)", strategy_id, name)
        return strategy_id

    async def set_strategy_active(self, strategy_id: str, active: bool) -> None:
        async with self._lock:
            record = self._strategies.get(strategy_id)
            if record is None:
                raise NotFound(f"Strategy {strategy_id} not found")
            self._strategies[strategy_id] = replace(record, active=active)
        logger.info("Strategy %s %s", strategy_id, "activated" if active else "deactivated")

    def list_strategies(self) -> List[StrategyRecord]:
        return list(self._strategies.values())

    def get_strategy(self, strategy_id: str) -> StrategyRecord:
        record = self._strategies.get(strategy_id)
        if record is None:
            raise NotFound(f"Strategy {strategy_id} not found")
        return record
