# hyperliquid_mcp/models.py

import copy
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Literal, Optional

ACCOUNT_RESOURCE_URI = "hyperliquid://account"
STRATEGY_RESOURCE_PREFIX = "hyperliquid://strategy/"
JSON_MIME_TYPE = "application/json"


@dataclass(frozen=True)
class Credentials:
    private_key: Optional[str] = None
    wallet_address: Optional[str] = None
    testnet: bool = True
    vault_address: Optional[str] = None

    @property
    def has_identity(self) -> bool:
        return bool(self.private_key or self.wallet_address)

    @property
    def can_sign(self) -> bool:
        return bool(self.private_key)

    @property
    def network(self) -> str:
        return "testnet" if self.testnet else "mainnet"

    def __repr__(self) -> str:
        # Never leak the private key into logs or tracebacks
        key = "<set>" if self.private_key else None
        return (
            f"Credentials(private_key={key!r}, wallet_address={self.wallet_address!r}, "
            f"testnet={self.testnet!r}, vault_address={self.vault_address!r})"
        )


@dataclass(frozen=True)
class StrategyRecord:
    id: str
    name: str
    description: str
    config: Dict[str, Any]
    active: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "config": copy.deepcopy(self.config),
            "active": self.active,
        }


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    input_schema: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}


@dataclass(frozen=True)
class ResourceRef:
    uri: str
    name: str
    description: str
    mime_type: str = JSON_MIME_TYPE

    @classmethod
    def account(cls) -> "ResourceRef":
        return cls(
            uri=ACCOUNT_RESOURCE_URI,
            name="Hyperliquid Account",
            description="Current account information from Hyperliquid",
        )

    @classmethod
    def for_strategy(cls, strategy: StrategyRecord) -> "ResourceRef":
        return cls(
            uri=f"{STRATEGY_RESOURCE_PREFIX}{strategy.id}",
            name=strategy.name,
            description=f"Trading strategy: {strategy.description}",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"uri": self.uri, "name": self.name, "description": self.description, "mimeType": self.mime_type}


@dataclass(frozen=True)
class OrderSpec:
    symbol: str
    is_buy: bool
    size: Decimal
    order_type: Literal["limit", "market"]
    price: Optional[Decimal] = None
    reduce_only: bool = False
    vault_address: Optional[str] = None

    @property
    def side(self) -> str:
        return "buy" if self.is_buy else "sell"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "side": self.side,
            "size": format(self.size, "f"),
            "price": format(self.price, "f") if self.price is not None else None,
            "order_type": self.order_type,
            "reduce_only": self.reduce_only,
        }


@dataclass(frozen=True)
class CancelSpec:
    symbol: str
    order_id: str
    vault_address: Optional[str] = None
