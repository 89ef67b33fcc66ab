# hyperliquid_mcp/schemas.py
"""Typed argument records for every tool.

Each model doubles as the tool's declared input schema (`model_json_schema`).
Validation is strict: JSON strings are never coerced into numbers or booleans.
Unknown keys are ignored so older servers keep accepting newer clients.
The camelCase argument names of earlier clients (`privateKey`, `orderType`,
`orderId`, `strategyId`, ...) are accepted as aliases; schemas advertise
snake_case.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Type, Union

from eth_account import Account
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class ToolArguments(BaseModel):
    model_config = ConfigDict(extra="ignore", strict=True, frozen=True)


def normalize_private_key(private_key: str) -> str:
    """Returns the key with a `0x` prefix, raising ValueError if it cannot sign."""
    key = private_key.strip()
    if not key.startswith("0x"):
        key = f"0x{key}"
    try:
        Account.from_key(key)
    except Exception:
        # eth-account raises a mix of ValueError/binascii/eth_keys errors here
        raise ValueError("Invalid private key format")
    return key


class AuthenticateArguments(ToolArguments):
    private_key: Optional[str] = Field(None, validation_alias=AliasChoices("private_key", "privateKey"), description="Private key for authentication (optional if wallet_address is provided). The '0x' prefix is optional.")
    wallet_address: Optional[str] = Field(None, validation_alias=AliasChoices("wallet_address", "walletAddress"), description="Wallet address for authentication (optional if private_key is provided).")
    testnet: bool = Field(True, description="Whether to use testnet (default: true).")
    vault_address: Optional[str] = Field(None, validation_alias=AliasChoices("vault_address", "vaultAddress"), description="Vault address to trade on behalf of (optional).")

    @field_validator("private_key", "wallet_address", "vault_address")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value.strip() == "":
            return None
        return value

    @field_validator("private_key")
    @classmethod
    def _check_private_key(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return normalize_private_key(value)

    @model_validator(mode="after")
    def _require_identity(self) -> "AuthenticateArguments":
        if not self.private_key and not self.wallet_address:
            raise ValueError("Either private_key or wallet_address must be provided")
        return self


class NoArguments(ToolArguments):
    pass


class MarketDataArguments(ToolArguments):
    symbol: str = Field(..., min_length=1, description="Symbol to get market data for (e.g., BTC-PERP, PURR-SPOT or a ccxt symbol like BTC/USDC:USDC).")


class PlaceOrderArguments(ToolArguments):
    symbol: str = Field(..., min_length=1, description="Symbol to trade (e.g., BTC-PERP, PURR-SPOT).")
    side: Literal["buy", "sell"] = Field(..., description="Order side (buy or sell).")
    size: float = Field(..., gt=0, description="Order size in base units. Must be greater than 0.")
    order_type: Literal["limit", "market"] = Field(..., validation_alias=AliasChoices("order_type", "orderType"), description="Order type (limit or market).")
    price: Optional[float] = Field(None, gt=0, description="Limit price. Required for limit orders, ignored for market orders.")
    reduce_only: bool = Field(False, validation_alias=AliasChoices("reduce_only", "reduceOnly"), description="Whether the order is reduce-only (default: false).")

    @model_validator(mode="after")
    def _price_for_limit(self) -> "PlaceOrderArguments":
        if self.order_type == "limit" and self.price is None:
            raise ValueError("Price is required for limit orders")
        return self

    @property
    def size_decimal(self) -> Decimal:
        # str() first so 0.1 stays 0.1 instead of its binary expansion
        return Decimal(str(self.size))

    @property
    def price_decimal(self) -> Optional[Decimal]:
        if self.price is None:
            return None
        return Decimal(str(self.price))


class CancelOrderArguments(ToolArguments):
    symbol: str = Field(..., min_length=1, description="Symbol of the order to cancel.")
    order_id: Union[str, int] = Field(..., validation_alias=AliasChoices("order_id", "orderId"), description="ID of the order to cancel.")

    @field_validator("order_id")
    @classmethod
    def _order_id_text(cls, value: Union[str, int]) -> str:
        text = str(value).strip()
        if not text:
            raise ValueError("order_id must not be empty")
        return text


class CreateStrategyArguments(ToolArguments):
    name: str = Field(..., min_length=1, description="Name of the strategy.")
    description: str = Field(..., min_length=1, description="Description of the strategy.")
    config: Dict[str, Any] = Field(..., description="Strategy configuration (any JSON object).")


class ActivateStrategyArguments(ToolArguments):
    strategy_id: str = Field(..., min_length=1, validation_alias=AliasChoices("strategy_id", "strategyId"), description="ID of the strategy to activate/deactivate.")
    active: bool = Field(..., description="Whether to activate (true) or deactivate (false) the strategy.")


class StrategyIdArguments(ToolArguments):
    strategy_id: str = Field(..., min_length=1, validation_alias=AliasChoices("strategy_id", "strategyId"), description="ID of the strategy.")


# --- Validation ---

@dataclass(frozen=True)
class FieldError:
    field: Optional[str]
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class ValidationResult:
    """Either the typed arguments or the field-level failures, never both."""

    arguments: Optional[ToolArguments] = None
    errors: Tuple[FieldError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


def _field_errors(exc: ValidationError) -> Tuple[FieldError, ...]:
    errors = []
    for error in exc.errors():
        loc = error.get("loc") or ()
        message = error.get("msg", "Invalid value")
        # model_validator failures come back as "Value error, <message>"
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append(FieldError(field=str(loc[0]) if loc else None, message=message))
    return tuple(errors)


def validate_arguments(model: Type[ToolArguments], arguments: Optional[Mapping[str, Any]]) -> ValidationResult:
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        return ValidationResult(errors=(FieldError(field=None, message="Arguments must be an object"),))
    try:
        return ValidationResult(arguments=model.model_validate(dict(arguments)))
    except ValidationError as e:
        return ValidationResult(errors=_field_errors(e))


def input_schema(model: Type[ToolArguments]) -> Dict[str, Any]:
    schema = model.model_json_schema()
    schema.pop("title", None)
    schema.setdefault("properties", {})
    return schema
