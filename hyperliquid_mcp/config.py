# hyperliquid_mcp/config.py
"""Configuration management using pydantic-settings."""

import logging
import sys
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """Runtime settings, read from `HYPERLIQUID_*` variables and `.env`.

    Booleans only accept the usual spellings (true/false, 1/0, yes/no, on/off);
    anything else fails validation rather than falling back to mainnet.
    """

    model_config = SettingsConfigDict(
        env_prefix="HYPERLIQUID_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        str_strip_whitespace=True,
        extra="ignore",
        frozen=True,
    )

    testnet: bool = Field(default=True, description="Default network until `authenticate` overrides it")
    private_key: Optional[str] = Field(default=None, description="Signing key that pre-authenticates the session")
    wallet_address: Optional[str] = Field(default=None, description="Address that pre-authenticates the session read-only")
    vault_address: Optional[str] = Field(default=None, description="Vault to trade on behalf of")
    request_timeout: Optional[float] = Field(default=30.0, description="Seconds per tool call; 0 or less disables the bound")
    market_slippage: Decimal = Field(default=Decimal("0.05"), description="Slippage ccxt applies to market orders")
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("log_level", "LOG_LEVEL"))
    transport: str = Field(default="stdio", validation_alias=AliasChoices("transport", "MCP_TRANSPORT"))

    @field_validator("request_timeout")
    @classmethod
    def _disable_non_positive_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()


def load_settings(env_file: Optional[str] = ".env") -> Settings:
    """Builds Settings from the environment and, if present, `env_file`.

    Raises:
        pydantic.ValidationError: (a ValueError) for values that do not parse,
            e.g. `HYPERLIQUID_TESTNET=ture` or a non-numeric timeout.
    """
    return Settings(_env_file=env_file)


def configure_logging(level: str = "INFO") -> None:
    # stdout carries the stdio transport, so logs go to stderr
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
