"""MCP adapter exposing Hyperliquid account, market data, trading and strategy tools."""

from .config import Settings, configure_logging, load_settings
from .dispatcher import Dispatcher
from .errors import (
    ErrorCode,
    HyperliquidMCPError,
    InternalError,
    InvalidParams,
    InvalidRequest,
    NotAuthenticated,
    NotFound,
)
from .handlers import build_registry
from .models import Credentials, ResourceRef, StrategyRecord, ToolDescriptor
from .registry import ToolRegistry
from .session import SessionState

__version__ = "0.1.0"

__all__ = [
    "Credentials",
    "Dispatcher",
    "ErrorCode",
    "HyperliquidMCPError",
    "InternalError",
    "InvalidParams",
    "InvalidRequest",
    "NotAuthenticated",
    "NotFound",
    "ResourceRef",
    "SessionState",
    "Settings",
    "StrategyRecord",
    "ToolDescriptor",
    "ToolRegistry",
    "build_registry",
    "configure_logging",
    "load_settings",
]
