# hyperliquid_mcp/errors.py

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    INVALID_PARAMS = "InvalidParams"
    NOT_AUTHENTICATED = "NotAuthenticated"
    NOT_FOUND = "NotFound"
    INTERNAL_ERROR = "InternalError"
    INVALID_REQUEST = "InvalidRequest"


class HyperliquidMCPError(Exception):
    """Base error surfaced to callers through the response envelope.

    Args:
        message: Human readable explanation, returned verbatim to the caller.
        details: Optional structured data (e.g. field-level validation failures).
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        error = {"code": self.code.value, "message": self.message}
        if self.details:
            error["details"] = self.details
        return error


class InvalidParams(HyperliquidMCPError):
    code = ErrorCode.INVALID_PARAMS


class NotAuthenticated(HyperliquidMCPError):
    code = ErrorCode.NOT_AUTHENTICATED


class NotFound(HyperliquidMCPError):
    code = ErrorCode.NOT_FOUND


class InternalError(HyperliquidMCPError):
    code = ErrorCode.INTERNAL_ERROR


class InvalidRequest(HyperliquidMCPError):
    code = ErrorCode.INVALID_REQUEST


class ConfigurationError(InternalError):
    """The exchange client is missing something the adapter depends on."""
