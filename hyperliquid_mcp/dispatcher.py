# hyperliquid_mcp/dispatcher.py
"""Request routing: look up the tool, validate arguments, run the handler and
wrap the outcome in a uniform envelope.

Success: ``{"ok": True, "result": <payload>}``
Failure: ``{"ok": False, "error": {"code": ..., "message": ..., "details": ...}}``
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from .account import fetch_account_snapshot
from .errors import HyperliquidMCPError, InternalError, InvalidParams, InvalidRequest, NotFound
from .exchange import CCXT_GENERAL_EXCEPTIONS
from .handlers import build_registry
from .models import ACCOUNT_RESOURCE_URI, STRATEGY_RESOURCE_PREFIX, ResourceRef, ToolDescriptor
from .registry import ToolRegistry
from .schemas import validate_arguments
from .session import SessionState

logger = logging.getLogger(__name__)


def success(result: Any) -> Dict[str, Any]:
    return {"ok": True, "result": result}


def failure(error: HyperliquidMCPError) -> Dict[str, Any]:
    return {"ok": False, "error": error.to_dict()}


class Dispatcher:
    """Runs tool calls and resource reads against one SessionState.

    Args:
        session: The session every handler operates on.
        registry: Tool catalog; defaults to the Hyperliquid tool set.
        timeout: Optional bound (seconds) on a single tool call or resource
                 read. Defaults to the session's `request_timeout` setting.
    """

    def __init__(self, session: SessionState, registry: Optional[ToolRegistry] = None, timeout: Optional[float] = None):
        self.session = session
        self.registry = registry if registry is not None else build_registry()
        self.timeout = timeout if timeout is not None else session.settings.request_timeout

    def list_tools(self) -> List[ToolDescriptor]:
        return self.registry.list()

    async def _bounded(self, awaitable):
        if not self.timeout:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self.timeout)

    async def call_tool(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        try:
            entry = self.registry.get(name)
            validation = validate_arguments(entry.arguments_model, arguments)
            if not validation.ok:
                message = "; ".join(
                    f"{error.field}: {error.message}" if error.field else error.message
                    for error in validation.errors
                )
                raise InvalidParams(message, details={"fields": [error.to_dict() for error in validation.errors]})
            result = await self._bounded(entry.handler(self.session, validation.arguments))
        except HyperliquidMCPError as e:
            logger.info("Tool %s failed with %s: %s", name, e.code.value, e.message)
            return failure(e)
        except asyncio.TimeoutError:
            logger.warning("Tool %s timed out after %ss", name, self.timeout)
            return failure(InternalError(f"Tool {name} timed out after {self.timeout} seconds"))
        except CCXT_GENERAL_EXCEPTIONS as e:
            logger.warning("Tool %s failed: %s", name, e)
            return failure(InternalError(str(e)))
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return failure(InternalError(f"An unexpected error occurred in {name}: {e}"))
        return success(result)

    # --- Resources ---

    def list_resources(self) -> List[ResourceRef]:
        resources = []
        if self.session.credentials.has_identity:
            resources.append(ResourceRef.account())
        for strategy in self.session.list_strategies():
            resources.append(ResourceRef.for_strategy(strategy))
        return resources

    async def read_resource(self, uri: str) -> Dict[str, Any]:
        """Resolves a resource URI to its JSON payload.

        Raises:
            InvalidRequest: For unknown URIs and unknown strategy ids.
            NotAuthenticated: When reading the account without credentials.
            InternalError: When the account snapshot cannot be built.
        """
        if uri == ACCOUNT_RESOURCE_URI:
            try:
                client = await self.session.get_client()
                return await self._bounded(fetch_account_snapshot(client, self.session.credentials))
            except HyperliquidMCPError:
                raise
            except asyncio.TimeoutError:
                raise InternalError(f"Reading {uri} timed out after {self.timeout} seconds")
            except Exception as e:
                logger.exception("Failed to read %s", uri)
                raise InternalError(f"Failed to fetch account information: {e}")

        if uri.startswith(STRATEGY_RESOURCE_PREFIX):
            strategy_id = uri[len(STRATEGY_RESOURCE_PREFIX):]
            try:
                return self.session.get_strategy(strategy_id).to_dict()
            except NotFound:
                raise InvalidRequest(f"Strategy {strategy_id} not found")

        raise InvalidRequest(f"Resource not found: {uri}")

    async def read_resource_envelope(self, uri: str) -> Dict[str, Any]:
        try:
            return success(await self.read_resource(uri))
        except HyperliquidMCPError as e:
            return failure(e)
