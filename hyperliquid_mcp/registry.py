# hyperliquid_mcp/registry.py

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Type

from .errors import NotFound
from .models import ToolDescriptor
from .schemas import ToolArguments, input_schema

Handler = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class ToolEntry:
    name: str
    description: str
    arguments_model: Type[ToolArguments]
    handler: Handler
    tags: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=input_schema(self.arguments_model),
        )


class ToolRegistry:
    """Ordered catalog of tool name -> (argument model, handler)."""

    def __init__(self):
        self._entries: Dict[str, ToolEntry] = {}

    def register(self, name: str, description: str, arguments_model: Type[ToolArguments], handler: Handler, tags=None) -> ToolEntry:
        if name in self._entries:
            raise ValueError(f"Tool '{name}' is already registered.")
        entry = ToolEntry(name, description, arguments_model, handler, frozenset(tags or ()))
        self._entries[name] = entry
        return entry

    def get(self, name: str) -> ToolEntry:
        entry = self._entries.get(name)
        if entry is None:
            raise NotFound(f"Unknown tool: {name}")
        return entry

    def list(self) -> List[ToolDescriptor]:
        return [entry.descriptor for entry in self._entries.values()]

    def entries(self) -> List[ToolEntry]:
        return list(self._entries.values())

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
