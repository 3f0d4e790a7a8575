"""
Tool Registry: the Catalog of Capabilities.

Every tool the model can call is listed here twice over: once as a declaration
(the name and parameter schema advertised to the model) and once as a handler
(the Python function that runs when the model asks for it). The registry serves
two purposes:

1. DISCOVERY: the declarations are rendered into the function-declaration
   array sent along with each model request.

2. DISPATCH: when the model returns a tool call, the registry maps the tool
   name to its handler by exact string match.

The registry is built once at startup and never changes afterwards. Building it
checks that every declared tool has a handler and every handler is declared, so
a typo in a tool name fails at boot instead of mid-conversation.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

import structlog

from toolwire.errors import RegistryMismatchError
from toolwire.types import ToolResponseEnvelope

logger = structlog.get_logger(__name__)


class ToolName(str, Enum):
    """Identifiers of the tools that ship with toolwire."""
    GET_YOUTUBE_TRANSCRIPT = "get_youtube_transcript"
    CALCULATE = "calculate"


# (args, name) -> envelope, either directly or as an awaitable.
ToolHandler = Callable[
    [Optional[Mapping[str, Any]], str],
    Union[ToolResponseEnvelope, Awaitable[ToolResponseEnvelope]],
]


@dataclass(frozen=True)
class ToolDeclaration:
    """
    Static description of a capability exposed to the model.

    ``properties`` and ``required`` describe the accepted arguments in the
    JSON-Schema subset the model understands. Declarations are defined once at
    import time and never mutated.
    """
    name: str
    description: str
    properties: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    required: tuple[str, ...] = ()

    def to_api_format(self) -> dict[str, Any]:
        """
        Convert to the function-declaration record advertised to the model:
        {
            "name": "tool_name",
            "parameters": {
                "type": "object",
                "description": "What this tool does and when to use it",
                "properties": {...},
                "required": [...]
            }
        }
        """
        return {
            "name": self.name,
            "parameters": {
                "type": "object",
                "description": self.description,
                "properties": {key: dict(value) for key, value in self.properties.items()},
                "required": list(self.required),
            },
        }


def _key(name: Union[str, ToolName]) -> str:
    return name.value if isinstance(name, ToolName) else str(name)


class ToolRegistry(Mapping[str, ToolHandler]):
    """
    Read-only mapping from tool name to handler.

    Use ``from_handlers`` to build one; there is no way to register or remove
    a tool once the registry exists.
    """

    def __init__(
        self,
        handlers: Mapping[Union[str, ToolName], ToolHandler],
        declarations: Iterable[ToolDeclaration] = (),
    ):
        self._handlers: Mapping[str, ToolHandler] = MappingProxyType(
            {_key(name): handler for name, handler in handlers.items()}
        )
        self._declarations: tuple[ToolDeclaration, ...] = tuple(declarations)
        logger.debug(
            "tool_registry.initialized",
            tools=sorted(self._handlers),
            declared=len(self._declarations),
        )

    @classmethod
    def from_handlers(
        cls,
        handlers: Mapping[Union[str, ToolName], ToolHandler],
        declarations: Optional[Iterable[ToolDeclaration]] = None,
    ) -> "ToolRegistry":
        """Build a registry, checking it against ``declarations`` when given."""
        registry = cls(handlers, declarations or ())
        if declarations is not None:
            registry.validate()
        return registry

    def validate(self) -> None:
        """Raise RegistryMismatchError unless declarations and handlers line up."""
        declared = [d.name for d in self._declarations]
        missing = [name for name in declared if name not in self._handlers]
        undeclared = sorted(name for name in self._handlers if name not in declared)
        if missing or undeclared:
            logger.error(
                "tool_registry.mismatch",
                missing_handlers=missing,
                undeclared_handlers=undeclared,
            )
            raise RegistryMismatchError(missing, undeclared)

    def get(self, name: Any, default: Optional[ToolHandler] = None) -> Optional[ToolHandler]:
        """Exact-match lookup. Non-string names never resolve."""
        if isinstance(name, ToolName):
            name = name.value
        if not isinstance(name, str):
            return default
        return self._handlers.get(name, default)

    def __getitem__(self, name: str) -> ToolHandler:
        return self._handlers[_key(name)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def declarations(self) -> list[dict[str, Any]]:
        """The declaration records to advertise to the model, in declared order."""
        return [d.to_api_format() for d in self._declarations]

    @property
    def names(self) -> list[str]:
        return list(self._handlers)
