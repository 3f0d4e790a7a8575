"""
Core data types shared across toolwire subsystems.

This module defines the lightweight containers that cross the boundary between
the model-interaction layer and the dispatcher. They live here rather than in
a specific subsystem to avoid circular imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

# A response envelope is a list holding exactly one
# {"functionResponse": {"name": ..., "response": {..., "content": ...}}} record.
ToolResponseEnvelope = list[dict[str, Any]]


@dataclass(frozen=True)
class ToolCall:
    """A single invocation request issued by the model.

    ``args`` is whatever the model sent; its shape is implied by the matching
    declaration but only the handler validates it.
    """

    name: Optional[str]
    args: Optional[Mapping[str, Any]] = field(default=None)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ToolCall":
        """Build a ToolCall from the wire shape ``{"name": ..., "args": {...}}``."""
        return cls(name=data.get("name"), args=data.get("args"))

    @classmethod
    def coerce(cls, call: "ToolCall | Mapping[str, Any]") -> "ToolCall":
        if isinstance(call, ToolCall):
            return call
        return cls.from_dict(call)


def build_envelope(name: Optional[str], content: Any, /, **echo: Any) -> ToolResponseEnvelope:
    """Build a fresh response envelope.

    ``echo`` carries the salient inputs (the URL, the equation...) and lands
    next to ``content`` in the response mapping. ``content`` is always set.
    """
    response: dict[str, Any] = dict(echo)
    response["content"] = content
    return [
        {
            "functionResponse": {
                "name": name,
                "response": response,
            },
        },
    ]


def envelope_content(envelope: ToolResponseEnvelope) -> Any:
    """Return the ``content`` field of a single-record envelope."""
    return envelope[0]["functionResponse"]["response"]["content"]
