"""Tool system: declarations, registry and dispatch."""
from toolwire.tools.dispatcher import ToolDispatcher
from toolwire.tools.registry import ToolDeclaration, ToolName, ToolRegistry

__all__ = ["ToolDispatcher", "ToolDeclaration", "ToolName", "ToolRegistry"]
