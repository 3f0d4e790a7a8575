"""
Built-in Tools: the Capabilities toolwire Ships With.

Each tool appears twice: as a declaration in FUNCTION_DECLARATIONS (what the
model is told it can call) and as a handler (what actually runs). The
register_builtin_tools() function pairs them into a ToolRegistry at startup and
refuses to start if the two lists disagree.

Declaration descriptions are prompts. They tell the model not just WHAT a tool
does but WHEN to reach for it, with examples of accepted input.
"""

from __future__ import annotations

from typing import Optional

from toolwire.config import ToolwireConfig
from toolwire.tools.builtin.calculator import CalculatorTool
from toolwire.tools.builtin.transcript import TranscriptTool
from toolwire.tools.registry import ToolDeclaration, ToolHandler, ToolName, ToolRegistry

FUNCTION_DECLARATIONS: tuple[ToolDeclaration, ...] = (
    ToolDeclaration(
        name=ToolName.GET_YOUTUBE_TRANSCRIPT.value,
        description=(
            "Returns the transcript of a specified YouTube video. "
            "Use this to learn about the content of YouTube videos."
        ),
        properties={
            "url": {
                "type": "string",
                "description": "URL of the YouTube video to retrieve the transcript from.",
            },
        },
        required=("url",),
    ),
    ToolDeclaration(
        name=ToolName.CALCULATE.value,
        description=(
            "Calculates a given mathematical equation and returns the result. "
            "Use this for calculations when writing responses. "
            "Exampled: '12 / (2.3 + 0.7)' -> '4', '12.7 cm to inch' -> '5 inch', "
            "'sin(45 deg) ^ 2' -> '0.5', '9 / 3 + 2i' -> '3 + 2i', "
            "'det([-1, 2; 3, 1])' -> '-7'"
        ),
        properties={
            "equation": {
                "type": "string",
                "description": "The equation to be calculated.",
            },
        },
        required=("equation",),
    ),
)


def function_declarations() -> list[dict]:
    """The built-in declarations in the format advertised to the model."""
    return [declaration.to_api_format() for declaration in FUNCTION_DECLARATIONS]


def build_builtin_handlers(config: Optional[ToolwireConfig] = None) -> dict[ToolName, ToolHandler]:
    """Instantiate every built-in handler, keyed by tool name."""
    if config is None:
        config = ToolwireConfig()
    return {
        ToolName.GET_YOUTUBE_TRANSCRIPT: TranscriptTool(config.transcript),
        ToolName.CALCULATE: CalculatorTool(config.calculator),
    }


def register_builtin_tools(config: Optional[ToolwireConfig] = None) -> ToolRegistry:
    """Build the registry of built-in tools, checked against FUNCTION_DECLARATIONS."""
    return ToolRegistry.from_handlers(
        build_builtin_handlers(config),
        declarations=FUNCTION_DECLARATIONS,
    )
