"""
Call summaries: one readable line for a batch of tool calls.

Used for logs and status displays, never fed back to the model. Known tools
get their display phrase from a table; anything else (including names the model
made up) goes through ``display_name``.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Union

from toolwire.tools.registry import ToolName
from toolwire.types import ToolCall

MAX_ARG_DISPLAY_LEN: int = 500
ELLIPSIS: str = "..."

_NUMERIC_TOKEN_RE = re.compile(
    r"^(?:[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?Infinity|0[xX][0-9a-fA-F]+|0[bB][01]+|0[oO][0-7]+)?$"
)

DISPLAY_NAMES: Mapping[str, str] = {
    ToolName.GET_YOUTUBE_TRANSCRIPT.value: "Get Youtube Transcript",
    ToolName.CALCULATE.value: "Calculate",
}


def _is_number(token: str) -> bool:
    # Blank tokens (from doubled underscores) count as numeric and stay as-is.
    return bool(_NUMERIC_TOKEN_RE.match(token.strip()))


def display_name(name: str) -> str:
    """Turn ``snake_case_name`` into ``Snake Case Name``; numeric tokens are left alone."""
    if name in DISPLAY_NAMES:
        return DISPLAY_NAMES[name]
    words = []
    for word in name.split("_"):
        if not _is_number(word):
            word = word[:1].upper() + word[1:]
        words.append(word)
    return " ".join(words)


def _display_value(value: Any) -> str:
    text = _stringify(value)
    if len(text) > MAX_ARG_DISPLAY_LEN:
        return text[:MAX_ARG_DISPLAY_LEN] + ELLIPSIS
    return text


def _stringify(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_args(args: Mapping[str, Any] | None) -> str:
    """Render ``key: value`` pairs, truncating long values."""
    if not args:
        return ""
    if not isinstance(args, Mapping):
        return _display_value(args)
    return ", ".join(f"{key}: {_display_value(value)}" for key, value in args.items())


def format_tool_call(call: Union[ToolCall, Mapping[str, Any]]) -> str:
    """One call as ``Name (key: value, ...)``; an empty string when it has no name."""
    if not isinstance(call, (ToolCall, Mapping)):
        return ""
    call = ToolCall.coerce(call)
    if not call.name:
        return ""
    name = display_name(str(call.name))
    formatted_args = format_args(call.args)
    if formatted_args:
        return f"{name} ({formatted_args})"
    return name


def summarize_tool_calls(tool_calls: Iterable[Union[ToolCall, Mapping[str, Any]]]) -> str:
    """Join the non-empty per-call strings with ", ". Empty input yields ""."""
    parts = (format_tool_call(call) for call in tool_calls or ())
    return ", ".join(part for part in parts if part)
