"""
Tool Dispatcher: from "the model asked for it" to "here is what happened".

When the model emits a tool call, this module finds the handler registered for
that name, runs it, and hands back the response envelope the handler built.

The dispatcher's contract is intentionally narrow:
1. RESOLUTION: exact-name lookup in the read-only ToolRegistry
2. NORMALIZATION: an unknown name becomes an error envelope, never an exception
3. PASS-THROUGH: a handler's envelope is returned exactly as produced

Handlers own their failures. Each one catches what can go wrong inside it and
encodes it as a descriptive ``content`` string. A handler that lets an
exception escape makes ``dispatch`` raise; that is the only way it fails.
"""

from __future__ import annotations

import inspect
import time
from typing import Any, Iterable, Mapping, Optional, Union

import structlog

from toolwire.config import RetryConfig
from toolwire.harness.retry import retry_operation
from toolwire.tools.registry import ToolHandler, ToolRegistry
from toolwire.types import ToolCall, ToolResponseEnvelope, build_envelope

logger = structlog.get_logger(__name__)


def no_function_message(name: Any) -> str:
    return f"No function found for {name}"


class ToolDispatcher:
    """
    Resolves tool calls against a registry and invokes their handlers.

    ``retry`` is an optional composition: when set, every handler invocation
    runs under ``retry_operation`` with that config. Unknown names are never
    retried since nothing is invoked for them.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        retry: Optional[RetryConfig] = None,
    ):
        self._registry = registry
        self._retry = retry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def dispatch(
        self,
        tool_call: Union[ToolCall, Mapping[str, Any]],
    ) -> ToolResponseEnvelope:
        """
        Execute one tool call and return its response envelope.

        Args:
            tool_call: A ToolCall, or the wire mapping ``{"name", "args"}``

        Returns:
            The handler's envelope, unmodified, or a "No function found"
            envelope when no handler is registered for the name
        """
        call = ToolCall.coerce(tool_call)
        name = call.name

        handler = self._registry.get(name)
        if handler is None:
            message = no_function_message(name)
            logger.error("dispatcher.no_function", tool_name=name)
            return build_envelope(name, message, name=name)

        logger.debug("dispatcher.executing", tool_name=name)
        start_time = time.monotonic()

        if self._retry is None:
            result = await _invoke(handler, call.args, name)
        else:
            result = await retry_operation(
                lambda: _invoke(handler, call.args, name),
                max_attempts=self._retry.max_attempts,
                delay_ms=self._retry.delay_ms,
            )

        logger.debug(
            "dispatcher.completed",
            tool_name=name,
            elapsed=round(time.monotonic() - start_time, 3),
        )
        return result

    async def dispatch_all(
        self,
        tool_calls: Iterable[Union[ToolCall, Mapping[str, Any]]],
    ) -> list[ToolResponseEnvelope]:
        """Dispatch calls one after another, returning envelopes in call order."""
        envelopes = []
        for call in tool_calls:
            envelopes.append(await self.dispatch(call))
        return envelopes


async def _invoke(
    handler: ToolHandler,
    args: Optional[Mapping[str, Any]],
    name: str,
) -> ToolResponseEnvelope:
    """Call a sync or async handler and await the result when needed."""
    result = handler(args, name)
    if inspect.isawaitable(result):
        result = await result
    return result
