from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from structlog.testing import capture_logs

from toolwire.config import RetryConfig
from toolwire.errors import RetryExhaustedError
from toolwire.tools.dispatcher import ToolDispatcher
from toolwire.tools.registry import ToolRegistry
from toolwire.types import ToolCall, build_envelope, envelope_content


@pytest.mark.asyncio
async def test_unknown_name_returns_error_envelope_without_invoking(echo_registry, spy_handler):
    dispatcher = ToolDispatcher(echo_registry)

    envelope = await dispatcher.dispatch(ToolCall(name="search_web", args={"q": "x"}))

    assert envelope == [
        {
            "functionResponse": {
                "name": "search_web",
                "response": {
                    "name": "search_web",
                    "content": "No function found for search_web",
                },
            },
        },
    ]
    spy_handler.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "Echo", "spy ", "echo_v2"])
async def test_near_miss_names_do_not_resolve(echo_registry, spy_handler, name):
    dispatcher = ToolDispatcher(echo_registry)

    envelope = await dispatcher.dispatch({"name": name, "args": {}})

    assert envelope_content(envelope) == f"No function found for {name}"
    spy_handler.assert_not_called()


@pytest.mark.asyncio
async def test_missing_name_is_reported_as_none(echo_registry):
    dispatcher = ToolDispatcher(echo_registry)

    envelope = await dispatcher.dispatch({"args": {"a": 1}})

    assert envelope_content(envelope) == "No function found for None"


@pytest.mark.asyncio
async def test_unknown_name_is_logged(echo_registry):
    dispatcher = ToolDispatcher(echo_registry)

    with capture_logs() as logs:
        await dispatcher.dispatch(ToolCall(name="ghost"))

    assert {"event": "dispatcher.no_function", "tool_name": "ghost", "log_level": "error"} in logs


@pytest.mark.asyncio
async def test_handler_envelope_is_returned_unmodified():
    expected = build_envelope("lookup", {"deep": ["structure"]}, key="value")
    handler = MagicMock(return_value=expected)
    dispatcher = ToolDispatcher(ToolRegistry.from_handlers({"lookup": handler}))

    envelope = await dispatcher.dispatch(ToolCall(name="lookup", args={"key": "value"}))

    assert envelope is expected
    handler.assert_called_once_with({"key": "value"}, "lookup")


@pytest.mark.asyncio
async def test_async_handlers_are_awaited(echo_registry, spy_handler):
    dispatcher = ToolDispatcher(echo_registry)

    envelope = await dispatcher.dispatch(ToolCall(name="spy", args={"n": 1}))

    assert envelope_content(envelope) == "spied"
    spy_handler.assert_awaited_once_with({"n": 1}, "spy")


@pytest.mark.asyncio
async def test_sync_handlers_are_supported(echo_registry):
    dispatcher = ToolDispatcher(echo_registry)

    envelope = await dispatcher.dispatch({"name": "echo", "args": {"text": "hi"}})

    assert envelope == build_envelope("echo", {"text": "hi"}, name="echo")


@pytest.mark.asyncio
async def test_handler_exceptions_propagate():
    def broken(args, name):
        raise RuntimeError("handler forgot its error envelope")

    dispatcher = ToolDispatcher(ToolRegistry.from_handlers({"broken": broken}))

    with pytest.raises(RuntimeError, match="forgot"):
        await dispatcher.dispatch(ToolCall(name="broken"))


@pytest.mark.asyncio
async def test_dispatch_is_repeatable(echo_registry):
    dispatcher = ToolDispatcher(echo_registry)
    call = ToolCall(name="echo", args={"a": 1})

    first = await dispatcher.dispatch(call)
    second = await dispatcher.dispatch(call)

    assert first == second
    assert call.args == {"a": 1}


@pytest.mark.asyncio
async def test_dispatch_all_runs_calls_in_order(echo_registry):
    order: list[str] = []

    async def tracked(args, name):
        order.append(args["id"])
        return build_envelope(name, args["id"])

    dispatcher = ToolDispatcher(ToolRegistry.from_handlers({"tracked": tracked}))

    envelopes = await dispatcher.dispatch_all(
        [
            {"name": "tracked", "args": {"id": "a"}},
            {"name": "missing", "args": {}},
            {"name": "tracked", "args": {"id": "b"}},
        ]
    )

    assert order == ["a", "b"]
    assert [envelope_content(e) for e in envelopes] == ["a", "No function found for missing", "b"]


@pytest.mark.asyncio
async def test_retry_composition_retries_failing_handler(recorded_delays):
    expected = build_envelope("flaky", "ok")
    handler = AsyncMock(side_effect=[ConnectionError("reset"), expected])
    dispatcher = ToolDispatcher(
        ToolRegistry.from_handlers({"flaky": handler}),
        retry=RetryConfig(max_attempts=2, delay_ms=50),
    )

    envelope = await dispatcher.dispatch(ToolCall(name="flaky", args={}))

    assert envelope is expected
    assert handler.await_count == 2
    assert recorded_delays == [50]


@pytest.mark.asyncio
async def test_retry_composition_propagates_exhaustion(recorded_delays):
    handler = AsyncMock(side_effect=ConnectionError("down"))
    dispatcher = ToolDispatcher(
        ToolRegistry.from_handlers({"flaky": handler}),
        retry=RetryConfig(max_attempts=1, delay_ms=0),
    )

    with pytest.raises(RetryExhaustedError, match="after 1 attempts: down"):
        await dispatcher.dispatch(ToolCall(name="flaky"))

    assert handler.await_count == 2


@pytest.mark.asyncio
async def test_unknown_names_are_never_retried(echo_registry, recorded_delays):
    dispatcher = ToolDispatcher(echo_registry, retry=RetryConfig(max_attempts=3, delay_ms=10))

    envelope = await dispatcher.dispatch(ToolCall(name="nope"))

    assert envelope_content(envelope) == "No function found for nope"
    assert recorded_delays == []


@pytest.mark.asyncio
async def test_no_retry_by_default(recorded_delays):
    handler = AsyncMock(side_effect=ConnectionError("once"))
    dispatcher = ToolDispatcher(ToolRegistry.from_handlers({"flaky": handler}))

    with pytest.raises(ConnectionError):
        await dispatcher.dispatch(ToolCall(name="flaky"))

    assert handler.await_count == 1
