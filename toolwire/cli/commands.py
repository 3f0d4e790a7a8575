"""Tool commands: list declarations, dispatch a call, summarize a batch."""

from __future__ import annotations

import json
from typing import Any, Optional

import click

from toolwire.cli.app import async_cmd
from toolwire.cli.formatters import declarations_table, get_console, to_json
from toolwire.config import RetryConfig, ToolwireConfig
from toolwire.errors import ToolwireError
from toolwire.formatting import summarize_tool_calls
from toolwire.tools.builtin import register_builtin_tools
from toolwire.tools.dispatcher import ToolDispatcher
from toolwire.types import ToolCall


def _parse_json_option(raw: Optional[str], param_hint: str) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint=param_hint)


@click.command("tools")
@click.option("--json", "json_output", is_flag=True, help="Print raw declaration records")
@click.pass_context
def tools_cmd(ctx: click.Context, json_output: bool) -> None:
    """List the tools advertised to the model."""
    try:
        registry = register_builtin_tools(ToolwireConfig())
    except ToolwireError as e:
        raise click.ClickException(str(e))

    declarations = registry.declarations()
    if json_output:
        click.echo(to_json(declarations))
        return
    console = get_console(no_color=(ctx.obj or {}).get("no_color", False))
    console.print(declarations_table(declarations))


@click.command("call")
@click.argument("name")
@click.option("--args", "args_json", default=None, help='Arguments as a JSON object, e.g. \'{"equation": "1 + 1"}\'')
@click.option("--retries", type=click.IntRange(min=0), default=None, help="Retry the handler up to N extra times")
@click.option("--delay-ms", type=click.IntRange(min=0), default=None, help="Pause between retries in milliseconds")
@async_cmd
async def call_cmd(name: str, args_json: Optional[str], retries: Optional[int], delay_ms: Optional[int]) -> None:
    """Dispatch a single tool call and print its response envelope."""
    args = _parse_json_option(args_json, "--args")
    if args is not None and not isinstance(args, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--args")

    config = ToolwireConfig()
    retry: Optional[RetryConfig] = None
    if retries is not None or delay_ms is not None:
        retry = RetryConfig(
            max_attempts=retries if retries is not None else config.retry.max_attempts,
            delay_ms=delay_ms if delay_ms is not None else config.retry.delay_ms,
        )

    try:
        dispatcher = ToolDispatcher(register_builtin_tools(config), retry=retry)
        envelope = await dispatcher.dispatch(ToolCall(name=name, args=args))
    except ToolwireError as e:
        raise click.ClickException(str(e))

    click.echo(to_json(envelope))


@click.command("summarize")
@click.argument("source", type=click.File("r"), default="-")
def summarize_cmd(source) -> None:
    """Print a one-line summary of a JSON list of tool calls (file or stdin)."""
    try:
        calls = json.load(source)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON input: {e}")
    if isinstance(calls, dict):
        calls = [calls]
    if not isinstance(calls, list) or not all(isinstance(c, dict) for c in calls):
        raise click.ClickException("Expected a JSON list of {\"name\", \"args\"} objects")
    click.echo(summarize_tool_calls(calls))
