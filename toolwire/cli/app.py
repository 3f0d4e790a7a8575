"""CLI application: Click-based command hierarchy for toolwire.

The main group and its global flags. Subcommand modules register themselves
by importing and adding to the group.
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any

import click

from toolwire import __version__


def async_cmd(func):
    """Decorator to run an async Click command via asyncio.run()."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(func(*args, **kwargs))

    return wrapper


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors")
@click.version_option(__version__, prog_name="toolwire")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, no_color: bool) -> None:
    """toolwire - dispatch LLM tool calls to local handlers."""
    from toolwire.main import configure_logging

    configure_logging(verbose=verbose, colors=not no_color)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["no_color"] = no_color


# ---------------------------------------------------------------------------
# Register subcommand modules
# ---------------------------------------------------------------------------

def _register_subcommands() -> None:
    """Import and register all subcommands."""
    from toolwire.cli.commands import call_cmd, summarize_cmd, tools_cmd

    cli.add_command(tools_cmd)
    cli.add_command(call_cmd)
    cli.add_command(summarize_cmd)


_register_subcommands()
