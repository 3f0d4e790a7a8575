"""CLI formatters: console factory, declaration table, JSON output."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table


def get_console(no_color: bool = False) -> Console:
    """Get a Rich Console, optionally with color disabled."""
    return Console(no_color=no_color)


def build_table(title: str, columns: list[str], rows: list[list[Any]]) -> Table:
    """Build a Rich table with standard styling."""
    table = Table(title=title, show_header=True, header_style="bold")
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*(str(v) for v in row))
    return table


def declarations_table(declarations: list[dict[str, Any]]) -> Table:
    """Tabulate declaration records: name, parameters (required marked *), description."""
    rows = []
    for decl in declarations:
        params = decl.get("parameters", {})
        required = set(params.get("required", []))
        param_text = ", ".join(
            f"{key}{'*' if key in required else ''}: {schema.get('type', 'any')}"
            for key, schema in params.get("properties", {}).items()
        )
        rows.append([decl["name"], param_text or "-", params.get("description", "")])
    return build_table("Tools", ["Name", "Parameters", "Description"], rows)


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)
