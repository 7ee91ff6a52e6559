"""
CLI utility helpers — output formatting.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def print_mapping(data: dict[str, Any], *, title: str = "") -> None:
    """Render a flat mapping as a two-column table."""
    table = Table(title=title or None, show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in sorted(data.items()):
        table.add_row(key, "" if value is None else str(value))
    console.print(table)
