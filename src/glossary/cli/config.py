"""
CLI: ``glossary config`` — show effective settings.
"""

from __future__ import annotations

import json

import typer

from glossary.cli.utils import console, print_mapping
from glossary.core.settings import get_settings


def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env"),
) -> None:
    """Show effective configuration (secrets masked)."""
    data = get_settings().masked()

    if format == "json":
        console.print_json(json.dumps(data, default=str))
        return

    if format == "env":
        for key, value in sorted(data.items()):
            if value is not None:
                typer.echo(f"GLOSSARY_{key.upper()}={value}")
        return

    print_mapping(data, title="Glossary settings")
