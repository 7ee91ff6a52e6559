"""
Root Typer application for the glossary CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

import glossary

app = Typer(
    name="glossary",
    help="Glossary service — term store API, gateway and supervisor.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"glossary {glossary.__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Glossary CLI — run the services and inspect configuration."""


# ── Sub-commands ─────────────────────────────────────────────────────────

from glossary.cli.config import show_config  # noqa: E402
from glossary.cli.serve import app as serve_app  # noqa: E402

app.add_typer(serve_app, name="serve", help="Run the API, the gateway, or both.")
app.command("config")(show_config)


if __name__ == "__main__":
    app()
