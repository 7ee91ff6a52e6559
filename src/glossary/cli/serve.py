"""
CLI: ``glossary serve`` — run the API, the gateway, or both.
"""

from __future__ import annotations

import os

import typer
import uvicorn

from glossary.cli.supervisor import ChildSpec, Supervisor, glossary_command
from glossary.cli.utils import console
from glossary.core.logging import configure_logging
from glossary.core.settings import get_settings

app = typer.Typer(no_args_is_help=True)


@app.command("api")
def serve_api(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default: api_host)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default: api_port)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
) -> None:
    """Start the Glossary API (internal, behind the gateway)."""
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print(f"[bold green]Starting Glossary API[/bold green] on {host}:{port}")
    uvicorn.run(
        "glossary.api.app:create_app_from_env",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("gateway")
def serve_gateway(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default: gateway_host)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default: gateway_port)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
) -> None:
    """Start the gateway (static UI + /api reverse proxy)."""
    settings = get_settings()
    host = host or settings.gateway_host
    port = port or settings.gateway_port

    console.print(
        f"[bold green]Starting gateway[/bold green] on {host}:{port} -> API {settings.api_internal_url}"
    )
    uvicorn.run(
        "glossary.gateway.app:create_gateway_app_from_env",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("all")
def serve_all() -> None:
    """Run API and gateway as one process group.

    When either child exits the other is stopped; SIGINT/SIGTERM stop both.
    """
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json, service="glossary-supervisor")

    # Children re-read settings; pin the ports so both agree.
    env = {
        **os.environ,
        "GLOSSARY_API_PORT": str(settings.api_port),
        "GLOSSARY_GATEWAY_PORT": str(settings.gateway_port),
    }
    supervisor = Supervisor(
        children=[
            ChildSpec("api", glossary_command("serve", "api"), env),
            ChildSpec("gateway", glossary_command("serve", "gateway"), env),
        ]
    )
    console.print(
        f"[bold green]Services starting[/bold green]: gateway={settings.gateway_port}, api={settings.api_port}"
    )
    code = supervisor.run()
    raise typer.Exit(code=code)
