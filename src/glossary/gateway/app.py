"""
Gateway application: the single externally reachable process.

Routes, in match order:
    GET  /health          gateway liveness
    GET  /config.json     browser configuration
    POST /api/ai-request  relayed to the external completion endpoint (proxy mode only)
    *    /api/{path}      forwarded to the internal API, ``/api`` prefix kept
    GET  /{path}          static file, else ``index.html`` (SPA fallback); HEAD too
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import FileResponse
from starlette.responses import Response

import glossary
from glossary.api.deps import Settings
from glossary.api.middleware import RequestContextMiddleware, install_error_handlers
from glossary.core.errors import NotFoundError, ValidationError
from glossary.core.logging import configure_logging, get_logger
from glossary.core.models import now_iso
from glossary.core.settings import GlossarySettings, get_settings
from glossary.gateway.proxy import forward, relay_completion

API_PREFIX = "/api"
FORWARDED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def resolve_static_path(root: Path, relative: str) -> Path | None:
    """Map a request path onto a file under ``root``.

    Returns None when the path escapes ``root`` or names no regular file.
    """
    base = root.resolve()
    candidate = (base / relative.lstrip("/")).resolve()
    if not candidate.is_relative_to(base):
        return None
    return candidate if candidate.is_file() else None


def browser_config(settings: GlossarySettings) -> dict[str, Any]:
    """Configuration the single-page UI reads on load."""
    return {
        "apiBaseUrl": API_PREFIX,
        "aiRequestUrl": f"{API_PREFIX}/ai-request",
        "useProxy": settings.ai_use_proxy and bool(settings.ai_proxy_url),
        "enableAIExplanation": settings.ai_enable_explanation,
        "defaultTemperature": settings.ai_default_temperature,
        "defaultTopP": settings.ai_default_top_p,
        "defaultFrequencyPenalty": settings.ai_default_frequency_penalty,
        "defaultPresencePenalty": settings.ai_default_presence_penalty,
        "retryCount": settings.ai_retry_count,
    }


def _proxy_mode(settings: GlossarySettings) -> bool:
    return settings.ai_use_proxy and bool(settings.ai_proxy_url)


def create_gateway_app(
    settings: GlossarySettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    configure_logs: bool = False,
) -> FastAPI:
    """Build the gateway.

    Parameters
    ----------
    settings : GlossarySettings | None
        Override settings; defaults to the cached process settings.
    transport : httpx.AsyncBaseTransport | None
        Transport for the upstream clients (tests pass ``httpx.MockTransport``).
    configure_logs : bool
        Configure structlog from ``settings``.
    """
    settings = settings or get_settings()
    if configure_logs:
        configure_logging(settings.log_level, settings.log_json, service="glossary-gateway")

    log = get_logger("glossary.gateway")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        app.state.api_client = httpx.AsyncClient(
            base_url=settings.api_internal_url,
            transport=transport,
            # explanation calls may run every completion attempt before answering
            timeout=httpx.Timeout(settings.openai_timeout_seconds * settings.ai_retry_count + 10, connect=5.0),
        )
        app.state.relay_client = None
        if _proxy_mode(settings):
            app.state.relay_client = httpx.AsyncClient(
                transport=transport,
                timeout=settings.openai_timeout_seconds,
                headers={"User-Agent": f"glossary-gateway/{glossary.__version__}"},
            )
        log.info(
            "gateway_started",
            upstream=settings.api_internal_url,
            static_dir=str(settings.static_dir),
            proxy_mode=app.state.relay_client is not None,
        )
        try:
            yield
        finally:
            await app.state.api_client.aclose()
            if app.state.relay_client is not None:
                await app.state.relay_client.aclose()
            log.info("gateway_stopped")

    app = FastAPI(
        title="Glossary Gateway",
        version=glossary.__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    install_error_handlers(app)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "gateway": True, "timestamp": now_iso()}

    @app.get("/config.json")
    async def config_json(settings: Settings) -> dict[str, Any]:
        return browser_config(settings)

    if _proxy_mode(settings):

        @app.post(f"{API_PREFIX}/ai-request")
        async def relay_ai_request(request: Request, settings: Settings) -> Response:
            try:
                payload = await request.json()
            except ValueError as e:
                raise ValidationError("Request body must be JSON") from e
            if not isinstance(payload, dict):
                raise ValidationError("Request body must be a JSON object")

            defaults = {
                "temperature": settings.ai_default_temperature,
                "top_p": settings.ai_default_top_p,
                "frequency_penalty": settings.ai_default_frequency_penalty,
                "presence_penalty": settings.ai_default_presence_penalty,
            }
            for key, value in defaults.items():
                if payload.get(key) is None:
                    payload[key] = value

            return await relay_completion(
                request.app.state.relay_client,
                settings.ai_proxy_url,
                payload,
                key=settings.ai_proxy_key,
                max_attempts=settings.ai_retry_count,
                base_delay=settings.ai_retry_base_delay,
            )

    @app.api_route(f"{API_PREFIX}/{{path:path}}", methods=FORWARDED_METHODS)
    async def forward_api(request: Request) -> Response:
        # The raw path already carries the /api prefix the API routes live under.
        return await forward(request.app.state.api_client, request)

    @app.api_route("/{full_path:path}", methods=["GET", "HEAD"], include_in_schema=False)
    async def spa(full_path: str, settings: Settings) -> FileResponse:
        if full_path == API_PREFIX.strip("/") or full_path.startswith(f"{API_PREFIX.strip('/')}/"):
            raise NotFoundError("Not found")

        if full_path:
            found = resolve_static_path(settings.static_dir, full_path)
            if found is not None:
                return FileResponse(found)

        index = settings.static_dir / "index.html"
        if not index.is_file():
            raise NotFoundError("index.html not found")
        return FileResponse(index)

    return app


def create_gateway_app_from_env() -> FastAPI:
    """Zero-argument factory for ``uvicorn --factory``."""
    return create_gateway_app(configure_logs=True)
