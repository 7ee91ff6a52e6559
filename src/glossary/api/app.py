"""
FastAPI application factory for the Glossary API.

``create_app()`` wires middleware, routers, error handlers and lifespan
events into a single ``FastAPI`` instance.  Every route lives under
``/api``; the gateway forwards to it with the prefix intact.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import glossary
from glossary.api.middleware import RequestContextMiddleware, install_error_handlers
from glossary.completion.service import CompletionService
from glossary.core.logging import configure_logging, get_logger
from glossary.core.settings import GlossarySettings, get_settings
from glossary.storage import TermStore, initialize_term_store

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: pick the store backend once, release it on shutdown."""
    settings: GlossarySettings = app.state.settings
    log = get_logger("glossary.api")

    if app.state.store is None:
        app.state.store = await initialize_term_store(settings)

    store: TermStore = app.state.store
    log.info(
        "glossary_api_started",
        version=app.version,
        completion_configured=app.state.completion.provider.configured,
        **store.describe(),
    )
    try:
        yield
    finally:
        await app.state.completion.aclose()
        await store.close()
        log.info("glossary_api_stopped")


def create_app(
    settings: GlossarySettings | None = None,
    *,
    store: TermStore | None = None,
    completion: CompletionService | None = None,
    configure_logs: bool = False,
) -> FastAPI:
    """Build and return a fully-configured API application.

    Parameters
    ----------
    settings : GlossarySettings | None
        Override settings (useful for testing).  When ``None`` the cached
        singleton from :func:`get_settings` is used.
    store : TermStore | None
        Pre-built store.  When ``None`` the lifespan selects Cosmos or memory.
    completion : CompletionService | None
        Pre-built completion service, e.g. one backed by a fake client.
    configure_logs : bool
        Configure structlog from ``settings`` (the CLI entry point does this).
    """
    settings = settings or get_settings()
    if configure_logs:
        configure_logging(settings.log_level, settings.log_json, service="glossary-api")

    app = FastAPI(
        title="Glossary API",
        version=glossary.__version__,
        lifespan=lifespan,
        docs_url=f"{API_PREFIX}/docs",
        redoc_url=None,
        openapi_url=f"{API_PREFIX}/openapi.json",
    )

    app.state.settings = settings
    app.state.store = store
    app.state.completion = completion or CompletionService(settings)

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    install_error_handlers(app)

    # ── Routers ──────────────────────────────────────────────────────
    from glossary.api.routers import ai_router, health_router, search_router, terms_router

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(terms_router, prefix=API_PREFIX)
    app.include_router(search_router, prefix=API_PREFIX)
    app.include_router(ai_router, prefix=API_PREFIX)

    return app


def create_app_from_env() -> FastAPI:
    """Zero-argument factory for ``uvicorn --factory``."""
    return create_app(configure_logs=True)
