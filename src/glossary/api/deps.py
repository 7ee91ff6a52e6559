"""
FastAPI dependency injection — process-scoped resources from ``app.state``.

Usage in routers::

    from glossary.api.deps import Store

    @router.get("/terms")
    async def list_terms(store: Store):
        ...

The store and the completion service are created once (in the lifespan or
by the caller of :func:`~glossary.api.app.create_app`) and stashed on
``app.state``; handlers never reach for module globals.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from glossary.completion.service import CompletionService
from glossary.core.settings import GlossarySettings
from glossary.storage.base import TermStore


def get_settings(request: Request) -> GlossarySettings:
    return request.app.state.settings


def get_store(request: Request) -> TermStore:
    return request.app.state.store


def get_completion(request: Request) -> CompletionService:
    return request.app.state.completion


Settings = Annotated[GlossarySettings, Depends(get_settings)]
Store = Annotated[TermStore, Depends(get_store)]
Completion = Annotated[CompletionService, Depends(get_completion)]
