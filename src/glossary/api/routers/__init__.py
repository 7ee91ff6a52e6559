"""API routers, one per resource group."""

from glossary.api.routers.ai import router as ai_router
from glossary.api.routers.health import router as health_router
from glossary.api.routers.search import router as search_router
from glossary.api.routers.terms import router as terms_router

__all__ = ["ai_router", "health_router", "search_router", "terms_router"]
