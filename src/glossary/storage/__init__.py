"""Term Store: one interface, a Cosmos DB backend and an in-memory fallback."""

from __future__ import annotations

import structlog

from glossary.core.settings import GlossarySettings
from glossary.storage.base import TermStore
from glossary.storage.cosmos import CosmosTermStore
from glossary.storage.memory import MemoryTermStore

__all__ = ["TermStore", "CosmosTermStore", "MemoryTermStore", "initialize_term_store"]

logger = structlog.get_logger()


async def initialize_term_store(settings: GlossarySettings) -> TermStore:
    """Pick the backend for this process, once.

    Cosmos is used when its endpoint and key are configured and the database
    and container can be provisioned.  Any failure degrades to the memory
    backend for the rest of the process lifetime; Cosmos is not retried.
    """
    memory = MemoryTermStore(
        db_name=settings.cosmos_db_name,
        container_name=settings.cosmos_container_name,
    )

    if not settings.cosmos_configured:
        logger.warning("cosmos_credentials_missing", mode=memory.mode)
        return memory

    try:
        return await CosmosTermStore.connect(
            settings.cosmos_endpoint,
            settings.cosmos_key,
            db_name=settings.cosmos_db_name,
            container_name=settings.cosmos_container_name,
            throughput=settings.cosmos_throughput,
        )
    except Exception as e:
        logger.error("cosmos_init_failed", error=str(e), mode=memory.mode)
        return memory
