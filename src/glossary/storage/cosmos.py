"""Azure Cosmos DB Term Store backend."""

from __future__ import annotations

from typing import Any

import structlog
from azure.cosmos import PartitionKey
from azure.cosmos.aio import CosmosClient
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from glossary.core.models import TERM_TYPE, Term, normalize_name, sort_terms
from glossary.storage.base import TermStore

logger = structlog.get_logger()

PARTITION_KEY_PATH = "/id"

_LIST_QUERY = "SELECT * FROM c WHERE c.type = @type"
_DUPLICATE_QUERY = "SELECT TOP 1 * FROM c WHERE c.type = @type AND LOWER(c.name) = @name"
_SEARCH_QUERY = (
    "SELECT * FROM c WHERE c.type = @type "
    "AND (CONTAINS(LOWER(c.name), @q) OR CONTAINS(LOWER(c.description), @q))"
)


class CosmosTermStore(TermStore):
    """
    Term Store backed by a Cosmos DB container.

    Documents are partitioned by ``/id``: point reads and deletes are cheap,
    lookups by name (duplicate check, search) are cross-partition queries.

    The duplicate-name check and the insert are two round trips, so two
    concurrent creates with the same name can both succeed.  Cosmos unique
    keys are scoped to one logical partition and cannot close this while
    the partition key is ``/id``.
    """

    mode = "cosmos"

    def __init__(
        self,
        container: Any,
        *,
        db_name: str,
        container_name: str,
        client: CosmosClient | None = None,
    ):
        self.container = container
        self.db_name = db_name
        self.container_name = container_name
        self._client = client

    @classmethod
    async def connect(
        cls,
        endpoint: str,
        key: str,
        *,
        db_name: str = "glossary",
        container_name: str = "terms",
        throughput: int = 400,
    ) -> CosmosTermStore:
        """Provision database and container (idempotently) and return a store.

        Raises:
            Whatever the SDK raises; the caller decides whether to fall back.
        """
        client = CosmosClient(endpoint, credential=key)
        try:
            database = await client.create_database_if_not_exists(id=db_name)
            container = await database.create_container_if_not_exists(
                id=container_name,
                partition_key=PartitionKey(path=PARTITION_KEY_PATH, kind="Hash"),
                offer_throughput=throughput,
            )
        except Exception:
            await client.close()
            raise

        logger.info(
            "cosmos_storage_initialized",
            endpoint=endpoint,
            db=db_name,
            container=container_name,
            throughput=throughput,
        )
        return cls(container, db_name=db_name, container_name=container_name, client=client)

    async def _query(self, query: str, parameters: list[dict[str, Any]], **kwargs: Any) -> list[Term]:
        items = self.container.query_items(query=query, parameters=parameters, **kwargs)
        return [Term.from_document(doc) async for doc in items]

    async def list(self) -> list[Term]:
        terms = await self._query(_LIST_QUERY, [{"name": "@type", "value": TERM_TYPE}])
        return sort_terms(terms)

    async def get(self, term_id: str) -> Term | None:
        try:
            doc = await self.container.read_item(item=term_id, partition_key=term_id)
        except CosmosResourceNotFoundError:
            return None
        return Term.from_document(doc)

    async def find_duplicate_name(self, name: str) -> Term | None:
        matches = await self._query(
            _DUPLICATE_QUERY,
            [
                {"name": "@type", "value": TERM_TYPE},
                {"name": "@name", "value": normalize_name(name)},
            ],
            max_item_count=1,
        )
        return matches[0] if matches else None

    async def create(self, name: str) -> Term:
        term = Term.build(name)
        doc = await self.container.create_item(body=term.to_document())
        logger.info("term_created", term_id=term.id, mode=self.mode)
        return Term.from_document(doc)

    async def _replace(self, term: Term) -> Term | None:
        try:
            doc = await self.container.replace_item(item=term.id, body=term.to_document())
        except CosmosResourceNotFoundError:
            # deleted between read and write
            return None
        return Term.from_document(doc)

    async def update(self, term_id: str, description: str = "", category: str = "") -> Term | None:
        existing = await self.get(term_id)
        if existing is None:
            return None
        updated = await self._replace(existing.with_edit(description, category))
        if updated is not None:
            logger.info("term_updated", term_id=term_id, mode=self.mode)
        return updated

    async def apply_explanation(self, term_id: str, explanation: str) -> Term | None:
        existing = await self.get(term_id)
        if existing is None:
            return None
        updated = await self._replace(existing.with_explanation(explanation))
        if updated is not None:
            logger.info("term_explained", term_id=term_id, mode=self.mode)
        return updated

    async def delete(self, term_id: str) -> bool:
        try:
            await self.container.delete_item(item=term_id, partition_key=term_id)
        except CosmosResourceNotFoundError:
            return False
        logger.info("term_deleted", term_id=term_id, mode=self.mode)
        return True

    async def search(self, query: str) -> list[Term]:
        needle = query.strip().lower()
        if not needle:
            return await self.list()
        terms = await self._query(
            _SEARCH_QUERY,
            [
                {"name": "@type", "value": TERM_TYPE},
                {"name": "@q", "value": needle},
            ],
        )
        return sort_terms(terms)

    def describe(self) -> dict[str, Any]:
        return {"mode": self.mode, "db": self.db_name, "container": self.container_name}

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
