"""Tests for the Cosmos DB Term Store against a fake async container."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from azure.cosmos.exceptions import CosmosHttpResponseError

from glossary.storage.cosmos import CosmosTermStore


@pytest.fixture
def store(cosmos_container) -> CosmosTermStore:
    return CosmosTermStore(cosmos_container, db_name="glossary", container_name="terms")


@pytest.mark.asyncio
class TestCosmosTermStore:
    async def test_create_writes_camel_case_document(self, store, cosmos_container):
        term = await store.create(" キャッシュ ")

        doc = cosmos_container.items[term.id]
        assert doc["name"] == "キャッシュ"
        assert doc["type"] == "term"
        assert doc["isAIGenerated"] is False
        assert doc["createdAt"] == doc["updatedAt"]

    async def test_get_ignores_system_fields(self, store):
        term = await store.create("API")

        fetched = await store.get(term.id)

        assert fetched == term

    async def test_get_not_found_returns_none(self, store):
        assert await store.get("missing") is None

    async def test_update_replaces_document(self, store, cosmos_container):
        term = await store.create("API")
        cosmos_container.items[term.id]["isAIGenerated"] = True

        updated = await store.update(term.id, " 説明 ", "web")

        assert updated.description == "説明"
        assert updated.category == "web"
        assert updated.is_ai_generated is False
        assert cosmos_container.items[term.id]["description"] == "説明"

    async def test_update_not_found_returns_none(self, store):
        assert await store.update("missing", "x", "y") is None

    async def test_update_when_deleted_before_replace(self, store, cosmos_container):
        term = await store.create("API")
        original_read = cosmos_container.read_item

        async def read_then_vanish(item, partition_key):
            doc = await original_read(item, partition_key)
            cosmos_container.items.pop(item)
            return doc

        cosmos_container.read_item = read_then_vanish

        assert await store.update(term.id, "x", "") is None

    async def test_apply_explanation(self, store, cosmos_container):
        term = await store.create("TLS")

        explained = await store.apply_explanation(term.id, "通信を暗号化するプロトコル。")

        assert explained.is_ai_generated is True
        assert cosmos_container.items[term.id]["isAIGenerated"] is True

    async def test_delete(self, store, cosmos_container):
        term = await store.create("CPU")

        assert await store.delete(term.id) is True
        assert term.id not in cosmos_container.items

    async def test_delete_not_found_returns_false(self, store):
        assert await store.delete("missing") is False

    async def test_find_duplicate_uses_lowered_parameter(self, store, cosmos_container):
        await store.create("api")

        duplicate = await store.find_duplicate_name(" API ")

        assert duplicate is not None and duplicate.name == "api"
        query, params, kwargs = cosmos_container.queries[-1]
        assert "LOWER(c.name) = @name" in query
        assert {"name": "@name", "value": "api"} in params
        assert kwargs == {"max_item_count": 1}

    async def test_find_duplicate_none(self, store):
        assert await store.find_duplicate_name("REST") is None

    async def test_list_sorted(self, store):
        for name in ["うさぎ", "あり"]:
            await store.create(name)

        assert [t.name for t in await store.list()] == ["あり", "うさぎ"]

    async def test_search_is_parameterised(self, store, cosmos_container):
        term = await store.create("DNS")
        await store.update(term.id, "Domain Name System", "")
        await store.create("CPU")

        results = await store.search("  NAME ")

        assert [t.name for t in results] == ["DNS"]
        query, params, _ = cosmos_container.queries[-1]
        assert "@q" in query
        assert {"name": "@q", "value": "name"} in params

    async def test_blank_search_lists_everything(self, store, cosmos_container):
        await store.create("a")
        await store.create("b")

        results = await store.search("")

        assert [t.name for t in results] == ["a", "b"]
        assert "@q" not in cosmos_container.queries[-1][0]

    async def test_other_sdk_errors_propagate(self, store, cosmos_container):
        cosmos_container.read_item = AsyncMock(side_effect=CosmosHttpResponseError(status_code=503, message="down"))

        with pytest.raises(CosmosHttpResponseError):
            await store.get("any")

    async def test_describe(self, store):
        assert store.describe() == {"mode": "cosmos", "db": "glossary", "container": "terms"}


@pytest.mark.asyncio
class TestCosmosConnect:
    async def test_connect_provisions_database_and_container(self):
        container = MagicMock()
        database = MagicMock()
        database.create_container_if_not_exists = AsyncMock(return_value=container)
        client = MagicMock()
        client.create_database_if_not_exists = AsyncMock(return_value=database)
        client.close = AsyncMock()

        with patch("glossary.storage.cosmos.CosmosClient", return_value=client) as client_cls:
            store = await CosmosTermStore.connect(
                "https://acct.documents.azure.com:443/",
                "key",
                db_name="gl",
                container_name="tm",
                throughput=800,
            )

        client_cls.assert_called_once_with("https://acct.documents.azure.com:443/", credential="key")
        client.create_database_if_not_exists.assert_awaited_once_with(id="gl")
        kwargs = database.create_container_if_not_exists.await_args.kwargs
        assert kwargs["id"] == "tm"
        assert kwargs["offer_throughput"] == 800
        assert kwargs["partition_key"]["paths"] == ["/id"]
        assert store.container is container

        await store.close()
        client.close.assert_awaited_once()

    async def test_connect_closes_client_on_failure(self):
        client = MagicMock()
        client.create_database_if_not_exists = AsyncMock(side_effect=CosmosHttpResponseError(status_code=401, message="bad key"))
        client.close = AsyncMock()

        with patch("glossary.storage.cosmos.CosmosClient", return_value=client):
            with pytest.raises(CosmosHttpResponseError):
                await CosmosTermStore.connect("https://acct", "bad")

        client.close.assert_awaited_once()
