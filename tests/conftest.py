"""
Shared pytest fixtures for glossary tests.

This module provides:
- Isolated settings (no ``.env``, zero retry delay)
- A fresh in-memory Term Store per test
- A fake Cosmos container
- An API ``TestClient`` wired to the memory store and a fake completion client

Test doubles live in :mod:`tests._support.fakes`.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from glossary.api.app import create_app
from glossary.core.settings import GlossarySettings
from glossary.storage.memory import MemoryTermStore
from tests._support.fakes import FakeChatClient, FakeCosmosContainer, completion_service, make_settings


@pytest.fixture
def settings() -> GlossarySettings:
    return make_settings()


@pytest.fixture
def memory_store() -> MemoryTermStore:
    return MemoryTermStore()


@pytest.fixture
def cosmos_container() -> FakeCosmosContainer:
    return FakeCosmosContainer()


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def api_client(settings, memory_store, chat_client) -> Iterator[TestClient]:
    app = create_app(settings, store=memory_store, completion=completion_service(settings, chat_client))
    with TestClient(app) as client:
        yield client
