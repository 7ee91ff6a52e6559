"""Tests for the error boundary and error envelopes."""

from __future__ import annotations

from fastapi.testclient import TestClient

from glossary.api.app import create_app
from glossary.storage.memory import MemoryTermStore
from tests._support.fakes import make_settings


class ExplodingStore(MemoryTermStore):
    async def list(self):
        raise RuntimeError("connection reset by peer")


def client_for(debug: bool) -> TestClient:
    app = create_app(make_settings(debug=debug), store=ExplodingStore())
    return TestClient(app, raise_server_exceptions=False)


class TestErrorBoundary:
    def test_unhandled_error_hides_detail(self):
        with client_for(debug=False) as client:
            resp = client.get("/api/terms")

        assert resp.status_code == 500
        assert resp.json() == {"error": "ServerError", "message": "Unexpected error"}

    def test_unhandled_error_detail_in_debug(self):
        with client_for(debug=True) as client:
            resp = client.get("/api/terms")

        assert resp.status_code == 500
        assert resp.json() == {"error": "ServerError", "message": "connection reset by peer"}

    def test_other_routes_unaffected(self):
        with client_for(debug=False) as client:
            assert client.get("/api/health").status_code == 200


class TestEnvelopes:
    def test_method_not_allowed(self, api_client):
        resp = api_client.patch("/api/terms")

        assert resp.status_code == 405
        assert resp.json()["error"] == "MethodNotAllowed"

    def test_malformed_json(self, api_client):
        resp = api_client.post(
            "/api/terms",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "ValidationError"


class TestLifespan:
    def test_store_selected_when_not_injected(self):
        app = create_app(make_settings(cosmos_endpoint=None, cosmos_key=None))

        with TestClient(app) as client:
            body = client.get("/api/health").json()

        assert body["mode"] == "memory"
        assert body["cosmos"] is False
