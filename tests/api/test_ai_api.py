"""Tests for the AI routes: free-form requests and stored-term explanations."""

from __future__ import annotations

import httpx
import openai
from fastapi.testclient import TestClient

from glossary.api.app import create_app
from glossary.completion.service import NOT_IT_TERM_REPLY, CompletionService
from tests._support.fakes import StatusError, chat_response, make_settings


def api_status_error(status: int) -> openai.APIStatusError:
    request = httpx.Request("POST", "https://example.openai.azure.com")
    return openai.APIStatusError(f"HTTP {status}", response=httpx.Response(status, request=request), body=None)


class TestAIRequest:
    def test_success(self, api_client, chat_client):
        chat_client.outcomes.append(
            chat_response("## API\nAPIはソフトウェア同士の接点です。例えば...", usage={"total_tokens": 20})
        )

        resp = api_client.post("/api/ai-request", json={"user_prompt": "用語: API", "temperature": 0.3})

        assert resp.status_code == 200
        assert resp.json() == {
            "term": "API",
            "explanation": "API APIはソフトウェア同士の接点です。",
            "model": "gpt-4o-mini-2024-07-18",
            "usage": {"total_tokens": 20},
        }
        assert chat_client.calls[0]["temperature"] == 0.3

    def test_term_null_without_term_line(self, api_client, chat_client):
        chat_client.outcomes.append(chat_response("説明です。"))

        resp = api_client.post("/api/ai-request", json={"user_prompt": "APIとは"})

        assert resp.json()["term"] is None

    def test_missing_user_prompt(self, api_client, chat_client):
        resp = api_client.post("/api/ai-request", json={"system_prompt": "x"})

        assert resp.status_code == 400
        assert resp.json() == {"error": "ValidationError", "message": "user_prompt is required (string)"}
        assert chat_client.calls == []

    def test_out_of_range_temperature(self, api_client):
        resp = api_client.post("/api/ai-request", json={"user_prompt": "用語: API", "temperature": 5})

        assert resp.status_code == 400

    def test_retry_then_success(self, api_client, chat_client):
        chat_client.outcomes.extend([StatusError(429), StatusError(500), chat_response("成功です。")])

        resp = api_client.post("/api/ai-request", json={"user_prompt": "用語: API"})

        assert resp.status_code == 200
        assert resp.json()["explanation"] == "成功です。"
        assert len(chat_client.calls) == 3

    def test_completion_failure_is_502(self, api_client, chat_client):
        chat_client.outcomes.append(api_status_error(400))

        resp = api_client.post("/api/ai-request", json={"user_prompt": "用語: API"})

        assert resp.status_code == 502
        body = resp.json()
        assert body["error"] == "CompletionError"
        assert body["status"] == 400

    def test_unconfigured_is_503(self, memory_store):
        settings = make_settings(openai_endpoint=None)
        app = create_app(settings, store=memory_store, completion=CompletionService(settings))

        with TestClient(app) as client:
            resp = client.post("/api/ai-request", json={"user_prompt": "用語: API"})

        assert resp.status_code == 503
        assert resp.json()["error"] == "ServiceUnavailable"


class TestExplainTerm:
    def test_explanation_persisted(self, api_client, chat_client):
        term = api_client.post("/api/terms", json={"name": "キャッシュ", "category": "performance"}).json()["term"]
        chat_client.outcomes.append(chat_response("キャッシュは再利用のための一時保存です。", usage={"total_tokens": 9}))

        resp = api_client.post(f"/api/terms/{term['id']}/explanation", json={"context": "Web"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["explanation"] == "キャッシュは再利用のための一時保存です。"
        assert body["term"]["description"] == body["explanation"]
        assert body["term"]["isAIGenerated"] is True
        assert body["term"]["category"] == "performance"
        assert "用語: キャッシュ" in chat_client.calls[0]["messages"][1]["content"]

        stored = api_client.get(f"/api/terms/{term['id']}").json()["term"]
        assert stored["isAIGenerated"] is True

    def test_without_body(self, api_client, chat_client):
        term = api_client.post("/api/terms", json={"name": "DNS"}).json()["term"]
        chat_client.outcomes.append(chat_response("DNSは名前解決です。"))

        resp = api_client.post(f"/api/terms/{term['id']}/explanation")

        assert resp.status_code == 200

    def test_unknown_term(self, api_client, chat_client):
        resp = api_client.post("/api/terms/nope/explanation", json={})

        assert resp.status_code == 404
        assert chat_client.calls == []

    def test_rejected_reply_not_persisted(self, api_client, chat_client):
        term = api_client.post("/api/terms", json={"name": "りんご"}).json()["term"]
        chat_client.outcomes.append(chat_response(NOT_IT_TERM_REPLY))

        resp = api_client.post(f"/api/terms/{term['id']}/explanation", json={})

        assert resp.status_code == 400
        assert resp.json()["message"] == NOT_IT_TERM_REPLY
        stored = api_client.get(f"/api/terms/{term['id']}").json()["term"]
        assert stored["description"] == ""
        assert stored["isAIGenerated"] is False

    def test_disabled(self, memory_store):
        settings = make_settings(ai_enable_explanation=False)
        app = create_app(settings, store=memory_store)

        with TestClient(app) as client:
            term = client.post("/api/terms", json={"name": "DNS"}).json()["term"]
            resp = client.post(f"/api/terms/{term['id']}/explanation", json={})

        assert resp.status_code == 503
