"""Tests for the completion client: retry policy and client provider."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from glossary.completion.client import CompletionClientProvider, chat_completion, is_retryable
from glossary.core.errors import ConfigError
from tests._support.fakes import FakeChatClient, StatusError, chat_response, make_settings

MESSAGES = [{"role": "user", "content": "用語: API"}]


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class TestIsRetryable:
    @pytest.mark.parametrize("status", [429, 500, 503])
    def test_retryable_statuses(self, status):
        assert is_retryable(StatusError(status)) is True

    @pytest.mark.parametrize("status", [400, 401, 404, 502])
    def test_other_statuses(self, status):
        assert is_retryable(StatusError(status)) is False

    def test_plain_exception(self):
        assert is_retryable(RuntimeError("boom")) is False


@pytest.mark.asyncio
class TestChatCompletion:
    async def test_success_first_try(self):
        client = FakeChatClient(chat_response("APIは接点です。", usage={"total_tokens": 12}))

        result = await chat_completion(client, MESSAGES, deployment="glossary-model", sleep=RecordingSleep())

        assert result.content == "APIは接点です。"
        assert result.model == "gpt-4o-mini-2024-07-18"
        assert result.usage == {"total_tokens": 12}
        assert len(client.calls) == 1
        assert client.calls[0]["model"] == "glossary-model"
        assert client.calls[0]["messages"] == MESSAGES
        assert client.calls[0]["temperature"] == 0.4

    async def test_two_retryable_failures_then_success(self):
        client = FakeChatClient(StatusError(429), StatusError(503), chat_response("ok."))
        sleep = RecordingSleep()

        result = await chat_completion(client, MESSAGES, deployment="d", base_delay=0.5, sleep=sleep)

        assert result.content == "ok."
        assert len(client.calls) == 3
        assert sleep.delays == [0.5, 1.0]

    async def test_non_retryable_fails_after_one_attempt(self):
        client = FakeChatClient(StatusError(400), chat_response("never"))
        sleep = RecordingSleep()

        with pytest.raises(StatusError) as exc_info:
            await chat_completion(client, MESSAGES, deployment="d", sleep=sleep)

        assert exc_info.value.status_code == 400
        assert len(client.calls) == 1
        assert sleep.delays == []

    async def test_exhausted_retries_raise_last_error(self):
        client = FakeChatClient(StatusError(500), StatusError(503), StatusError(429))
        sleep = RecordingSleep()

        with pytest.raises(StatusError) as exc_info:
            await chat_completion(client, MESSAGES, deployment="d", max_retries=3, sleep=sleep)

        assert exc_info.value.status_code == 429
        assert len(client.calls) == 3
        assert len(sleep.delays) == 2

    async def test_model_falls_back_to_deployment(self):
        client = FakeChatClient(chat_response("ok.", model=""))

        result = await chat_completion(client, MESSAGES, deployment="glossary-model", sleep=RecordingSleep())

        assert result.model == "glossary-model"
        assert result.usage is None

    async def test_sampling_parameters_forwarded(self):
        client = FakeChatClient(chat_response("ok."))

        await chat_completion(
            client,
            MESSAGES,
            deployment="d",
            temperature=0.2,
            top_p=0.5,
            presence_penalty=0.1,
            sleep=RecordingSleep(),
        )

        call = client.calls[0]
        assert call["temperature"] == 0.2
        assert call["top_p"] == 0.5
        assert call["presence_penalty"] == 0.1

    async def test_empty_choice_content(self):
        client = FakeChatClient(SimpleNamespace(choices=[], model="m", usage=None))

        result = await chat_completion(client, MESSAGES, deployment="d", sleep=RecordingSleep())

        assert result.content == ""


class TestCompletionClientProvider:
    def test_client_is_memoised(self):
        built = []

        def factory():
            built.append(object())
            return built[-1]

        provider = CompletionClientProvider(make_settings(), factory=factory)

        assert provider.get() is provider.get()
        assert len(built) == 1

    def test_missing_endpoint_raises_config_error(self):
        provider = CompletionClientProvider(make_settings(openai_endpoint=None))

        assert provider.configured is False
        with pytest.raises(ConfigError):
            provider.get()

    def test_static_key_auth(self):
        settings = make_settings(openai_api_key="secret", openai_timeout_seconds=12)

        with patch("glossary.completion.client.AsyncAzureOpenAI") as client_cls:
            CompletionClientProvider(settings).get()

        kwargs = client_cls.call_args.kwargs
        assert kwargs["api_key"] == "secret"
        assert kwargs["azure_endpoint"] == "https://example.openai.azure.com"
        assert kwargs["max_retries"] == 0
        assert kwargs["timeout"] == 12
        assert "azure_ad_token_provider" not in kwargs

    @pytest.mark.parametrize("key", [None, "SET_KEY"])
    def test_identity_auth_without_usable_key(self, key):
        settings = make_settings(openai_api_key=key)

        with (
            patch("glossary.completion.client.AsyncAzureOpenAI") as client_cls,
            patch("glossary.completion.client.DefaultAzureCredential") as cred_cls,
            patch("glossary.completion.client.get_bearer_token_provider", return_value="provider") as token,
        ):
            CompletionClientProvider(settings).get()

        cred_cls.assert_called_once_with()
        token.assert_called_once_with(cred_cls.return_value, "https://cognitiveservices.azure.com/.default")
        kwargs = client_cls.call_args.kwargs
        assert kwargs["azure_ad_token_provider"] == "provider"
        assert "api_key" not in kwargs

    @pytest.mark.asyncio
    async def test_aclose_closes_client_and_credential(self):
        settings = make_settings(openai_api_key=None)
        client = MagicMock()
        client.close = AsyncMock()
        credential = MagicMock()
        credential.close = AsyncMock()

        with (
            patch("glossary.completion.client.AsyncAzureOpenAI", return_value=client),
            patch("glossary.completion.client.DefaultAzureCredential", return_value=credential),
            patch("glossary.completion.client.get_bearer_token_provider"),
        ):
            provider = CompletionClientProvider(settings)
            provider.get()
            await provider.aclose()

        client.close.assert_awaited_once()
        credential.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_aclose_before_use_is_noop(self):
        await CompletionClientProvider(make_settings()).aclose()
