"""
Azure OpenAI chat completion client with retry.

Two pieces:

- :class:`CompletionClientProvider` — builds the ``AsyncAzureOpenAI`` client
  lazily on first use and hands out the same instance afterwards.  A static
  key is used when configured, otherwise the ambient Azure identity.
  ``aclose()`` tears it down at process shutdown.
- :func:`chat_completion` — one chat call with bounded exponential backoff
  on overload/unavailable responses (429, 500, 503).

A retried call is a new generation, not a replay: two attempts may return
different text.  Callers treat any successful attempt as a valid answer.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import structlog
from azure.identity.aio import DefaultAzureCredential, get_bearer_token_provider
from openai import AsyncAzureOpenAI

from glossary.core.errors import ConfigError
from glossary.core.retry import ExponentialBackoff, RetryContext
from glossary.core.settings import GlossarySettings

logger = structlog.get_logger()

RETRYABLE_STATUS = frozenset({429, 500, 503})


def is_retryable(error: Exception) -> bool:
    """True for rate-limited / internal error / unavailable responses."""
    return getattr(error, "status_code", None) in RETRYABLE_STATUS


@dataclass
class ChatResult:
    """Normalised completion result."""

    content: str
    model: str
    usage: dict[str, Any] | None = field(default=None)


def _usage_dict(usage: Any) -> dict[str, Any] | None:
    if usage is None:
        return None
    if hasattr(usage, "model_dump"):
        return usage.model_dump(exclude_none=True)
    if isinstance(usage, dict):
        return usage
    return dict(vars(usage))


async def chat_completion(
    client: Any,
    messages: list[dict[str, str]],
    *,
    deployment: str,
    temperature: float = 0.4,
    max_retries: int = 3,
    base_delay: float = 0.5,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    **sampling: Any,
) -> ChatResult:
    """Run one chat completion against ``deployment``.

    Args:
        client: An ``AsyncAzureOpenAI``-compatible client
        messages: Chat messages (``{"role": ..., "content": ...}``)
        deployment: Deployment (model) name
        temperature: Sampling temperature
        max_retries: Maximum attempts in total
        base_delay: Backoff base in seconds; attempt n waits ``base_delay * 2**n``
        sleep: Awaitable used between attempts
        **sampling: Extra sampling parameters (top_p, frequency_penalty, ...)

    Raises:
        The last error, immediately when it is not retryable, otherwise once
        ``max_retries`` attempts have failed.
    """

    def _on_retry(attempt: int, error: Exception, delay: float) -> None:
        logger.warning(
            "completion_retry",
            attempt=attempt,
            status=getattr(error, "status_code", None),
            delay_s=delay,
            error=str(error),
        )

    ctx = RetryContext(
        strategy=ExponentialBackoff(
            max_retries=max_retries,
            base_delay=base_delay,
            retry_on=is_retryable,
        ),
        on_retry=_on_retry,
        sleep=sleep,
    )

    async def _call() -> Any:
        return await client.chat.completions.create(
            model=deployment,
            messages=messages,
            temperature=temperature,
            **sampling,
        )

    resp = await ctx.run_async(_call)

    choice = resp.choices[0] if resp.choices else None
    content = (choice.message.content if choice is not None else None) or ""
    if ctx.attempts > 1:
        logger.info("completion_succeeded_after_retry", attempts=ctx.attempts)
    return ChatResult(
        content=content,
        model=getattr(resp, "model", None) or deployment,
        usage=_usage_dict(getattr(resp, "usage", None)),
    )


class CompletionClientProvider:
    """Process-scoped, lazily built completion client.

    Parameters
    ----------
    settings:
        Source of endpoint, deployment, key and timeout.
    factory:
        Optional zero-argument callable returning a client; replaces the
        Azure construction (tests, alternative transports).
    """

    def __init__(
        self,
        settings: GlossarySettings,
        factory: Callable[[], Any] | None = None,
    ) -> None:
        self._settings = settings
        self._factory = factory
        self._client: Any = None
        self._credential: DefaultAzureCredential | None = None

    @property
    def deployment(self) -> str:
        return self._settings.openai_deployment

    @property
    def configured(self) -> bool:
        return self._factory is not None or bool(self._settings.openai_endpoint)

    def get(self) -> Any:
        """Return the shared client, building it on first call.

        Raises:
            ConfigError: no endpoint is configured.
        """
        if self._client is None:
            self._client = self._factory() if self._factory is not None else self._build()
        return self._client

    def _build(self) -> AsyncAzureOpenAI:
        s = self._settings
        if not s.openai_endpoint:
            raise ConfigError("GLOSSARY_OPENAI_ENDPOINT is not set")

        common: dict[str, Any] = {
            "azure_endpoint": s.openai_endpoint,
            "api_version": s.openai_api_version,
            "timeout": s.openai_timeout_seconds,
            # chat_completion owns the retry policy
            "max_retries": 0,
        }

        if s.openai_key_configured:
            logger.info("completion_client_created", auth="key", endpoint=s.openai_endpoint)
            return AsyncAzureOpenAI(api_key=s.openai_api_key, **common)

        self._credential = DefaultAzureCredential()
        token_provider = get_bearer_token_provider(self._credential, s.openai_token_scope)
        logger.info("completion_client_created", auth="identity", endpoint=s.openai_endpoint)
        return AsyncAzureOpenAI(azure_ad_token_provider=token_provider, **common)

    async def aclose(self) -> None:
        """Close the client and credential if they were built."""
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()
        self._client = None
        if self._credential is not None:
            await self._credential.close()
            self._credential = None
