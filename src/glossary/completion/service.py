"""Explanation service: prompts, sampling defaults and error mapping.

Routers talk to :class:`CompletionService`; it owns the prompt policy and
turns SDK failures into :class:`~glossary.core.errors.CompletionError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import openai
import structlog

from glossary.completion.client import ChatResult, CompletionClientProvider, chat_completion
from glossary.completion.text import extract_term, summarize
from glossary.core.errors import CompletionError
from glossary.core.settings import GlossarySettings

logger = structlog.get_logger()

POLICY_SYSTEM_PROMPT = (
    "あなたは用語集の説明を行うアシスタントです。"
    "出力は必ず日本語の平文のみで、Markdown、箇条書き、装飾記号は使用しないでください。"
    "対象はIT用語（ソフトウェア、ハードウェア、ネットワーク、データベース、セキュリティ、"
    "クラウド、AI、プログラミング、開発運用など）に限定します。"
    "入力がIT用語でない場合は「この用語はIT用語ではないため登録できません」とだけ返してください。"
    "IT用語の場合は事実ベースで簡潔に、一言サマリの1文だけを返してください。"
    "余計な前置きや追加説明、例、箇条書き、見出しは一切出力しないでください。"
)

NOT_IT_TERM_REPLY = "この用語はIT用語ではないため登録できません"


def build_term_prompt(term: str, context: str = "", language: str = "ja") -> str:
    """User prompt naming a term; :func:`extract_term` can read it back."""
    return f"用語: {term}\n追加文脈: {context}\n出力言語: {language}"


@dataclass
class Explanation:
    """One generated explanation, as returned over HTTP."""

    term: str | None
    explanation: str
    model: str
    usage: dict[str, Any] | None

    @property
    def rejected(self) -> bool:
        """The model declined because the input is not an IT term."""
        return self.explanation.startswith(NOT_IT_TERM_REPLY)


class CompletionService:
    """Generates term explanations through the shared completion client."""

    def __init__(self, settings: GlossarySettings, provider: CompletionClientProvider | None = None):
        self.settings = settings
        self.provider = provider or CompletionClientProvider(settings)

    def sampling_defaults(self) -> dict[str, float]:
        s = self.settings
        return {
            "temperature": s.ai_default_temperature,
            "top_p": s.ai_default_top_p,
            "frequency_penalty": s.ai_default_frequency_penalty,
            "presence_penalty": s.ai_default_presence_penalty,
        }

    async def complete(self, messages: list[dict[str, str]], **sampling: Any) -> ChatResult:
        """Run a chat completion with the configured retry policy.

        Raises:
            ConfigError: no completion endpoint is configured
            CompletionError: the service failed (after retries where applicable)
        """
        params = {**self.sampling_defaults(), **{k: v for k, v in sampling.items() if v is not None}}
        client = self.provider.get()
        try:
            return await chat_completion(
                client,
                messages,
                deployment=self.provider.deployment,
                max_retries=self.settings.ai_retry_count,
                base_delay=self.settings.ai_retry_base_delay,
                **params,
            )
        except openai.APIStatusError as e:
            logger.error("completion_failed", status=e.status_code, error=str(e))
            raise CompletionError(f"Completion service error: {e.message}", status=e.status_code, cause=e) from e
        except openai.APIError as e:
            logger.error("completion_failed", error=str(e))
            raise CompletionError(f"Completion service error: {e}", cause=e) from e

    def _system_prompt(self, requested: str | None) -> str:
        if self.settings.ai_enforce_system_prompt or not requested:
            return POLICY_SYSTEM_PROMPT
        return requested

    async def answer(
        self,
        user_prompt: str,
        system_prompt: str | None = None,
        **sampling: Any,
    ) -> Explanation:
        """Free-form request (``/api/ai-request``): one plain sentence back."""
        result = await self.complete(
            [
                {"role": "system", "content": self._system_prompt(system_prompt)},
                {"role": "user", "content": user_prompt},
            ],
            **sampling,
        )
        return Explanation(
            term=extract_term(user_prompt),
            explanation=summarize(result.content),
            model=result.model,
            usage=result.usage,
        )

    async def explain_term(self, name: str, context: str = "", language: str = "ja") -> Explanation:
        """One-sentence explanation for a stored term's name."""
        return await self.answer(build_term_prompt(name, context, language))

    async def aclose(self) -> None:
        await self.provider.aclose()


__all__ = [
    "POLICY_SYSTEM_PROMPT",
    "NOT_IT_TERM_REPLY",
    "Explanation",
    "CompletionService",
    "build_term_prompt",
]
