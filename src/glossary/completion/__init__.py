"""Completion client (Azure OpenAI) and explanation helpers."""

from glossary.completion.client import (
    ChatResult,
    CompletionClientProvider,
    chat_completion,
    is_retryable,
)
from glossary.completion.service import CompletionService, Explanation

__all__ = [
    "ChatResult",
    "CompletionClientProvider",
    "CompletionService",
    "Explanation",
    "chat_completion",
    "is_retryable",
]
