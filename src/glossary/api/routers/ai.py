"""Free-form explanation requests (``POST /api/ai-request``)."""

from __future__ import annotations

from fastapi import APIRouter

from glossary.api.deps import Completion
from glossary.api.schemas import AIRequest, AIResponse
from glossary.core.errors import ValidationError

router = APIRouter(tags=["ai"])


@router.post("/ai-request", response_model=AIResponse)
async def ai_request(body: AIRequest, completion: Completion) -> AIResponse:
    """Generate a one-sentence plain-text explanation.

    The configured policy system prompt is used unless enforcement is
    switched off, in which case ``system_prompt`` from the body is honoured.
    """
    if not body.user_prompt or not body.user_prompt.strip():
        raise ValidationError("user_prompt is required (string)")

    result = await completion.answer(
        body.user_prompt,
        system_prompt=body.system_prompt,
        temperature=body.temperature,
        top_p=body.top_p,
        frequency_penalty=body.frequency_penalty,
        presence_penalty=body.presence_penalty,
    )
    return AIResponse(
        term=result.term,
        explanation=result.explanation,
        model=result.model,
        usage=result.usage,
    )
