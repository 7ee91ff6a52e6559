"""
Request and response schemas for the Glossary API.

Request bodies reject unknown fields (``extra="forbid"``) so malformed
payloads fail at the boundary with a 400 instead of being half-applied.

Error envelope (every non-2xx response)::

    {"error": "NotFound", "message": "Term not found"}
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from glossary.core.models import Term


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ── Requests ─────────────────────────────────────────────────────────────


class CreateTermRequest(_Request):
    """``POST /api/terms``. ``name`` is checked by the handler so a blank name reads as missing."""

    name: str | None = Field(default=None, description="Display name (required, trimmed)")
    description: str = Field(default="", description="Optional initial description")
    category: str = Field(default="", description="Optional comma-joined tags")


class UpdateTermRequest(_Request):
    """``PUT /api/terms/{id}`` — both fields are overwritten; absent means empty."""

    description: str = ""
    category: str = ""


class ExplainTermRequest(_Request):
    """``POST /api/terms/{id}/explanation``."""

    context: str = Field(default="", description="Extra context passed to the model")
    language: str = Field(default="ja", description="Output language")


class AIRequest(_Request):
    """``POST /api/ai-request``. Unset sampling fields fall back to configured defaults."""

    system_prompt: str | None = None
    user_prompt: str | None = None
    temperature: float | None = Field(default=None, ge=0, le=2)
    top_p: float | None = Field(default=None, ge=0, le=1)
    frequency_penalty: float | None = Field(default=None, ge=-2, le=2)
    presence_penalty: float | None = Field(default=None, ge=-2, le=2)


# ── Responses ────────────────────────────────────────────────────────────


class TermResponse(BaseModel):
    term: Term


class TermListResponse(BaseModel):
    terms: list[Term]


class HealthResponse(BaseModel):
    """``GET /api/health``."""

    status: str = "ok"
    mode: str = Field(description="'cosmos' or 'memory'")
    cosmos: bool = Field(description="True when the remote store is in use")
    db: str
    container: str
    timestamp: str


class AIResponse(BaseModel):
    """Generated explanation; ``term`` is read from a ``用語:`` line when present."""

    term: str | None = None
    explanation: str
    model: str
    usage: dict[str, Any] | None = None


class ExplainTermResponse(BaseModel):
    """Generated explanation plus the term as persisted."""

    term: Term
    explanation: str
    model: str
    usage: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    error: str
    message: str
