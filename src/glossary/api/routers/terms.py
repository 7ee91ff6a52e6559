"""
Term CRUD plus AI explanation of a stored term.

Routes (mounted under ``/api``):
    GET    /terms                      list, sorted by name
    POST   /terms                      create (409 on duplicate name)
    GET    /terms/{term_id}            fetch one
    PUT    /terms/{term_id}            overwrite description/category
    DELETE /terms/{term_id}            delete (204)
    POST   /terms/{term_id}/explanation  generate and persist an explanation
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Body, Response, status

from glossary.api.deps import Completion, Settings, Store
from glossary.api.schemas import (
    CreateTermRequest,
    ExplainTermRequest,
    ExplainTermResponse,
    TermListResponse,
    TermResponse,
    UpdateTermRequest,
)
from glossary.core.errors import ConfigError, ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger()

router = APIRouter(prefix="/terms", tags=["terms"])

TERM_NOT_FOUND = "Term not found"


@router.get("", response_model=TermListResponse)
async def list_terms(store: Store) -> TermListResponse:
    return TermListResponse(terms=await store.list())


@router.post("", response_model=TermResponse, status_code=status.HTTP_201_CREATED)
async def create_term(body: CreateTermRequest, store: Store) -> TermResponse:
    """Create a term.

    The name is trimmed; a case-insensitive duplicate is rejected with 409.
    Optional ``description``/``category`` are applied right after creation.
    """
    name = (body.name or "").strip()
    if not name:
        raise ValidationError("name is required")

    if await store.find_duplicate_name(name) is not None:
        raise ConflictError("Term already exists")

    term = await store.create(name)
    if body.description or body.category:
        term = await store.update(term.id, body.description, body.category) or term
    return TermResponse(term=term)


@router.get("/{term_id}", response_model=TermResponse)
async def get_term(term_id: str, store: Store) -> TermResponse:
    term = await store.get(term_id)
    if term is None:
        raise NotFoundError(TERM_NOT_FOUND)
    return TermResponse(term=term)


@router.put("/{term_id}", response_model=TermResponse)
async def update_term(
    term_id: str,
    store: Store,
    body: UpdateTermRequest | None = Body(default=None),
) -> TermResponse:
    # A missing body clears both fields
    req = body or UpdateTermRequest()
    term = await store.update(term_id, req.description, req.category)
    if term is None:
        raise NotFoundError(TERM_NOT_FOUND)
    return TermResponse(term=term)


@router.delete("/{term_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_term(term_id: str, store: Store) -> Response:
    if not await store.delete(term_id):
        raise NotFoundError(TERM_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{term_id}/explanation", response_model=ExplainTermResponse)
async def explain_term(
    term_id: str,
    store: Store,
    completion: Completion,
    settings: Settings,
    body: ExplainTermRequest | None = Body(default=None),
) -> ExplainTermResponse:
    """Generate an explanation for a stored term and save it as its description.

    A reply saying the name is not an IT term is reported as a 400 and
    nothing is written.
    """
    if not settings.ai_enable_explanation:
        raise ConfigError("AI explanations are disabled")

    term = await store.get(term_id)
    if term is None:
        raise NotFoundError(TERM_NOT_FOUND)

    req = body or ExplainTermRequest()
    result = await completion.explain_term(term.name, req.context, req.language)
    if result.rejected:
        logger.info("explanation_rejected", term_id=term_id, name=term.name)
        raise ValidationError(result.explanation)

    updated = await store.apply_explanation(term_id, result.explanation)
    if updated is None:
        raise NotFoundError(TERM_NOT_FOUND)
    return ExplainTermResponse(
        term=updated,
        explanation=result.explanation,
        model=result.model,
        usage=result.usage,
    )
