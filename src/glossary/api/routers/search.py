"""Term search."""

from __future__ import annotations

from fastapi import APIRouter, Query

from glossary.api.deps import Store
from glossary.api.schemas import TermListResponse

router = APIRouter(tags=["terms"])


@router.get("/search", response_model=TermListResponse)
async def search_terms(
    store: Store,
    q: str = Query(default="", description="Case-insensitive substring of name or description"),
) -> TermListResponse:
    """Blank ``q`` returns every term."""
    return TermListResponse(terms=await store.search(q))
