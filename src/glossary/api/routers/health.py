"""Health endpoint: reports which store backend this process settled on."""

from __future__ import annotations

from fastapi import APIRouter

from glossary.api.deps import Store
from glossary.api.schemas import HealthResponse
from glossary.core.models import now_iso

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(store: Store) -> HealthResponse:
    info = store.describe()
    return HealthResponse(
        status="ok",
        mode=info["mode"],
        cosmos=info["mode"] == "cosmos",
        db=info["db"],
        container=info["container"],
        timestamp=now_iso(),
    )
