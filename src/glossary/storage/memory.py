"""In-process volatile Term Store backend."""

from __future__ import annotations

from typing import Any

import structlog

from glossary.core.models import Term, matches_query, normalize_name, sort_terms
from glossary.storage.base import TermStore

logger = structlog.get_logger()


class MemoryTermStore(TermStore):
    """
    Term Store backed by a plain dict in this process.

    Used when Cosmos credentials are absent or Cosmos is unreachable at
    startup.  State is lost on restart and is never shared between
    processes, so only one API process may run in this mode.

    No method awaits anything, so a duplicate-name check followed by a
    create in the same request cannot interleave with another request.
    """

    mode = "memory"

    def __init__(self, db_name: str = "glossary", container_name: str = "terms"):
        self.db_name = db_name
        self.container_name = container_name
        self._terms: dict[str, Term] = {}

    async def list(self) -> list[Term]:
        return sort_terms(self._terms.values())

    async def get(self, term_id: str) -> Term | None:
        return self._terms.get(term_id)

    async def find_duplicate_name(self, name: str) -> Term | None:
        wanted = normalize_name(name)
        for term in self._terms.values():
            if normalize_name(term.name) == wanted:
                return term
        return None

    async def create(self, name: str) -> Term:
        term = Term.build(name)
        self._terms[term.id] = term
        logger.info("term_created", term_id=term.id, mode=self.mode)
        return term

    async def update(self, term_id: str, description: str = "", category: str = "") -> Term | None:
        existing = self._terms.get(term_id)
        if existing is None:
            return None
        updated = existing.with_edit(description, category)
        self._terms[term_id] = updated
        logger.info("term_updated", term_id=term_id, mode=self.mode)
        return updated

    async def apply_explanation(self, term_id: str, explanation: str) -> Term | None:
        existing = self._terms.get(term_id)
        if existing is None:
            return None
        updated = existing.with_explanation(explanation)
        self._terms[term_id] = updated
        logger.info("term_explained", term_id=term_id, mode=self.mode)
        return updated

    async def delete(self, term_id: str) -> bool:
        if self._terms.pop(term_id, None) is None:
            return False
        logger.info("term_deleted", term_id=term_id, mode=self.mode)
        return True

    async def search(self, query: str) -> list[Term]:
        needle = query.strip().lower()
        if not needle:
            return await self.list()
        return sort_terms(t for t in self._terms.values() if matches_query(t, needle))

    def describe(self) -> dict[str, Any]:
        return {"mode": self.mode, "db": self.db_name, "container": self.container_name}

    def clear(self) -> None:
        """Drop every term."""
        self._terms.clear()

    def __len__(self) -> int:
        return len(self._terms)
