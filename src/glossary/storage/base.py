"""Base Term Store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from glossary.core.models import Term


class TermStore(ABC):
    """Abstract base class for Term Store backends.

    Absence is never an exception: :meth:`get`, :meth:`update` and
    :meth:`apply_explanation` return ``None`` and :meth:`delete` returns
    ``False`` for unknown ids.
    """

    #: ``"cosmos"`` or ``"memory"``; reported by ``/api/health``
    mode: str = ""

    @abstractmethod
    async def list(self) -> list[Term]:
        """All terms, ordered by name (Japanese-aware collation)."""
        ...

    @abstractmethod
    async def get(self, term_id: str) -> Term | None:
        """
        Fetch one term.

        Returns:
            The term, or None if the id does not exist
        """
        ...

    @abstractmethod
    async def find_duplicate_name(self, name: str) -> Term | None:
        """First term whose trimmed name equals ``name`` case-insensitively."""
        ...

    @abstractmethod
    async def create(self, name: str) -> Term:
        """
        Persist a new term with empty description and category.

        Args:
            name: Display name (trimmed before storing)

        Returns:
            The stored term, ``createdAt == updatedAt``
        """
        ...

    @abstractmethod
    async def update(self, term_id: str, description: str = "", category: str = "") -> Term | None:
        """
        Overwrite description and category after a user edit.

        ``isAIGenerated`` is forced to False and ``updatedAt`` refreshed.

        Returns:
            Updated term, or None if the id does not exist
        """
        ...

    @abstractmethod
    async def apply_explanation(self, term_id: str, explanation: str) -> Term | None:
        """Write an AI explanation into the description and mark it AI-generated."""
        ...

    @abstractmethod
    async def delete(self, term_id: str) -> bool:
        """
        Delete a term.

        Returns:
            True if deleted, False if it didn't exist
        """
        ...

    @abstractmethod
    async def search(self, query: str) -> list[Term]:
        """Case-insensitive substring match on name or description; blank = list()."""
        ...

    @abstractmethod
    def describe(self) -> dict[str, Any]:
        """Backend identifiers for health reporting (mode, db, container)."""
        ...

    async def close(self) -> None:
        """Release backend resources (no-op by default)."""
        return None
