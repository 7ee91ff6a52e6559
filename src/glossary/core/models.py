"""Term record and the helpers both storage backends share.

The JSON shape is fixed by the browser UI and by documents already stored in
Cosmos DB, so fields are camelCase on the wire::

    {id, name, description, category, isAIGenerated, createdAt, updatedAt, type}
"""

from __future__ import annotations

import unicodedata
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

TERM_TYPE = "term"

# Katakana ァ..ヶ → hiragana ぁ..ゖ (same offset for the whole block)
_KATA_TO_HIRA = {code: code - 0x60 for code in range(0x30A1, 0x30F7)}


def now_iso() -> str:
    """Current UTC time as ``2025-01-01T10:00:00.000Z``."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_term_id() -> str:
    """Random UUID4; uniform ids keep the ``/id`` partition key evenly spread."""
    return str(uuid.uuid4())


def normalize_name(name: str) -> str:
    """Key used for case-insensitive duplicate detection."""
    return name.strip().lower()


def collation_key(name: str) -> tuple[str, str]:
    """Sort key approximating Japanese collation.

    Width variants are unified (NFKC), case is folded and katakana sorts
    together with hiragana.  The raw name breaks ties so ordering is total.

    Folded strings compare by code point, which differs from ICU Japanese
    collation in two ways: a voiced kana outranks every following character
    (``"かb" < "がa"``, where ICU puts ``"がa"`` first), and the long vowel
    mark ``ー`` sorts after all kana instead of by the vowel it extends.
    """
    folded = unicodedata.normalize("NFKC", name).casefold().translate(_KATA_TO_HIRA)
    return folded, name


class Term(BaseModel):
    """A glossary entry."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    description: str = ""
    category: str = ""
    is_ai_generated: bool = Field(default=False, alias="isAIGenerated")
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")
    type: Literal["term"] = TERM_TYPE

    @classmethod
    def build(cls, name: str, *, term_id: str | None = None) -> Term:
        """A fresh term: empty text fields, human-authored, both timestamps equal."""
        ts = now_iso()
        return cls(
            id=term_id or new_term_id(),
            name=name.strip(),
            description="",
            category="",
            is_ai_generated=False,
            created_at=ts,
            updated_at=ts,
        )

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Term:
        """Parse a stored document; Cosmos system fields (``_rid``, ``_etag``...) are ignored."""
        return cls.model_validate(doc)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    def with_edit(self, description: str, category: str) -> Term:
        """Copy after an explicit user edit: fields overwritten, provenance human."""
        return self.model_copy(
            update={
                "description": description.strip(),
                "category": category or "",
                "is_ai_generated": False,
                "updated_at": now_iso(),
            }
        )

    def with_explanation(self, explanation: str) -> Term:
        """Copy after an AI explanation was written into the description."""
        return self.model_copy(
            update={
                "description": explanation.strip(),
                "is_ai_generated": True,
                "updated_at": now_iso(),
            }
        )


def sort_terms(terms: Iterable[Term]) -> list[Term]:
    """Terms ordered by name under :func:`collation_key`."""
    return sorted(terms, key=lambda t: collation_key(t.name))


def matches_query(term: Term, needle: str) -> bool:
    """Case-insensitive substring match on name or description (``needle`` already lowered)."""
    return needle in term.name.lower() or needle in term.description.lower()


__all__ = [
    "TERM_TYPE",
    "Term",
    "now_iso",
    "new_term_id",
    "normalize_name",
    "collation_key",
    "sort_terms",
    "matches_query",
]
