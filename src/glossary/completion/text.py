"""Post-processing for generated explanations.

Model output is shown inside a term card, so markdown is flattened to plain
text and only the first sentence is kept.
"""

from __future__ import annotations

import re

ONE_SENTENCE_MAX = 140

_SENTENCE_ENDS = ("。", "！", "？", ".", "!", "?")
_TERM_LINE = re.compile(r"用語:\s*([^\n\r]+)", re.IGNORECASE)

_HEADING = re.compile(r"^\s{0,3}#{1,6}\s+", re.MULTILINE)
_BULLET = re.compile(r"^\s*[-*]\s+", re.MULTILINE)
_STRONG = re.compile(r"(\*\*|__)(.*?)\1")
_EMPHASIS = re.compile(r"(\*|_)(.*?)\1")
_CODE = re.compile(r"`{1,3}([^`]+)`{1,3}")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_TABLE_ROW = re.compile(r"^\|.*\|$", re.MULTILINE)
_BLANK_RUN = re.compile(r"\n{3,}")


def to_plain(text: str | None) -> str:
    """Strip markdown decoration (headings, bullets, emphasis, code, links, tables)."""
    if not text:
        return ""
    out = str(text)
    out = _HEADING.sub("", out)
    out = _BULLET.sub("", out)
    out = _STRONG.sub(r"\2", out)
    out = _EMPHASIS.sub(r"\2", out)
    out = _CODE.sub(r"\1", out)
    out = _LINK.sub(r"\1", out)
    out = _TABLE_ROW.sub(lambda m: m.group(0).replace("|", " ").strip(), out)
    out = _BLANK_RUN.sub("\n\n", out)
    return out.strip()


def to_one_sentence(text: str | None, max_len: int = ONE_SENTENCE_MAX) -> str:
    """First sentence of ``text``, or its first ``max_len`` characters if it has no terminator."""
    if not text:
        return ""
    flat = re.sub(r"[\r\n]+", " ", str(text)).strip()
    ends = [idx for idx in (flat.find(p) for p in _SENTENCE_ENDS) if idx != -1]
    if ends:
        return flat[: min(ends) + 1].strip()
    return flat[:max_len].strip() if len(flat) > max_len else flat


def extract_term(user_prompt: str) -> str | None:
    """The term named on a ``用語: <term>`` line, if any."""
    match = _TERM_LINE.search(user_prompt or "")
    if match:
        return match.group(1).strip() or None
    return None


def summarize(text: str | None) -> str:
    """Plain-text, one-sentence form of a model reply."""
    return to_one_sentence(to_plain(text))
