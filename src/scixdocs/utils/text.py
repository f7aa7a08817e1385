"""Text helpers for cleaning documentation chunks and tokenizing queries."""

from __future__ import annotations

import re
import unicodedata
from typing import List

_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_WHITESPACE_RE = re.compile(r"\s+")
_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$", re.MULTILINE)
_SLUG_SEPARATOR_RE = re.compile(r"[-_]+")
_WORD_START_RE = re.compile(r"\b\w")
_NAV_TEXT_RE = re.compile(r"what['’]?s?\s*[_\s-]*new", re.IGNORECASE)
# Line breaks, Unicode separators and punctuation (underscore included) end a
# term. Symbols such as "+", "^", "=" and "$" stay part of it.
_LINE_BREAKS = "\n\r"


def strip_markdown_links(text: str) -> str:
    """Replace ``[text](url)`` links with their visible text."""
    return _MARKDOWN_LINK_RE.sub(r"\1", text)


def normalize_content(content: str) -> str:
    """Strip links, collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", strip_markdown_links(content)).strip()


def extract_first_heading(raw: str) -> str:
    """Return the normalized text of the first markdown heading, or ``""``."""
    match = _HEADING_RE.search(raw)
    if not match:
        return ""
    return normalize_content(match.group(2) or "")


def slug_to_title(slug: str) -> str:
    """Turn a file slug such as ``search-syntax`` into ``Search Syntax``."""
    if not slug:
        return ""
    spaced = _WHITESPACE_RE.sub(" ", _SLUG_SEPARATOR_RE.sub(" ", slug)).strip()
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), spaced)


def is_nav_text(text: str) -> bool:
    """Detect "what's new" navigation pages in any spelling."""
    return bool(_NAV_TEXT_RE.search(text or ""))


def tokenize(text: str) -> List[str]:
    """Split text into lower-cased terms."""
    if not text:
        return []
    terms: List[str] = []
    current: List[str] = []
    for char in text.lower():
        if _is_term_boundary(char):
            if current:
                terms.append("".join(current))
                current = []
        else:
            current.append(char)
    if current:
        terms.append("".join(current))
    return terms


def _is_term_boundary(char: str) -> bool:
    return char in _LINE_BREAKS or unicodedata.category(char)[0] in ("P", "Z")


def split_query_terms(query: str) -> List[str]:
    """Whitespace-split query words, used to locate snippets."""
    return [term for term in _WHITESPACE_RE.split(query or "") if term]
