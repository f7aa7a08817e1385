"""Query-centered excerpts for search hits."""

from __future__ import annotations

from typing import Sequence

SNIPPET_MAX_LENGTH = 260
ELLIPSIS = "..."


def make_snippet(content: str, terms: Sequence[str], max_len: int = SNIPPET_MAX_LENGTH) -> str:
    """Cut a window of ``max_len`` characters around the earliest query term.

    Falls back to the head of the content when no term occurs literally,
    which happens for hits found only through prefix or fuzzy expansion.
    """
    if not content:
        return ""

    lower = content.lower()
    idx = -1
    for term in terms:
        if not term:
            continue
        found = lower.find(term.lower())
        if found != -1 and (idx == -1 or found < idx):
            idx = found

    if idx == -1:
        return content[:max_len] + (ELLIPSIS if len(content) > max_len else "")

    start = max(0, idx - max_len // 2)
    end = min(len(content), start + max_len)
    snippet = content[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(content):
        snippet = snippet + ELLIPSIS
    return snippet
