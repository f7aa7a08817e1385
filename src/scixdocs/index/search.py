"""Lexical search over the documentation index."""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Any, List, Mapping

from scixdocs.index.indexer import Match, SearchOptions, TextIndex
from scixdocs.index.snippet import SNIPPET_MAX_LENGTH, make_snippet
from scixdocs.models import SearchHit
from scixdocs.utils.text import split_query_terms

INDEX_FIELDS = ("title", "section", "subsection", "content", "doc_type", "category")
MIN_SCORE_RATIO = 0.4
DEFAULT_LIMIT = 5

BASE_SEARCH_OPTIONS = SearchOptions(
    prefix=True,
    fuzzy=0.2,
    boost={"title": 4, "section": 3, "subsection": 2, "doc_type": 2},
)


def coerce_limit(limit: Any, default: int = DEFAULT_LIMIT, *, unbounded: int | None = None) -> int:
    """Floor ``limit`` and clamp it to at least 1; unusable values give ``default``.

    When ``unbounded`` is given, a positive infinite limit maps to it instead
    of to ``default``.
    """
    if isinstance(limit, bool):
        return default
    try:
        value = float(limit)
    except (TypeError, ValueError):
        return default
    if math.isinf(value) and value > 0 and unbounded is not None:
        return max(1, unbounded)
    if not math.isfinite(value):
        return default
    return max(1, math.floor(value))


def merge_options(base: SearchOptions, overrides: Mapping[str, Any] | None) -> SearchOptions:
    """Apply caller overrides on top of ``base``."""
    if not overrides:
        return base
    return replace(base, **overrides)


def to_hit(match: Match, terms: List[str], max_len: int = SNIPPET_MAX_LENGTH) -> SearchHit:
    doc = match.document
    return SearchHit(
        id=doc.id,
        title=doc.title or "",
        section=doc.section or "",
        subsection=doc.subsection or "",
        source_file=doc.source_file or "",
        source_url=doc.source_url or "",
        doc_type=doc.doc_type or "",
        category=doc.category or "",
        score=match.score,
        snippet=make_snippet(doc.content or "", terms, max_len),
    )


class Searcher:
    """High-level API to query a :class:`TextIndex`.

    With ``min_score_ratio`` set, hits scoring below that fraction of the best
    hit are discarded before the limit is applied.
    """

    def __init__(
        self,
        index: TextIndex,
        *,
        min_score_ratio: float | None = MIN_SCORE_RATIO,
        snippet_max_length: int = SNIPPET_MAX_LENGTH,
    ) -> None:
        self.index = index
        self.min_score_ratio = min_score_ratio
        self.snippet_max_length = snippet_max_length

    def search(
        self,
        query: str,
        limit: Any = DEFAULT_LIMIT,
        options: Mapping[str, Any] | None = None,
        *,
        default_limit: int = DEFAULT_LIMIT,
    ) -> List[SearchHit]:
        trimmed = (query or "").strip()
        if not trimmed:
            return []

        limit_value = coerce_limit(limit, default_limit)
        max_results = min(limit_value, len(self.index) or limit_value)
        search_options = merge_options(self.index.search_options, options)

        matches = self.index.search(trimmed, search_options)
        if matches and self.min_score_ratio is not None:
            top_score = matches[0].score
            if top_score > 0:
                cutoff = top_score * self.min_score_ratio
                matches = [match for match in matches if match.score >= cutoff]

        terms = split_query_terms(trimmed)
        return [to_hit(match, terms, self.snippet_max_length) for match in matches[:max_results]]
