"""Process-wide documentation search service.

The corpus is loaded and indexed once, on the first call to any public
entry point. Concurrent first callers share one in-flight build task, so the
corpus is never read twice.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

from scixdocs.config import AppConfig
from scixdocs.index.indexer import SearchOptions, TextIndex
from scixdocs.index.search import (
    BASE_SEARCH_OPTIONS,
    INDEX_FIELDS,
    Searcher,
    coerce_limit,
)
from scixdocs.index.snippet import make_snippet
from scixdocs.ingestion.corpus_loader import clean_records, read_corpus_file
from scixdocs.models import DocumentChunk, SearchHit, SearchStats

LOGGER = logging.getLogger(__name__)

CATEGORY_FIELDS = ("title", "section", "subsection", "content")
CATEGORY_SEARCH_OPTIONS = SearchOptions(
    prefix=True,
    fuzzy=0.2,
    boost={"title": 4, "section": 2},
)


@dataclass(slots=True)
class IndexState:
    docs: Tuple[DocumentChunk, ...]
    by_id: Dict[str, DocumentChunk]
    index: TextIndex


def build_state(docs: List[DocumentChunk]) -> IndexState:
    index = TextIndex(INDEX_FIELDS, search_options=BASE_SEARCH_OPTIONS)
    index.add_all(docs)
    return IndexState(docs=tuple(docs), by_id={doc.id: doc for doc in docs}, index=index)


class DocsIndex:
    """Lazily built search index over one documentation corpus."""

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()
        self._state: IndexState | None = None
        self._pending: asyncio.Future[IndexState] | None = None

    @property
    def corpus_path(self) -> Path:
        return self.config.resolve_corpus_path(Path.cwd())

    @property
    def is_ready(self) -> bool:
        return self._state is not None

    async def _build(self) -> IndexState:
        path = self.corpus_path
        started = time.perf_counter()
        records = await asyncio.to_thread(read_corpus_file, path)
        state = build_state(clean_records(records))
        LOGGER.info(
            "Built documentation index from %s: %d chunks in %.1f ms",
            path,
            len(state.docs),
            (time.perf_counter() - started) * 1000,
        )
        return state

    async def initialize(self) -> IndexState:
        """Return the built index state, building it on first use."""
        if self._state is not None:
            return self._state
        if self._pending is not None and not self._reusable(self._pending):
            self._pending = None
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._build())
        pending = self._pending
        try:
            state = await asyncio.shield(pending)
        except BaseException:
            # A cancelled waiter leaves the build running; only a dead build is dropped.
            if self._pending is pending and not self._reusable(pending):
                self._pending = None
            raise
        self._state = state
        return state

    @staticmethod
    def _reusable(pending: asyncio.Future[IndexState]) -> bool:
        """Whether ``pending`` can still deliver a state to this event loop."""
        if pending.done():
            return not pending.cancelled() and pending.exception() is None
        return pending.get_loop() is asyncio.get_running_loop()

    async def search_docs(
        self,
        query: str,
        limit: Any = None,
        options: Mapping[str, Any] | None = None,
    ) -> List[SearchHit]:
        state = await self.initialize()
        searcher = Searcher(
            state.index,
            min_score_ratio=self.config.min_score_ratio,
            snippet_max_length=self.config.snippet_max_length,
        )
        if limit is None:
            limit = self.config.default_limit
        return searcher.search(query, limit, options, default_limit=self.config.default_limit)

    async def get_doc_by_id(self, doc_id: str) -> DocumentChunk | None:
        state = await self.initialize()
        return state.by_id.get(doc_id)

    async def search_by_category(
        self,
        category: str,
        query: str = "",
        limit: Any = None,
    ) -> List[SearchHit]:
        state = await self.initialize()
        if limit is None:
            limit = self.config.category_limit
        category_docs = [doc for doc in state.docs if doc.category == category]
        safe_limit = coerce_limit(limit, default=1, unbounded=len(category_docs))
        max_len = self.config.snippet_max_length

        if not query or not query.strip():
            return [
                SearchHit(
                    id=doc.id,
                    title=doc.title,
                    section=doc.section,
                    subsection=doc.subsection,
                    source_file=doc.source_file,
                    source_url=doc.source_url,
                    doc_type=doc.doc_type,
                    category=doc.category,
                    score=0,
                    snippet=make_snippet(doc.content, [], max_len),
                )
                for doc in category_docs[:safe_limit]
            ]

        # TODO: build per-category indexes alongside the main one if the corpus grows past a few hundred chunks.
        sub_index = TextIndex(CATEGORY_FIELDS, search_options=CATEGORY_SEARCH_OPTIONS)
        sub_index.add_all(category_docs)
        searcher = Searcher(sub_index, min_score_ratio=None, snippet_max_length=max_len)
        return searcher.search(query, safe_limit, default_limit=1)

    async def get_stats(self) -> SearchStats:
        state = await self.initialize()
        stats = SearchStats(total_docs=len(state.docs))
        total_chars = 0
        for doc in state.docs:
            stats.by_category[doc.category] = stats.by_category.get(doc.category, 0) + 1
            stats.by_doc_type[doc.doc_type] = stats.by_doc_type.get(doc.doc_type, 0) + 1
            total_chars += len(doc.content)
        if state.docs:
            stats.avg_content_length = int(total_chars / len(state.docs) + 0.5)
        return stats


_default_index: DocsIndex | None = None


def get_default_index() -> DocsIndex:
    """Shared index over the shipped SciX corpus."""
    global _default_index
    if _default_index is None:
        _default_index = DocsIndex()
    return _default_index


async def search_docs(
    query: str, limit: Any = None, options: Mapping[str, Any] | None = None
) -> List[SearchHit]:
    return await get_default_index().search_docs(query, limit, options)


async def get_doc_by_id(doc_id: str) -> DocumentChunk | None:
    return await get_default_index().get_doc_by_id(doc_id)


async def search_by_category(category: str, query: str = "", limit: Any = None) -> List[SearchHit]:
    return await get_default_index().search_by_category(category, query, limit)


async def get_stats() -> SearchStats:
    return await get_default_index().get_stats()
