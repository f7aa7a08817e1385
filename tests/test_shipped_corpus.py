"""Search behaviour against the documentation corpus shipped with the package."""

from __future__ import annotations

import asyncio

import pytest

from scixdocs.index.service import DocsIndex


@pytest.fixture(scope="module")
def shipped() -> DocsIndex:
    return DocsIndex()


def _search(index: DocsIndex, query: str, limit: int = 5):
    return asyncio.run(index.search_docs(query, limit))


class TestGlobalSearch:
    """Queries a user of the help pages would type."""

    def test_author_search(self, shipped: DocsIndex) -> None:
        """The author search section ranks first."""
        hits = _search(shipped, "author search")
        assert hits[0].id == "search-syntax_1"

    def test_typos_still_match(self, shipped: DocsIndex) -> None:
        """Misspelled words find the same section."""
        hits = _search(shipped, "authr serch")
        assert hits
        assert hits[0].subsection == "Author Search"

    def test_export_bibtex(self, shipped: DocsIndex) -> None:
        """Export documentation mentioning BibTeX ranks first."""
        hits = _search(shipped, "export bibtex")
        assert hits[0].id == "export-formats_0"
        assert hits[0].category == "actions_docs"

    def test_library_create(self, shipped: DocsIndex) -> None:
        """Library pages answer library questions."""
        hits = _search(shipped, "library create")
        assert hits[0].category == "library_docs"
        assert "libraries_0" in [hit.id for hit in hits]

    def test_bibcode(self, shipped: DocsIndex) -> None:
        """The bibcode FAQ entry is found."""
        hits = _search(shipped, "bibcode", 10)
        assert "faq_0" in [hit.id for hit in hits]

    def test_scores_descending(self, shipped: DocsIndex) -> None:
        """Hits are ordered by score."""
        hits = _search(shipped, "search bibcode author", 10)
        scores = [hit.score for hit in hits]
        assert scores == sorted(scores, reverse=True)
        assert all(score >= 0.4 * scores[0] for score in scores)

    def test_snippet_contains_field_name(self, shipped: DocsIndex) -> None:
        """Snippets keep underscores of field names."""
        hits = _search(shipped, "citation_count", 10)
        assert any("citation_count" in hit.snippet for hit in hits)

    def test_snippets_bounded(self, shipped: DocsIndex) -> None:
        """Long chunks are cut down around the match."""
        hits = _search(shipped, "library", 10)
        assert hits
        assert all(len(hit.snippet) <= 266 for hit in hits)
        long_hit = next(hit for hit in hits if hit.id == "libraries_0")
        assert long_hit.snippet.endswith("...")

    def test_navigation_pages_hidden(self, shipped: DocsIndex) -> None:
        """What's new, 404 and empty pages never appear."""
        ids = [hit.id for hit in _search(shipped, "new release page found author", 20)]
        assert "whats-new_0" not in ids
        assert "missing-page_0" not in ids
        for doc_id in ("whats-new_0", "missing-page_0", "empty_0"):
            assert asyncio.run(shipped.get_doc_by_id(doc_id)) is None


class TestCategories:
    """Category-scoped access."""

    def test_search_within_category(self, shipped: DocsIndex) -> None:
        """Search results stay in the category."""
        hits = asyncio.run(shipped.search_by_category("search_docs", "syntax"))
        assert hits
        assert all(hit.category == "search_docs" for hit in hits)

    def test_list_faq(self, shipped: DocsIndex) -> None:
        """Listing returns every FAQ chunk in order."""
        hits = asyncio.run(shipped.search_by_category("faq"))
        assert [hit.id for hit in hits] == ["faq_0", "faq_1", "faq_2"]

    def test_listing_limit(self, shipped: DocsIndex) -> None:
        """Listing honours the limit."""
        assert len(asyncio.run(shipped.search_by_category("getting_started", "", 3))) == 3
        assert len(asyncio.run(shipped.search_by_category("getting_started", "", 2))) == 2

    def test_library_query(self, shipped: DocsIndex) -> None:
        """Library queries inside library_docs."""
        hits = asyncio.run(shipped.search_by_category("library_docs", "library"))
        assert len(hits) == 3
        assert all(hit.category == "library_docs" for hit in hits)


class TestShippedStats:
    """Statistics of the shipped corpus."""

    def test_stats(self, shipped: DocsIndex) -> None:
        """Counts reflect the cleaned corpus."""
        stats = asyncio.run(shipped.get_stats())
        assert stats.total_docs == 20
        assert len(stats.by_category) > 3
        assert stats.by_category["search_docs"] == 5
        assert stats.by_category["faq"] == 3
        assert stats.by_doc_type == {"scix_help": 19, "scix_policy": 1}
        assert stats.avg_content_length > 0

    def test_title_from_slug(self, shipped: DocsIndex) -> None:
        """Untitled chunks fall back to the file slug."""
        doc = asyncio.run(shipped.get_doc_by_id("policies_0"))
        assert doc is not None
        assert doc.title == "Terms Of Use"
