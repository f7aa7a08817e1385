"""Shared fixtures: a small chunked documentation corpus on disk."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from scixdocs.config import AppConfig
from scixdocs.index.service import DocsIndex


def make_record(doc_id: str, **fields: object) -> dict:
    record = {
        "id": doc_id,
        "source_file": "page",
        "source_url": f"https://example.org/{doc_id}",
        "doc_type": "scix_help",
        "category": "search_docs",
        "title": "",
        "section": "",
        "subsection": "",
        "content": "",
        "char_count": 0,
    }
    record.update(fields)
    return record


LONG_FILLER = " ".join(["Filler text about the interface and its many panels."] * 8)

SAMPLE_RECORDS = [
    make_record(
        "syntax_0",
        source_file="search-syntax",
        title="Search Syntax",
        section="Basic Queries",
        content="Results can be sorted by citation_count in the sort menu of the results page.",
    ),
    make_record(
        "syntax_1",
        source_file="search-syntax",
        title="Search Syntax",
        section="Fielded Searches",
        subsection="Author Search",
        content="## Author Search\n\nUse author:\"Last, F\" to run an author search.",
    ),
    make_record(
        "export_0",
        source_file="export",
        category="actions_docs",
        title="Export",
        section="Exporting Citations",
        content="Export records as BibTeX or RIS from the [export menu](https://example.org/export).",
    ),
    make_record(
        "library_0",
        source_file="libraries",
        category="library_docs",
        section="Creating a Library",
        content=f"{LONG_FILLER} To create a library select papers and choose Add to Library. {LONG_FILLER}",
    ),
    make_record(
        "library_1",
        source_file="libraries",
        category="library_docs",
        section="Sharing",
        content="Libraries can be shared with collaborators who get read or write permission.",
    ),
    make_record(
        "faq_0",
        source_file="faq",
        category="faq",
        doc_type="scix_faq",
        section="What is a bibcode?",
        content="A bibcode is a 19 character identifier for a paper.",
    ),
    make_record(
        "whats_new_0",
        source_file="whats-new",
        category="general_help",
        title="What's New",
        content="Release notes.",
    ),
    make_record("not_found_0", category="general_help", title="404", content="# 404\nMissing"),
    make_record("blank_0", category="general_help", title="Blank", content="  \n "),
]


def write_corpus(path: Path, records: list) -> Path:
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


@pytest.fixture
def corpus_path(tmp_path: Path) -> Path:
    return write_corpus(tmp_path / "chunked-index.json", SAMPLE_RECORDS)


@pytest.fixture
def docs_index(corpus_path: Path) -> DocsIndex:
    return DocsIndex(AppConfig(corpus_path=corpus_path))
