"""Core data models for the documentation search engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict


@dataclass(frozen=True, slots=True)
class DocumentChunk:
    """Cleaned documentation chunk, immutable once loaded."""

    id: str
    source_file: str
    source_url: str
    doc_type: str
    category: str
    title: str
    section: str
    subsection: str
    content: str
    char_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SearchHit:
    """One ranked match for a query, without the full chunk body."""

    id: str
    title: str
    section: str
    subsection: str
    source_file: str
    source_url: str
    doc_type: str
    category: str
    score: float
    snippet: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SearchStats:
    """Aggregate counts over the cleaned corpus."""

    total_docs: int = 0
    by_category: Dict[str, int] = field(default_factory=dict)
    by_doc_type: Dict[str, int] = field(default_factory=dict)
    avg_content_length: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalDocs": self.total_docs,
            "byCategory": dict(self.by_category),
            "byDocType": dict(self.by_doc_type),
            "avgContentLength": self.avg_content_length,
        }
