"""Documentation corpus loading and cleaning.

The corpus is a JSON array of chunk records exported from the SciX help
pages. Records are cleaned into :class:`DocumentChunk` objects: markup is
stripped, a usable title is derived, and placeholder pages are dropped.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping

from scixdocs.models import DocumentChunk
from scixdocs.utils.text import (
    extract_first_heading,
    is_nav_text,
    normalize_content,
    slug_to_title,
)

LOGGER = logging.getLogger(__name__)

NOT_FOUND_TITLE = "404"

_TEXT_FIELDS = (
    "source_file",
    "source_url",
    "doc_type",
    "category",
    "title",
    "section",
    "subsection",
    "content",
)


class CorpusLoadError(RuntimeError):
    """The corpus file could not be read or parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to load SciX documentation index at {path}: {reason}")
        self.path = path
        self.reason = reason


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def read_corpus_file(path: Path) -> List[Any]:
    """Read the raw JSON array of chunk records."""
    resolved = Path(path).resolve()
    try:
        raw = resolved.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CorpusLoadError(resolved, str(exc)) from exc

    try:
        records = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CorpusLoadError(resolved, f"invalid JSON ({exc})") from exc

    if not isinstance(records, list):
        raise CorpusLoadError(
            resolved, f"expected a JSON array of chunks, got {type(records).__name__}"
        )
    return records


def derive_title(record: Mapping[str, str], heading: str) -> str:
    """Pick the first usable title candidate for a record."""
    candidates = [
        heading,
        record["subsection"].strip(),
        record["section"].strip(),
        record["title"].strip(),
        slug_to_title(record["source_file"]),
        record["id"],
    ]
    for candidate in candidates:
        if candidate and not is_nav_text(candidate):
            return candidate
    return record["id"]


def is_whats_new(record: Mapping[str, str]) -> bool:
    return (
        is_nav_text(record["source_file"])
        or is_nav_text(record["source_url"])
        or is_nav_text(record["id"])
    )


def clean_record(raw: Mapping[str, Any]) -> DocumentChunk | None:
    """Clean one raw record; ``None`` means the record is dropped."""
    record = {name: _text(raw.get(name)) for name in _TEXT_FIELDS}
    record["id"] = _text(raw.get("id"))

    raw_content = record["content"]
    heading = extract_first_heading(raw_content)
    content = normalize_content(raw_content)
    title = derive_title(record, heading)

    if not title or title == NOT_FOUND_TITLE or not content:
        LOGGER.debug("Dropping %s: empty or placeholder page", record["id"])
        return None
    if is_whats_new(record):
        LOGGER.debug("Dropping %s: navigation page", record["id"])
        return None

    return DocumentChunk(
        id=record["id"],
        source_file=record["source_file"],
        source_url=record["source_url"],
        doc_type=record["doc_type"],
        category=record["category"],
        title=title,
        section=record["section"].strip(),
        subsection=record["subsection"].strip(),
        content=content,
        char_count=len(content),
    )


def clean_records(records: Iterable[Any]) -> List[DocumentChunk]:
    """Clean raw records, keeping corpus order and the first chunk per id."""
    docs: List[DocumentChunk] = []
    seen: set[str] = set()
    dropped = 0

    for position, raw in enumerate(records):
        if not isinstance(raw, Mapping):
            LOGGER.warning("Skipping corpus entry %d: not an object", position)
            dropped += 1
            continue
        if not raw.get("id"):
            LOGGER.warning("Skipping corpus entry %d: missing id", position)
            dropped += 1
            continue

        doc = clean_record(raw)
        if doc is None:
            dropped += 1
            continue
        if doc.id in seen:
            LOGGER.warning("Skipping duplicate chunk id %s", doc.id)
            dropped += 1
            continue

        seen.add(doc.id)
        docs.append(doc)

    LOGGER.info("Loaded %d documentation chunks (%d dropped)", len(docs), dropped)
    return docs


def load_corpus(path: Path) -> List[DocumentChunk]:
    """Read and clean the corpus in one step."""
    return clean_records(read_corpus_file(path))
