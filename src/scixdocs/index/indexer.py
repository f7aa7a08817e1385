"""Multi-field inverted index with prefix and fuzzy term expansion.

Scoring is BM25+ computed per field. Each query term contributes the scores
of its exact match and of the indexed terms it expands to, weighted by how
far the expansion is from the original term. Contributions are summed over
query terms and multiplied by the number of distinct query terms a document
matched.
"""

from __future__ import annotations

import logging
import math
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

import numpy as np
from rapidfuzz.distance import Levenshtein

from scixdocs.utils.text import tokenize

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BM25Params:
    k: float = 1.2
    b: float = 0.7
    d: float = 0.5


@dataclass(slots=True)
class SearchOptions:
    """Matching options for one query.

    ``fuzzy`` below 1 is a fraction of the term length (rounded half-up and
    capped by ``max_fuzzy``); from 1 up it is an absolute edit distance.
    ``False`` or 0 disables fuzzy expansion.
    """

    fields: Sequence[str] | None = None
    prefix: bool = False
    fuzzy: float | bool = False
    max_fuzzy: int = 6
    boost: Mapping[str, float] = field(default_factory=dict)
    combine_with: str = "or"
    prefix_weight: float = 0.375
    fuzzy_weight: float = 0.45
    bm25: BM25Params = field(default_factory=BM25Params)


@dataclass(slots=True)
class Match:
    """Indexed document matched by a query."""

    document: Any
    score: float
    terms: Tuple[str, ...]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def max_edit_distance(term: str, options: SearchOptions) -> int:
    """Edit distance allowed for a query term under ``options``."""
    fuzzy = options.fuzzy
    if fuzzy is True:
        fuzzy = 0.2
    if not fuzzy or fuzzy < 0:
        return 0
    if fuzzy < 1:
        return min(options.max_fuzzy, _round_half_up(len(term) * fuzzy))
    return int(fuzzy)


class TextIndex:
    """In-memory index over a fixed set of text fields."""

    def __init__(
        self,
        fields: Sequence[str],
        *,
        search_options: SearchOptions | None = None,
    ) -> None:
        if not fields:
            raise ValueError("TextIndex needs at least one field")
        self.fields: Tuple[str, ...] = tuple(fields)
        self.search_options = search_options or SearchOptions()
        self._field_ids = {name: position for position, name in enumerate(self.fields)}
        self._documents: List[Any] = []
        self._term_freqs: Dict[str, Dict[int, Dict[int, int]]] = {}
        self._lengths: List[List[int]] = []
        self._compiled = False
        self._postings: Dict[str, Dict[int, Tuple[np.ndarray, np.ndarray]]] = {}
        self._field_lengths = np.zeros((0, len(self.fields)))
        self._avg_field_lengths = np.zeros(len(self.fields))
        self._vocabulary: List[str] = []

    def __len__(self) -> int:
        return len(self._documents)

    @property
    def documents(self) -> Tuple[Any, ...]:
        return tuple(self._documents)

    def add(self, document: Any) -> None:
        """Index the configured fields of ``document``."""
        doc_id = len(self._documents)
        self._documents.append(document)
        lengths = []
        for field_id, name in enumerate(self.fields):
            terms = tokenize(_field_value(document, name))
            lengths.append(len(set(terms)))
            for term in terms:
                per_field = self._term_freqs.setdefault(term, {}).setdefault(field_id, {})
                per_field[doc_id] = per_field.get(doc_id, 0) + 1
        self._lengths.append(lengths)
        self._compiled = False

    def add_all(self, documents: Iterable[Any]) -> None:
        for document in documents:
            self.add(document)
        self._compile()
        LOGGER.debug(
            "Indexed %d documents, %d distinct terms", len(self._documents), len(self._term_freqs)
        )

    def _compile(self) -> None:
        if self._compiled:
            return
        self._postings = {
            term: {
                field_id: (
                    np.fromiter(freqs.keys(), dtype=np.int64, count=len(freqs)),
                    np.fromiter(freqs.values(), dtype=np.float64, count=len(freqs)),
                )
                for field_id, freqs in per_field.items()
            }
            for term, per_field in self._term_freqs.items()
        }
        self._field_lengths = np.asarray(self._lengths, dtype=np.float64).reshape(
            len(self._documents), len(self.fields)
        )
        if len(self._documents):
            self._avg_field_lengths = self._field_lengths.mean(axis=0)
        self._vocabulary = sorted(self._term_freqs)
        self._compiled = True

    def _field_boosts(self, options: SearchOptions) -> Dict[int, float]:
        boosts: Dict[int, float] = {}
        for name in options.fields or self.fields:
            if name not in self._field_ids:
                raise ValueError(f"Unknown search field: {name}")
            boosts[self._field_ids[name]] = float(options.boost.get(name, 1.0))
        return boosts

    def prefix_terms(self, term: str) -> List[str]:
        """Indexed terms starting with ``term``, in sorted order."""
        self._compile()
        matches = []
        for position in range(bisect_left(self._vocabulary, term), len(self._vocabulary)):
            candidate = self._vocabulary[position]
            if not candidate.startswith(term):
                break
            matches.append(candidate)
        return matches

    def fuzzy_terms(self, term: str, max_distance: int) -> Dict[str, int]:
        """Indexed terms within ``max_distance`` edits of ``term``."""
        self._compile()
        matches: Dict[str, int] = {}
        for candidate in self._vocabulary:
            if abs(len(candidate) - len(term)) > max_distance:
                continue
            distance = Levenshtein.distance(term, candidate, score_cutoff=max_distance)
            if distance <= max_distance:
                matches[candidate] = distance
        return matches

    def _accumulate(
        self,
        indexed_term: str,
        weight: float,
        boosts: Mapping[int, float],
        bm25: BM25Params,
        scores: np.ndarray,
        hits: np.ndarray,
        first_seen: np.ndarray,
    ) -> None:
        postings = self._postings.get(indexed_term)
        if not postings:
            return
        total_docs = len(self._documents)
        for field_id, boost in boosts.items():
            entry = postings.get(field_id)
            if entry is None:
                continue
            doc_ids, freqs = entry
            matching = len(doc_ids)
            idf = math.log(1 + (total_docs - matching + 0.5) / (matching + 0.5))
            avg_length = self._avg_field_lengths[field_id] or 1.0
            lengths = self._field_lengths[doc_ids, field_id]
            norm = bm25.k * (1 - bm25.b + bm25.b * lengths / avg_length)
            raw = idf * (bm25.d + freqs * (bm25.k + 1) / (freqs + norm))
            scores[doc_ids] += weight * boost * raw

            unseen = doc_ids[first_seen[doc_ids] < 0]
            if unseen.size:
                start = int(first_seen.max()) + 1
                first_seen[unseen] = np.arange(start, start + unseen.size)
            hits[doc_ids] = True

    def _score_term(
        self,
        term: str,
        options: SearchOptions,
        boosts: Mapping[int, float],
        scores: np.ndarray,
        hits: np.ndarray,
        first_seen: np.ndarray,
    ) -> None:
        args = (boosts, options.bm25, scores, hits, first_seen)
        self._accumulate(term, 1.0, *args)

        distance_limit = max_edit_distance(term, options)
        fuzzy = self.fuzzy_terms(term, distance_limit) if distance_limit else {}

        if options.prefix:
            for candidate in self.prefix_terms(term):
                extra = len(candidate) - len(term)
                if not extra:
                    continue
                fuzzy.pop(candidate, None)
                weight = options.prefix_weight * len(candidate) / (len(candidate) + 0.3 * extra)
                self._accumulate(candidate, weight, *args)

        for candidate, distance in fuzzy.items():
            if not distance:
                continue
            weight = options.fuzzy_weight * len(candidate) / (len(candidate) + distance)
            self._accumulate(candidate, weight, *args)

    def search(self, query: str, options: SearchOptions | None = None) -> List[Match]:
        """Rank indexed documents for ``query``, best first."""
        options = options or self.search_options
        if options.combine_with.lower() not in ("or", "and"):
            raise ValueError(f"Invalid combine_with: {options.combine_with!r}")

        terms = tokenize(query)
        if not terms or not self._documents:
            return []

        self._compile()
        boosts = self._field_boosts(options)
        distinct = list(dict.fromkeys(terms))
        total_docs = len(self._documents)

        scores = np.zeros(total_docs)
        hits = np.zeros((len(distinct), total_docs), dtype=bool)
        first_seen = np.full(total_docs, -1, dtype=np.int64)
        for term in terms:
            self._score_term(
                term, options, boosts, scores, hits[distinct.index(term)], first_seen
            )

        if options.combine_with.lower() == "and":
            selected = np.flatnonzero(hits.all(axis=0))
        else:
            selected = np.flatnonzero(hits.any(axis=0))
        if not selected.size:
            return []

        quality = hits[:, selected].sum(axis=0)
        final = scores[selected] * quality
        order = np.lexsort((first_seen[selected], -final))

        matches = []
        for position in order:
            doc_id = int(selected[position])
            matched = tuple(distinct[row] for row in np.flatnonzero(hits[:, doc_id]))
            matches.append(
                Match(document=self._documents[doc_id], score=float(final[position]), terms=matched)
            )
        return matches


def _field_value(document: Any, name: str) -> str:
    if isinstance(document, Mapping):
        value = document.get(name)
    else:
        value = getattr(document, name, None)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
