"""Corpus context collaborator contract and an in-memory implementation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable

from hybrid_weighting.domain.errors import ExternalProviderError
from hybrid_weighting.domain.weights import CorpusStatistics


MIN_TERM_LENGTH = 3


@runtime_checkable
class CorpusContextProvider(Protocol):
    """Source of aggregate corpus statistics for an index.

    Implementations usually sit in front of a search engine's aggregation
    API. Either method may raise; the contextual scorer treats every
    failure as non-fatal.
    """

    async def get_statistics(self, index_name: str) -> CorpusStatistics:  # pragma: no cover - Protocol only
        """Return average document length, term diversity and document count."""

    async def get_overlap(self, query: str, index_name: str) -> float:  # pragma: no cover - Protocol only
        """Return the fraction of query terms found among the index's frequent terms."""


def query_terms(query: str) -> list[str]:
    """Lower-cased whitespace tokens long enough to be informative."""
    return [term for term in query.lower().split() if len(term) >= MIN_TERM_LENGTH]


def vocabulary_overlap(query: str, corpus_terms: Iterable[str]) -> float:
    """Fraction of query terms present in a sample of frequent corpus terms.

    Corpus entries may be multi-word keys (e.g. document titles); they are
    split on whitespace and short fragments dropped. A query with no
    informative terms returns 0.5.
    """
    terms = query_terms(query)
    if not terms:
        return 0.5

    vocabulary: set[str] = set()
    for key in corpus_terms:
        vocabulary.update(term for term in key.lower().split() if len(term) >= MIN_TERM_LENGTH)

    overlapping = [term for term in terms if term in vocabulary]
    return len(overlapping) / len(terms)


class StaticCorpusContextProvider:
    """Provider backed by fixed per-index statistics and frequent-term samples.

    Useful offline and in tests. Unknown indexes raise
    ``ExternalProviderError`` the way a remote provider would fail.
    """

    def __init__(
        self,
        statistics: Mapping[str, CorpusStatistics] | None = None,
        frequent_terms: Mapping[str, Iterable[str]] | None = None,
    ):
        self._statistics = dict(statistics or {})
        self._frequent_terms = {index: tuple(terms) for index, terms in (frequent_terms or {}).items()}
        self.statistics_calls = 0
        self.overlap_calls = 0

    async def get_statistics(self, index_name: str) -> CorpusStatistics:
        self.statistics_calls += 1
        try:
            return self._statistics[index_name]
        except KeyError as exc:
            raise ExternalProviderError(f"No corpus statistics for index '{index_name}'") from exc

    async def get_overlap(self, query: str, index_name: str) -> float:
        self.overlap_calls += 1
        terms = self._frequent_terms.get(index_name)
        if terms is None:
            raise ExternalProviderError(f"No frequent terms sampled for index '{index_name}'")
        return vocabulary_overlap(query, terms)
