"""Corpus- and intent-aware weight proposal.

The only asynchronous stage of the pipeline. Corpus statistics come from a
``CorpusContextProvider`` and are cached per index with a TTL; every
provider failure degrades to fixed defaults instead of propagating.
"""

from collections.abc import Callable, Mapping
import logging
import math
import time
from typing import Any, ClassVar

from pydantic import ValidationError

from hybrid_weighting.config import ContextualScorerConfig
from hybrid_weighting.domain.errors import ExternalProviderError
from hybrid_weighting.domain.weights import ContextualSignal, CorpusStatistics, IntentEstimate, QueryContext
from hybrid_weighting.observability.metrics import CORPUS_CACHE_LOOKUPS, CORPUS_FALLBACKS
from hybrid_weighting.services.corpus_provider import CorpusContextProvider, query_terms
from hybrid_weighting.services.feature_extractor import coerce_context, ensure_query_text


logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CorpusStatisticsCache:
    """TTL cache of corpus statistics keyed by index name.

    Bounded: once ``max_entries`` is reached the oldest stored entry is
    evicted. Reads and writes are not locked; two concurrent misses for the
    same index simply store equivalent values twice.
    """

    def __init__(self, ttl_seconds: float, max_entries: int, clock: Clock | None = None):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock or time.monotonic
        self._entries: dict[str, tuple[CorpusStatistics, float]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, index_name: object) -> bool:
        return index_name in self._entries

    def get(self, index_name: str) -> CorpusStatistics | None:
        """Return the cached statistics, or None when missing or expired."""
        entry = self._entries.get(index_name)
        if entry is None:
            return None
        statistics, stored_at = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            return None
        return statistics

    def put(self, index_name: str, statistics: CorpusStatistics) -> None:
        # Re-inserting moves the key to the young end of the ordering
        self._entries.pop(index_name, None)
        while len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug("Evicted corpus statistics", extra={"index_name": oldest})
        self._entries[index_name] = (statistics, self._clock())

    def invalidate(self, index_name: str | None = None) -> None:
        """Drop one index's entry, or every entry when no index is given."""
        if index_name is None:
            self._entries.clear()
        else:
            self._entries.pop(index_name, None)


class ContextualScorer:
    """Bias the lexical/semantic split using corpus statistics and intent.

    Adjustments start from an even split and are applied in a fixed order:
    document length, term diversity, vocabulary overlap, intent, domain.
    """

    BASE_LEXICAL_WEIGHT: ClassVar[float] = 0.5
    BASE_CONFIDENCE: ClassVar[float] = 0.6
    MIN_LEXICAL_WEIGHT: ClassVar[float] = 0.1
    MAX_LEXICAL_WEIGHT: ClassVar[float] = 0.9
    MIN_CONFIDENCE: ClassVar[float] = 0.3
    MAX_CONFIDENCE: ClassVar[float] = 0.95

    # Indicator substrings and the score each occurrence contributes
    INTENT_INDICATORS: ClassVar[dict[str, tuple[tuple[str, ...], float]]] = {
        "factual": (("what", "when", "where", "who", "how many", "define"), 0.3),
        "exploratory": (("similar", "like", "related", "about", "explore", "discover"), 0.3),
        "navigational": (("login", "homepage", "contact", "support", "download"), 0.4),
    }
    DEFAULT_INTENT: ClassVar[str] = "exploratory"
    CALLER_INTENT_CONFIDENCE: ClassVar[float] = 0.9

    INTENT_ADJUSTMENTS: ClassVar[dict[str, tuple[float, str]]] = {
        "factual": (0.15, "Factual queries benefit from lexical precision"),
        "exploratory": (-0.2, "Exploratory queries benefit from semantic breadth"),
        "navigational": (0.25, "Navigational queries require lexical precision"),
    }
    DOMAIN_ADJUSTMENTS: ClassVar[dict[str, tuple[float, str]]] = {
        "technical": (0.1, "Technical domain benefits from exact term matching"),
        "creative": (-0.15, "Creative domain benefits from conceptual search"),
    }

    def __init__(
        self,
        provider: CorpusContextProvider,
        config: ContextualScorerConfig | None = None,
        clock: Clock | None = None,
    ):
        self.provider = provider
        self.config = config or ContextualScorerConfig()
        self.cache = CorpusStatisticsCache(
            ttl_seconds=self.config.cache_ttl_seconds,
            max_entries=self.config.cache_max_entries,
            clock=clock,
        )

    async def calculate_contextual_weights(
        self,
        query: str,
        index_name: str,
        context: QueryContext | Mapping[str, Any] | None = None,
    ) -> ContextualSignal:
        """Propose weights for ``query`` against ``index_name``.

        Never raises for provider problems; those fall back to defaults.

        Raises:
            InvalidInputError: If the query is blank or not a string
        """
        query = ensure_query_text(query)
        context = coerce_context(context)

        statistics = await self.get_corpus_statistics(index_name)
        overlap = await self.calculate_overlap(query, index_name)
        intent = self.infer_intent(query, context)

        lexical = self.BASE_LEXICAL_WEIGHT
        confidence = self.BASE_CONFIDENCE
        reasoning: list[str] = []

        if statistics.avg_doc_length > 1000:
            lexical -= 0.1
            reasoning.append("Long documents favor semantic search")

        if statistics.term_diversity > 0.8:
            lexical -= 0.15
            reasoning.append("High term diversity favors semantic search")

        if overlap > 0.7:
            lexical += 0.2
            confidence += 0.1
            reasoning.append("High vocabulary overlap favors lexical search")
        elif overlap < 0.3:
            lexical -= 0.2
            reasoning.append("Low vocabulary overlap favors semantic search")

        if intent.label in self.INTENT_ADJUSTMENTS:
            delta, reason = self.INTENT_ADJUSTMENTS[intent.label]
            lexical += delta
            reasoning.append(reason)

        if context.domain in self.DOMAIN_ADJUSTMENTS:
            delta, reason = self.DOMAIN_ADJUSTMENTS[context.domain]
            lexical += delta
            reasoning.append(reason)

        lexical = max(self.MIN_LEXICAL_WEIGHT, min(self.MAX_LEXICAL_WEIGHT, lexical))
        confidence = max(self.MIN_CONFIDENCE, min(self.MAX_CONFIDENCE, confidence))

        signal = ContextualSignal(
            lexical_weight=lexical,
            semantic_weight=1.0 - lexical,
            confidence=confidence,
            reasoning=tuple(reasoning),
            corpus_statistics=statistics,
            overlap_ratio=overlap,
            intent=intent.label,
            intent_confidence=intent.confidence,
        )
        logger.debug(
            "Contextual weights calculated",
            extra={
                "index_name": index_name,
                "lexical_weight": round(lexical, 4),
                "overlap": round(overlap, 4),
                "intent": intent.label,
            },
        )
        return signal

    def infer_intent(self, query: str, context: QueryContext | None = None) -> IntentEstimate:
        """Score factual, exploratory and navigational indicators in ``query``.

        A caller-supplied intent from one of the three categories wins
        outright. Otherwise the highest unique score wins; no match or a tie
        at the top yields ``exploratory``.
        """
        if context is not None and context.intent in self.INTENT_INDICATORS:
            return IntentEstimate(label=context.intent, confidence=self.CALLER_INTENT_CONFIDENCE)

        lowered = query.lower()
        scores: dict[str, float] = {}
        for label, (indicators, weight) in self.INTENT_INDICATORS.items():
            hits = sum(1 for indicator in indicators if indicator in lowered)
            scores[label] = round(hits * weight, 6)

        top = max(scores.values())
        leaders = [label for label, score in scores.items() if score == top]
        if top <= 0 or len(leaders) > 1:
            label = self.DEFAULT_INTENT
        else:
            label = leaders[0]
        return IntentEstimate(label=label, confidence=min(top, 0.9), scores=scores)

    async def get_corpus_statistics(self, index_name: str) -> CorpusStatistics:
        """Return cached statistics for the index, fetching on miss or expiry."""
        cached = self.cache.get(index_name)
        if cached is not None:
            CORPUS_CACHE_LOOKUPS.labels(result="hit").inc()
            return cached
        CORPUS_CACHE_LOOKUPS.labels(result="miss").inc()

        try:
            statistics = self._coerce_statistics(await self.provider.get_statistics(index_name))
        except Exception as exc:
            CORPUS_FALLBACKS.labels(operation="statistics").inc()
            logger.warning(
                "Failed to get corpus statistics, using defaults: %s",
                exc,
                extra={"index_name": index_name, "error_type": type(exc).__name__},
            )
            return self.config.default_statistics

        self.cache.put(index_name, statistics)
        return statistics

    async def calculate_overlap(self, query: str, index_name: str) -> float:
        """Fraction of informative query terms among the index's frequent terms."""
        if not query_terms(query):
            return self.config.default_overlap

        try:
            overlap = self._coerce_overlap(await self.provider.get_overlap(query, index_name))
        except Exception as exc:
            CORPUS_FALLBACKS.labels(operation="overlap").inc()
            logger.warning(
                "Failed to calculate vocabulary overlap, using default: %s",
                exc,
                extra={"index_name": index_name, "error_type": type(exc).__name__},
            )
            return self.config.default_overlap
        return overlap

    def invalidate(self, index_name: str | None = None) -> None:
        """Forget cached statistics for one index, or for all of them."""
        self.cache.invalidate(index_name)

    @staticmethod
    def _coerce_statistics(result: object) -> CorpusStatistics:
        if isinstance(result, CorpusStatistics):
            return result
        if isinstance(result, Mapping):
            try:
                return CorpusStatistics.model_validate(dict(result))
            except ValidationError as exc:
                raise ExternalProviderError(f"Malformed corpus statistics: {exc}") from exc
        raise ExternalProviderError(f"Unexpected corpus statistics type: {type(result).__name__}")

    @staticmethod
    def _coerce_overlap(result: object) -> float:
        if isinstance(result, bool) or not isinstance(result, (int, float)):
            raise ExternalProviderError(f"Unexpected overlap type: {type(result).__name__}")
        overlap = float(result)
        if not math.isfinite(overlap) or not 0.0 <= overlap <= 1.0:
            raise ExternalProviderError(f"Overlap out of range: {overlap}")
        return overlap
