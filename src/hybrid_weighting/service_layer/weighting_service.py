"""Weight determination orchestration layer.

Runs the four pipeline stages for one query and returns the final
``WeightDecision``. Only the contextual stage suspends; its resolved
signal is passed into the otherwise synchronous combiner.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from typing import TYPE_CHECKING, Any

from hybrid_weighting.config import (
    FeatureExtractorConfig,
    QueryEnhancerConfig,
    Settings,
    WeightCombinerConfig,
)
from hybrid_weighting.domain.weights import (
    ContextualSignal,
    EnhancementResult,
    QueryContext,
    WeightDecision,
)
from hybrid_weighting.nlp.tagger import EntityTagger, SpacyEntityTagger
from hybrid_weighting.observability.context import bound_trace_context
from hybrid_weighting.observability.logging import configure_logging
from hybrid_weighting.observability.metrics import DECISION_LATENCY, WEIGHT_DECISIONS, track_latency
from hybrid_weighting.observability.tracing import create_span, init_tracing
from hybrid_weighting.services.contextual_scorer import ContextualScorer
from hybrid_weighting.services.feature_extractor import QueryFeatureExtractor, coerce_context, ensure_query_text
from hybrid_weighting.services.query_enhancer import QueryEnhancer
from hybrid_weighting.services.weight_combiner import WeightCombiner


if TYPE_CHECKING:
    from hybrid_weighting.services.corpus_provider import CorpusContextProvider

logger = logging.getLogger(__name__)

DEFAULT_INDEX_NAME = "search-*"
CONTEXTUAL_DISABLED_REASON = "Default balanced weights - contextual analysis disabled"


class WeightingService:
    """High-level weight determination service.

    Coordinates feature analysis, query enhancement, contextual scoring and
    weight combination. Instances may be shared across concurrent calls;
    the update/extension methods follow a single-writer discipline and must
    not run while calls are in flight.
    """

    def __init__(
        self,
        provider: CorpusContextProvider,
        *,
        tagger: EntityTagger | None = None,
        feature_extractor: QueryFeatureExtractor | None = None,
        query_enhancer: QueryEnhancer | None = None,
        contextual_scorer: ContextualScorer | None = None,
        weight_combiner: WeightCombiner | None = None,
        index_name: str = DEFAULT_INDEX_NAME,
        enable_query_enhancement: bool = True,
        enable_contextual_weighting: bool = True,
    ):
        """Initialize the service with its stage components.

        Args:
            provider: Corpus statistics collaborator used by the contextual scorer
            tagger: Entity tagger shared by the extractor and enhancer when they
                are built here (defaults to the spaCy tagger)
            feature_extractor: Pre-built feature extractor
            query_enhancer: Pre-built query enhancer
            contextual_scorer: Pre-built contextual scorer
            weight_combiner: Pre-built weight combiner
            index_name: Index used when a call does not name one
            enable_query_enhancement: Run region and proper-noun detection
            enable_contextual_weighting: Consult corpus statistics and intent
        """
        shared_tagger = tagger or SpacyEntityTagger()
        self.feature_extractor = feature_extractor or QueryFeatureExtractor(tagger=shared_tagger)
        self.query_enhancer = query_enhancer or QueryEnhancer(tagger=shared_tagger)
        self.contextual_scorer = contextual_scorer or ContextualScorer(provider)
        self.weight_combiner = weight_combiner or WeightCombiner()
        self.index_name = index_name
        self.enable_query_enhancement = enable_query_enhancement
        self.enable_contextual_weighting = enable_contextual_weighting

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        provider: CorpusContextProvider,
        tagger: EntityTagger | None = None,
        *,
        configure_observability: bool = False,
    ) -> WeightingService:
        """Build a service wired from process settings.

        With ``configure_observability`` the process-wide logging (``log_level``,
        ``log_json``) and tracing are set up first; embedders that own logging
        leave it off.
        """
        if configure_observability:
            configure_logging(level=settings.log_level, json_output=settings.log_json)
            init_tracing(service_name="hybrid-weighting")

        tagger = tagger or SpacyEntityTagger(settings.ner_model)
        return cls(
            provider,
            tagger=tagger,
            feature_extractor=QueryFeatureExtractor(FeatureExtractorConfig(), tagger),
            query_enhancer=QueryEnhancer(QueryEnhancerConfig(), tagger),
            contextual_scorer=ContextualScorer(provider, settings.build_contextual_config()),
            weight_combiner=WeightCombiner(WeightCombinerConfig()),
            index_name=settings.index_name,
            enable_query_enhancement=settings.enable_query_enhancement,
            enable_contextual_weighting=settings.enable_contextual_weighting,
        )

    async def determine_weights(
        self,
        query: str,
        context: QueryContext | Mapping[str, Any] | None = None,
        *,
        index_name: str | None = None,
    ) -> WeightDecision:
        """Decide the lexical/semantic split for ``query``.

        Args:
            query: Raw query text; surrounding whitespace is ignored
            context: Optional caller context (intent, domain, useRerank, inferenceId)
            index_name: Index for corpus statistics (defaults to the service's)

        Returns:
            WeightDecision whose weights sum to 1.0

        Raises:
            InvalidInputError: If the query is blank or not a string
        """
        query = ensure_query_text(query).strip()
        context = coerce_context(context)
        index_name = index_name or self.index_name

        with (
            bound_trace_context(inference_id=context.inference_id),
            track_latency(DECISION_LATENCY),
            create_span(
                "weighting.determine_weights",
                attributes={"index_name": index_name, "inference_id": context.inference_id or ""},
            ) as span,
        ):
            # Step 1: Lexical feature analysis
            with create_span("weighting.feature_analysis"):
                feature_decision = self.feature_extractor.analyze(query, context)

            # Step 2: Region and proper-noun detection
            with create_span("weighting.query_enhancement"):
                if self.enable_query_enhancement:
                    enhancement = self.query_enhancer.enhance(query)
                else:
                    enhancement = EnhancementResult.passthrough(query)

            # Step 3: Corpus and intent bias
            with create_span("weighting.contextual_scoring", attributes={"enabled": self.enable_contextual_weighting}):
                if self.enable_contextual_weighting:
                    contextual_signal = await self.contextual_scorer.calculate_contextual_weights(
                        query, index_name, context
                    )
                else:
                    contextual_signal = ContextualSignal(
                        lexical_weight=0.5,
                        semantic_weight=0.5,
                        confidence=0.6,
                        reasoning=(CONTEXTUAL_DISABLED_REASON,),
                    )

            # Step 4: Fuse into the final decision
            with create_span("weighting.combine"):
                decision = self.weight_combiner.combine_weights(
                    feature_decision, contextual_signal, enhancement, query
                )

            span.set_attribute("strategy", decision.strategy.value)
            WEIGHT_DECISIONS.labels(strategy=decision.strategy.value).inc()
            logger.debug(
                "Weights determined",
                extra={
                    "index_name": index_name,
                    "strategy": decision.strategy.value,
                    "lexical_weight": round(decision.lexical_weight, 4),
                    "semantic_weight": round(decision.semantic_weight, 4),
                    "confidence": round(decision.confidence, 4),
                    "auto_disable_rerank": enhancement.auto_disable_rerank,
                },
            )
        return decision

    def update_config(self, **changes: Any) -> None:
        """Replace the weight combiner's configuration with ``changes`` applied."""
        self.weight_combiner.update_config(**changes)

    def add_knowledge_patterns(self, patterns: Iterable[str]) -> None:
        self.weight_combiner.add_knowledge_patterns(patterns)

    def add_regional_patterns(self, region_code: str, patterns: Iterable[str]) -> None:
        self.query_enhancer.add_regional_patterns(region_code, patterns)

    def add_known_proper_nouns(self, nouns: Iterable[str]) -> None:
        self.query_enhancer.add_known_proper_nouns(nouns)

    def invalidate_corpus_cache(self, index_name: str | None = None) -> None:
        """Drop cached corpus statistics for one index, or all of them."""
        self.contextual_scorer.invalidate(index_name)
