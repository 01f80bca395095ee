"""Fuse feature, contextual and enhancement results into a final decision.

The combiner is pure over its inputs and the current config snapshot.
Configuration updates build a new validated ``WeightCombinerConfig`` and
swap it in; callers sharing one instance must not update it while
computations are in flight.
"""

from collections.abc import Iterable
import logging
import math
from typing import Any

from pydantic import ValidationError

from hybrid_weighting.config import WeightCombinerConfig
from hybrid_weighting.domain.errors import DependencyContractError
from hybrid_weighting.domain.weights import (
    ContextualSignal,
    EnhancementResult,
    FeatureDecision,
    Strategy,
    WeightDecision,
)


logger = logging.getLogger(__name__)

PROPER_NOUN_CONFIDENCE = 0.95
REGIONAL_CONFIDENCE_BOOST = 0.1


def _check_unit_interval(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DependencyContractError(f"{name} must be a number, got {type(value).__name__}")
    if not math.isfinite(value) or not 0.0 <= value <= 1.0:
        raise DependencyContractError(f"{name} must be within [0, 1], got {value}")


class WeightCombiner:
    """Combine upstream proposals into a ``WeightDecision``.

    Steps, each gated on the previous one:

    1. Short proper-noun override (fixed weights, regional bias still applied)
    2. Base fusion of feature and contextual lexical weights
    3. Length-based semantic boost
    4. Knowledge-query semantic boost
    5. Regional semantic bias
    6. Confidence
    7. Strategy
    """

    def __init__(self, config: WeightCombinerConfig | None = None):
        self.config = config or WeightCombinerConfig()

    def combine_weights(
        self,
        feature_decision: FeatureDecision,
        contextual_signal: ContextualSignal,
        enhancement: EnhancementResult,
        raw_query: str,
    ) -> WeightDecision:
        """Produce the final lexical/semantic split.

        Raises:
            DependencyContractError: If any input is malformed
        """
        self._validate(feature_decision, contextual_signal, enhancement, raw_query)
        config = self.config

        reasoning: list[str] = [*feature_decision.reasoning, *contextual_signal.reasoning]

        if self._is_short_proper_noun_query(enhancement):
            return self._proper_noun_decision(enhancement, reasoning, config)

        combined = (
            feature_decision.lexical_weight * config.analysis_weight
            + contextual_signal.lexical_weight * config.contextual_weight
        )
        lexical = self._clamp(combined, config)
        semantic = 1.0 - lexical

        word_count = enhancement.query_stats.word_count
        boost = 0.0
        if word_count >= 4:
            boost = config.long_query_boost
            reasoning.append(f"Long query ({word_count} words) - extra {boost:.0%} semantic boost")
        elif word_count >= 2:
            boost = config.medium_query_boost
            reasoning.append(f"Medium query ({word_count} words) - extra {boost:.0%} semantic boost")

        if self.is_knowledge_query(raw_query):
            boost += config.knowledge_query_boost
            reasoning.append(
                f"Knowledge-seeking query detected - extra {config.knowledge_query_boost:.0%} semantic boost"
            )

        if boost > 0:
            adjusted_lexical = max(config.min_weight, lexical * (1 - boost))
            adjusted_semantic = min(config.max_weight, semantic + lexical * boost)
            total = adjusted_lexical + adjusted_semantic
            lexical, semantic = adjusted_lexical / total, adjusted_semantic / total

        if enhancement.detected_region:
            lexical, semantic = self._apply_regional_bias(lexical, semantic, config)
            reasoning.append(self._regional_reason(enhancement.detected_region, config))

        decision = WeightDecision(
            lexical_weight=lexical,
            semantic_weight=semantic,
            confidence=self._confidence(feature_decision, contextual_signal, enhancement),
            strategy=self._strategy(feature_decision, enhancement),
            reasoning=tuple(reasoning),
            proper_nouns=enhancement.proper_nouns.proper_nouns if enhancement.proper_nouns.has_proper_nouns else None,
        )
        logger.debug(
            "Weights combined",
            extra={
                "strategy": decision.strategy.value,
                "lexical_weight": round(decision.lexical_weight, 4),
                "boost": round(boost, 4),
                "region": enhancement.detected_region,
            },
        )
        return decision

    def _proper_noun_decision(
        self,
        enhancement: EnhancementResult,
        reasoning: list[str],
        config: WeightCombinerConfig,
    ) -> WeightDecision:
        lexical = config.proper_noun_lexical_weight
        semantic = config.proper_noun_semantic_weight
        nouns = enhancement.proper_nouns.proper_nouns
        lexical_boost = config.proper_noun_lexical_weight - 0.5
        reasoning.append(
            f"Short query ({enhancement.query_stats.word_count} words) with proper nouns detected "
            f"({', '.join(nouns)}) - extra {lexical_boost:.0%} lexical boost"
        )

        if enhancement.detected_region:
            lexical, semantic = self._apply_regional_bias(lexical, semantic, config)
            reasoning.append(self._regional_reason(enhancement.detected_region, config))

        return WeightDecision(
            lexical_weight=lexical,
            semantic_weight=semantic,
            confidence=PROPER_NOUN_CONFIDENCE,
            strategy=Strategy.SHORT_PROPER_NOUN_LEXICAL,
            reasoning=tuple(reasoning),
            proper_nouns=nouns,
        )

    def is_knowledge_query(self, query: str) -> bool:
        """Case-insensitive substring match against the knowledge phrases."""
        lowered = query.lower()
        return any(pattern in lowered for pattern in self.config.knowledge_patterns)

    @staticmethod
    def _is_short_proper_noun_query(enhancement: EnhancementResult) -> bool:
        return enhancement.query_stats.word_count <= 2 and enhancement.proper_nouns.has_proper_nouns

    @staticmethod
    def _clamp(value: float, config: WeightCombinerConfig) -> float:
        return max(config.min_weight, min(config.max_weight, value))

    @staticmethod
    def _apply_regional_bias(lexical: float, semantic: float, config: WeightCombinerConfig) -> tuple[float, float]:
        adjusted_lexical = max(config.min_weight, lexical - config.regional_bias)
        adjusted_semantic = min(config.max_weight, semantic + config.regional_bias)
        total = adjusted_lexical + adjusted_semantic
        return adjusted_lexical / total, adjusted_semantic / total

    @staticmethod
    def _regional_reason(region: str, config: WeightCombinerConfig) -> str:
        return f"Regional query detected ({region}) - extra {config.regional_bias:.0%} semantic boost"

    @staticmethod
    def _confidence(
        feature_decision: FeatureDecision,
        contextual_signal: ContextualSignal,
        enhancement: EnhancementResult,
    ) -> float:
        confidence = (feature_decision.confidence + contextual_signal.confidence) / 2
        if enhancement.proper_nouns.has_proper_nouns:
            confidence = max(confidence, enhancement.proper_nouns.confidence)
        if enhancement.detected_region:
            confidence = min(1.0, confidence + REGIONAL_CONFIDENCE_BOOST)
        return confidence

    def _strategy(self, feature_decision: FeatureDecision, enhancement: EnhancementResult) -> Strategy:
        if self._is_short_proper_noun_query(enhancement):
            return Strategy.SHORT_PROPER_NOUN_LEXICAL
        if enhancement.detected_region:
            return Strategy.REGIONAL_SEMANTIC_ENHANCED
        return feature_decision.strategy or Strategy.BALANCED_HYBRID

    @staticmethod
    def _validate(
        feature_decision: object,
        contextual_signal: object,
        enhancement: object,
        raw_query: object,
    ) -> None:
        if not isinstance(feature_decision, FeatureDecision):
            raise DependencyContractError(f"Expected FeatureDecision, got {type(feature_decision).__name__}")
        if not isinstance(contextual_signal, ContextualSignal):
            raise DependencyContractError(f"Expected ContextualSignal, got {type(contextual_signal).__name__}")
        if not isinstance(enhancement, EnhancementResult):
            raise DependencyContractError(f"Expected EnhancementResult, got {type(enhancement).__name__}")
        if not isinstance(raw_query, str):
            raise DependencyContractError(f"Query must be a string, got {type(raw_query).__name__}")

        _check_unit_interval("feature lexical_weight", feature_decision.lexical_weight)
        _check_unit_interval("feature confidence", feature_decision.confidence)
        _check_unit_interval("contextual lexical_weight", contextual_signal.lexical_weight)
        _check_unit_interval("contextual confidence", contextual_signal.confidence)

    def update_config(self, **changes: Any) -> WeightCombinerConfig:
        """Swap in a new config with ``changes`` applied.

        Raises:
            ValueError: If a key is unknown or the resulting config fails validation
        """
        unknown = set(changes) - set(WeightCombinerConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown weight combiner options: {', '.join(sorted(unknown))}")
        try:
            updated = WeightCombinerConfig.model_validate({**self.config.model_dump(), **changes})
        except ValidationError as exc:
            raise ValueError(f"Invalid weight combiner configuration: {exc}") from exc
        self.config = updated
        logger.info("Weight combiner configuration updated", extra={"changed": sorted(changes)})
        return updated

    def add_knowledge_patterns(self, patterns: Iterable[str]) -> None:
        """Append knowledge-seeking phrases, keeping existing order and skipping duplicates."""
        current = list(self.config.knowledge_patterns)
        for pattern in patterns:
            phrase = pattern.strip().lower()
            if phrase and phrase not in current:
                current.append(phrase)
        self.config = self.config.model_copy(update={"knowledge_patterns": tuple(current)})

    def get_config(self) -> dict[str, Any]:
        """Snapshot of the current configuration as plain data."""
        return self.config.model_dump()
