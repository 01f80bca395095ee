"""Domain layer - pure value objects and errors with no infrastructure dependencies.

This layer contains:
- Value objects for every pipeline stage (features, signals, decisions)
- The error taxonomy shared by all components
"""

from hybrid_weighting.domain.errors import (
    DependencyContractError,
    ExternalProviderError,
    InvalidInputError,
    WeightingError,
)
from hybrid_weighting.domain.weights import (
    ContextualSignal,
    CorpusStatistics,
    EnhancementResult,
    FeatureDecision,
    IntentEstimate,
    ProperNounAnalysis,
    QueryContext,
    QueryFeatures,
    QueryStats,
    Strategy,
    WeightDecision,
)


__all__ = [
    "ContextualSignal",
    "CorpusStatistics",
    "DependencyContractError",
    "EnhancementResult",
    "ExternalProviderError",
    "FeatureDecision",
    "IntentEstimate",
    "InvalidInputError",
    "ProperNounAnalysis",
    "QueryContext",
    "QueryFeatures",
    "QueryStats",
    "Strategy",
    "WeightDecision",
    "WeightingError",
]
