"""Domain models for hybrid weight determination.

Following the value-object pattern used across the domain layer:
- Every record is immutable (frozen=True)
- No infrastructure dependencies
- Optional outputs are explicit optional fields, never ad-hoc keys

The pipeline produces one record per stage. ``WeightDecision`` is the only
record that leaves the package; everything else is an intermediate result
consumed read-only by the next stage.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Strategy(str, Enum):
    """Named heuristic path that produced a weight decision."""

    EXACT_MATCH = "exact_match"
    ENTITY_FOCUSED = "entity_focused"
    CONCEPTUAL = "conceptual"
    SHORT_QUERY = "short_query"
    DESCRIPTIVE = "descriptive"
    BALANCED = "balanced"
    SHORT_PROPER_NOUN_LEXICAL = "short_proper_noun_lexical"
    REGIONAL_SEMANTIC_ENHANCED = "regional_semantic_enhanced"
    BALANCED_HYBRID = "balanced_hybrid"


class QueryContext(BaseModel):
    """Optional caller context supplied alongside a query."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    intent: str | None = None
    domain: str | None = None
    use_rerank: bool = True
    inference_id: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "QueryContext":
        """Build a context from a loosely-shaped mapping.

        Accepts snake_case keys as well as the camelCase keys used by
        JavaScript callers (``useRerank``, ``inferenceId``) and the legacy
        ``userIntent`` alias for ``intent``.
        """
        if not data:
            return cls()
        intent = data.get("intent", data.get("userIntent"))
        use_rerank = data.get("use_rerank", data.get("useRerank", True))
        return cls(
            intent=intent,
            domain=data.get("domain"),
            use_rerank=use_rerank is not False,
            inference_id=data.get("inference_id", data.get("inferenceId")),
        )


class QueryFeatures(BaseModel):
    """Lexical and syntactic features derived once per query."""

    model_config = ConfigDict(frozen=True)

    word_count: int = Field(ge=0)
    entity_count: int = Field(default=0, ge=0)
    conceptual_count: int = Field(default=0, ge=0)
    exact_match_count: int = Field(default=0, ge=0)
    entity_ratio: float = Field(default=0.0, ge=0.0)
    conceptual_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    exact_match_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    quoted_phrase_count: int = Field(default=0, ge=0)
    average_word_length: float = Field(default=0.0, ge=0.0)
    unique_word_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    complexity: float = Field(default=0.0, ge=0.0, le=1.0)
    has_verbs: bool = False
    has_nouns: bool = False


class FeatureDecision(BaseModel):
    """Initial weight proposal from lexical feature analysis."""

    model_config = ConfigDict(frozen=True)

    lexical_weight: float
    semantic_weight: float
    confidence: float
    strategy: Strategy
    reasoning: tuple[str, ...] = ()
    features: QueryFeatures | None = None


class CorpusStatistics(BaseModel):
    """Aggregate properties of an index's documents.

    Providers may report either snake_case or the camelCase keys
    (``avgDocLength``, ``termDiversity``, ``totalDocs``).
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    avg_doc_length: float = Field(ge=0.0)
    term_diversity: float = Field(ge=0.0, le=1.0)
    total_docs: int = Field(ge=0)


class IntentEstimate(BaseModel):
    """Intent label inferred by the contextual scorer."""

    model_config = ConfigDict(frozen=True)

    label: str
    confidence: float = Field(ge=0.0, le=1.0)
    scores: dict[str, float] = Field(default_factory=dict)


class ContextualSignal(BaseModel):
    """Corpus- and intent-biased weight proposal."""

    model_config = ConfigDict(frozen=True)

    lexical_weight: float
    semantic_weight: float
    confidence: float
    reasoning: tuple[str, ...] = ()
    corpus_statistics: CorpusStatistics | None = None
    overlap_ratio: float = 0.5
    intent: str | None = None
    intent_confidence: float = 0.0


class ProperNounAnalysis(BaseModel):
    """Outcome of proper-noun detection for a query."""

    model_config = ConfigDict(frozen=True)

    has_proper_nouns: bool = False
    proper_nouns: tuple[str, ...] = ()
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    signals: tuple[str, ...] = ()
    entity_kind: str | None = None


class QueryStats(BaseModel):
    """Surface statistics of the raw query text."""

    model_config = ConfigDict(frozen=True)

    word_count: int = Field(ge=0)
    character_count: int = Field(ge=0)
    average_word_length: float = Field(default=0.0, ge=0.0)

    @classmethod
    def from_text(cls, query: str) -> "QueryStats":
        words = query.split()
        average = sum(len(word) for word in words) / len(words) if words else 0.0
        return cls(word_count=len(words), character_count=len(query), average_word_length=average)


class EnhancementResult(BaseModel):
    """Region, proper-noun, domain and intent detection for a query."""

    model_config = ConfigDict(frozen=True)

    original_query: str
    detected_region: str | None = None
    proper_nouns: ProperNounAnalysis = Field(default_factory=ProperNounAnalysis)
    query_stats: QueryStats
    domain: str = "general"
    intent: str = "general"
    auto_disable_rerank: bool = False

    @classmethod
    def passthrough(cls, query: str) -> "EnhancementResult":
        """Enhancement used when detection is switched off: stats only."""
        return cls(original_query=query, query_stats=QueryStats.from_text(query))


class WeightDecision(BaseModel):
    """Final lexical/semantic split handed to the query renderer."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    lexical_weight: float
    semantic_weight: float
    confidence: float
    strategy: Strategy
    reasoning: tuple[str, ...] = ()
    proper_nouns: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys; ``properNouns`` only when detected."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
