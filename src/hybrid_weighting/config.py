"""Centralized configuration for hybrid-weighting using Pydantic Settings.

Two layers:
- ``Settings``: process-level options loaded from the environment (.env)
- Component configs: frozen models holding the tunable weights, thresholds
  and biases. A component never mutates its config; updates build a new
  validated instance and swap it in wholesale.
"""

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hybrid_weighting.domain.weights import CorpusStatistics


DEFAULT_KNOWLEDGE_PATTERNS: tuple[str, ...] = (
    "explain",
    "understand",
    "learn",
    "concept",
    "meaning",
    "definition",
    "guide",
    "tutorial",
    "how does",
    "why does",
    "what is",
    "how to",
    "overview",
    "introduction",
    "basics",
    "fundamentals",
)


class FeatureExtractorConfig(BaseModel):
    """Thresholds and bounds for lexical feature analysis."""

    model_config = ConfigDict(frozen=True)

    entity_threshold: float = Field(default=0.3, ge=0.0)
    conceptual_threshold: float = Field(default=0.2, ge=0.0, le=1.0)
    min_weight: float = Field(default=0.1, ge=0.0, le=1.0)
    max_weight: float = Field(default=0.9, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "FeatureExtractorConfig":
        if self.min_weight >= self.max_weight:
            raise ValueError("min_weight must be lower than max_weight")
        return self


class ProperNounConfig(BaseModel):
    """Signal weights for single-word proper-noun detection.

    ``heuristics_version`` names the constant set below. Version 2 is the
    enterprise-tuned set with the lowered 0.2 acceptance threshold.
    """

    model_config = ConfigDict(frozen=True)

    heuristics_version: Literal["2"] = "2"
    detection_threshold: float = Field(default=0.2, ge=0.0, le=1.0)
    classifier_confidence: dict[str, float] = Field(
        default_factory=lambda: {
            "person": 0.95,
            "place": 0.9,
            "organization": 0.9,
            "proper_noun": 0.8,
            "acronym": 0.85,
        }
    )
    known_entity_confidence: float = Field(default=0.9, ge=0.0, le=1.0)
    dictionary_min_zipf: float = Field(default=3.0, ge=0.0, le=8.0)
    capitalized_non_dictionary: float = 0.7
    capitalized_dictionary_word: float = 0.1
    capitalized_non_dictionary_word: float = 0.5
    acronym: float = 0.6
    product_code: float = 0.4
    all_caps: float = 0.5


class QueryEnhancerConfig(BaseModel):
    """Feature toggles and dictionaries for query enhancement."""

    model_config = ConfigDict(frozen=True)

    enable_regional_detection: bool = True
    enable_proper_noun_detection: bool = True
    proper_nouns: ProperNounConfig = Field(default_factory=ProperNounConfig)
    known_proper_nouns: frozenset[str] = frozenset()


class ContextualScorerConfig(BaseModel):
    """Cache policy and fallbacks for corpus-context scoring."""

    model_config = ConfigDict(frozen=True)

    cache_ttl_seconds: float = Field(default=30 * 60, gt=0)
    cache_max_entries: int = Field(default=256, ge=1)
    default_statistics: CorpusStatistics = Field(
        default_factory=lambda: CorpusStatistics(avg_doc_length=500, term_diversity=0.5, total_docs=1000)
    )
    default_overlap: float = Field(default=0.5, ge=0.0, le=1.0)


class WeightCombinerConfig(BaseModel):
    """Fusion ratios, boosts, biases and bounds for the weight combiner."""

    model_config = ConfigDict(frozen=True)

    analysis_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    contextual_weight: float = Field(default=0.6, ge=0.0, le=1.0)
    regional_bias: float = Field(default=0.12, ge=0.0, le=1.0)
    long_query_boost: float = Field(default=0.30, ge=0.0, le=1.0)
    medium_query_boost: float = Field(default=0.20, ge=0.0, le=1.0)
    knowledge_query_boost: float = Field(default=0.25, ge=0.0, le=1.0)
    proper_noun_lexical_weight: float = Field(default=0.75, ge=0.0, le=1.0)
    proper_noun_semantic_weight: float = Field(default=0.25, ge=0.0, le=1.0)
    min_weight: float = Field(default=0.1, ge=0.0, le=1.0)
    max_weight: float = Field(default=0.9, ge=0.0, le=1.0)
    knowledge_patterns: tuple[str, ...] = DEFAULT_KNOWLEDGE_PATTERNS

    @model_validator(mode="after")
    def _check_ratios(self) -> "WeightCombinerConfig":
        if self.min_weight >= self.max_weight:
            raise ValueError("min_weight must be lower than max_weight")
        # Semantic is 1 - lexical, so only mirrored bounds keep both weights in range
        if not math.isclose(self.min_weight + self.max_weight, 1.0, abs_tol=1e-9):
            raise ValueError("min_weight and max_weight must sum to 1.0")
        if not math.isclose(self.analysis_weight + self.contextual_weight, 1.0, abs_tol=1e-9):
            raise ValueError("analysis_weight and contextual_weight must sum to 1.0")
        if not math.isclose(self.proper_noun_lexical_weight + self.proper_noun_semantic_weight, 1.0, abs_tol=1e-9):
            raise ValueError("proper_noun_lexical_weight and proper_noun_semantic_weight must sum to 1.0")
        return self


class Settings(BaseSettings):
    """Process-level configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",  # Ignore extra env vars not defined in model
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    # Pipeline
    index_name: str = Field(default="search-*", min_length=1, description="Index used for corpus statistics")
    ner_model: str = Field(
        default="en_core_web_sm",
        description="spaCy pipeline used for entity tagging; empty selects a blank English pipeline",
    )
    enable_query_enhancement: bool = Field(default=True, description="Run region and proper-noun detection")
    enable_contextual_weighting: bool = Field(default=True, description="Bias weights with corpus statistics")

    # Corpus statistics cache
    corpus_cache_ttl_seconds: float = Field(default=1800, gt=0, description="Corpus statistics cache TTL")
    corpus_cache_max_entries: int = Field(default=256, ge=1, description="Maximum cached indexes")

    def build_contextual_config(self) -> ContextualScorerConfig:
        """Map cache settings onto the contextual scorer config."""
        return ContextualScorerConfig(
            cache_ttl_seconds=self.corpus_cache_ttl_seconds,
            cache_max_entries=self.corpus_cache_max_entries,
        )
