"""Unit tests for process settings and component configs."""

import pytest
from pydantic import ValidationError

from hybrid_weighting.config import (
    DEFAULT_KNOWLEDGE_PATTERNS,
    ContextualScorerConfig,
    FeatureExtractorConfig,
    ProperNounConfig,
    Settings,
    WeightCombinerConfig,
)


@pytest.mark.unit
class TestSettings:
    """Settings load from the environment."""

    def test_reads_test_environment(self):
        settings = Settings()

        assert settings.index_name == "search-test"
        assert settings.ner_model == ""
        assert settings.log_json is False
        assert settings.enable_query_enhancement is True
        assert settings.enable_contextual_weighting is True

    def test_toggles_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("ENABLE_CONTEXTUAL_WEIGHTING", "false")

        assert Settings().enable_contextual_weighting is False

    def test_build_contextual_config_maps_cache_settings(self, monkeypatch):
        monkeypatch.setenv("CORPUS_CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("CORPUS_CACHE_MAX_ENTRIES", "8")

        config = Settings().build_contextual_config()

        assert config.cache_ttl_seconds == 60
        assert config.cache_max_entries == 8
        assert config.default_overlap == 0.5

    def test_rejects_non_positive_ttl(self, monkeypatch):
        monkeypatch.setenv("CORPUS_CACHE_TTL_SECONDS", "0")

        with pytest.raises(ValidationError):
            Settings()


@pytest.mark.unit
class TestWeightCombinerConfig:
    """Fusion ratios and bounds are validated together."""

    def test_defaults(self):
        config = WeightCombinerConfig()

        assert config.analysis_weight == 0.4
        assert config.contextual_weight == 0.6
        assert config.regional_bias == 0.12
        assert config.long_query_boost == 0.30
        assert config.medium_query_boost == 0.20
        assert config.knowledge_query_boost == 0.25
        assert (config.proper_noun_lexical_weight, config.proper_noun_semantic_weight) == (0.75, 0.25)
        assert (config.min_weight, config.max_weight) == (0.1, 0.9)
        assert config.knowledge_patterns == DEFAULT_KNOWLEDGE_PATTERNS

    def test_fusion_ratio_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="analysis_weight and contextual_weight"):
            WeightCombinerConfig(analysis_weight=0.5)

    def test_proper_noun_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="proper_noun_lexical_weight"):
            WeightCombinerConfig(proper_noun_lexical_weight=0.8)

    def test_min_weight_below_max_weight(self):
        with pytest.raises(ValidationError, match="min_weight"):
            WeightCombinerConfig(min_weight=0.9, max_weight=0.9)

    def test_uneven_bounds_rejected(self):
        with pytest.raises(ValidationError, match="min_weight and max_weight must sum to 1.0"):
            WeightCombinerConfig(min_weight=0.2, max_weight=0.6)

    def test_mirrored_bounds_accepted(self):
        config = WeightCombinerConfig(min_weight=0.2, max_weight=0.8)

        assert (config.min_weight, config.max_weight) == (0.2, 0.8)

    def test_is_frozen(self):
        config = WeightCombinerConfig()

        with pytest.raises(ValidationError):
            config.regional_bias = 0.5


@pytest.mark.unit
class TestComponentConfigs:
    def test_feature_extractor_bounds_validated(self):
        with pytest.raises(ValidationError):
            FeatureExtractorConfig(min_weight=0.8, max_weight=0.2)

    def test_proper_noun_heuristics_are_versioned(self):
        config = ProperNounConfig()

        assert config.heuristics_version == "2"
        assert config.detection_threshold == 0.2
        assert config.classifier_confidence["person"] == 0.95

        with pytest.raises(ValidationError):
            ProperNounConfig(heuristics_version="1")

    def test_contextual_defaults(self):
        config = ContextualScorerConfig()

        assert config.cache_ttl_seconds == 1800
        assert config.cache_max_entries == 256
        assert config.default_statistics.avg_doc_length == 500
        assert config.default_statistics.term_diversity == 0.5
        assert config.default_statistics.total_docs == 1000
