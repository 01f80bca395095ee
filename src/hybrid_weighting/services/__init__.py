"""Pipeline stage services: feature analysis, enhancement, contextual scoring, combination."""

from .contextual_scorer import ContextualScorer, CorpusStatisticsCache
from .corpus_provider import CorpusContextProvider, StaticCorpusContextProvider, vocabulary_overlap
from .feature_extractor import QueryFeatureExtractor
from .query_enhancer import QueryEnhancer
from .weight_combiner import WeightCombiner


__all__ = [
    "ContextualScorer",
    "CorpusContextProvider",
    "CorpusStatisticsCache",
    "QueryEnhancer",
    "QueryFeatureExtractor",
    "StaticCorpusContextProvider",
    "WeightCombiner",
    "vocabulary_overlap",
]
