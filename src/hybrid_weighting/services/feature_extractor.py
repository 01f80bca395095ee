"""Query feature extraction and initial weight proposal.

Pure, synchronous service: derives lexical/syntactic features from the raw
query and proposes a lexical/semantic split with a strategy label.
"""

from collections.abc import Mapping
import logging
import re
from typing import Any, ClassVar

from hybrid_weighting.config import FeatureExtractorConfig
from hybrid_weighting.domain.errors import InvalidInputError
from hybrid_weighting.domain.weights import FeatureDecision, QueryContext, QueryFeatures, Strategy
from hybrid_weighting.nlp.tagger import EntityTagger, SpacyEntityTagger, TaggedText


logger = logging.getLogger(__name__)


def ensure_query_text(query: object) -> str:
    """Return ``query`` if it is non-blank text, else raise ``InvalidInputError``."""
    if not isinstance(query, str) or not query.strip():
        raise InvalidInputError("Query must be a non-empty string")
    return query


def coerce_context(context: QueryContext | Mapping[str, Any] | None) -> QueryContext:
    if isinstance(context, QueryContext):
        return context
    return QueryContext.from_mapping(context)


class QueryFeatureExtractor:
    """Extract query features and pick a first-match weighting strategy.

    Strategy precedence is fixed: exact match, entity focused, conceptual,
    short query, descriptive, balanced. Context adjustments are applied
    after the strategy is chosen, then the lexical weight is clamped.
    """

    # Ordered entity patterns: capitalised runs, years, acronyms, e-mails, URLs
    ENTITY_PATTERNS: ClassVar[tuple[re.Pattern[str], ...]] = (
        re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b"),
        re.compile(r"\b\d{4}\b"),
        re.compile(r"\b[A-Z]{2,}\b"),
        re.compile(r"\b\w+@\w+\.\w+\b"),
        re.compile(r"\bhttps?://\S+\b"),
    )

    QUOTED_PHRASE_PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"[\"']([^\"']+)[\"']")

    CONCEPTUAL_WORDS: ClassVar[frozenset[str]] = frozenset(
        {
            "similar",
            "like",
            "related",
            "about",
            "regarding",
            "concept",
            "idea",
            "meaning",
            "definition",
            "explain",
            "understand",
            "learn",
            "discover",
            "find",
            "search",
        }
    )

    EXACT_MATCH_INDICATORS: ClassVar[frozenset[str]] = frozenset(
        {"exactly", "precise", "specific", "particular", "certain"}
    )

    def __init__(
        self,
        config: FeatureExtractorConfig | None = None,
        tagger: EntityTagger | None = None,
    ):
        self.config = config or FeatureExtractorConfig()
        self.tagger = tagger or SpacyEntityTagger()

    def analyze(self, query: str, context: QueryContext | Mapping[str, Any] | None = None) -> FeatureDecision:
        """Analyze a query and propose a lexical/semantic split.

        Args:
            query: Raw query text
            context: Optional caller context (intent, domain)

        Returns:
            FeatureDecision whose weights sum to 1.0

        Raises:
            InvalidInputError: If the query is blank or not a string
        """
        query = ensure_query_text(query)
        context = coerce_context(context)

        features = self.extract_features(query)
        decision = self._decide(features, context)

        logger.debug(
            "Query features analyzed",
            extra={
                "word_count": features.word_count,
                "entity_ratio": round(features.entity_ratio, 3),
                "strategy": decision.strategy.value,
                "lexical_weight": round(decision.lexical_weight, 3),
            },
        )
        return decision

    def extract_features(self, query: str) -> QueryFeatures:
        """Compute lexical and syntactic features for ``query``."""
        query = ensure_query_text(query)
        words = query.lower().split()
        word_count = len(words)
        tagged = self.tagger.tag(query)

        entity_count = len(tagged.topics)
        for pattern in self.ENTITY_PATTERNS:
            entity_count += len(pattern.findall(query))

        conceptual_count = sum(1 for word in words if word in self.CONCEPTUAL_WORDS)
        exact_match_count = sum(1 for word in words if word in self.EXACT_MATCH_INDICATORS)

        return QueryFeatures(
            word_count=word_count,
            entity_count=entity_count,
            conceptual_count=conceptual_count,
            exact_match_count=exact_match_count,
            entity_ratio=entity_count / max(word_count, 1),
            conceptual_ratio=conceptual_count / max(word_count, 1),
            exact_match_ratio=exact_match_count / max(word_count, 1),
            quoted_phrase_count=len(self.QUOTED_PHRASE_PATTERN.findall(query)),
            average_word_length=sum(len(word) for word in words) / word_count,
            unique_word_ratio=len(set(words)) / word_count,
            complexity=self._complexity(word_count, tagged),
            has_verbs=bool(tagged.verbs),
            has_nouns=bool(tagged.nouns),
        )

    def _complexity(self, word_count: int, tagged: TaggedText) -> float:
        factors = (
            0.3 if word_count > 10 else 0.0,
            0.2 if len(tagged.topics) > 2 else 0.0,
            0.2 if len(tagged.verbs) > 1 else 0.0,
            0.3 if len(tagged.nouns) > 3 else 0.0,
        )
        return min(sum(factors), 1.0)

    def _decide(self, features: QueryFeatures, context: QueryContext) -> FeatureDecision:
        lexical = 0.5
        strategy = Strategy.BALANCED
        confidence = 0.6
        reasoning: list[str] = []

        if features.quoted_phrase_count > 0 or features.exact_match_ratio > 0.1:
            lexical, strategy, confidence = 0.8, Strategy.EXACT_MATCH, 0.9
            reasoning.append("Exact match indicators detected")
        elif features.entity_ratio > self.config.entity_threshold:
            lexical, strategy, confidence = 0.75, Strategy.ENTITY_FOCUSED, 0.8
            reasoning.append("High entity content favors lexical search")
        elif features.conceptual_ratio > self.config.conceptual_threshold:
            lexical, strategy, confidence = 0.3, Strategy.CONCEPTUAL, 0.8
            reasoning.append("Conceptual query benefits from semantic search")
        elif features.word_count <= 2:
            lexical, strategy, confidence = 0.65, Strategy.SHORT_QUERY, 0.7
            reasoning.append("Short queries favor lexical matching")
        elif features.word_count >= 8:
            lexical = 0.4 + features.entity_ratio * 0.3
            strategy, confidence = Strategy.DESCRIPTIVE, 0.75
            reasoning.append("Long descriptive queries benefit from mixed approach")

        if context.intent == "factual":
            lexical += 0.1
            reasoning.append("Factual intent increases lexical weight")
        elif context.intent == "exploratory":
            lexical -= 0.15
            reasoning.append("Exploratory intent increases semantic weight")

        if context.domain == "technical":
            lexical += 0.05
            reasoning.append("Technical domain benefits from exact matching")

        lexical = max(self.config.min_weight, min(self.config.max_weight, lexical))
        return FeatureDecision(
            lexical_weight=lexical,
            semantic_weight=1.0 - lexical,
            confidence=confidence,
            strategy=strategy,
            reasoning=tuple(reasoning),
            features=features,
        )
