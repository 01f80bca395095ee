"""Query enhancement: regional references, proper nouns, domain and intent.

Pure functions over the query text and the enhancer's current dictionaries.
Extension methods (regions, known proper nouns) build new lookup tables
and swap them in; they never mutate a table that a running call may read.
"""

from collections.abc import Iterable, Mapping
import logging
import re
from typing import ClassVar

from hybrid_weighting.config import ProperNounConfig, QueryEnhancerConfig
from hybrid_weighting.domain.weights import EnhancementResult, ProperNounAnalysis, QueryStats
from hybrid_weighting.nlp.regions import DEFAULT_REGION_PATTERNS, extend_region_patterns
from hybrid_weighting.nlp.tagger import EntityTagger, SpacyEntityTagger
from hybrid_weighting.nlp.vocabulary import build_dictionary
from hybrid_weighting.services.feature_extractor import ensure_query_text


logger = logging.getLogger(__name__)

# Classifier kinds in the order they are consulted
_CLASSIFIER_ORDER = ("person", "place", "organization", "proper_noun", "acronym")

_PROPER_CAPITALIZATION = re.compile(r"^[A-Z][a-z]+$")
_ACRONYM = re.compile(r"^(?:[A-Z]{2,}|[A-Z]+(?:&[A-Z]+)*)$")
_PRODUCT_CODE = re.compile(r"^[A-Za-z0-9]+[-_]?[A-Za-z0-9]+$")
_NON_WORD = re.compile(r"[^\w]")
_TWO_LETTER_CODE = re.compile(r"^[A-Z]{2}$")
_LEADING_CAPITAL = re.compile(r"^[A-Z]")


def _normalize_noun(noun: str) -> str:
    return _NON_WORD.sub("", noun.lower())


CompiledRegions = tuple[tuple[str, tuple[re.Pattern[str], ...]], ...]


def compile_region_patterns(patterns: Mapping[str, Iterable[str]]) -> CompiledRegions:
    """Compile surface forms into whole-word regexes, preserving region order.

    Two-letter upper-case codes match case-sensitively; all other forms are
    escaped and matched case-insensitively.
    """
    compiled = []
    for region, forms in patterns.items():
        regexes = []
        for form in forms:
            if _TWO_LETTER_CODE.match(form):
                regexes.append(re.compile(rf"\b{form}\b"))
            else:
                regexes.append(re.compile(rf"\b{re.escape(form)}\b", re.IGNORECASE))
        compiled.append((region, tuple(regexes)))
    return tuple(compiled)


class QueryEnhancer:
    """Detect regions, proper nouns, domain and intent in a raw query.

    Proper-noun detection is restricted to single-word queries: a lone
    capitalised brand or product code is the case where exact matching
    matters most, while multi-word queries are left to feature analysis.
    """

    TECHNICAL_TERMS: ClassVar[tuple[str, ...]] = ("api", "code", "database", "server", "configuration", "system")
    BUSINESS_TERMS: ClassVar[tuple[str, ...]] = ("policy", "process", "training", "compliance", "procedure")
    FACTUAL_INDICATORS: ClassVar[tuple[str, ...]] = ("what", "when", "where", "who", "how")
    EXPLORATORY_INDICATORS: ClassVar[tuple[str, ...]] = ("similar", "like", "about", "related")

    def __init__(
        self,
        config: QueryEnhancerConfig | None = None,
        tagger: EntityTagger | None = None,
        region_patterns: Mapping[str, Iterable[str]] | None = None,
        dictionary_words: Iterable[str] | None = None,
    ):
        self.config = config or QueryEnhancerConfig()
        self.tagger = tagger or SpacyEntityTagger()
        self._region_patterns = {
            code: tuple(forms) for code, forms in (region_patterns or DEFAULT_REGION_PATTERNS).items()
        }
        self._compiled_regions = compile_region_patterns(self._region_patterns)
        self._dictionary = build_dictionary(dictionary_words, self.config.proper_nouns.dictionary_min_zipf)
        self._known_proper_nouns = frozenset(_normalize_noun(noun) for noun in self.config.known_proper_nouns)

    @property
    def region_patterns(self) -> dict[str, tuple[str, ...]]:
        return dict(self._region_patterns)

    def enhance(self, query: str) -> EnhancementResult:
        """Run every enabled detector over ``query``.

        Raises:
            InvalidInputError: If the query is blank or not a string
        """
        query = ensure_query_text(query)
        stats = QueryStats.from_text(query)

        region = self.detect_region(query) if self.config.enable_regional_detection else None
        if self.config.enable_proper_noun_detection:
            proper_nouns = self.detect_proper_nouns(query)
        else:
            proper_nouns = ProperNounAnalysis()

        result = EnhancementResult(
            original_query=query,
            detected_region=region,
            proper_nouns=proper_nouns,
            query_stats=stats,
            domain=self.infer_domain(query),
            intent=self.infer_intent(query),
            auto_disable_rerank=stats.word_count == 1 and proper_nouns.has_proper_nouns,
        )
        logger.debug(
            "Query enhanced",
            extra={
                "region": region,
                "proper_nouns": list(proper_nouns.proper_nouns),
                "domain": result.domain,
                "intent": result.intent,
            },
        )
        return result

    def detect_region(self, query: str) -> str | None:
        """Return the first region whose surface form appears as a whole word."""
        for region, regexes in self._compiled_regions:
            if any(regex.search(query) for regex in regexes):
                return region
        return None

    def detect_proper_nouns(self, query: str) -> ProperNounAnalysis:
        """Score a single-word query as a proper noun.

        Signals are additive and the sum is clamped to 1.0. The word is
        accepted when the sum reaches the detection threshold, or when the
        syntactic classifier recognised it regardless of the sum.
        """
        words = query.split()
        if len(words) != 1:
            return ProperNounAnalysis()

        word = words[0]
        weights: ProperNounConfig = self.config.proper_nouns
        clean_word = _NON_WORD.sub("", word.lower())
        is_dictionary_word = clean_word in self._dictionary
        confidence = 0.0
        signals: list[str] = []

        entity_kind = self._classify(word, weights)
        if entity_kind is not None:
            confidence += self._classifier_confidence(entity_kind, weights)
            signals.append(f"nlp_{entity_kind}")

        if _LEADING_CAPITAL.match(word) and not is_dictionary_word:
            confidence += weights.capitalized_non_dictionary
            signals.append("capitalized_non_dictionary")

        if _PROPER_CAPITALIZATION.match(word):
            if is_dictionary_word:
                confidence += weights.capitalized_dictionary_word
                signals.append("capitalized_dictionary_word")
            else:
                confidence += weights.capitalized_non_dictionary_word
                signals.append("capitalized_non_dictionary_word")

        if _ACRONYM.match(word):
            confidence += weights.acronym
            signals.append("acronym")

        if _PRODUCT_CODE.match(word) and re.search(r"[A-Za-z]", word) and re.search(r"[0-9]", word):
            confidence += weights.product_code
            signals.append("product_code")

        if word == word.upper() and re.search(r"[A-Z]", word) and len(word) >= 2:
            confidence += weights.all_caps
            signals.append("all_caps")

        confidence = min(confidence, 1.0)
        if confidence >= weights.detection_threshold or entity_kind is not None:
            return ProperNounAnalysis(
                has_proper_nouns=True,
                proper_nouns=(word,),
                confidence=confidence,
                signals=tuple(signals),
                entity_kind=entity_kind,
            )
        return ProperNounAnalysis(confidence=0.0, signals=tuple(signals))

    def _classify(self, word: str, weights: ProperNounConfig) -> str | None:
        """Return the entity kind when the classifier covers the whole word."""
        tagged = self.tagger.tag(word)
        target = word.lower()
        for kind in _CLASSIFIER_ORDER:
            if kind not in weights.classifier_confidence:
                continue
            if any(entity.kind == kind and entity.text.lower() == target for entity in tagged.entities):
                return kind
        if _normalize_noun(word) in self._known_proper_nouns:
            return "known_entity"
        return None

    @staticmethod
    def _classifier_confidence(kind: str, weights: ProperNounConfig) -> float:
        if kind == "known_entity":
            return weights.known_entity_confidence
        return weights.classifier_confidence[kind]

    def infer_domain(self, query: str) -> str:
        """Classify as technical, business or general by keyword substring."""
        lowered = query.lower()
        if any(term in lowered for term in self.TECHNICAL_TERMS):
            return "technical"
        if any(term in lowered for term in self.BUSINESS_TERMS):
            return "business"
        return "general"

    def infer_intent(self, query: str) -> str:
        """Classify as factual, exploratory or general by indicator substring."""
        lowered = query.lower()
        if any(indicator in lowered for indicator in self.FACTUAL_INDICATORS):
            return "factual"
        if any(indicator in lowered for indicator in self.EXPLORATORY_INDICATORS):
            return "exploratory"
        return "general"

    def add_regional_patterns(self, region_code: str, patterns: Iterable[str]) -> None:
        """Extend (or create) a region's surface forms.

        Builds and swaps in new tables; do not call concurrently with
        in-flight ``enhance`` calls on the same instance.
        """
        updated = extend_region_patterns(self._region_patterns, region_code, patterns)
        compiled = compile_region_patterns(updated)
        self._region_patterns, self._compiled_regions = updated, compiled

    def add_known_proper_nouns(self, nouns: Iterable[str]) -> None:
        """Treat ``nouns`` as classifier-recognised entities from now on."""
        additions = frozenset(noun for noun in nouns if noun)
        self.config = self.config.model_copy(
            update={"known_proper_nouns": self.config.known_proper_nouns | additions}
        )
        self._known_proper_nouns = self._known_proper_nouns | {_normalize_noun(noun) for noun in additions}
