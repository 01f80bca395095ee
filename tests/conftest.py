"""Shared test fixtures and configuration."""

from __future__ import annotations

import logging
import os

import pytest


# Complete test environment that overrides every Settings value
TEST_ENV = {
    "LOG_LEVEL": "info",
    "LOG_JSON": "false",
    "INDEX_NAME": "search-test",
    # Blank spaCy pipeline: deterministic, no model download required
    "NER_MODEL": "",
    "ENABLE_QUERY_ENHANCEMENT": "true",
    "ENABLE_CONTEXTUAL_WEIGHTING": "true",
    "CORPUS_CACHE_TTL_SECONDS": "1800",
    "CORPUS_CACHE_MAX_ENTRIES": "256",
}


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value

# Now we can safely import config-dependent modules
from hybrid_weighting.domain.errors import ExternalProviderError
from hybrid_weighting.domain.weights import CorpusStatistics
from hybrid_weighting.nlp.tagger import TaggedEntity, TaggedText
from hybrid_weighting.services.corpus_provider import StaticCorpusContextProvider


class FakeEntityTagger:
    """Whitespace tagger driven by fixed word lists.

    ``entities`` maps a lower-cased word to its entity kind; ``nouns`` and
    ``verbs`` are lower-cased word sets.
    """

    def __init__(
        self,
        entities: dict[str, str] | None = None,
        nouns: set[str] | None = None,
        verbs: set[str] | None = None,
    ) -> None:
        self.entities = entities or {}
        self.nouns = nouns or set()
        self.verbs = verbs or set()
        self.calls: list[str] = []

    def tag(self, text: str) -> TaggedText:
        self.calls.append(text)
        words = text.split()
        return TaggedText(
            entities=tuple(
                TaggedEntity(text=word, kind=self.entities[word.lower()])
                for word in words
                if word.lower() in self.entities
            ),
            nouns=tuple(word for word in words if word.lower() in self.nouns),
            verbs=tuple(word for word in words if word.lower() in self.verbs),
        )


class FailingCorpusProvider:
    """Provider whose every call fails the way an unreachable backend would."""

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or ExternalProviderError("connection refused")
        self.statistics_calls = 0
        self.overlap_calls = 0

    async def get_statistics(self, index_name: str) -> CorpusStatistics:
        self.statistics_calls += 1
        raise self.exc

    async def get_overlap(self, query: str, index_name: str) -> float:
        self.overlap_calls += 1
        raise self.exc


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset environment variables to test defaults before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def fake_tagger() -> FakeEntityTagger:
    """Tagger that recognises nothing."""
    return FakeEntityTagger()


@pytest.fixture
def make_tagger():
    """Factory for taggers with fixed entity, noun and verb lists."""
    return FakeEntityTagger


@pytest.fixture
def make_failing_provider():
    """Factory for providers that raise the given exception."""
    return FailingCorpusProvider


@pytest.fixture
def neutral_statistics() -> CorpusStatistics:
    """Statistics that trigger no corpus adjustment."""
    return CorpusStatistics(avg_doc_length=400, term_diversity=0.5, total_docs=1200)


@pytest.fixture
def static_provider(neutral_statistics) -> StaticCorpusContextProvider:
    """Provider for ``search-test`` with neutral statistics and a small vocabulary."""
    return StaticCorpusContextProvider(
        statistics={"search-test": neutral_statistics},
        frequent_terms={
            "search-test": [
                "Expense Policy",
                "Travel Booking Guide",
                "Machine Learning Basics",
                "Annual Leave",
            ]
        },
    )


@pytest.fixture
def failing_provider() -> FailingCorpusProvider:
    return FailingCorpusProvider()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def restore_logging():
    """Restore root logger handlers and level after a test reconfigures logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    spacy_level = logging.getLogger("spacy").level
    logger_levels = {
        name: logger.level
        for name, logger in logging.root.manager.loggerDict.items()
        if isinstance(logger, logging.Logger)
    }
    yield
    for name, logger in logging.root.manager.loggerDict.items():
        if isinstance(logger, logging.Logger):
            logger.setLevel(logger_levels.get(name, logging.NOTSET))
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    logging.getLogger("spacy").setLevel(spacy_level)
