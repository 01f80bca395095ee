"""Syntactic entity tagging backed by spaCy.

The feature extractor and the query enhancer only need a small summary of
a query: which spans are named entities (and of what kind), and which
tokens are nouns or verbs. ``EntityTagger`` is that seam; the default
implementation runs a spaCy pipeline, and tests substitute a fake.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import logging
from typing import TYPE_CHECKING, Protocol

import spacy


if TYPE_CHECKING:
    from spacy.language import Language
    from spacy.tokens import Doc

logger = logging.getLogger(__name__)

TOPIC_KINDS = frozenset({"person", "place", "organization"})

# spaCy entity labels -> entity kinds used by proper-noun scoring
_LABEL_KINDS: dict[str, str] = {
    "PERSON": "person",
    "GPE": "place",
    "LOC": "place",
    "FAC": "place",
    "NORP": "place",
    "ORG": "organization",
    "PRODUCT": "proper_noun",
    "WORK_OF_ART": "proper_noun",
    "EVENT": "proper_noun",
    "LAW": "proper_noun",
    "LANGUAGE": "proper_noun",
}


@dataclass(frozen=True)
class TaggedEntity:
    """A span recognised as a named entity."""

    text: str
    kind: str


@dataclass(frozen=True)
class TaggedText:
    """Syntactic summary of a piece of text."""

    entities: tuple[TaggedEntity, ...] = ()
    nouns: tuple[str, ...] = ()
    verbs: tuple[str, ...] = ()

    @property
    def topics(self) -> tuple[TaggedEntity, ...]:
        """People, places and organisations only."""
        return tuple(entity for entity in self.entities if entity.kind in TOPIC_KINDS)


class EntityTagger(Protocol):
    """Protocol implemented by entity taggers."""

    def tag(self, text: str) -> TaggedText:  # pragma: no cover - interface definition
        ...


@lru_cache(maxsize=4)
def load_pipeline(model_name: str | None) -> Language:
    """Load a spaCy pipeline once per model name.

    A missing model falls back to a blank English pipeline, which tokenizes
    but never reports entities or part-of-speech tags.
    """
    if not model_name:
        return spacy.blank("en")
    try:
        return spacy.load(model_name)
    except OSError:
        logger.warning(
            "spaCy model '%s' not found; entity tagging disabled. Install with: python -m spacy download %s",
            model_name,
            model_name,
        )
        return spacy.blank("en")


class SpacyEntityTagger:
    """Entity tagger running a (lazily loaded) spaCy pipeline."""

    def __init__(self, model_name: str | None = "en_core_web_sm") -> None:
        self.model_name = model_name
        self._nlp: Language | None = None

    @property
    def nlp(self) -> Language:
        if self._nlp is None:
            self._nlp = load_pipeline(self.model_name)
        return self._nlp

    def tag(self, text: str) -> TaggedText:
        doc = self.nlp(text)
        return TaggedText(
            entities=self._entities(doc),
            nouns=tuple(token.text for token in doc if token.pos_ in {"NOUN", "PROPN"}),
            verbs=tuple(token.text for token in doc if token.pos_ == "VERB"),
        )

    def _entities(self, doc: Doc) -> tuple[TaggedEntity, ...]:
        entities: list[TaggedEntity] = []
        covered: set[int] = set()
        for ent in doc.ents:
            kind = _LABEL_KINDS.get(ent.label_)
            if kind is None:
                continue
            entities.append(TaggedEntity(text=ent.text, kind=kind))
            covered.update(range(ent.start, ent.end))

        # Proper nouns the NER model did not label
        for token in doc:
            if token.i in covered or token.pos_ != "PROPN":
                continue
            kind = "acronym" if token.text.isupper() and len(token.text) >= 2 else "proper_noun"
            entities.append(TaggedEntity(text=token.text, kind=kind))
        return tuple(entities)
