"""Unit tests for spaCy-backed entity tagging."""

import logging

import pytest
import spacy
from spacy.tokens import Doc

from hybrid_weighting.nlp import tagger as tagger_module
from hybrid_weighting.nlp.tagger import SpacyEntityTagger, TaggedEntity, TaggedText, load_pipeline


@pytest.fixture(autouse=True)
def clear_pipeline_cache():
    load_pipeline.cache_clear()
    yield
    load_pipeline.cache_clear()


@pytest.mark.unit
class TestLoadPipeline:
    """Pipelines load lazily and degrade to a blank English pipeline."""

    def test_empty_model_name_selects_blank_pipeline(self):
        nlp = load_pipeline("")

        assert nlp.lang == "en"
        assert nlp.pipe_names == []

    def test_missing_model_falls_back_to_blank(self, monkeypatch, caplog):
        def _missing(name, *args, **kwargs):
            raise OSError(f"[E050] Can't find model '{name}'")

        monkeypatch.setattr(tagger_module.spacy, "load", _missing)

        with caplog.at_level(logging.WARNING, logger="hybrid_weighting.nlp.tagger"):
            nlp = load_pipeline("en_core_web_missing")

        assert nlp.pipe_names == []
        assert "en_core_web_missing" in caplog.text

    def test_pipeline_loaded_once_per_model(self, monkeypatch):
        calls = []

        def _load(name, *args, **kwargs):
            calls.append(name)
            return spacy.blank("en")

        monkeypatch.setattr(tagger_module.spacy, "load", _load)

        load_pipeline("en_core_web_sm")
        load_pipeline("en_core_web_sm")

        assert calls == ["en_core_web_sm"]


@pytest.mark.unit
class TestSpacyEntityTagger:
    def test_blank_pipeline_reports_nothing(self):
        tagged = SpacyEntityTagger(model_name="").tag("Satya Nadella visited Paris")

        assert tagged == TaggedText()

    def test_maps_entity_labels_and_untagged_proper_nouns(self):
        nlp = spacy.blank("en")
        doc = Doc(
            nlp.vocab,
            words=["Satya", "visited", "Paris", "with", "IBM", "staff"],
            pos=["PROPN", "VERB", "PROPN", "ADP", "PROPN", "NOUN"],
            ents=["B-PERSON", "O", "B-GPE", "O", "O", "O"],
        )
        entity_tagger = SpacyEntityTagger(model_name="")
        entity_tagger._nlp = lambda text: doc

        tagged = entity_tagger.tag("Satya visited Paris with IBM staff")

        assert tagged.entities == (
            TaggedEntity(text="Satya", kind="person"),
            TaggedEntity(text="Paris", kind="place"),
            TaggedEntity(text="IBM", kind="acronym"),
        )
        assert tagged.nouns == ("Satya", "Paris", "IBM", "staff")
        assert tagged.verbs == ("visited",)

    def test_ignores_numeric_entity_labels(self):
        nlp = spacy.blank("en")
        doc = Doc(nlp.vocab, words=["2023", "budget"], pos=["NUM", "NOUN"], ents=["B-DATE", "O"])
        entity_tagger = SpacyEntityTagger(model_name="")
        entity_tagger._nlp = lambda text: doc

        assert entity_tagger.tag("2023 budget").entities == ()


@pytest.mark.unit
def test_topics_keep_people_places_and_organizations() -> None:
    tagged = TaggedText(
        entities=(
            TaggedEntity(text="Ada", kind="person"),
            TaggedEntity(text="Kubernetes", kind="proper_noun"),
            TaggedEntity(text="Acme", kind="organization"),
            TaggedEntity(text="NASA", kind="acronym"),
        )
    )

    assert [entity.text for entity in tagged.topics] == ["Ada", "Acme"]
