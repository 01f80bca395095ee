"""English lexicon for dictionary-word checks.

Proper-noun detection treats a capitalised word that is *not* an ordinary
English word as strong evidence of a brand, product or place name
("Contoso", "Zendesk"), and a capitalised ordinary word as weak evidence
("Benefits", "Deployment").

Membership comes from ``wordfreq``: a word whose Zipf frequency in English
reaches ``min_zipf`` is ordinary vocabulary. The word lists cover plurals
and inflected forms, so "Reports" and "Vacation" read as ordinary words.
Frequent brand names ("Microsoft") also clear the cutoff; those are left
to the entity tagger. spaCy's English stop words and caller-supplied extra
words are always members.
"""

from __future__ import annotations

from collections.abc import Iterable

from spacy.lang.en.stop_words import STOP_WORDS
from wordfreq import zipf_frequency


# One occurrence per million words
DEFAULT_MIN_ZIPF = 3.0


class EnglishLexicon:
    """Frequency-backed set of ordinary English words."""

    def __init__(self, extra_words: Iterable[str] | None = None, min_zipf: float = DEFAULT_MIN_ZIPF):
        self.min_zipf = min_zipf
        self.extra_words = frozenset(word.lower() for word in extra_words or () if word)

    def __contains__(self, word: object) -> bool:
        if not isinstance(word, str) or not word:
            return False
        word = word.lower()
        if word in STOP_WORDS or word in self.extra_words:
            return True
        return zipf_frequency(word, "en") >= self.min_zipf


def build_dictionary(extra_words: Iterable[str] | None = None, min_zipf: float = DEFAULT_MIN_ZIPF) -> EnglishLexicon:
    """Return the English lexicon, optionally extended with ``extra_words``."""
    return EnglishLexicon(extra_words, min_zipf)
