"""
Natural-language helpers for query analysis.

- tagger: spaCy-backed entity/noun/verb tagging
- regions: regional surface forms for geographic detection
- vocabulary: frequency-backed English lexicon for dictionary checks
"""
