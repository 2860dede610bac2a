"""
Corpus module - case records and the flat vector store.

This module provides:
- CaseRecord: one pathology case with its vector
- CorpusStore: all vectors in a single float32 buffer
- JsonCorpusSource / JsonProjectionSource: file sources
- InMemoryCorpusSource / InMemoryProjectionSource: test doubles
"""

from pathology_search.corpus.record import (
    CaseRecord,
    MetadataValue,
    get_with_fallback,
    is_absent,
)
from pathology_search.corpus.store import CorpusStore
from pathology_search.corpus.sources import (
    JsonCorpusSource,
    JsonProjectionSource,
    InMemoryCorpusSource,
    InMemoryProjectionSource,
    get_corpus_source,
    get_projection_source,
    parse_records,
)

__all__ = [
    # Records
    "CaseRecord",
    "MetadataValue",
    "get_with_fallback",
    "is_absent",
    # Store
    "CorpusStore",
    # Sources
    "JsonCorpusSource",
    "JsonProjectionSource",
    "InMemoryCorpusSource",
    "InMemoryProjectionSource",
    "get_corpus_source",
    "get_projection_source",
    "parse_records",
]
