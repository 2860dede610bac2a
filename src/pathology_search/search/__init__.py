"""
Search module - scoring, boosting, ranking and the engine that runs them.

ARCHITECTURE:
-------------
scoring.py   asymmetric cosine scan over the flat vector buffer
boosting.py  keyword boost from weighted metadata fields
ranking.py   merge, stable sort, truncate
engine.py    single-flight loading + the search pipeline
filters.py   post-filtering and facet counts over ranked results
"""

from pathology_search.search.scoring import score_corpus
from pathology_search.search.boosting import (
    BOOST_FIELDS,
    MAX_BOOST,
    BoostField,
    boost_corpus,
    keyword_boost,
    prepare_boost_fields,
    tokenize_query,
)
from pathology_search.search.ranking import RankedResult, rank, top_indices, combine_scores
from pathology_search.search.engine import (
    SearchEngine,
    SearchOutcome,
    LoadedIndex,
    build_search_engine,
    check_dimensions,
)
from pathology_search.search.filters import ResultFilter, facet_frequencies, KNOWN_SOURCES

__all__ = [
    # Scoring
    "score_corpus",
    # Boosting
    "BOOST_FIELDS",
    "MAX_BOOST",
    "BoostField",
    "boost_corpus",
    "keyword_boost",
    "prepare_boost_fields",
    "tokenize_query",
    # Ranking
    "RankedResult",
    "rank",
    "top_indices",
    "combine_scores",
    # Engine
    "SearchEngine",
    "SearchOutcome",
    "LoadedIndex",
    "build_search_engine",
    "check_dimensions",
    # Filters
    "ResultFilter",
    "facet_frequencies",
    "KNOWN_SOURCES",
]
