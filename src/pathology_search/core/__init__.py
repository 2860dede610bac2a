"""
Core module - shared protocols and error types.

USAGE:
------
from pathology_search.core import EmbeddingProvider, ConfigurationError
"""

from pathology_search.core.errors import (
    SearchError,
    ConfigurationError,
    CorpusLoadError,
    EmbeddingError,
    SearchTimeoutError,
)
from pathology_search.core.protocols import (
    EmbeddingProvider,
    CorpusSource,
    ProjectionSource,
)

__all__ = [
    # Protocols
    "EmbeddingProvider",
    "CorpusSource",
    "ProjectionSource",
    # Errors
    "SearchError",
    "ConfigurationError",
    "CorpusLoadError",
    "EmbeddingError",
    "SearchTimeoutError",
]
