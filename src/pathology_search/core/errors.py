"""
Error taxonomy for the search core.

Every failure the engine can surface is one of these types, so hosts can
decide how to report it without string matching:

- ConfigurationError: fatal, never retried (missing PCA artifact, dimension
  mismatch between PCA model and corpus).
- CorpusLoadError: retryable, the shared load is discarded and a later
  call starts over.
- EmbeddingError: one query failed inside the embedding model; shared
  state is untouched.
- SearchTimeoutError: caller-side, no reply arrived in time.
"""


class SearchError(Exception):
    """Base class for all search-core errors."""


class ConfigurationError(SearchError):
    """Fatal misconfiguration. Retrying will not help."""


class CorpusLoadError(SearchError):
    """Corpus, PCA artifact or embedding model could not be loaded."""


class EmbeddingError(SearchError):
    """The embedding provider failed for a single query."""


class SearchTimeoutError(SearchError):
    """A search reply did not arrive within the configured window."""

    def __init__(self, search_id: int, timeout_s: float):
        super().__init__(f"Search {search_id} timed out after {timeout_s:g}s")
        self.search_id = search_id
        self.timeout_s = timeout_s
