"""
Span attribute keys for search telemetry.

One namespace, "search.", shared by both hosts so traces from the worker
and the request handler can be compared side by side.
"""

# Request
SEARCH_HOST = "search.host"  # "client" (worker) or "api" (request handler)
SEARCH_QUERY_LENGTH = "search.query.length"  # characters, never the text
SEARCH_QUERY_TOKENS = "search.query.tokens"  # tokens used for boosting
SEARCH_LIMIT = "search.limit"
SEARCH_CORRELATION_ID = "search.correlation_id"

# Result
SEARCH_RESULT_COUNT = "search.result_count"
SEARCH_EMBEDDING_MS = "search.embedding_ms"
SEARCH_SCAN_MS = "search.scan_ms"

# Corpus
SEARCH_CORPUS_SIZE = "search.corpus.size"
SEARCH_CORPUS_DIM = "search.corpus.dim"
SEARCH_PCA_COMPONENTS = "search.pca.components"


def search_request_attributes(
    host: str,
    query: str,
    limit: int,
    correlation_id: int | None = None,
) -> dict:
    """Create attributes dict for a search request span."""
    attrs = {
        SEARCH_HOST: host,
        SEARCH_QUERY_LENGTH: len(query),
        SEARCH_LIMIT: limit,
    }
    if correlation_id is not None:
        attrs[SEARCH_CORRELATION_ID] = correlation_id
    return attrs


def corpus_attributes(num_records: int, dim: int, n_components: int) -> dict:
    """Create attributes dict for the initialization span."""
    return {
        SEARCH_CORPUS_SIZE: num_records,
        SEARCH_CORPUS_DIM: dim,
        SEARCH_PCA_COMPONENTS: n_components,
    }
