"""
Search engine - the one pipeline both hosts drive.

query -> EmbeddingPipeline -> score_corpus -> boost_corpus -> rank -> top-K

The engine owns the loaded corpus, the PCA model and the embedding model.
They are loaded once, by whichever caller arrives first; every concurrent
caller awaits that same in-flight load. After loading, everything is
read-only and shared by all searches without locking.

Failure policy:
- ConfigurationError is remembered and re-raised on every later call.
- Any other load failure discards the in-flight load so the next call
  starts again from scratch. Nothing is published until every artifact
  has loaded, so a failed load never leaves a half-populated engine.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

import numpy as np

from pathology_search.config import SearchConfig, get_config
from pathology_search.core.errors import ConfigurationError, CorpusLoadError, SearchError
from pathology_search.core.protocols import CorpusSource, EmbeddingProvider, ProjectionSource
from pathology_search.corpus.store import CorpusStore
from pathology_search.embeddings.pipeline import EmbeddingPipeline
from pathology_search.embeddings.projection import PCAModel
from pathology_search.observability import (
    SEARCH_EMBEDDING_MS,
    SEARCH_QUERY_TOKENS,
    SEARCH_RESULT_COUNT,
    SEARCH_SCAN_MS,
    TracerProtocol,
    corpus_attributes,
    get_tracer,
    search_request_attributes,
)
from pathology_search.search.boosting import BoostFieldTexts, boost_corpus, prepare_boost_fields, tokenize_query
from pathology_search.search.ranking import RankedResult, rank
from pathology_search.search.scoring import score_corpus

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]

MSG_LOADING_DATABASE = "Loading database..."
MSG_LOADING_PCA = "Loading PCA model..."
MSG_LOADING_MODEL = "Loading embedding model..."


@dataclass(frozen=True, eq=False)
class LoadedIndex:
    """Everything a search needs, published in one assignment."""

    corpus: CorpusStore
    projection: PCAModel
    boost_fields: list[BoostFieldTexts]


@dataclass
class SearchOutcome:
    """Ranked results for one query plus step timings in milliseconds."""

    query: str
    results: list[RankedResult] = field(default_factory=list)
    embedding_time_ms: float = 0.0
    search_time_ms: float = 0.0

    def results_as_dicts(self) -> list[dict]:
        return [result.to_dict() for result in self.results]


class SearchEngine:
    """
    In-memory vector search over the pathology corpus.

    Dependencies are INJECTED, not created internally, so tests build
    engines from in-memory sources and mock embeddings.
    """

    def __init__(
        self,
        corpus_source: CorpusSource,
        projection_source: ProjectionSource,
        embeddings: EmbeddingProvider,
        default_limit: int = 10,
        tracer: TracerProtocol | None = None,
    ):
        self._corpus_source = corpus_source
        self._projection_source = projection_source
        self._pipeline = EmbeddingPipeline(embeddings)
        self.default_limit = default_limit
        self._tracer = tracer

        self._index: LoadedIndex | None = None
        self._init_task: asyncio.Future | None = None
        self._config_error: ConfigurationError | None = None
        self._progress_listeners: list[ProgressCallback] = []

    # -----------------------------------------------------------------------
    # STATE
    # -----------------------------------------------------------------------

    @property
    def ready(self) -> bool:
        return self._index is not None

    @property
    def loading(self) -> bool:
        return self._init_task is not None and not self._init_task.done()

    @property
    def num_records(self) -> int:
        return self._index.corpus.num_records if self._index else 0

    @property
    def index(self) -> LoadedIndex | None:
        return self._index

    @property
    def tracer(self) -> TracerProtocol:
        if self._tracer is None:
            self._tracer = get_tracer()
        return self._tracer

    # -----------------------------------------------------------------------
    # INITIALIZATION (single-flight)
    # -----------------------------------------------------------------------

    async def ensure_initialized(self, progress: ProgressCallback | None = None) -> LoadedIndex:
        """
        Load corpus, PCA model and embedding model exactly once.

        Concurrent callers share one in-flight load. `progress` receives the
        milestone messages emitted after the caller joined.

        Raises:
            ConfigurationError: fatal, raised again on every later call
            CorpusLoadError: this attempt failed, a later call retries
        """
        if self._index is not None:
            return self._index
        if self._config_error is not None:
            raise self._config_error

        if progress is not None:
            self._progress_listeners.append(progress)
        try:
            if self._init_task is None:
                self._init_task = asyncio.ensure_future(self._initialize())
            # Shielded so a caller that gives up does not cancel the shared load
            return await asyncio.shield(self._init_task)
        finally:
            if progress is not None and progress in self._progress_listeners:
                self._progress_listeners.remove(progress)

    def _emit_progress(self, message: str) -> None:
        for listener in list(self._progress_listeners):
            listener(message)

    async def _initialize(self) -> LoadedIndex:
        logger.info("Initializing vector database...")
        with self.tracer.start_span("search.initialize") as span:
            try:
                index = await self._load_index()
            except ConfigurationError as e:
                logger.error(f"Search configuration error: {e}")
                self._config_error = e
                self._init_task = None
                span.set_status("error", str(e))
                raise
            except Exception as e:
                logger.error(f"Initialization error: {e}", exc_info=True)
                self._init_task = None
                span.set_status("error", str(e))
                if isinstance(e, SearchError):
                    raise
                raise CorpusLoadError(f"Initialization failed: {e}") from e

            for key, value in corpus_attributes(
                index.corpus.num_records, index.corpus.dim, index.projection.n_components
            ).items():
                span.set_attribute(key, value)
            span.set_status("ok")

        self._pipeline.set_projection(index.projection)
        self._index = index
        self._init_task = None
        logger.info(f"Search engine ready with {index.corpus.num_records} records")
        return index

    async def _load_index(self) -> LoadedIndex:
        self._emit_progress(MSG_LOADING_DATABASE)
        records = await asyncio.to_thread(self._corpus_source.load_records)
        corpus = CorpusStore.from_records(records)
        logger.info(f"Loaded {corpus.num_records} vector entries (dim={corpus.dim})")

        self._emit_progress(MSG_LOADING_PCA)
        projection = await asyncio.to_thread(self._projection_source.load_projection)
        check_dimensions(corpus, projection)
        logger.info(f"Loaded PCA model with {projection.n_components} components")

        self._emit_progress(MSG_LOADING_MODEL)
        try:
            await self._pipeline.load_model()
        except Exception as e:
            raise CorpusLoadError(f"Embedding model failed to load: {e}") from e
        logger.info("Initialized embedding model")

        return LoadedIndex(
            corpus=corpus,
            projection=projection,
            boost_fields=prepare_boost_fields(corpus.records),
        )

    # -----------------------------------------------------------------------
    # SEARCH
    # -----------------------------------------------------------------------

    async def search(
        self,
        query: str,
        limit: int | None = None,
        host: str = "engine",
        correlation_id: int | None = None,
    ) -> SearchOutcome:
        """
        Rank the corpus against `query` and return the top `limit` results.

        An empty or whitespace-only query returns no results without loading
        anything or calling the embedding model.
        """
        limit = self.default_limit if limit is None else limit
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        if not query or not query.strip():
            return SearchOutcome(query=query or "")

        index = await self.ensure_initialized()

        with self.tracer.start_span(
            "search.query",
            attributes=search_request_attributes(host, query, limit, correlation_id),
        ) as span:
            embedding_start = time.perf_counter()
            query_vector = await self._pipeline.embed_query(query)
            embedding_ms = (time.perf_counter() - embedding_start) * 1000

            search_start = time.perf_counter()
            tokens = tokenize_query(query)
            results = rank_index(index, query_vector, tokens, limit)
            search_ms = (time.perf_counter() - search_start) * 1000

            span.set_attribute(SEARCH_QUERY_TOKENS, len(tokens))
            span.set_attribute(SEARCH_RESULT_COUNT, len(results))
            span.set_attribute(SEARCH_EMBEDDING_MS, embedding_ms)
            span.set_attribute(SEARCH_SCAN_MS, search_ms)

        logger.debug(
            f"Search returned {len(results)} results "
            f"(embedding {embedding_ms:.1f}ms, scan {search_ms:.1f}ms)"
        )
        return SearchOutcome(
            query=query,
            results=results,
            embedding_time_ms=embedding_ms,
            search_time_ms=search_ms,
        )


# ---------------------------------------------------------------------------
# PURE HELPERS
# ---------------------------------------------------------------------------


def check_dimensions(corpus: CorpusStore, projection: PCAModel) -> None:
    """Fail fast when projected queries could not be compared to the corpus."""
    if corpus.num_records and projection.n_components != corpus.dim:
        raise ConfigurationError(
            f"PCA model has {projection.n_components} components "
            f"but corpus vectors have {corpus.dim} dimensions"
        )


def rank_index(
    index: LoadedIndex,
    query_vector: np.ndarray,
    tokens: list[str],
    limit: int,
) -> list[RankedResult]:
    """Synchronous scan, boost and rank. Never suspends mid-scan."""
    corpus = index.corpus
    similarities = score_corpus(query_vector, corpus.vector_matrix, corpus.dim, corpus.row_norms)
    boosts = boost_corpus(index.boost_fields, tokens)
    return rank(corpus.records, similarities, boosts, limit)


# ---------------------------------------------------------------------------
# FACTORY FUNCTION
# ---------------------------------------------------------------------------


def build_search_engine(
    config: SearchConfig | None = None,
    embeddings: EmbeddingProvider | None = None,
) -> SearchEngine:
    """
    Build an engine wired to the configured files and embedding model.

    Args:
        config: Search configuration (uses env if not provided)
        embeddings: Embedding provider (created from config if not provided)
    """
    from pathology_search.corpus.sources import get_corpus_source, get_projection_source
    from pathology_search.embeddings.providers import get_embedding_provider

    config = config or get_config()
    return SearchEngine(
        corpus_source=get_corpus_source(config),
        projection_source=get_projection_source(config),
        embeddings=embeddings or get_embedding_provider(config=config),
        default_limit=config.default_limit,
    )
