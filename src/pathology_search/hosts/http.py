"""
Request-handler host - the search pipeline inside a server request.

Framework-agnostic: handle() takes the query-string parameters and returns
(status_code, json_body). The engine is loaded once per server process and
shared by every request.

GET ?q=<query>&limit=<n>
200 {query, results, performance: {mode, searchTime, embeddingTime, totalTime, resultCount}}
400 {error}                            missing q or bad limit
500 {error, query, results: []}        configuration error
503 {error, query, results: []}        load or embedding failure
"""

from __future__ import annotations

import logging
import time
from typing import Mapping

from pathology_search.core.errors import ConfigurationError, SearchError
from pathology_search.schemas.search import (
    ErrorResponse,
    PerformanceMetrics,
    SearchResponse,
    SearchResultModel,
)
from pathology_search.search.engine import SearchEngine, build_search_engine

logger = logging.getLogger(__name__)

HOST_MODE = "api"


class SearchRequestHandler:
    """Handles search requests against one shared engine."""

    def __init__(self, engine: SearchEngine | None = None):
        self._engine = engine

    @property
    def engine(self) -> SearchEngine:
        if self._engine is None:
            self._engine = get_search_engine()
        return self._engine

    def _parse_limit(self, raw: str | None) -> int:
        if raw is None or raw == "":
            return self.engine.default_limit
        limit = int(raw)
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        return limit

    async def handle(self, params: Mapping[str, str]) -> tuple[int, dict]:
        """Run one search request. Never raises for search failures."""
        started = time.perf_counter()

        query = params.get("q")
        if query is None:
            return 400, ErrorResponse(error='Query parameter "q" is required').model_dump()

        try:
            limit = self._parse_limit(params.get("limit"))
        except ValueError:
            return 400, ErrorResponse(
                error='Query parameter "limit" must be a positive integer', query=query
            ).model_dump()

        try:
            outcome = await self.engine.search(query, limit, host=HOST_MODE)
        except ConfigurationError as e:
            logger.error(f"Search configuration error: {e}")
            return 500, ErrorResponse(error=str(e), query=query).model_dump()
        except SearchError as e:
            logger.warning(f"Search failed: {e}")
            return 503, ErrorResponse(error=f"Failed to perform search: {e}", query=query).model_dump()
        except Exception as e:
            logger.error(f"Search failed unexpectedly: {e}", exc_info=True)
            return 500, ErrorResponse(error=f"Failed to perform search: {e}", query=query).model_dump()

        response = SearchResponse(
            query=query,
            results=[SearchResultModel(**r) for r in outcome.results_as_dicts()],
            performance=PerformanceMetrics(
                mode=HOST_MODE,
                search_time=outcome.search_time_ms,
                embedding_time=outcome.embedding_time_ms,
                total_time=(time.perf_counter() - started) * 1000,
                result_count=len(outcome.results),
            ),
        )
        return 200, response.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# PROCESS-WIDE ENGINE
# ---------------------------------------------------------------------------

_engine: SearchEngine | None = None


def get_search_engine() -> SearchEngine:
    """The engine shared by every request in this process (built from env)."""
    global _engine
    if _engine is None:
        _engine = build_search_engine()
    return _engine


def reset_search_engine() -> None:
    """Reset the shared engine (useful for testing)."""
    global _engine
    _engine = None
