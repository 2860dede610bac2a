from pathology_search.schemas.search import (
    SearchResultModel,
    PerformanceMetrics,
    SearchResponse,
    ErrorResponse,
)

__all__ = [
    "SearchResultModel",
    "PerformanceMetrics",
    "SearchResponse",
    "ErrorResponse",
]
