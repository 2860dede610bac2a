"""
Response schemas for the search hosts.

These Pydantic models are the OUTPUT CONTRACT of the request-handler host
and of worker result messages. Both hosts serialise through them, so a
field renamed in one place is renamed everywhere.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

MetadataScalar = Union[str, int, float, bool, None]


class SearchResultModel(BaseModel):
    """One ranked case as returned to callers."""

    id: int
    text: str
    diagnosis: str
    organ: str
    system: str
    site: str
    similarity: float = Field(
        description="Asymmetric cosine similarity plus keyword boost, capped at 1.0"
    )
    metadata: dict[str, MetadataScalar] = Field(default_factory=dict)


class PerformanceMetrics(BaseModel):
    """Timing telemetry for one search, in milliseconds."""

    model_config = ConfigDict(populate_by_name=True)

    mode: Literal["client", "api"] = Field(
        description="client = worker host, api = request-handler host"
    )
    search_time: float = Field(alias="searchTime", description="Scan, boost and rank")
    embedding_time: Optional[float] = Field(default=None, alias="embeddingTime")
    total_time: float = Field(alias="totalTime", description="Host-side end to end")
    result_count: int = Field(alias="resultCount")


class SearchResponse(BaseModel):
    """Body of a successful request-handler response."""

    query: str
    results: list[SearchResultModel]
    performance: PerformanceMetrics


class ErrorResponse(BaseModel):
    """Body of a failed request-handler response."""

    error: str
    query: Optional[str] = None
    results: list[SearchResultModel] = Field(default_factory=list)
