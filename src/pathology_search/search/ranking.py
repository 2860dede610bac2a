"""
Ranker - merge similarity and boost, sort, truncate.

Ties keep corpus order (stable sort), so equal scores come back in the
same order on every run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from pathology_search.corpus.record import CaseRecord, MetadataValue, get_with_fallback

MAX_SCORE = 1.0


@dataclass(frozen=True)
class RankedResult:
    """A matched record plus its final score. Never mutates the record."""

    record: CaseRecord
    similarity: float

    @property
    def id(self) -> int:
        return self.record.id

    @property
    def metadata(self) -> dict[str, MetadataValue]:
        return self.record.metadata

    def display_field(self, key: str) -> str:
        return get_with_fallback(self.record.metadata, key)

    def to_dict(self) -> dict:
        """The response shape: record fields plus similarity."""
        record = self.record
        return {
            "id": record.id,
            "text": record.text,
            "diagnosis": record.diagnosis,
            "organ": record.organ,
            "system": record.system,
            "site": record.site,
            "similarity": self.similarity,
            "metadata": dict(record.metadata),
        }


def combine_scores(similarities: np.ndarray, boosts: Sequence[float]) -> np.ndarray:
    """min(similarity + boost, 1.0) per record, as float64."""
    combined = np.asarray(similarities, dtype=np.float64) + np.asarray(boosts, dtype=np.float64)
    return np.minimum(combined, MAX_SCORE)


def top_indices(scores: np.ndarray, limit: int) -> np.ndarray:
    """
    Indices of the `limit` best scores, best first, ties in corpus order.

    A limit at or above the corpus size returns every index.
    """
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    order = np.argsort(-scores, kind="stable")
    return order[:limit]


def rank(
    records: Sequence[CaseRecord],
    similarities: np.ndarray,
    boosts: Sequence[float],
    limit: int,
) -> list[RankedResult]:
    """Build the top-`limit` results for one query."""
    scores = combine_scores(similarities, boosts)
    return [
        RankedResult(record=records[i], similarity=float(scores[i]))
        for i in top_indices(scores, limit)
    ]
