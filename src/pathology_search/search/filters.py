"""
Result post-filtering and facet frequencies.

Callers that fetch a large limit narrow the ranked list locally instead of
searching again. Filtering happens in two levels:

1. source and system
2. lineage and organ, whose facet counts are computed after level 1

An empty selection means "no filter" for that field. Ranking order is kept.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence, Union

from pathology_search.search.ranking import RankedResult

# Ranked results, or their dict form as returned by the hosts
ResultLike = Union[RankedResult, Mapping[str, Any]]

KNOWN_SOURCES = (
    "Path Presenter",
    "Leeds",
    "Toronto",
    "RCPA",
    "Recut Club",
)


def _metadata_of(result: ResultLike) -> Mapping[str, Any]:
    if isinstance(result, RankedResult):
        return result.metadata
    return result.get("metadata") or {}


def _metadata_text(result: ResultLike, key: str) -> str:
    value = _metadata_of(result).get(key)
    return "" if value is None else str(value)


def _keep(results: Iterable[ResultLike], key: str, selected: frozenset[str]) -> list[ResultLike]:
    if not selected:
        return list(results)
    return [r for r in results if _metadata_text(r, key) in selected]


@dataclass(frozen=True)
class ResultFilter:
    """Selected facet values. Empty sets do not filter."""

    sources: frozenset[str] = field(default_factory=frozenset)
    systems: frozenset[str] = field(default_factory=frozenset)
    lineages: frozenset[str] = field(default_factory=frozenset)
    organs: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(
        cls,
        sources: Iterable[str] = (),
        systems: Iterable[str] = (),
        lineages: Iterable[str] = (),
        organs: Iterable[str] = (),
    ) -> "ResultFilter":
        return cls(frozenset(sources), frozenset(systems), frozenset(lineages), frozenset(organs))

    @property
    def active(self) -> bool:
        return bool(self.sources or self.systems or self.lineages or self.organs)

    def apply_first_level(self, results: Sequence[ResultLike]) -> list[ResultLike]:
        """Filter by source, then system."""
        return _keep(_keep(results, "source", self.sources), "system", self.systems)

    def apply(self, results: Sequence[ResultLike]) -> list[ResultLike]:
        """Filter by all four fields."""
        narrowed = self.apply_first_level(results)
        narrowed = _keep(narrowed, "lineage", self.lineages)
        return _keep(narrowed, "organ", self.organs)


def facet_frequencies(results: Iterable[ResultLike], key: str) -> list[str]:
    """
    Distinct non-blank metadata values for `key`, most frequent first.

    Equal counts keep first-seen order.
    """
    counts: Counter[str] = Counter()
    for result in results:
        value = _metadata_of(result).get(key)
        if isinstance(value, str) and value.strip():
            counts[value] += 1
    # Counter.most_common is stable for equal counts (insertion order)
    return [value for value, _ in counts.most_common()]
