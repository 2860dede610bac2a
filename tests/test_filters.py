"""
Unit Tests for Result Filters and Facets
"""

from pathology_search.corpus.record import CaseRecord
from pathology_search.search.filters import ResultFilter, facet_frequencies
from pathology_search.search.ranking import RankedResult

from conftest import make_record


def _results():
    specs = [
        (1, {"source": "Leeds", "system": "Gynaecological", "lineage": "Epithelial", "organ": "Ovary"}),
        (2, {"source": "Toronto", "system": "Gynaecological", "lineage": "Germ cell", "organ": "Ovary"}),
        (3, {"source": "Leeds", "system": "Haematological", "lineage": "Lymphoid", "organ": "Lymph node"}),
        (4, {"source": "RCPA", "system": "Gynaecological", "lineage": "Epithelial", "organ": "Uterus"}),
        (5, {}),
    ]
    return [
        RankedResult(record=CaseRecord.from_dict(make_record(i, [1.0], metadata=m)), similarity=1.0 - i / 10)
        for i, m in specs
    ]


# ---------------------------------------------------------------------------
# FILTERS
# ---------------------------------------------------------------------------


class TestResultFilter:
    """Test two-level filtering."""

    def test_empty_filter_keeps_everything(self):
        results = _results()

        assert ResultFilter().apply(results) == results

    def test_active(self):
        assert not ResultFilter().active
        assert not ResultFilter.of(sources=[]).active
        assert ResultFilter.of(organs=["Ovary"]).active

    def test_source_filter(self):
        kept = ResultFilter.of(sources=["Leeds"]).apply(_results())

        assert [r.id for r in kept] == [1, 3]

    def test_multiple_values_are_or_within_a_field(self):
        kept = ResultFilter.of(sources=["Leeds", "RCPA"]).apply(_results())

        assert [r.id for r in kept] == [1, 3, 4]

    def test_fields_combine_with_and(self):
        kept = ResultFilter.of(systems=["Gynaecological"], lineages=["Epithelial"], organs=["Ovary"]).apply(_results())

        assert [r.id for r in kept] == [1]

    def test_first_level_ignores_lineage_and_organ(self):
        kept = ResultFilter.of(sources=["Leeds"], organs=["Ovary"]).apply_first_level(_results())

        assert [r.id for r in kept] == [1, 3]

    def test_ranking_order_is_kept(self):
        kept = ResultFilter.of(systems=["Gynaecological"]).apply(_results())

        assert [r.id for r in kept] == [1, 2, 4]

    def test_dict_results(self):
        dicts = [r.to_dict() for r in _results()]

        kept = ResultFilter.of(organs=["Ovary"]).apply(dicts)

        assert [r["id"] for r in kept] == [1, 2]


# ---------------------------------------------------------------------------
# FACETS
# ---------------------------------------------------------------------------


class TestFacetFrequencies:
    def test_most_frequent_first(self):
        assert facet_frequencies(_results(), "system") == ["Gynaecological", "Haematological"]

    def test_ties_keep_first_seen_order(self):
        assert facet_frequencies(_results(), "source") == ["Leeds", "Toronto", "RCPA"]

    def test_blank_and_missing_values_skipped(self):
        results = [
            RankedResult(record=CaseRecord.from_dict(make_record(1, [1.0], metadata={"organ": "  "})), similarity=0.5),
            RankedResult(record=CaseRecord.from_dict(make_record(2, [1.0])), similarity=0.4),
        ]

        assert facet_frequencies(results, "organ") == []

    def test_after_first_level_filter(self):
        narrowed = ResultFilter.of(sources=["Leeds"]).apply_first_level(_results())

        assert facet_frequencies(narrowed, "lineage") == ["Epithelial", "Lymphoid"]
