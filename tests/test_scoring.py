"""
Unit Tests for Similarity Scoring and Ranking

Tests the asymmetric cosine scan, score combination with the 1.0 clamp,
and the stable top-k ranker.
"""

import numpy as np
import pytest

from pathology_search.corpus.record import CaseRecord
from pathology_search.corpus.store import CorpusStore
from pathology_search.search.ranking import RankedResult, combine_scores, rank, top_indices
from pathology_search.search.scoring import row_norms, score_corpus

from conftest import make_record


def _store(*vectors):
    records = [CaseRecord.from_dict(make_record(i + 1, v)) for i, v in enumerate(vectors)]
    return CorpusStore.from_records(records)


# ---------------------------------------------------------------------------
# SCORING
# ---------------------------------------------------------------------------


class TestScoreCorpus:
    """Test the per-row similarity scan."""

    def test_identical_unit_vectors_score_one(self):
        store = _store([1.0, 0.0, 0.0])

        scores = score_corpus(np.array([1.0, 0.0, 0.0]), store.vector_matrix, store.dim)

        assert scores[0] == pytest.approx(1.0)

    def test_query_magnitude_is_not_divided_out(self):
        store = _store([1.0, 0.0, 0.0])

        scores = score_corpus(np.array([2.0, 0.0, 0.0]), store.vector_matrix, store.dim)

        assert scores[0] == pytest.approx(2.0)

    def test_row_magnitude_is_divided_out(self):
        store = _store([5.0, 0.0, 0.0])

        scores = score_corpus(np.array([1.0, 0.0, 0.0]), store.vector_matrix, store.dim)

        assert scores[0] == pytest.approx(1.0)

    def test_negative_similarity_is_kept(self):
        store = _store([-1.0, 0.0, 0.0])

        scores = score_corpus(np.array([1.0, 0.0, 0.0]), store.vector_matrix, store.dim)

        assert scores[0] == pytest.approx(-1.0)

    def test_zero_row_scores_zero_without_nan(self):
        store = _store([0.0, 0.0, 0.0], [0.0, 1.0, 0.0])

        scores = score_corpus(np.array([0.3, 0.7, 0.1]), store.vector_matrix, store.dim)

        assert not np.isnan(scores).any()
        assert scores[0] == 0.0
        assert scores[1] == pytest.approx(0.7)

    def test_scores_are_float32_in_corpus_order(self):
        store = _store([0.0, 1.0], [1.0, 0.0], [1.0, 1.0])

        scores = score_corpus(np.array([1.0, 0.0]), store.vector_matrix, store.dim)

        assert scores.dtype == np.float32
        np.testing.assert_allclose(scores, [0.0, 1.0, 1.0 / np.sqrt(2.0)], rtol=1e-6)

    def test_precomputed_norms_give_same_result(self):
        store = _store([3.0, 4.0], [1.0, 2.0])
        query = np.array([0.6, 0.8])

        np.testing.assert_array_equal(
            score_corpus(query, store.vector_matrix, store.dim, norms=store.row_norms),
            score_corpus(query, store.vector_matrix, store.dim),
        )

    def test_empty_corpus(self):
        scores = score_corpus(np.array([1.0]), np.zeros(0, dtype=np.float32), 0)

        assert scores.shape == (0,)

    def test_query_dimension_mismatch(self):
        store = _store([1.0, 0.0, 0.0])

        with pytest.raises(ValueError):
            score_corpus(np.array([1.0, 0.0]), store.vector_matrix, store.dim)


class TestRowNorms:
    def test_norms(self):
        buffer = np.array([3.0, 4.0, 0.0, 0.0], dtype=np.float32)

        np.testing.assert_allclose(row_norms(buffer, 2), [5.0, 0.0])


# ---------------------------------------------------------------------------
# RANKING
# ---------------------------------------------------------------------------


class TestCombineScores:
    """Test similarity + boost with the upper clamp."""

    def test_adds_boost(self):
        combined = combine_scores(np.array([0.5], dtype=np.float32), [0.2])

        assert combined[0] == pytest.approx(0.7)

    def test_clamped_to_one(self):
        combined = combine_scores(np.array([0.9], dtype=np.float32), [0.35])

        assert combined[0] == 1.0

    def test_no_lower_clamp(self):
        combined = combine_scores(np.array([-0.5], dtype=np.float32), [0.0])

        assert combined[0] == pytest.approx(-0.5)


class TestTopIndices:
    """Test ordering and truncation."""

    def test_ties_keep_corpus_order(self):
        scores = np.array([0.5, 0.9, 0.5, 0.5])

        assert list(top_indices(scores, 4)) == [1, 0, 2, 3]

    def test_limit_larger_than_corpus(self):
        assert list(top_indices(np.array([0.1, 0.2]), 100)) == [1, 0]

    def test_limit_zero(self):
        assert len(top_indices(np.array([0.1, 0.2]), 0)) == 0

    def test_negative_limit(self):
        with pytest.raises(ValueError):
            top_indices(np.array([0.1]), -1)


class TestRank:
    """Test building ranked results."""

    def test_equal_scores_returned_in_corpus_order(self):
        records = [
            CaseRecord.from_dict(make_record(30, [1.0])),
            CaseRecord.from_dict(make_record(10, [1.0])),
            CaseRecord.from_dict(make_record(20, [1.0])),
        ]

        results = rank(records, np.array([0.4, 0.4, 0.4], dtype=np.float32), [0.0, 0.0, 0.0], 3)

        assert [r.id for r in results] == [30, 10, 20]

    def test_limit_truncates(self):
        records = [CaseRecord.from_dict(make_record(i, [1.0])) for i in range(5)]
        sims = np.array([0.1, 0.5, 0.3, 0.9, 0.2], dtype=np.float32)

        results = rank(records, sims, [0.0] * 5, 2)

        assert [r.id for r in results] == [3, 1]
        assert results[0].similarity == pytest.approx(0.9)

    def test_similarity_is_plain_float(self):
        records = [CaseRecord.from_dict(make_record(1, [1.0]))]

        result = rank(records, np.array([0.25], dtype=np.float32), [0.1], 1)[0]

        assert type(result.similarity) is float


class TestRankedResult:
    """Test the response shape."""

    def test_to_dict_shape(self):
        record = CaseRecord.from_dict(
            make_record(4, [1.0], diagnosis="Seminoma", metadata={"source": "Leeds"})
        )

        body = RankedResult(record=record, similarity=0.5).to_dict()

        assert body == {
            "id": 4,
            "text": "Case 4",
            "diagnosis": "Seminoma",
            "organ": "",
            "system": "",
            "site": "",
            "similarity": 0.5,
            "metadata": {"source": "Leeds"},
        }

    def test_to_dict_does_not_share_metadata(self):
        record = CaseRecord.from_dict(make_record(4, [1.0], metadata={"source": "Leeds"}))

        body = RankedResult(record=record, similarity=0.5).to_dict()
        body["metadata"]["source"] = "changed"

        assert record.metadata["source"] == "Leeds"

    def test_display_field_uses_fallback(self):
        record = CaseRecord.from_dict(make_record(4, [1.0], metadata={"organ_ai": "Ovary"}))

        assert RankedResult(record=record, similarity=0.0).display_field("organ") == "Ovary"
