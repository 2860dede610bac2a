"""
Shared fixtures for the search tests.

The test corpus lives in a tiny space: the "embedding model" produces
4-dimensional vectors and the PCA model keeps the first three coordinates,
so expected similarities can be worked out by hand.
"""

import time

import numpy as np
import pytest

from pathology_search.corpus.sources import InMemoryCorpusSource, InMemoryProjectionSource
from pathology_search.search.engine import SearchEngine

NATIVE_DIM = 4
CORPUS_DIM = 3


def make_record(record_id, vector, diagnosis="", organ="", system="", site="", metadata=None, text=None):
    """One corpus JSON object."""
    return {
        "id": record_id,
        "text": text if text is not None else f"Case {record_id}",
        "diagnosis": diagnosis,
        "organ": organ,
        "system": system,
        "site": site,
        "vector": list(vector),
        "metadata": metadata if metadata is not None else {},
    }


def keep_first_three_pca(n_components=CORPUS_DIM, native_dim=NATIVE_DIM):
    """PCA artifact with zero mean whose components pick coordinates 0..n-1."""
    components = [[1.0 if j == i else 0.0 for j in range(native_dim)] for i in range(n_components)]
    return {"mean": [0.0] * native_dim, "components": components, "n_components": n_components}


class FakeEmbeddings:
    """
    Embedding provider test double.

    Returns the vector registered for a text (or `default`), counts loads
    and calls, and can be told to sleep or fail.
    """

    def __init__(self, vectors=None, default=(0.0, 0.0, 0.0, 1.0)):
        self._vectors = {k: np.asarray(v, dtype=np.float32) for k, v in (vectors or {}).items()}
        self._default = np.asarray(default, dtype=np.float32)
        self.load_count = 0
        self.embed_calls = []
        self.delays = {}
        self.embed_error = None
        self.load_error = None

    @property
    def dimensions(self):
        return NATIVE_DIM

    def load(self):
        self.load_count += 1
        if self.load_error is not None:
            raise self.load_error

    def embed(self, text):
        self.embed_calls.append(text)
        if text in self.delays:
            time.sleep(self.delays[text])
        if self.embed_error is not None:
            raise self.embed_error
        return self._vectors.get(text, self._default)

    def embed_batch(self, texts):
        return [self.embed(t) for t in texts]


# ---------------------------------------------------------------------------
# FIXTURES
# ---------------------------------------------------------------------------


@pytest.fixture
def scenario_records():
    """
    Three-record corpus for the query "serous carcinoma".

    A: lexical match through metadata.extracted_diagnosis, orthogonal vector
    B: no lexical or semantic match
    C: no metadata, vector identical to the projected query
    """
    return [
        make_record(1, [0.0, 1.0, 0.0], metadata={"extracted_diagnosis": "Serous carcinoma"}),
        make_record(2, [0.0, 0.0, 1.0], diagnosis="lymph node benign"),
        make_record(3, [1.0, 0.0, 0.0]),
    ]


@pytest.fixture
def embeddings():
    return FakeEmbeddings(
        vectors={
            "serous carcinoma": [1.0, 0.0, 0.0, 0.0],
            "lymph": [0.0, 0.0, 1.0, 0.0],
        }
    )


@pytest.fixture
def corpus_source(scenario_records):
    return InMemoryCorpusSource(scenario_records)


@pytest.fixture
def projection_source():
    return InMemoryProjectionSource(keep_first_three_pca())


@pytest.fixture
def engine(corpus_source, projection_source, embeddings):
    return SearchEngine(corpus_source, projection_source, embeddings)


@pytest.fixture
def make_engine(scenario_records, embeddings):
    """Build independent engines over the same corpus and model."""

    def _make(records=None, pca=None, provider=None):
        return SearchEngine(
            InMemoryCorpusSource(records if records is not None else scenario_records),
            InMemoryProjectionSource(pca if pca is not None else keep_first_three_pca()),
            provider if provider is not None else embeddings,
        )

    return _make
