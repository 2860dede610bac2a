"""
Corpus store - the loaded records and their vectors in one flat buffer.

All record vectors are copied, in declaration order, into a single
contiguous float32 buffer of num_records * dim values. Record i occupies
[i * dim, i * dim + dim). The scorer scans this buffer instead of touching
individual records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from pathology_search.core.errors import CorpusLoadError
from pathology_search.corpus.record import CaseRecord


@dataclass(frozen=True, eq=False)
class CorpusStore:
    """Read-only corpus snapshot shared by every search in a process."""

    records: tuple[CaseRecord, ...]
    vector_matrix: np.ndarray  # flat, shape (num_records * dim,)
    row_norms: np.ndarray  # shape (num_records,)
    dim: int

    @property
    def num_records(self) -> int:
        return len(self.records)

    @property
    def matrix(self) -> np.ndarray:
        """Row-major (num_records, dim) view over the flat buffer."""
        return self.vector_matrix.reshape(self.num_records, self.dim)

    def row(self, index: int) -> np.ndarray:
        start = index * self.dim
        return self.vector_matrix[start:start + self.dim]

    @classmethod
    def empty(cls) -> "CorpusStore":
        return cls(
            records=(),
            vector_matrix=np.zeros(0, dtype=np.float32),
            row_norms=np.zeros(0, dtype=np.float32),
            dim=0,
        )

    @classmethod
    def from_records(cls, records: Sequence[CaseRecord]) -> "CorpusStore":
        """
        Build the flat buffer from records.

        The first record fixes dim; every other record must match it.
        An empty sequence gives an empty store, never an error.
        """
        if not records:
            return cls.empty()

        dim = records[0].dim
        buffer = np.empty(len(records) * dim, dtype=np.float32)
        for i, record in enumerate(records):
            if record.dim != dim:
                raise CorpusLoadError(
                    f"Record {record.id} has {record.dim} dimensions, expected {dim}"
                )
            buffer[i * dim:(i + 1) * dim] = record.vector

        matrix = buffer.reshape(len(records), dim)
        row_norms = np.sqrt(np.einsum("ij,ij->i", matrix, matrix))

        buffer.setflags(write=False)
        row_norms.setflags(write=False)

        return cls(
            records=tuple(records),
            vector_matrix=buffer,
            row_norms=row_norms,
            dim=dim,
        )
