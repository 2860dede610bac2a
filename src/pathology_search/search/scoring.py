"""
Similarity scorer - one query vector against every corpus vector.

similarity[i] = dot(query, row_i) / max_guard(|row_i|)

Only the corpus row's magnitude is divided out; the query keeps the
magnitude it has after PCA projection, and the keyword boost weights are
calibrated against that scale. A zero-magnitude row is divided by 1.0.

Everything is float32, matching the width the corpus vectors are stored at.
"""

from __future__ import annotations

import numpy as np

ZERO_NORM_GUARD = np.float32(1.0)


def row_norms(vector_matrix: np.ndarray, dim: int) -> np.ndarray:
    """Euclidean norm of each row of a flat row-major buffer."""
    matrix = vector_matrix.reshape(-1, dim) if dim else vector_matrix.reshape(0, 0)
    return np.sqrt(np.einsum("ij,ij->i", matrix, matrix))


def score_corpus(
    query: np.ndarray,
    vector_matrix: np.ndarray,
    dim: int,
    norms: np.ndarray | None = None,
) -> np.ndarray:
    """
    Asymmetric cosine similarity for every row.

    Args:
        query: Projected query vector, length dim
        vector_matrix: Flat float32 buffer of num_records * dim values
        dim: Vector length
        norms: Precomputed row norms (computed here if omitted)

    Returns:
        float32 array with one similarity per row, in corpus order
    """
    if dim == 0 or vector_matrix.size == 0:
        return np.zeros(0, dtype=np.float32)

    query = np.asarray(query, dtype=np.float32)
    if query.shape != (dim,):
        raise ValueError(f"Query vector has shape {query.shape}, expected ({dim},)")

    matrix = vector_matrix.reshape(-1, dim)
    if norms is None:
        norms = row_norms(vector_matrix, dim)

    dots = matrix @ query
    safe_norms = np.where(norms == 0, ZERO_NORM_GUARD, norms)
    return (dots / safe_norms).astype(np.float32, copy=False)

