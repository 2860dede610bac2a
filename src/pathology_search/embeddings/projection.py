"""
PCA projection from the embedding model's native space to corpus space.

The PCA artifact is trained offline. At query time it is a fixed linear map:
subtract the mean, then take the dot product with each component row. The
result is NOT renormalised; the scorer relies on the projected magnitude.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

from pathology_search.core.errors import ConfigurationError


@dataclass(frozen=True, eq=False)
class PCAModel:
    """Mean vector plus an (n_components, native_dim) component matrix."""

    mean: np.ndarray
    components: np.ndarray
    n_components: int

    @property
    def native_dim(self) -> int:
        return int(self.mean.shape[0])

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "PCAModel":
        """
        Build and validate a model from the artifact JSON object.

        Raises:
            ConfigurationError: keys missing, ragged rows, or a row whose
                length differs from the mean, or n_components that does not
                match the number of rows.
        """
        try:
            mean = np.asarray(raw["mean"], dtype=np.float64)
            rows = raw["components"]
            n_components = int(raw["n_components"])
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid PCA artifact: {e}") from e

        if mean.ndim != 1 or mean.shape[0] == 0:
            raise ConfigurationError("Invalid PCA artifact: mean must be a non-empty vector")
        if not isinstance(rows, list) or not all(isinstance(row, list) for row in rows):
            raise ConfigurationError("Invalid PCA artifact: components must be a list of rows")

        for i, row in enumerate(rows):
            if len(row) != mean.shape[0]:
                raise ConfigurationError(
                    f"Invalid PCA artifact: component {i} has {len(row)} values, "
                    f"mean has {mean.shape[0]}"
                )
        if len(rows) != n_components:
            raise ConfigurationError(
                f"Invalid PCA artifact: n_components={n_components} "
                f"but {len(rows)} component rows"
            )

        components = np.asarray(rows, dtype=np.float64).reshape(n_components, mean.shape[0])
        mean.setflags(write=False)
        components.setflags(write=False)
        return cls(mean=mean, components=components, n_components=n_components)


def project(full_vector: np.ndarray, model: PCAModel) -> np.ndarray:
    """
    Center the embedding on the PCA mean and project onto each component.

    Args:
        full_vector: Native-dimension embedding (unit norm from the model)
        model: Loaded PCA model

    Returns:
        float64 vector of length n_components, not normalised
    """
    full_vector = np.asarray(full_vector, dtype=np.float64)
    if full_vector.shape != model.mean.shape:
        raise ConfigurationError(
            f"Embedding has {full_vector.shape[0]} dimensions, "
            f"PCA model expects {model.native_dim}"
        )
    centered = full_vector - model.mean
    return model.components @ centered
