"""
Embedding pipeline - query text to corpus-space vector.

text -> provider.embed (native dim, unit norm) -> PCA projection (corpus dim)

Model calls run in a worker thread so the event loop keeps serving other
messages while a query is being embedded.
"""

from __future__ import annotations

import asyncio
import logging

import numpy as np

from pathology_search.core.errors import ConfigurationError, EmbeddingError
from pathology_search.core.protocols import EmbeddingProvider
from pathology_search.embeddings.projection import PCAModel, project

logger = logging.getLogger(__name__)


class EmbeddingPipeline:
    """Embeds and projects queries. Shared read-only after load."""

    def __init__(self, provider: EmbeddingProvider):
        self._provider = provider
        self._projection: PCAModel | None = None

    @property
    def provider(self) -> EmbeddingProvider:
        return self._provider

    @property
    def projection(self) -> PCAModel | None:
        return self._projection

    def set_projection(self, model: PCAModel) -> None:
        self._projection = model

    async def load_model(self) -> None:
        """Load the embedding model weights off the event loop."""
        await asyncio.to_thread(self._provider.load)

    async def embed(self, text: str) -> np.ndarray:
        """Native-dimension embedding of `text`."""
        try:
            vector = await asyncio.to_thread(self._provider.embed, text)
        except Exception as e:
            raise EmbeddingError(f"Embedding failed: {e}") from e
        return np.asarray(vector, dtype=np.float32)

    async def embed_query(self, text: str) -> np.ndarray:
        """
        Embed `text` and project it into corpus space.

        Returns:
            float32 vector of length n_components

        Raises:
            ConfigurationError: no PCA model has been set
            EmbeddingError: the provider failed
        """
        if self._projection is None:
            raise ConfigurationError("PCA model not loaded")
        full_vector = await self.embed(text)
        return project(full_vector, self._projection).astype(np.float32)
