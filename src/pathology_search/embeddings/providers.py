"""
Embedding providers - Single Responsibility: turn text into a unit vector.

The corpus vectors were produced offline with all-MiniLM-L6-v2 using mean
pooling and L2 normalisation, then reduced with PCA. Query embeddings must
come from the same model with the same settings or the projected vectors
are not comparable.
"""

from __future__ import annotations

import hashlib
import logging
import threading

import numpy as np

from pathology_search.config import SearchConfig, get_config
from pathology_search.core.protocols import EmbeddingProvider

logger = logging.getLogger(__name__)

MINILM_DIMENSIONS = 384


class SentenceTransformerEmbeddings:
    """
    sentence-transformers embedding provider.

    The model is loaded on load() (or lazily on first embed) and kept for
    the life of the provider. Loading is guarded so two threads never
    download the weights twice.
    """

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        device: str | None = None,
    ):
        self.model_name = model_name
        self._device = device
        self._model = None
        self._lock = threading.Lock()

    @property
    def dimensions(self) -> int:
        if self._model is not None:
            return int(self._model.get_sentence_embedding_dimension())
        return MINILM_DIMENSIONS

    @property
    def loaded(self) -> bool:
        return self._model is not None

    def load(self) -> None:
        """Load model weights (downloaded and cached by HuggingFace on first use)."""
        with self._lock:
            if self._model is not None:
                return
            from sentence_transformers import SentenceTransformer

            self._model = SentenceTransformer(self.model_name, device=self._device)
            logger.info(f"Initialized embedding model {self.model_name}")

    def embed(self, text: str) -> np.ndarray:
        """Mean-pooled, L2-normalised embedding for a single text."""
        if self._model is None:
            self.load()
        vector = self._model.encode(
            text,
            convert_to_numpy=True,
            normalize_embeddings=True,
        )
        return np.asarray(vector, dtype=np.float32)

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Embed several texts in one model call."""
        if not texts:
            return []
        if self._model is None:
            self.load()
        vectors = self._model.encode(
            texts,
            convert_to_numpy=True,
            normalize_embeddings=True,
        )
        return [np.asarray(v, dtype=np.float32) for v in vectors]


class MockEmbeddings:
    """
    Mock embedding provider for testing without model downloads.

    Generates deterministic unit vectors seeded from a text hash.
    NOT for production use - only for testing/development.
    """

    def __init__(self, dimensions: int = MINILM_DIMENSIONS):
        self._dimensions = dimensions
        self.load_count = 0

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def load(self) -> None:
        self.load_count += 1

    def embed(self, text: str) -> np.ndarray:
        """Generate deterministic pseudo-embedding from text hash."""
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
        vector = np.random.default_rng(seed).standard_normal(self._dimensions)
        return (vector / np.linalg.norm(vector)).astype(np.float32)

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        return [self.embed(text) for text in texts]


def get_embedding_provider(
    use_mock: bool | None = None,
    config: SearchConfig | None = None,
) -> EmbeddingProvider:
    """
    Factory function to get the appropriate embedding provider.

    Args:
        use_mock: If True, return MockEmbeddings. Defaults to the
            USE_MOCK_EMBEDDINGS setting.
        config: Search configuration (uses env if not provided)
    """
    config = config or get_config()
    if use_mock is None:
        use_mock = config.use_mock_embeddings
    if use_mock:
        return MockEmbeddings()
    return SentenceTransformerEmbeddings(model_name=config.embedding_model)
