"""
Core protocols defining the collaborators of the search engine.

The engine never opens files or loads models itself. It is handed a corpus
source, a projection source and an embedding provider, which makes every
host (worker, request handler, CLI) and every test build the same engine
from different parts.

PATTERN:
- Protocol defines the contract
- Production implementation (JSON files, sentence-transformers)
- Test double (in-memory sources, MockEmbeddings)
- Factory function picks one from configuration
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from pathology_search.corpus.record import CaseRecord
    from pathology_search.embeddings.projection import PCAModel


# ---------------------------------------------------------------------------
# EMBEDDING PROVIDER PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Contract for sentence embedding.

    Implementations:
    - SentenceTransformerEmbeddings (production)
    - MockEmbeddings (testing)

    embed() must return a unit-norm vector of length `dimensions`.
    """

    @property
    def dimensions(self) -> int:
        """Native output dimension of the model."""
        ...

    def load(self) -> None:
        """Load model weights. Called once before the first embed()."""
        ...

    def embed(self, text: str) -> np.ndarray:
        """Generate embedding for a single text."""
        ...

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for multiple texts."""
        ...


# ---------------------------------------------------------------------------
# DATA SOURCE PROTOCOLS
# ---------------------------------------------------------------------------


@runtime_checkable
class CorpusSource(Protocol):
    """
    Contract for the static corpus file.

    Implementations:
    - JsonCorpusSource (production)
    - InMemoryCorpusSource (testing)
    """

    def load_records(self) -> list[CaseRecord]:
        """Parse and return every case record in declaration order."""
        ...


@runtime_checkable
class ProjectionSource(Protocol):
    """
    Contract for the PCA artifact.

    Implementations:
    - JsonProjectionSource (production)
    - InMemoryProjectionSource (testing)
    """

    def load_projection(self) -> PCAModel:
        """Parse and return the PCA model. Raises ConfigurationError if absent."""
        ...
