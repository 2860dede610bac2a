"""
Embeddings module - query text to corpus-space vectors.

1. Protocol (EmbeddingProvider, in core.protocols) defines the interface
2. Production implementation (SentenceTransformerEmbeddings)
3. Test double (MockEmbeddings)
4. Factory function (get_embedding_provider)
5. PCAModel / project() and the async EmbeddingPipeline on top
"""

from pathology_search.embeddings.projection import PCAModel, project
from pathology_search.embeddings.providers import (
    SentenceTransformerEmbeddings,
    MockEmbeddings,
    get_embedding_provider,
)
from pathology_search.embeddings.pipeline import EmbeddingPipeline

__all__ = [
    "PCAModel",
    "project",
    "SentenceTransformerEmbeddings",
    "MockEmbeddings",
    "get_embedding_provider",
    "EmbeddingPipeline",
]
