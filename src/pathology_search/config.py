"""
Search configuration.

Loads file locations, model name and host defaults from environment
variables. The CLI loads a .env file before the first get_config() call.
"""

import os
from dataclasses import dataclass

DEFAULT_CORPUS_PATH = "data/pathology_vectordb_compressed.json"
DEFAULT_PCA_PATH = "data/pca_model.json"
DEFAULT_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L6-v2"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


@dataclass
class SearchConfig:
    """Configuration for the search core.

    Environment Variables:
        PATHOLOGY_CORPUS_PATH: Corpus JSON file (records with vectors)
        PATHOLOGY_PCA_PATH: PCA artifact JSON file
        PATHOLOGY_EMBEDDING_MODEL: sentence-transformers model name
        PATHOLOGY_DEFAULT_LIMIT: Result limit when callers give none (default: 10)
        PATHOLOGY_SEARCH_TIMEOUT: Worker client reply timeout in seconds (default: 30)
        USE_MOCK_EMBEDDINGS: Use hash-based embeddings, no model download (default: false)
    """

    corpus_path: str = DEFAULT_CORPUS_PATH
    pca_path: str = DEFAULT_PCA_PATH
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    default_limit: int = 10
    search_timeout_s: float = 30.0
    use_mock_embeddings: bool = False

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Load config from environment variables."""
        return cls(
            corpus_path=os.environ.get("PATHOLOGY_CORPUS_PATH", DEFAULT_CORPUS_PATH),
            pca_path=os.environ.get("PATHOLOGY_PCA_PATH", DEFAULT_PCA_PATH),
            embedding_model=os.environ.get("PATHOLOGY_EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
            default_limit=int(os.environ.get("PATHOLOGY_DEFAULT_LIMIT", "10")),
            search_timeout_s=float(os.environ.get("PATHOLOGY_SEARCH_TIMEOUT", "30")),
            use_mock_embeddings=_env_bool("USE_MOCK_EMBEDDINGS"),
        )


# Global config singleton
_config: SearchConfig | None = None


def get_config() -> SearchConfig:
    """Get the global search config (lazy-loaded from env)."""
    global _config
    if _config is None:
        _config = SearchConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset config (useful for testing)."""
    global _config
    _config = None
