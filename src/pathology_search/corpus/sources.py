"""
Corpus and PCA artifact sources.

Pattern: Protocol (core.protocols) -> File impl -> Test double -> Factory

Production reads two static JSON files:
- the corpus: a list of {id, text, diagnosis, organ, system, site,
  vector, metadata} objects
- the PCA artifact: {mean, components, n_components}

The in-memory doubles parse the same JSON-shaped dicts on every call and
count their loads, so tests can assert how often the engine loaded.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

from pathology_search.config import SearchConfig, get_config
from pathology_search.core.errors import ConfigurationError, CorpusLoadError
from pathology_search.corpus.record import CaseRecord
from pathology_search.embeddings.projection import PCAModel

logger = logging.getLogger(__name__)


def parse_records(data: Any) -> list[CaseRecord]:
    """Parse a decoded corpus document into records."""
    if not isinstance(data, list):
        raise CorpusLoadError(
            f"Corpus must be a JSON array of records, got {type(data).__name__}"
        )
    try:
        return [CaseRecord.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        raise CorpusLoadError(f"Malformed corpus record: {e}") from e


# ---------------------------------------------------------------------------
# FILE SOURCES (Production)
# ---------------------------------------------------------------------------


class JsonCorpusSource:
    """Reads the corpus from a JSON file."""

    def __init__(self, path: Path | str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load_records(self) -> list[CaseRecord]:
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise CorpusLoadError(f"Cannot read corpus file {self._path}: {e}") from e
        except json.JSONDecodeError as e:
            raise CorpusLoadError(f"Corpus file {self._path} is not valid JSON: {e}") from e

        records = parse_records(data)
        logger.info(f"Loaded {len(records)} corpus records from {self._path}")
        return records


class JsonProjectionSource:
    """Reads the PCA artifact from a JSON file."""

    def __init__(self, path: Path | str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load_projection(self) -> PCAModel:
        if not self._path.exists():
            raise ConfigurationError(f"PCA model not found at {self._path}")
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise CorpusLoadError(f"Cannot read PCA file {self._path}: {e}") from e
        except json.JSONDecodeError as e:
            raise CorpusLoadError(f"PCA file {self._path} is not valid JSON: {e}") from e

        model = PCAModel.from_dict(data)
        logger.info(f"Loaded PCA model with {model.n_components} components")
        return model


# ---------------------------------------------------------------------------
# IN-MEMORY SOURCES (Testing/Development)
# ---------------------------------------------------------------------------


class InMemoryCorpusSource:
    """
    Corpus source backed by a list of JSON-shaped dicts.

    Set `error` to make the next loads fail with that exception.
    """

    def __init__(self, raw_records: Sequence[Mapping[str, Any]]):
        self._raw = list(raw_records)
        self.load_count = 0
        self.error: Exception | None = None

    def load_records(self) -> list[CaseRecord]:
        self.load_count += 1
        if self.error is not None:
            raise self.error
        return parse_records(self._raw)


class InMemoryProjectionSource:
    """PCA source backed by a JSON-shaped dict, or None for "absent"."""

    def __init__(self, raw_model: Mapping[str, Any] | None):
        self._raw = raw_model
        self.load_count = 0
        self.error: Exception | None = None

    def load_projection(self) -> PCAModel:
        self.load_count += 1
        if self.error is not None:
            raise self.error
        if self._raw is None:
            raise ConfigurationError("PCA model not configured")
        return PCAModel.from_dict(self._raw)


# ---------------------------------------------------------------------------
# FACTORY FUNCTIONS
# ---------------------------------------------------------------------------


def get_corpus_source(config: SearchConfig | None = None) -> JsonCorpusSource:
    """Corpus source for the configured file."""
    config = config or get_config()
    return JsonCorpusSource(config.corpus_path)


def get_projection_source(config: SearchConfig | None = None) -> JsonProjectionSource:
    """PCA source for the configured file."""
    config = config or get_config()
    return JsonProjectionSource(config.pca_path)
