"""
Case record model for the pathology corpus.

Single responsibility: define the shape of one case and the metadata
accessors presentation code relies on.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Union

import numpy as np

# Metadata values are restricted to a closed set of scalar variants.
MetadataValue = Union[str, int, float, bool, None]

# Values that count as "no value" for display fallbacks.
ABSENT_PLACEHOLDERS = ("", "-")

AI_SUFFIX = "_ai"


def _to_metadata_value(value: Any) -> MetadataValue:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    # Nested structures are flattened to their JSON text
    return json.dumps(value, sort_keys=True)


def is_absent(value: MetadataValue) -> bool:
    """True for None and the placeholder strings "" and "-"."""
    return value is None or (isinstance(value, str) and value in ABSENT_PLACEHOLDERS)


def get_with_fallback(metadata: Mapping[str, MetadataValue], key: str) -> str:
    """
    Return metadata[key], else metadata[key + "_ai"], else "".

    The "_ai" counterpart holds machine-extracted values that are only shown
    when the curated value is missing.
    """
    primary = metadata.get(key)
    if not is_absent(primary):
        return str(primary)
    fallback = metadata.get(f"{key}{AI_SUFFIX}")
    if not is_absent(fallback):
        return str(fallback)
    return ""


@dataclass(frozen=True, eq=False)
class CaseRecord:
    """
    One pathology case with its precomputed corpus-space vector.

    Records are created once at load time and never mutated; search results
    are built as separate projections of them.
    """

    id: int
    text: str
    diagnosis: str
    organ: str
    system: str
    site: str
    vector: np.ndarray = field(repr=False)
    metadata: dict[str, MetadataValue] = field(default_factory=dict)

    @property
    def dim(self) -> int:
        return int(self.vector.shape[0])

    def display_field(self, key: str) -> str:
        """Metadata value with "_ai" fallback, for presentation only."""
        return get_with_fallback(self.metadata, key)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CaseRecord":
        """Build a record from one corpus JSON object.

        Raises KeyError/TypeError/ValueError on malformed input; the corpus
        source converts those into CorpusLoadError.
        """
        vector = np.asarray(raw["vector"], dtype=np.float32)
        if vector.ndim != 1:
            raise ValueError(f"Record {raw.get('id')!r}: vector must be one-dimensional")
        vector.setflags(write=False)

        metadata_raw = raw.get("metadata") or {}
        if not isinstance(metadata_raw, Mapping):
            raise TypeError(f"Record {raw.get('id')!r}: metadata must be an object")

        return cls(
            id=int(raw["id"]),
            text=str(raw.get("text") or ""),
            diagnosis=str(raw.get("diagnosis") or ""),
            organ=str(raw.get("organ") or ""),
            system=str(raw.get("system") or ""),
            site=str(raw.get("site") or ""),
            vector=vector,
            metadata={str(k): _to_metadata_value(v) for k, v in metadata_raw.items()},
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization (vector omitted)."""
        return {
            "id": self.id,
            "text": self.text,
            "diagnosis": self.diagnosis,
            "organ": self.organ,
            "system": self.system,
            "site": self.site,
            "metadata": dict(self.metadata),
        }
