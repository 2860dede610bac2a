"""
Keyword booster - deterministic lexical boost on top of semantic similarity.

The query is lowercased and split on whitespace; tokens of two characters
or fewer are dropped. Each token found as a substring of a weighted field
adds that field's weight, once per matching token. The total is capped.

Field values are lowercased once per corpus (prepare_boost_fields) rather
than once per query.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from pathology_search.corpus.record import CaseRecord, MetadataValue

MIN_TOKEN_LENGTH = 3
MAX_BOOST = 0.35


@dataclass(frozen=True)
class BoostField:
    """One weighted field. source is "metadata" or "record"."""

    source: str
    name: str
    weight: float


# Checked in this order. Metadata fields first, top-level record fields as
# fallbacks for records with sparse metadata.
BOOST_FIELDS: tuple[BoostField, ...] = (
    BoostField("metadata", "extracted_diagnosis", 0.20),
    BoostField("metadata", "essential_diagnosis", 0.18),
    BoostField("metadata", "variant", 0.12),
    BoostField("metadata", "lineage", 0.10),
    BoostField("metadata", "organ", 0.08),
    BoostField("metadata", "microscopic", 0.06),
    BoostField("record", "diagnosis", 0.15),
    BoostField("record", "organ", 0.05),
    BoostField("record", "system", 0.05),
)

# Lowercased field texts for one record, aligned with BOOST_FIELDS.
# None means the field is missing or empty.
BoostFieldTexts = tuple[str | None, ...]


def tokenize_query(query: str) -> list[str]:
    """Lowercase, split on whitespace, drop tokens shorter than 3 characters."""
    return [word for word in query.lower().split() if len(word) >= MIN_TOKEN_LENGTH]


def _field_text(value: MetadataValue) -> str | None:
    if not value or (isinstance(value, float) and math.isnan(value)):
        return None
    if isinstance(value, bool):
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).lower()


def boost_field_texts(record: CaseRecord) -> BoostFieldTexts:
    """Lowercased values of every weighted field for one record."""
    texts = []
    for field in BOOST_FIELDS:
        if field.source == "metadata":
            value = record.metadata.get(field.name)
        else:
            value = getattr(record, field.name)
        texts.append(_field_text(value))
    return tuple(texts)


def prepare_boost_fields(records: Sequence[CaseRecord]) -> list[BoostFieldTexts]:
    return [boost_field_texts(record) for record in records]


def keyword_boost(field_texts: BoostFieldTexts, tokens: Sequence[str]) -> float:
    """
    Additive boost for one record.

    Every (field, token) substring match adds the field weight. Matches are
    summed in BOOST_FIELDS order, then the total is capped at MAX_BOOST.
    """
    boost = 0.0
    for field, text in zip(BOOST_FIELDS, field_texts):
        if text is None:
            continue
        for token in tokens:
            if token in text:
                boost += field.weight
    return min(boost, MAX_BOOST)


def boost_corpus(field_texts: Sequence[BoostFieldTexts], tokens: Sequence[str]) -> list[float]:
    """keyword_boost for every record, in corpus order."""
    if not tokens:
        return [0.0] * len(field_texts)
    return [keyword_boost(texts, tokens) for texts in field_texts]
