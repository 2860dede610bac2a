"""
Worker protocol messages.

Inbound (caller -> worker):
    {"type": "init"}
    {"type": "search", "query": str, "limit": int, "searchId": int}

Outbound (worker -> caller):
    {"type": "status", "message": str}
    {"type": "inited", "status": "ok" | "error", "numEntries"?: int, "error"?: str}
    {"type": "results", "searchId": int, "query": str, "results": [...],
     "error"?: str, "performance"?: {...}}

Messages travel as plain dicts; these dataclasses build and parse them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union


# ---------------------------------------------------------------------------
# INBOUND
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InitMessage:
    type: str = "init"

    def to_dict(self) -> dict:
        return {"type": self.type}


@dataclass(frozen=True)
class SearchMessage:
    query: str
    limit: int
    search_id: int
    type: str = "search"

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "query": self.query,
            "limit": self.limit,
            "searchId": self.search_id,
        }


InboundMessage = Union[InitMessage, SearchMessage]


def parse_message(raw: Mapping[str, Any], default_limit: int = 10) -> InboundMessage:
    """
    Parse an inbound dict.

    Raises:
        ValueError: unknown message type
    """
    kind = raw.get("type")
    if kind == "init":
        return InitMessage()
    if kind == "search":
        return SearchMessage(
            query=str(raw.get("query") or ""),
            limit=int(raw.get("limit") or default_limit),
            search_id=raw.get("searchId"),
        )
    raise ValueError(f"Unknown message type: {kind!r}")


# ---------------------------------------------------------------------------
# OUTBOUND
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatusMessage:
    message: str

    def to_dict(self) -> dict:
        return {"type": "status", "message": self.message}


@dataclass(frozen=True)
class InitedMessage:
    status: str  # "ok" or "error"
    num_entries: int | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        msg: dict[str, Any] = {"type": "inited", "status": self.status}
        if self.num_entries is not None:
            msg["numEntries"] = self.num_entries
        if self.error is not None:
            msg["error"] = self.error
        return msg


@dataclass(frozen=True)
class ResultsMessage:
    search_id: int | None
    query: str
    results: list[dict] = field(default_factory=list)
    error: str | None = None
    performance: dict | None = None

    def to_dict(self) -> dict:
        msg: dict[str, Any] = {
            "type": "results",
            "searchId": self.search_id,
            "query": self.query,
            "results": self.results,
        }
        if self.error is not None:
            msg["error"] = self.error
        if self.performance is not None:
            msg["performance"] = self.performance
        return msg
