"""
Hosts - the two environments that drive the same SearchEngine.

- SearchWorker / WorkerClient: message-driven worker with correlation ids
- SearchRequestHandler: request-handler host with per-process engine
"""

from pathology_search.hosts.messages import (
    InitMessage,
    SearchMessage,
    StatusMessage,
    InitedMessage,
    ResultsMessage,
    parse_message,
)
from pathology_search.hosts.worker import SearchWorker
from pathology_search.hosts.client import WorkerClient
from pathology_search.hosts.http import (
    SearchRequestHandler,
    get_search_engine,
    reset_search_engine,
)

__all__ = [
    # Messages
    "InitMessage",
    "SearchMessage",
    "StatusMessage",
    "InitedMessage",
    "ResultsMessage",
    "parse_message",
    # Worker host
    "SearchWorker",
    "WorkerClient",
    # Request-handler host
    "SearchRequestHandler",
    "get_search_engine",
    "reset_search_engine",
]
