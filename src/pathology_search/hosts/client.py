"""
Worker client - request/response channel over the worker protocol.

Each search gets a fresh correlation id and a pending future keyed by it.
Replies resolve the matching future whatever order they arrive in. A
search with no reply inside the timeout fails with SearchTimeoutError and
its pending entry is removed; a reply that turns up later is dropped.
"""

from __future__ import annotations

import asyncio
import itertools
import logging

from pathology_search.core.errors import SearchError, SearchTimeoutError
from pathology_search.hosts.messages import InitMessage, SearchMessage
from pathology_search.hosts.worker import SearchWorker
from pathology_search.search.engine import SearchEngine

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0

STATUS_INITIALIZING = "Initializing..."
STATUS_ERROR = "Error loading database"


class WorkerClient:
    """
    Owns a SearchWorker and talks to it only through messages.

    Usage:
        client = WorkerClient(engine)
        client.start()
        await client.initialize()
        results = await client.search("serous carcinoma", limit=20)
        await client.close()
    """

    def __init__(self, engine: SearchEngine, timeout_s: float = DEFAULT_TIMEOUT_S):
        self._worker = SearchWorker(engine, post=self._on_message)
        self._timeout_s = timeout_s
        self._ids = itertools.count()
        self._pending: dict[int, asyncio.Future] = {}
        self._init_waiters: list[asyncio.Future] = []
        self._run_task: asyncio.Task | None = None

        self.ready = False
        self.init_status = STATUS_INITIALIZING
        self.num_entries = 0
        self.last_performance: dict | None = None

    @property
    def worker(self) -> SearchWorker:
        return self._worker

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # -----------------------------------------------------------------------
    # LIFECYCLE
    # -----------------------------------------------------------------------

    def start(self) -> None:
        """Start the worker loop on the running event loop."""
        if self._run_task is None:
            self._run_task = asyncio.create_task(self._worker.run())

    async def close(self) -> None:
        """Stop the loop and wait for in-flight handlers."""
        if self._run_task is None:
            return
        self._worker.stop()
        await self._run_task
        await self._worker.drain()
        self._run_task = None

    async def initialize(self) -> bool:
        """Send "init" and wait for the "inited" reply. True when ready."""
        waiter = asyncio.get_running_loop().create_future()
        self._init_waiters.append(waiter)
        self._worker.post_message(InitMessage().to_dict())
        return await waiter

    # -----------------------------------------------------------------------
    # SEARCH
    # -----------------------------------------------------------------------

    async def search(self, query: str, limit: int | None = None) -> list[dict]:
        """
        Run one search through the worker.

        Raises:
            SearchTimeoutError: no reply within the timeout
            SearchError: the worker replied with an error
        """
        limit = self._worker.engine.default_limit if limit is None else limit
        search_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[search_id] = future

        self._worker.post_message(SearchMessage(query=query, limit=limit, search_id=search_id).to_dict())

        try:
            return await asyncio.wait_for(future, timeout=self._timeout_s)
        except asyncio.TimeoutError:
            raise SearchTimeoutError(search_id, self._timeout_s) from None
        finally:
            self._pending.pop(search_id, None)

    # -----------------------------------------------------------------------
    # INBOUND FROM WORKER
    # -----------------------------------------------------------------------

    def _on_message(self, msg: dict) -> None:
        kind = msg.get("type")

        if kind == "status":
            self.init_status = msg["message"]

        elif kind == "inited":
            ok = msg.get("status") == "ok"
            if ok:
                self.ready = True
                self.num_entries = msg.get("numEntries", 0)
                self.init_status = f"Ready - {self.num_entries:,} cases loaded"
            else:
                self.ready = False
                self.init_status = STATUS_ERROR
                logger.error(f"Worker initialization failed: {msg.get('error')}")
            waiters, self._init_waiters = self._init_waiters, []
            for waiter in waiters:
                if not waiter.done():
                    waiter.set_result(ok)

        elif kind == "results":
            future = self._pending.get(msg.get("searchId"))
            if future is None or future.done():
                logger.debug(f"Dropping reply for search {msg.get('searchId')}")
                return
            if msg.get("error"):
                future.set_exception(SearchError(msg["error"]))
            else:
                self.last_performance = msg.get("performance")
                future.set_result(msg.get("results") or [])
