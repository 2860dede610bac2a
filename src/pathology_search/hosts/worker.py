"""
Worker host - message-driven search loop.

The worker runs on one event loop. Each inbound message is handled in its
own task, so a search that is waiting on the embedding model does not hold
up the next message; the scan itself is synchronous and never interleaves.
Because replies can therefore arrive out of submission order, every search
reply echoes the caller's searchId.

init:   loads everything once (shared with any in-flight load), emits a
        status message per milestone, then an "inited" reply.
search: if the engine is not loaded yet, loads inline first, then searches.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Mapping

from pathology_search.core.errors import SearchError
from pathology_search.hosts.messages import (
    InitMessage,
    InitedMessage,
    ResultsMessage,
    SearchMessage,
    StatusMessage,
    parse_message,
)
from pathology_search.schemas.search import PerformanceMetrics
from pathology_search.search.engine import SearchEngine

logger = logging.getLogger(__name__)

HOST_MODE = "client"

PostCallback = Callable[[dict], None]

_STOP = object()


class SearchWorker:
    """
    Message loop around a SearchEngine.

    Args:
        engine: Engine owned by this worker
        post: Called with every outbound message dict
    """

    def __init__(self, engine: SearchEngine, post: PostCallback):
        self._engine = engine
        self._post = post
        self._inbox: asyncio.Queue | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def engine(self) -> SearchEngine:
        return self._engine

    # -----------------------------------------------------------------------
    # LOOP
    # -----------------------------------------------------------------------

    def _queue(self) -> asyncio.Queue:
        if self._inbox is None:
            self._inbox = asyncio.Queue()
        return self._inbox

    def post_message(self, raw: Mapping[str, Any]) -> None:
        """Enqueue an inbound message for run()."""
        self._queue().put_nowait(raw)

    async def run(self) -> None:
        """Dispatch inbound messages until stop() is called."""
        inbox = self._queue()
        while True:
            raw = await inbox.get()
            if raw is _STOP:
                break
            task = asyncio.create_task(self.handle(raw))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def stop(self) -> None:
        self._queue().put_nowait(_STOP)

    async def drain(self) -> None:
        """Wait for every message handler started so far."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -----------------------------------------------------------------------
    # HANDLERS
    # -----------------------------------------------------------------------

    async def handle(self, raw: Mapping[str, Any]) -> None:
        """Handle one inbound message to completion."""
        try:
            message = parse_message(raw, default_limit=self._engine.default_limit)
        except (TypeError, ValueError) as e:
            if raw.get("type") != "search":
                logger.warning(f"Ignoring message: {e}")
                return
            # The caller is waiting on this searchId
            logger.warning(f"Rejecting search {raw.get('searchId')}: {e}")
            self._emit(
                ResultsMessage(
                    search_id=raw.get("searchId"),
                    query=str(raw.get("query") or ""),
                    error=str(e),
                )
            )
            return

        if isinstance(message, InitMessage):
            await self._handle_init()
        elif isinstance(message, SearchMessage):
            await self._handle_search(message)

    def _emit(self, message: Any) -> None:
        self._post(message.to_dict())

    def _emit_status(self, text: str) -> None:
        self._emit(StatusMessage(text))

    async def _handle_init(self) -> None:
        if not self._engine.ready:
            try:
                await self._engine.ensure_initialized(progress=self._emit_status)
            except SearchError as e:
                self._emit(InitedMessage(status="error", error=str(e)))
                return
        self._emit(InitedMessage(status="ok", num_entries=self._engine.num_records))

    async def _handle_search(self, message: SearchMessage) -> None:
        started = time.perf_counter()
        try:
            if not self._engine.ready:
                self._emit_status("Initializing...")
                await self._engine.ensure_initialized(progress=self._emit_status)

            outcome = await self._engine.search(
                message.query,
                message.limit,
                host=HOST_MODE,
                correlation_id=message.search_id,
            )
        except (SearchError, ValueError) as e:
            logger.warning(f"Search {message.search_id} failed: {e}")
            self._emit(ResultsMessage(search_id=message.search_id, query=message.query, error=str(e)))
            return
        except Exception as e:
            logger.warning(f"Search {message.search_id} failed unexpectedly: {e}", exc_info=True)
            self._emit(ResultsMessage(search_id=message.search_id, query=message.query, error=str(e)))
            return

        performance = PerformanceMetrics(
            mode=HOST_MODE,
            search_time=outcome.search_time_ms,
            embedding_time=outcome.embedding_time_ms,
            total_time=(time.perf_counter() - started) * 1000,
            result_count=len(outcome.results),
        )
        self._emit(
            ResultsMessage(
                search_id=message.search_id,
                query=message.query,
                results=outcome.results_as_dicts(),
                performance=performance.model_dump(by_alias=True),
            )
        )
