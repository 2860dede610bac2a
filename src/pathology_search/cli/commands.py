"""
CLI commands - entry points for running searches from a terminal.

Every command reads .env first, builds its engine from the environment,
drives it through the requested host and maps SearchError to exit code 1.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import statistics
import sys
import time

from dotenv import load_dotenv

from pathology_search.core.errors import SearchError

# Large enough to rank the whole corpus before source/system filtering
FILTER_FETCH_LIMIT = 24000


def _load_env() -> None:
    """Load environment variables from .env file."""
    load_dotenv()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _start_tracing() -> None:
    from pathology_search.observability import init_tracing

    init_tracing()


def _stop_tracing() -> None:
    from pathology_search.observability import shutdown_tracing

    shutdown_tracing()


# ---------------------------------------------------------------------------
# HOST RUNNERS
# ---------------------------------------------------------------------------


async def _search_via_worker(query: str, limit: int) -> tuple[list[dict], dict | None]:
    from pathology_search.config import get_config
    from pathology_search.hosts.client import WorkerClient
    from pathology_search.search.engine import build_search_engine

    client = WorkerClient(build_search_engine(), timeout_s=get_config().search_timeout_s)
    client.start()
    try:
        if not await client.initialize():
            raise SearchError(client.init_status)
        results = await client.search(query, limit)
        return results, client.last_performance
    finally:
        await client.close()


async def _search_via_api(query: str, limit: int) -> tuple[list[dict], dict | None]:
    from pathology_search.hosts.http import SearchRequestHandler
    from pathology_search.search.engine import build_search_engine

    handler = SearchRequestHandler(build_search_engine())
    status, body = await handler.handle({"q": query, "limit": str(limit)})
    if status != 200:
        raise SearchError(body["error"])
    return body["results"], body["performance"]


def _print_results(results: list[dict], performance: dict | None) -> None:
    for rank, result in enumerate(results, start=1):
        metadata = result.get("metadata") or {}
        source = metadata.get("source") or "-"
        print(f"{rank:3d}. [{result['similarity']:.3f}] #{result['id']} {result['diagnosis']}")
        print(f"       {result['organ'] or '-'} / {result['system'] or '-'} ({source})")

    if performance:
        embedding = performance.get("embeddingTime")
        embedding_text = f"{embedding:.0f}ms" if embedding is not None else "-"
        print(
            f"\n{performance['mode']}: embedding {embedding_text}, "
            f"search {performance['searchTime']:.0f}ms, "
            f"total {performance['totalTime']:.0f}ms, "
            f"{performance['resultCount']} results"
        )


# ---------------------------------------------------------------------------
# COMMANDS
# ---------------------------------------------------------------------------


def run_search_cli() -> int:
    """CLI entry point for a single search."""
    from pathology_search.config import get_config
    from pathology_search.search.filters import KNOWN_SOURCES, ResultFilter

    _load_env()

    parser = argparse.ArgumentParser(description="Search the pathology corpus")
    parser.add_argument("query", help="Free-text query")
    parser.add_argument("--limit", type=int, default=None, help="Maximum results")
    parser.add_argument(
        "--mode",
        choices=["client", "api"],
        default="client",
        help="Host to run through: worker (client) or request handler (api)",
    )
    parser.add_argument(
        "--source",
        action="append",
        choices=KNOWN_SOURCES,
        default=[],
        help="Keep only results from this source (repeatable)",
    )
    parser.add_argument("--system", action="append", default=[], help="Keep only this system (repeatable)")
    parser.add_argument("--json", action="store_true", help="Print the raw JSON response")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    _configure_logging(args.verbose)
    _start_tracing()

    limit = args.limit if args.limit is not None else get_config().default_limit
    result_filter = ResultFilter.of(sources=args.source, systems=args.system)
    # Rank wide, then filter, then cut to --limit
    fetch_limit = max(limit, FILTER_FETCH_LIMIT) if result_filter.active else limit
    runner = _search_via_worker if args.mode == "client" else _search_via_api

    try:
        results, performance = asyncio.run(runner(args.query, fetch_limit))
    except SearchError as e:
        print(f"Search failed: {e}", file=sys.stderr)
        return 1
    finally:
        _stop_tracing()

    results = result_filter.apply(results)[:limit]

    if args.json:
        print(json.dumps({"query": args.query, "results": results, "performance": performance}, indent=2))
    else:
        _print_results(results, performance)
    return 0


def run_info_cli() -> int:
    """CLI entry point that loads the corpus and reports its shape."""
    from pathology_search.search.engine import build_search_engine

    _load_env()

    parser = argparse.ArgumentParser(description="Load the corpus and print its shape")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    _configure_logging(args.verbose)

    engine = build_search_engine()
    try:
        index = asyncio.run(engine.ensure_initialized(progress=print))
    except SearchError as e:
        print(f"Initialization failed: {e}", file=sys.stderr)
        return 1

    print(f"Records:        {index.corpus.num_records:,}")
    print(f"Dimension:      {index.corpus.dim}")
    print(f"PCA components: {index.projection.n_components} (native {index.projection.native_dim})")
    return 0


async def _bench(query: str, limit: int, runs: int) -> tuple[list[float], list[float]]:
    from pathology_search.search.engine import build_search_engine

    engine = build_search_engine()
    await engine.ensure_initialized()

    embedding_times: list[float] = []
    search_times: list[float] = []
    for _ in range(runs):
        outcome = await engine.search(query, limit)
        embedding_times.append(outcome.embedding_time_ms)
        search_times.append(outcome.search_time_ms)
    return embedding_times, search_times


def run_bench_cli() -> int:
    """CLI entry point for latency measurement."""
    _load_env()

    parser = argparse.ArgumentParser(description="Measure embedding and scan latency")
    parser.add_argument("query", help="Free-text query")
    parser.add_argument("--runs", type=int, default=20, help="Number of searches")
    parser.add_argument("--limit", type=int, default=10, help="Result limit")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    _configure_logging(args.verbose)

    if args.runs < 1:
        print("--runs must be at least 1", file=sys.stderr)
        return 1

    started = time.perf_counter()
    try:
        embedding_times, search_times = asyncio.run(_bench(args.query, args.limit, args.runs))
    except SearchError as e:
        print(f"Benchmark failed: {e}", file=sys.stderr)
        return 1

    print("=" * 60)
    print(f"SEARCH LATENCY ({args.runs} runs)")
    print("=" * 60)
    for label, times in (("embedding", embedding_times), ("scan", search_times)):
        ordered = sorted(times)
        p95 = ordered[min(len(ordered) - 1, int(len(ordered) * 0.95))]
        print(f"  {label:<10} p50 {statistics.median(ordered):8.2f}ms   p95 {p95:8.2f}ms")
    print(f"\nWall time: {(time.perf_counter() - started):.1f}s")
    return 0


def main() -> int:
    """
    Main CLI entry point with subcommands.

    Usage:
        pathology-search search "serous carcinoma"   # Ranked results
        pathology-search info                        # Corpus shape
        pathology-search bench "serous carcinoma"    # Latency
    """
    _load_env()

    parser = argparse.ArgumentParser(
        description="Pathology case vector search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  search      Rank the corpus against a query
  info        Load corpus and PCA model, print their shape
  bench       Measure embedding and scan latency

Examples:
  pathology-search search "serous carcinoma" --limit 20
  pathology-search search "lymphoma" --mode api --json
  pathology-search bench "melanoma" --runs 50
        """,
    )

    parser.add_argument(
        "command",
        choices=["search", "info", "bench"],
        help="Command to run",
    )

    # Parse just the command first
    args, remaining = parser.parse_known_args()

    commands = {
        "search": run_search_cli,
        "info": run_info_cli,
        "bench": run_bench_cli,
    }

    # Re-inject remaining args for the subcommand
    sys.argv = [sys.argv[0]] + remaining

    try:
        return commands[args.command]()
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
