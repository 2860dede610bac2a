"""
CLI module - unified command-line interface.

Provides entry points for:
- Running a search through either host
- Inspecting the loaded corpus
- Measuring search latency
"""

from pathology_search.cli.commands import (
    main,
    run_search_cli,
    run_info_cli,
    run_bench_cli,
)

__all__ = [
    "main",
    "run_search_cli",
    "run_info_cli",
    "run_bench_cli",
]
