"""
Unit Tests for CLI Commands

Tests the CLI entry points without loading a real model. Searches run
through patched host runners or through engines built on in-memory
sources, and the tests check argument handling, output and exit codes.
"""

import asyncio
import json
import sys
from unittest.mock import AsyncMock, patch

import pytest

from pathology_search.cli import commands
from pathology_search.core.errors import CorpusLoadError, SearchError


def _result(record_id, source, system="Gynaecological"):
    return {
        "id": record_id,
        "text": f"Case {record_id}",
        "diagnosis": "Serous carcinoma",
        "organ": "Ovary",
        "system": system,
        "site": "",
        "similarity": 0.9,
        "metadata": {"source": source, "system": system},
    }


PERFORMANCE = {
    "mode": "client",
    "searchTime": 1.2,
    "embeddingTime": 8.5,
    "totalTime": 10.0,
    "resultCount": 2,
}


# ---------------------------------------------------------------------------
# LOAD_ENV TESTS
# ---------------------------------------------------------------------------


class TestLoadEnv:
    """Test environment loading."""

    def test_load_env_does_not_raise(self):
        """Should not raise even if there is no .env file."""
        commands._load_env()


# ---------------------------------------------------------------------------
# MAIN CLI DISPATCH TESTS
# ---------------------------------------------------------------------------


class TestMainCliDispatch:
    """Test main CLI dispatches to correct handlers."""

    @pytest.mark.parametrize(
        "command,handler",
        [("search", "run_search_cli"), ("info", "run_info_cli"), ("bench", "run_bench_cli")],
    )
    def test_main_dispatches(self, command, handler):
        with patch.object(commands, handler, return_value=0) as mock_handler:
            with patch("sys.argv", ["pathology-search", command]):
                result = commands.main()

        mock_handler.assert_called_once()
        assert result == 0

    def test_main_passes_remaining_args(self):
        seen = {}

        def fake_search():
            seen["argv"] = list(sys.argv)
            return 0

        with patch.object(commands, "run_search_cli", side_effect=fake_search):
            with patch("sys.argv", ["pathology-search", "search", "seminoma", "--limit", "5"]):
                commands.main()

        assert seen["argv"][1:] == ["seminoma", "--limit", "5"]

    def test_main_handles_keyboard_interrupt(self):
        """Main should return 130 on KeyboardInterrupt."""
        with patch.object(commands, "run_search_cli", side_effect=KeyboardInterrupt()):
            with patch("sys.argv", ["pathology-search", "search"]):
                assert commands.main() == 130


# ---------------------------------------------------------------------------
# SEARCH COMMAND TESTS
# ---------------------------------------------------------------------------


class TestSearchCli:
    """Test run_search_cli with the host runners patched out."""

    def test_client_mode_is_default(self, capsys):
        runner = AsyncMock(return_value=([_result(1, "Leeds")], PERFORMANCE))
        with patch.object(commands, "_search_via_worker", runner), patch.object(commands, "_start_tracing"):
            with patch("sys.argv", ["search", "serous carcinoma", "--limit", "5"]):
                assert commands.run_search_cli() == 0

        runner.assert_awaited_once_with("serous carcinoma", 5)
        out = capsys.readouterr().out
        assert "#1 Serous carcinoma" in out
        assert "client:" in out

    def test_api_mode(self):
        runner = AsyncMock(return_value=([], {**PERFORMANCE, "mode": "api"}))
        with patch.object(commands, "_search_via_api", runner), patch.object(commands, "_start_tracing"):
            with patch("sys.argv", ["search", "lymphoma", "--mode", "api"]):
                assert commands.run_search_cli() == 0

        runner.assert_awaited_once()

    def test_source_filter_and_json_output(self, capsys):
        results = [_result(1, "Leeds"), _result(2, "Toronto"), _result(3, "Leeds", system="Haematological")]
        runner = AsyncMock(return_value=(results, PERFORMANCE))
        argv = ["search", "carcinoma", "--source", "Leeds", "--system", "Gynaecological", "--json"]
        with patch.object(commands, "_search_via_worker", runner), patch.object(commands, "_start_tracing"):
            with patch("sys.argv", argv):
                assert commands.run_search_cli() == 0

        body = json.loads(capsys.readouterr().out)
        assert [r["id"] for r in body["results"]] == [1]
        assert body["query"] == "carcinoma"

    def test_filters_apply_before_limit(self, capsys):
        results = [
            _result(1, "Toronto"),
            _result(2, "Leeds"),
            _result(3, "Toronto"),
            _result(4, "Leeds"),
            _result(5, "Leeds"),
        ]
        runner = AsyncMock(return_value=(results, PERFORMANCE))
        argv = ["search", "carcinoma", "--limit", "2", "--source", "Leeds", "--json"]
        with patch.object(commands, "_search_via_worker", runner), patch.object(commands, "_start_tracing"):
            with patch("sys.argv", argv):
                assert commands.run_search_cli() == 0

        runner.assert_awaited_once_with("carcinoma", commands.FILTER_FETCH_LIMIT)
        body = json.loads(capsys.readouterr().out)
        assert [r["id"] for r in body["results"]] == [2, 4]

    def test_unknown_source_rejected(self):
        with patch("sys.argv", ["search", "carcinoma", "--source", "Nowhere"]):
            with pytest.raises(SystemExit):
                commands.run_search_cli()

    def test_search_error_exit_code(self, capsys):
        runner = AsyncMock(side_effect=SearchError("Error loading database"))
        with patch.object(commands, "_search_via_worker", runner), patch.object(commands, "_start_tracing"):
            with patch("sys.argv", ["search", "carcinoma"]):
                assert commands.run_search_cli() == 1

        assert "Error loading database" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# HOST RUNNER TESTS
# ---------------------------------------------------------------------------


class TestHostRunners:
    """Test the runners against engines built on in-memory sources."""

    def test_worker_runner(self, engine):
        with patch("pathology_search.search.engine.build_search_engine", return_value=engine):
            results, performance = asyncio.run(commands._search_via_worker("serous carcinoma", 3))

        assert [r["id"] for r in results] == [3, 1, 2]
        assert performance["mode"] == "client"

    def test_api_runner(self, engine):
        with patch("pathology_search.search.engine.build_search_engine", return_value=engine):
            results, performance = asyncio.run(commands._search_via_api("serous carcinoma", 3))

        assert [r["id"] for r in results] == [3, 1, 2]
        assert performance["mode"] == "api"

    def test_worker_runner_init_failure(self, engine, corpus_source):
        corpus_source.error = CorpusLoadError("disk gone")

        with patch("pathology_search.search.engine.build_search_engine", return_value=engine):
            with pytest.raises(SearchError, match="Error loading database"):
                asyncio.run(commands._search_via_worker("serous carcinoma", 3))


# ---------------------------------------------------------------------------
# INFO AND BENCH COMMAND TESTS
# ---------------------------------------------------------------------------


class TestInfoAndBenchCli:
    def test_info_prints_shape(self, engine, capsys):
        with patch("pathology_search.search.engine.build_search_engine", return_value=engine):
            with patch("sys.argv", ["info"]):
                assert commands.run_info_cli() == 0

        out = capsys.readouterr().out
        assert "Loading database..." in out
        assert "Records:        3" in out
        assert "PCA components: 3 (native 4)" in out

    def test_info_failure(self, engine, corpus_source, capsys):
        corpus_source.error = CorpusLoadError("disk gone")

        with patch("pathology_search.search.engine.build_search_engine", return_value=engine):
            with patch("sys.argv", ["info"]):
                assert commands.run_info_cli() == 1

        assert "disk gone" in capsys.readouterr().err

    def test_bench_reports_percentiles(self, engine, capsys):
        with patch("pathology_search.search.engine.build_search_engine", return_value=engine):
            with patch("sys.argv", ["bench", "serous carcinoma", "--runs", "3"]):
                assert commands.run_bench_cli() == 0

        out = capsys.readouterr().out
        assert "SEARCH LATENCY (3 runs)" in out
        assert "p95" in out

    def test_bench_rejects_zero_runs(self):
        with patch("sys.argv", ["bench", "serous carcinoma", "--runs", "0"]):
            assert commands.run_bench_cli() == 1
