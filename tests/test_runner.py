"""
Unit tests for BenchmarkRunner.
"""

from __future__ import annotations

import pytest

from dbcompare.core.benchmarks import create_benchmark
from dbcompare.core.errors import BackendConstructionError, NoBackendsEnabledError
from dbcompare.core.runner import BenchmarkRunner
from dbcompare.models.benchmark_config import BenchmarkConfig, WorkloadConfig
from dbcompare.models.result import BackendStatus


class TestRunnerConstruction:
    """Tests for runner construction failures."""

    def test_no_benchmarks_raises(self) -> None:
        with pytest.raises(NoBackendsEnabledError):
            BenchmarkRunner([])

    def test_from_config_without_enabled_backends_raises(self) -> None:
        with pytest.raises(NoBackendsEnabledError):
            BenchmarkRunner.from_config(BenchmarkConfig())

    def test_unknown_backend_raises(self) -> None:
        with pytest.raises(BackendConstructionError):
            create_benchmark("oracle", BenchmarkConfig())

    def test_from_config_builds_enabled_backends(self) -> None:
        cfg = BenchmarkConfig.model_validate(
            {"databases": {"postgres": {"enabled": True}}}
        )

        runner = BenchmarkRunner.from_config(cfg)

        assert [b.key for b in runner.benchmarks] == ["postgres"]
        assert runner.benchmarks[0].name == "PostgreSQL"
        assert len(runner.benchmarks[0].catalog()) == 9


class TestRunnerRun:
    """Tests for BenchmarkRunner.run()."""

    @pytest.mark.asyncio
    async def test_runs_in_order_and_collects_results(
        self, fake_benchmark, make_result
    ) -> None:
        events: list[str] = []
        alpha = fake_benchmark(
            "Alpha", results=[make_result("Bulk Insert", "Alpha")], events=events
        )
        beta = fake_benchmark(
            "Beta", results=[make_result("Bulk Insert", "Beta")], events=events
        )

        suite = await BenchmarkRunner([alpha, beta], WorkloadConfig()).run()

        assert events == [
            "Alpha:setup", "Alpha:run", "Alpha:teardown",
            "Beta:setup", "Beta:run", "Beta:teardown",
        ]
        assert [r.database for r in suite.results] == ["Alpha", "Beta"]
        assert [b.status for b in suite.backends] == ["completed", "completed"]
        assert suite.end_time is not None
        assert suite.config["record_count"] == 100_000

    @pytest.mark.asyncio
    async def test_setup_failure_is_isolated(self, fake_benchmark, make_result) -> None:
        events: list[str] = []
        broken = fake_benchmark(
            "Broken",
            catalog=["Bulk Insert"],
            setup_error=ConnectionError("refused"),
            events=events,
        )
        good = fake_benchmark(
            "Good", results=[make_result("Bulk Insert", "Good")], events=events
        )

        suite = await BenchmarkRunner([broken, good]).run()

        assert "Broken:run" not in events
        assert "Broken:teardown" in events
        assert [r.database for r in suite.results] == ["Good"]
        first = suite.backends[0]
        assert first.status == BackendStatus.SETUP_FAILED.value
        assert first.error == "refused"
        assert first.omitted_operations == ["Bulk Insert"]

    @pytest.mark.asyncio
    async def test_run_failure_still_tears_down(self, fake_benchmark) -> None:
        events: list[str] = []
        crashing = fake_benchmark("Crash", run_error=RuntimeError("boom"), events=events)

        suite = await BenchmarkRunner([crashing]).run()

        assert events[-1] == "Crash:teardown"
        assert suite.results == []
        assert suite.backends[0].status == "failed"

    @pytest.mark.asyncio
    async def test_teardown_failure_is_only_logged(
        self, fake_benchmark, make_result
    ) -> None:
        bench = fake_benchmark(
            "Alpha",
            results=[make_result("Bulk Insert", "Alpha")],
            teardown_error=RuntimeError("close failed"),
        )

        suite = await BenchmarkRunner([bench]).run()

        assert len(suite.results) == 1
        assert suite.backends[0].status == "completed"

    @pytest.mark.asyncio
    async def test_partial_and_empty_status(self, fake_benchmark, make_result) -> None:
        partial = fake_benchmark(
            "Partial",
            results=[make_result("Bulk Insert", "Partial")],
            catalog=["Bulk Insert", "Random Read"],
        )
        empty = fake_benchmark("Empty", catalog=["Bulk Insert"])

        suite = await BenchmarkRunner([partial, empty]).run()

        assert suite.backends[0].status == "partial"
        assert suite.backends[0].completed_operations == ["Bulk Insert"]
        assert suite.backends[0].omitted_operations == ["Random Read"]
        assert suite.backends[1].status == "empty"

    @pytest.mark.asyncio
    async def test_filter_matches_key_or_name(self, fake_benchmark) -> None:
        events: list[str] = []
        pg = fake_benchmark("PostgreSQL", key="postgres", events=events)
        sf = fake_benchmark("Snowflake", key="snowflake", events=events)
        runner = BenchmarkRunner([pg, sf])

        await runner.run("Postgres")
        assert all(e.startswith("PostgreSQL") for e in events)

        events.clear()
        suite = await runner.run("snowflake")
        assert all(e.startswith("Snowflake") for e in events)
        assert [b.key for b in suite.backends] == ["snowflake"]

    @pytest.mark.asyncio
    async def test_unmatched_filter_runs_nothing(self, fake_benchmark) -> None:
        events: list[str] = []
        bench = fake_benchmark("Alpha", events=events)

        suite = await BenchmarkRunner([bench]).run("nope")

        assert events == []
        assert suite.backends == []

    @pytest.mark.asyncio
    async def test_stop_skips_remaining_backends(
        self, fake_benchmark, make_result
    ) -> None:
        events: list[str] = []
        first = fake_benchmark(
            "First", results=[make_result("Bulk Insert", "First")], events=events
        )
        second = fake_benchmark("Second", catalog=["Bulk Insert"], events=events)
        runner = BenchmarkRunner([first, second])
        first.on_run = runner.request_stop

        suite = await runner.run()

        assert not any(e.startswith("Second") for e in events)
        assert [b.status for b in suite.backends] == ["completed", "skipped"]
        assert suite.backends[1].omitted_operations == ["Bulk Insert"]
        assert runner.stop_requested
