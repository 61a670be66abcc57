"""
Benchmark runner.

Drives every enabled backend through setup, run and teardown, one backend at a
time, and collects their results into a single BenchmarkSuite. A failing
backend never stops the run: its failure is logged, recorded on the suite's
BackendRun entry, and the runner moves on.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from dbcompare.core.benchmarks import Benchmark, create_benchmark
from dbcompare.core.errors import NoBackendsEnabledError
from dbcompare.models.benchmark_config import BenchmarkConfig, WorkloadConfig
from dbcompare.models.result import (
    BackendRun,
    BackendStatus,
    BenchmarkResult,
    BenchmarkSuite,
)

logger = logging.getLogger(__name__)


class BenchmarkRunner:
    """Runs benchmarks sequentially, in configuration order."""

    def __init__(
        self,
        benchmarks: Sequence[Benchmark],
        workload: Optional[WorkloadConfig] = None,
    ):
        if not benchmarks:
            raise NoBackendsEnabledError("No databases enabled in configuration")
        self.benchmarks: List[Benchmark] = list(benchmarks)
        self.workload = workload
        self._stop = asyncio.Event()

    @classmethod
    def from_config(cls, config: BenchmarkConfig) -> "BenchmarkRunner":
        """
        Build a runner for every enabled backend.

        Raises:
            NoBackendsEnabledError: Nothing is enabled
            BackendConstructionError: An enabled backend could not be built
        """
        keys = config.enabled_backends()
        if not keys:
            raise NoBackendsEnabledError("No databases enabled in configuration")
        benchmarks = [create_benchmark(key, config) for key in keys]
        return cls(benchmarks, config.benchmark)

    def request_stop(self) -> None:
        """Finish the current backend, then skip the rest."""
        if not self._stop.is_set():
            logger.warning("Stop requested; remaining backends will be skipped")
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    @staticmethod
    def _matches(benchmark: Benchmark, db_filter: Optional[str]) -> bool:
        if not db_filter:
            return True
        wanted = db_filter.strip().lower()
        return wanted in (benchmark.key.lower(), benchmark.name.lower())

    async def run(self, db_filter: Optional[str] = None) -> BenchmarkSuite:
        """
        Run every selected backend and return the collected suite.

        Args:
            db_filter: Run only the backend whose key or label matches

        Returns:
            BenchmarkSuite with results in completion order
        """
        suite = BenchmarkSuite(
            config=self.workload.model_dump() if self.workload else {}
        )

        selected = [b for b in self.benchmarks if self._matches(b, db_filter)]
        if db_filter and not selected:
            logger.warning(f"No enabled database matches '{db_filter}'")

        for benchmark in selected:
            if self._stop.is_set():
                logger.warning(f"Skipping {benchmark.name}: stop requested")
                suite.backends.append(
                    BackendRun(
                        key=benchmark.key,
                        name=benchmark.name,
                        status=BackendStatus.SKIPPED,
                        omitted_operations=benchmark.catalog(),
                    )
                )
                continue

            suite.backends.append(await self._run_backend(benchmark, suite))

        suite.finish()
        logger.info(
            f"Benchmark suite finished: {len(suite.results)} results "
            f"in {suite.duration_seconds:.2f}s"
        )
        return suite

    async def _run_backend(
        self, benchmark: Benchmark, suite: BenchmarkSuite
    ) -> BackendRun:
        logger.info(f"=== Running {benchmark.name} benchmarks ===")
        record = BackendRun(
            key=benchmark.key, name=benchmark.name, status=BackendStatus.COMPLETED
        )
        catalog = benchmark.catalog()

        try:
            await benchmark.setup()
        except Exception as e:
            logger.error(f"Failed to setup {benchmark.name}: {e}")
            record.status = BackendStatus.SETUP_FAILED
            record.error = str(e)
            record.omitted_operations = catalog
            await self._teardown(benchmark)
            return record

        results: List[BenchmarkResult] = []
        try:
            results = await benchmark.run()
        except Exception as e:
            logger.error(f"Failed to run {benchmark.name} benchmarks: {e}")
            record.status = BackendStatus.FAILED
            record.error = str(e)
        else:
            suite.add_results(results)
            record.stats = await self._collect_stats(benchmark)
        finally:
            await self._teardown(benchmark)

        record.completed_operations = [r.operation for r in results]
        record.omitted_operations = [
            op for op in catalog if op not in record.completed_operations
        ]
        if record.status != BackendStatus.FAILED:
            if not results:
                record.status = BackendStatus.EMPTY
            elif record.omitted_operations:
                record.status = BackendStatus.PARTIAL

        if record.omitted_operations:
            logger.warning(
                f"{benchmark.name}: omitted {', '.join(record.omitted_operations)}"
            )
        return record

    async def _collect_stats(self, benchmark: Benchmark) -> dict:
        try:
            return await benchmark.collect_stats()
        except Exception as e:
            logger.warning(f"Failed to collect {benchmark.name} stats: {e}")
            return {}

    async def _teardown(self, benchmark: Benchmark) -> None:
        try:
            await benchmark.teardown()
        except Exception as e:
            logger.warning(f"Failed to teardown {benchmark.name}: {e}")
