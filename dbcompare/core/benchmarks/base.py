"""
Benchmark workload contract.

Every backend implements `Benchmark`: a display name, an idempotent setup,
a run that returns one BenchmarkResult per operation it managed to start, and
a teardown that releases connections. `BaseBenchmark` adds the shared
per-operation measurement protocol used by the concrete adapters.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional

from dbcompare.core.generator import RecordGenerator
from dbcompare.core.stress import run_stress
from dbcompare.core.table_managers.base import KeyRange, TableManager
from dbcompare.models.benchmark_config import WorkloadConfig
from dbcompare.models.result import BenchmarkResult, OperationType

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 10_000

OperationFn = Callable[[], Awaitable[BenchmarkResult]]

# Aggregation used by Complex Query; `true` is the dialect's boolean literal.
AGGREGATE_SQL = """
    SELECT
        age,
        COUNT(*) AS user_count,
        AVG(balance) AS avg_balance,
        MAX(balance) AS max_balance,
        MIN(balance) AS min_balance
    FROM {table}
    WHERE is_active = {true} AND age > 25
    GROUP BY age
    HAVING COUNT(*) > 5
    ORDER BY avg_balance DESC
    LIMIT 50
"""


class Benchmark(ABC):
    """The contract the runner drives. Backend-agnostic."""

    #: Configuration key, used by the runner's backend filter.
    key: str = ""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable display label."""

    @abstractmethod
    async def setup(self) -> None:
        """Reset the benchmark table. Must succeed if it is already absent."""

    @abstractmethod
    async def run(self) -> List[BenchmarkResult]:
        """Run the operation catalog; omit operations that fail to start."""

    @abstractmethod
    async def teardown(self) -> None:
        """Close connections."""

    def catalog(self) -> List[str]:
        """Operation labels this backend attempts, in order."""
        return []

    async def collect_stats(self) -> Dict[str, Any]:
        """Backend table statistics, gathered after the run."""
        return {}


class BaseBenchmark(Benchmark):
    """
    Shared machinery for concrete backend benchmarks.

    Subclasses declare `unit_errors` (exceptions meaning "the backend rejected
    this one unit") and list their operations in `operations()`.
    """

    unit_errors: tuple[type[BaseException], ...] = ()

    def __init__(
        self,
        key: str,
        name: str,
        workload: WorkloadConfig,
        table: TableManager,
        generator: Optional[RecordGenerator] = None,
    ):
        self.key = key
        self._name = name
        self.workload = workload
        self.table = table
        self.gen = generator or RecordGenerator(seed=workload.seed)

    @property
    def name(self) -> str:
        return self._name

    @abstractmethod
    def operations(self) -> List[tuple[OperationType, OperationFn]]:
        """Ordered (operation, coroutine function) pairs."""

    def catalog(self) -> List[str]:
        return [op.value for op, _ in self.operations()]

    async def setup(self) -> None:
        logger.info(f"Setting up {self.name} schema...")
        await self.table.reset()

    async def run(self) -> List[BenchmarkResult]:
        results: List[BenchmarkResult] = []
        for operation, fn in self.operations():
            try:
                result = await fn()
            except Exception as e:
                logger.warning(f"⚠ {self.name} {operation.value} failed: {e}")
                continue
            results.append(result)
        return results

    async def collect_stats(self) -> Dict[str, Any]:
        return await self.table.collect_stats()

    async def _require_keys(self, operation: OperationType) -> KeyRange:
        """Key range of the populated table; raises EmptyDatasetError if empty."""
        key_range = await self.table.get_key_range()
        return key_range.require_rows(operation.value)

    async def _attempt(self, unit: Awaitable[Any]) -> bool:
        """Await one unit operation; False if the backend rejected it."""
        try:
            await unit
        except self.unit_errors as e:
            logger.debug(f"{self.name} unit failure: {e}")
            return False
        return True

    async def _run_sequential(
        self,
        operation: OperationType,
        count: int,
        unit: Callable[[int], Awaitable[Any]],
    ) -> BenchmarkResult:
        """Measure `count` sequential calls of `unit(index)`."""
        result = BenchmarkResult.start(operation, self.name, count)
        errors = 0
        for i in range(count):
            if not await self._attempt(unit(i)):
                errors += 1
            self._log_progress(operation, i + 1, count)

        result.complete(errors)
        self._log_complete(result)
        return result

    async def _run_concurrent(
        self,
        operation: OperationType,
        units_per_worker: int,
        unit: Callable[[int, int], Awaitable[None]],
    ) -> BenchmarkResult:
        """Measure a stress phase: every worker calls `unit(worker_id, index)`."""
        workers = self.workload.concurrent_workers
        result = BenchmarkResult.start(operation, self.name, workers * units_per_worker)
        result.set_metadata("workers", workers)
        result.set_metadata("units_per_worker", units_per_worker)

        outcome = await run_stress(workers, units_per_worker, unit, self.unit_errors)
        if outcome.error_samples:
            result.set_metadata("error_samples", outcome.error_samples)

        result.complete(outcome.error_count)
        self._log_complete(result)
        return result

    def _log_progress(self, operation: OperationType, current: int, total: int) -> None:
        if total > 0 and current % PROGRESS_INTERVAL == 0:
            percent = current / total * 100
            logger.info(
                f"{self.name} {operation.value}: {percent:.1f}% ({current}/{total})"
            )

    def _log_complete(self, result: BenchmarkResult) -> None:
        throughput = result.throughput or 0.0
        logger.info(
            f"{self.name} {result.operation}: ✓ Duration: {result.duration_seconds:.3f}s, "
            f"Throughput: {throughput:.0f} ops/s, Errors: {result.error_count} "
            f"({result.error_percent:.2f}%)"
        )
