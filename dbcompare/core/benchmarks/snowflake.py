"""
Snowflake benchmark.

Standard Snowflake tables carry no secondary indexes, so Indexed Query is not
part of this backend's catalog. Everything else matches the Postgres run.
Connector calls block; the pool runs them on its thread executor.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from snowflake.connector.errors import Error as SnowflakeError

from dbcompare.connectors.snowflake_pool import SnowflakeConnectionPool
from dbcompare.core.benchmarks.base import AGGREGATE_SQL, BaseBenchmark, OperationFn
from dbcompare.core.generator import RecordGenerator
from dbcompare.core.table_managers.base import BENCHMARK_TABLE, RECORD_COLUMNS
from dbcompare.core.table_managers.snowflake import SnowflakeTableManager
from dbcompare.models.benchmark_config import SnowflakeConfig, WorkloadConfig
from dbcompare.models.record import TestRecord
from dbcompare.models.result import BenchmarkResult, OperationType

logger = logging.getLogger(__name__)

ROW_FIELDS = ("id",) + tuple(RECORD_COLUMNS)


class SnowflakeBenchmark(BaseBenchmark):
    """Benchmark for Snowflake."""

    unit_errors = (SnowflakeError,)

    def __init__(
        self,
        pool: SnowflakeConnectionPool,
        workload: WorkloadConfig,
        generator: Optional[RecordGenerator] = None,
        table_name: str = BENCHMARK_TABLE,
    ):
        super().__init__(
            key="snowflake",
            name="Snowflake",
            workload=workload,
            table=SnowflakeTableManager(pool, table_name),
            generator=generator,
        )
        self.pool = pool
        self.table_name = table_name
        placeholders = ", ".join("?" for _ in RECORD_COLUMNS)
        self.insert_sql = (
            f"INSERT INTO {table_name} ({', '.join(RECORD_COLUMNS)}) "
            f"VALUES ({placeholders})"
        )

    @classmethod
    def from_config(
        cls, cfg: SnowflakeConfig, workload: WorkloadConfig
    ) -> "SnowflakeBenchmark":
        return cls(SnowflakeConnectionPool.from_config(cfg), workload)

    def operations(self) -> List[tuple[OperationType, OperationFn]]:
        return [
            (OperationType.BULK_INSERT, self.bulk_insert),
            (OperationType.SEQUENTIAL_READ, self.sequential_read),
            (OperationType.RANDOM_READ, self.random_read),
            (OperationType.UPDATE, self.update_operations),
            (OperationType.COMPLEX_QUERY, self.complex_query),
            (OperationType.CONCURRENT_READS, self.concurrent_reads),
            (OperationType.CONCURRENT_WRITES, self.concurrent_writes),
            (OperationType.TRANSACTIONS, self.transaction_performance),
        ]

    async def setup(self) -> None:
        await self.pool.initialize()
        await super().setup()

    async def teardown(self) -> None:
        await self.pool.close_all()

    async def collect_stats(self) -> Dict[str, Any]:
        stats = await super().collect_stats()
        return {**stats, "pool": self.pool.get_pool_stats()}

    async def bulk_insert(self) -> BenchmarkResult:
        count = self.workload.record_count
        batch_size = self.workload.batch_size
        result = BenchmarkResult.start(OperationType.BULK_INSERT, self.name, count)
        result.set_metadata("batch_size", batch_size)

        errors = 0
        for batch_start in range(0, count, batch_size):
            batch_end = min(batch_start + batch_size, count)
            rows = [
                self.gen.generate_record(i + 1).insert_params()
                for i in range(batch_start, batch_end)
            ]
            try:
                await self.pool.execute_many(self.insert_sql, rows)
            except self.unit_errors as e:
                logger.debug(f"{self.name} batch at {batch_start} failed: {e}")
                errors += len(rows)
            self._log_progress(OperationType.BULK_INSERT, batch_end, count)

        result.complete(errors)
        self._log_complete(result)
        return result

    async def sequential_read(self) -> BenchmarkResult:
        count = self.workload.record_count
        result = BenchmarkResult.start(OperationType.SEQUENTIAL_READ, self.name, count)

        rows = await self.pool.execute_query(
            f"SELECT {', '.join(ROW_FIELDS)} FROM {self.table_name} ORDER BY id LIMIT ?",
            [count],
        )
        errors = 0
        for scanned, row in enumerate(rows, start=1):
            try:
                TestRecord.model_validate(dict(zip(ROW_FIELDS, row)))
            except ValidationError:
                errors += 1
            self._log_progress(OperationType.SEQUENTIAL_READ, scanned, count)

        result.set_metadata("rows_scanned", len(rows))
        result.complete(errors)
        self._log_complete(result)
        return result

    async def random_read(self) -> BenchmarkResult:
        keys = await self._require_keys(OperationType.RANDOM_READ)
        query = f"SELECT * FROM {self.table_name} WHERE id = ?"

        async def unit(_: int) -> None:
            await self.pool.fetch_one(query, [keys.random_id(self.gen.random)])

        return await self._run_sequential(
            OperationType.RANDOM_READ, self.workload.random_reads, unit
        )

    async def update_operations(self) -> BenchmarkResult:
        keys = await self._require_keys(OperationType.UPDATE)
        query = f"UPDATE {self.table_name} SET balance = ? WHERE id = ?"

        async def unit(_: int) -> None:
            await self.pool.execute_query(
                query,
                [self.gen.update_value("balance"), keys.random_id(self.gen.random)],
                fetch=False,
            )

        return await self._run_sequential(
            OperationType.UPDATE, self.workload.updates, unit
        )

    async def complex_query(self) -> BenchmarkResult:
        query = AGGREGATE_SQL.format(table=self.table_name, true="TRUE")

        async def unit(_: int) -> None:
            await self.pool.execute_query(query)

        return await self._run_sequential(OperationType.COMPLEX_QUERY, 1, unit)

    async def concurrent_reads(self) -> BenchmarkResult:
        keys = await self._require_keys(OperationType.CONCURRENT_READS)
        query = f"SELECT * FROM {self.table_name} WHERE id = ?"

        async def unit(worker_id: int, index: int) -> None:
            await self.pool.fetch_one(query, [keys.random_id(self.gen.random)])

        return await self._run_concurrent(
            OperationType.CONCURRENT_READS, self.workload.reads_per_worker, unit
        )

    async def concurrent_writes(self) -> BenchmarkResult:
        per_worker = self.workload.writes_per_worker

        async def unit(worker_id: int, index: int) -> None:
            record = self.gen.concurrent_write_record(worker_id, index, per_worker)
            await self.pool.execute_query(
                self.insert_sql, list(record.insert_params()), fetch=False
            )

        return await self._run_concurrent(
            OperationType.CONCURRENT_WRITES, per_worker, unit
        )

    async def transaction_performance(self) -> BenchmarkResult:
        keys = await self._require_keys(OperationType.TRANSACTIONS)
        debit = f"UPDATE {self.table_name} SET balance = balance - 10 WHERE id = ?"
        credit = f"UPDATE {self.table_name} SET balance = balance + 10 WHERE id = ?"

        async def unit(_: int) -> None:
            from_id = keys.random_id(self.gen.random)
            to_id = keys.random_id(self.gen.random)
            await self.pool.execute_transaction(
                [(debit, [from_id]), (credit, [to_id])]
            )

        return await self._run_sequential(
            OperationType.TRANSACTIONS, self.workload.transactions, unit
        )
