"""
Postgres benchmark.

Runs the full operation catalog against Postgres through an asyncpg pool.
Stress workers share the pool; asyncpg hands each in-flight unit its own
connection, up to the configured max_connections.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import asyncpg
from pydantic import ValidationError

from dbcompare.connectors.postgres_pool import PostgresConnectionPool
from dbcompare.core.benchmarks.base import AGGREGATE_SQL, BaseBenchmark, OperationFn
from dbcompare.core.generator import RecordGenerator
from dbcompare.core.table_managers.base import BENCHMARK_TABLE, RECORD_COLUMNS
from dbcompare.core.table_managers.postgres import PostgresTableManager
from dbcompare.models.benchmark_config import PostgresConfig, WorkloadConfig
from dbcompare.models.record import TestRecord
from dbcompare.models.result import BenchmarkResult, OperationType

logger = logging.getLogger(__name__)


def _record_params(record: TestRecord) -> tuple:
    params = list(record.insert_params())
    params[3] = Decimal(f"{record.balance:.2f}")
    return tuple(params)


class PostgresBenchmark(BaseBenchmark):
    """Benchmark for PostgreSQL."""

    unit_errors = (asyncpg.PostgresError, asyncio.TimeoutError)

    def __init__(
        self,
        pool: PostgresConnectionPool,
        workload: WorkloadConfig,
        generator: Optional[RecordGenerator] = None,
        table_name: str = BENCHMARK_TABLE,
    ):
        super().__init__(
            key="postgres",
            name="PostgreSQL",
            workload=workload,
            table=PostgresTableManager(pool, table_name),
            generator=generator,
        )
        self.pool = pool
        self.table_name = table_name
        placeholders = ", ".join(f"${i}" for i in range(1, len(RECORD_COLUMNS) + 1))
        self.insert_sql = (
            f"INSERT INTO {table_name} ({', '.join(RECORD_COLUMNS)}) "
            f"VALUES ({placeholders})"
        )

    @classmethod
    def from_config(
        cls, cfg: PostgresConfig, workload: WorkloadConfig
    ) -> "PostgresBenchmark":
        return cls(PostgresConnectionPool.from_config(cfg), workload)

    def operations(self) -> List[tuple[OperationType, OperationFn]]:
        return [
            (OperationType.BULK_INSERT, self.bulk_insert),
            (OperationType.SEQUENTIAL_READ, self.sequential_read),
            (OperationType.RANDOM_READ, self.random_read),
            (OperationType.INDEXED_QUERY, self.indexed_query),
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
        await self.pool.close()

    async def collect_stats(self) -> Dict[str, Any]:
        stats = await super().collect_stats()
        return {**stats, "pool": self.pool.get_pool_stats()}

    async def bulk_insert(self) -> BenchmarkResult:
        count = self.workload.record_count
        batch_size = self.workload.batch_size
        result = BenchmarkResult.start(OperationType.BULK_INSERT, self.name, count)
        result.set_metadata("batch_size", batch_size)

        errors = 0
        async with self.pool.get_connection() as conn:
            stmt = await conn.prepare(self.insert_sql)
            for batch_start in range(0, count, batch_size):
                batch_end = min(batch_start + batch_size, count)
                records = [
                    self.gen.generate_record(i + 1)
                    for i in range(batch_start, batch_end)
                ]
                if not await self._insert_batch(conn, stmt, records):
                    # A rolled-back batch loses every row, including the ones
                    # inserted before the failure.
                    errors += len(records)
                self._log_progress(OperationType.BULK_INSERT, batch_end, count)

        result.complete(errors)
        self._log_complete(result)
        return result

    async def _insert_batch(self, conn, stmt, records: List[TestRecord]) -> bool:
        """Insert records in one transaction; False if it was rolled back."""
        tr = conn.transaction()
        await tr.start()
        for record in records:
            if not await self._attempt(stmt.fetch(*_record_params(record))):
                # Postgres has aborted the transaction; later rows would fail.
                await tr.rollback()
                return False
        return await self._attempt(tr.commit())

    async def sequential_read(self) -> BenchmarkResult:
        count = self.workload.record_count
        result = BenchmarkResult.start(OperationType.SEQUENTIAL_READ, self.name, count)

        errors = 0
        scanned = 0
        async with self.pool.get_connection() as conn:
            # asyncpg cursors only exist inside a transaction.
            async with conn.transaction():
                cursor = conn.cursor(
                    f"SELECT * FROM {self.table_name} ORDER BY id LIMIT $1",
                    count,
                    prefetch=self.workload.batch_size,
                )
                async for row in cursor:
                    try:
                        TestRecord.model_validate(dict(row))
                    except ValidationError:
                        errors += 1
                    scanned += 1
                    self._log_progress(OperationType.SEQUENTIAL_READ, scanned, count)

        result.set_metadata("rows_scanned", scanned)
        result.complete(errors)
        self._log_complete(result)
        return result

    async def random_read(self) -> BenchmarkResult:
        keys = await self._require_keys(OperationType.RANDOM_READ)
        query = f"SELECT * FROM {self.table_name} WHERE id = $1"

        async def unit(_: int) -> None:
            # A missing row is a valid answer, not an error.
            await self.pool.fetch_one(query, keys.random_id(self.gen.random))

        return await self._run_sequential(
            OperationType.RANDOM_READ, self.workload.random_reads, unit
        )

    async def indexed_query(self) -> BenchmarkResult:
        query = f"SELECT * FROM {self.table_name} WHERE age = $1 LIMIT 10"

        async def unit(i: int) -> None:
            await self.pool.fetch_all(query, 20 + (i % 50))

        return await self._run_sequential(
            OperationType.INDEXED_QUERY, self.workload.indexed_queries, unit
        )

    async def update_operations(self) -> BenchmarkResult:
        keys = await self._require_keys(OperationType.UPDATE)
        query = f"UPDATE {self.table_name} SET balance = $1 WHERE id = $2"

        async def unit(_: int) -> None:
            balance = Decimal(f"{self.gen.update_value('balance'):.2f}")
            await self.pool.execute_query(
                query, balance, keys.random_id(self.gen.random)
            )

        return await self._run_sequential(
            OperationType.UPDATE, self.workload.updates, unit
        )

    async def complex_query(self) -> BenchmarkResult:
        query = AGGREGATE_SQL.format(table=self.table_name, true="true")

        async def unit(_: int) -> None:
            await self.pool.fetch_all(query)

        return await self._run_sequential(OperationType.COMPLEX_QUERY, 1, unit)

    async def concurrent_reads(self) -> BenchmarkResult:
        keys = await self._require_keys(OperationType.CONCURRENT_READS)
        query = f"SELECT * FROM {self.table_name} WHERE id = $1"

        async def unit(worker_id: int, index: int) -> None:
            await self.pool.fetch_one(query, keys.random_id(self.gen.random))

        return await self._run_concurrent(
            OperationType.CONCURRENT_READS, self.workload.reads_per_worker, unit
        )

    async def concurrent_writes(self) -> BenchmarkResult:
        per_worker = self.workload.writes_per_worker

        async def unit(worker_id: int, index: int) -> None:
            record = self.gen.concurrent_write_record(worker_id, index, per_worker)
            await self.pool.execute_query(self.insert_sql, *_record_params(record))

        return await self._run_concurrent(
            OperationType.CONCURRENT_WRITES, per_worker, unit
        )

    async def transaction_performance(self) -> BenchmarkResult:
        keys = await self._require_keys(OperationType.TRANSACTIONS)
        debit = f"UPDATE {self.table_name} SET balance = balance - 10 WHERE id = $1"
        credit = f"UPDATE {self.table_name} SET balance = balance + 10 WHERE id = $1"

        async def unit(_: int) -> None:
            from_id = keys.random_id(self.gen.random)
            to_id = keys.random_id(self.gen.random)
            async with self.pool.get_connection() as conn:
                async with conn.transaction():
                    await conn.execute(debit, from_id)
                    await conn.execute(credit, to_id)

        return await self._run_sequential(
            OperationType.TRANSACTIONS, self.workload.transactions, unit
        )
