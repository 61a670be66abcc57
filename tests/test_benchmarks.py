"""
Unit tests for the Postgres and Snowflake benchmarks, using fake pools.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest
from snowflake.connector.errors import ProgrammingError

from dbcompare.connectors.snowflake_pool import SnowflakeConnectionPool
from dbcompare.core.benchmarks.postgres import PostgresBenchmark
from dbcompare.core.benchmarks.snowflake import SnowflakeBenchmark
from dbcompare.core.errors import EmptyDatasetError
from dbcompare.core.generator import RecordGenerator
from dbcompare.core.table_managers.base import KeyRange
from dbcompare.models.benchmark_config import WorkloadConfig
from dbcompare.models.result import OperationType


def _workload(**overrides: Any) -> WorkloadConfig:
    values = dict(
        record_count=20,
        batch_size=5,
        random_reads=10,
        updates=10,
        transactions=5,
        concurrent_workers=4,
        indexed_queries=6,
        reads_per_worker=5,
        writes_per_worker=5,
        seed=1,
    )
    values.update(overrides)
    return WorkloadConfig(**values)


class FakeTransaction:
    """Stand-in for an asyncpg transaction; records how it ended."""

    def __init__(self) -> None:
        self.state = "new"
        self.commit_error: Exception | None = None

    async def start(self) -> None:
        self.state = "started"

    async def commit(self) -> None:
        if self.commit_error is not None:
            self.state = "rolled_back"
            raise self.commit_error
        self.state = "committed"

    async def rollback(self) -> None:
        self.state = "rolled_back"

    async def __aenter__(self) -> "FakeTransaction":
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> bool:
        if exc[0] is None:
            await self.commit()
        else:
            await self.rollback()
        return False


class FakeConnection:
    """Stand-in for an asyncpg connection."""

    def __init__(self, rows: list[dict] | None = None):
        self.rows = rows or []
        self.statement = MagicMock()
        self.statement.fetch = AsyncMock(return_value=[])
        self.execute = AsyncMock(return_value="UPDATE 1")
        self.transactions: list[FakeTransaction] = []

    async def prepare(self, query: str) -> MagicMock:
        return self.statement

    def transaction(self) -> FakeTransaction:
        tr = FakeTransaction()
        self.transactions.append(tr)
        return tr

    def cursor(self, query: str, *args: Any, prefetch: int | None = None):
        async def rows():
            for row in self.rows:
                yield row

        return rows()


def _postgres(conn: FakeConnection, workload: WorkloadConfig, key_range: KeyRange):
    pool = MagicMock()
    pool.fetch_one = AsyncMock(return_value=None)
    pool.fetch_all = AsyncMock(return_value=[])
    pool.execute_query = AsyncMock(return_value="INSERT 0 1")

    @asynccontextmanager
    async def get_connection():
        yield conn

    pool.get_connection = get_connection
    bench = PostgresBenchmark(pool, workload, generator=RecordGenerator(seed=1))
    bench.table = MagicMock()
    bench.table.get_key_range = AsyncMock(return_value=key_range)
    return bench, pool


def _row(record_id: int, age: int = 30) -> dict:
    return {
        "id": record_id,
        "name": "Mary Smith",
        "email": "mary@example.com",
        "age": age,
        "balance": 12.5,
        "created_at": datetime(2024, 1, 1, tzinfo=UTC),
        "description": "Dedicated team member",
        "is_active": True,
    }


class TestPostgresBenchmark:
    """Tests for PostgresBenchmark operations."""

    def test_catalog_is_full(self) -> None:
        bench, _ = _postgres(FakeConnection(), _workload(), KeyRange(0, 0, 0))

        assert bench.catalog() == [op.value for op in OperationType]

    @pytest.mark.asyncio
    async def test_empty_table_omits_key_operations(self) -> None:
        bench, _ = _postgres(FakeConnection(), _workload(), KeyRange(0, 0, 0))

        results = await bench.run()

        assert [r.operation for r in results] == [
            "Bulk Insert",
            "Sequential Read",
            "Indexed Query",
            "Complex Query",
            "Concurrent Writes",
        ]
        with pytest.raises(EmptyDatasetError):
            await bench.random_read()

    @pytest.mark.asyncio
    async def test_rejected_row_fails_its_whole_batch(self) -> None:
        conn = FakeConnection()
        calls = 0

        async def fetch(*params: Any) -> list:
            nonlocal calls
            calls += 1
            # Third row of the second batch.
            if calls == 8:
                raise asyncpg.UniqueViolationError("duplicate key")
            return []

        conn.statement.fetch = fetch
        bench, _ = _postgres(conn, _workload(), KeyRange(0, 0, 0))

        result = await bench.bulk_insert()

        assert calls == 18
        assert result.records_count == 20
        assert result.error_count == 5
        assert result.error_rate == 0.25
        assert result.metadata["batch_size"] == 5
        assert [tr.state for tr in conn.transactions] == [
            "committed",
            "rolled_back",
            "committed",
            "committed",
        ]

    @pytest.mark.asyncio
    async def test_failed_commit_fails_its_whole_batch(self) -> None:
        conn = FakeConnection()
        original = conn.transaction

        def transaction() -> FakeTransaction:
            tr = original()
            if len(conn.transactions) == 3:
                tr.commit_error = asyncpg.SerializationError("could not serialize")
            return tr

        conn.transaction = transaction
        bench, _ = _postgres(conn, _workload(), KeyRange(0, 0, 0))

        result = await bench.bulk_insert()

        assert conn.statement.fetch.await_count == 20
        assert result.error_count == 5
        assert conn.transactions[2].state == "rolled_back"

    @pytest.mark.asyncio
    async def test_sequential_read_counts_undecodable_rows(self) -> None:
        conn = FakeConnection(rows=[_row(1), _row(2, age=-1), _row(3)])
        bench, _ = _postgres(conn, _workload(record_count=3), KeyRange(1, 3, 3))

        result = await bench.sequential_read()

        assert result.error_count == 1
        assert result.metadata["rows_scanned"] == 3

    @pytest.mark.asyncio
    async def test_random_read_stays_in_key_range(self) -> None:
        bench, pool = _postgres(FakeConnection(), _workload(), KeyRange(11, 20, 10))

        result = await bench.random_read()

        assert result.records_count == 10
        assert result.error_count == 0
        ids = [c.args[1] for c in pool.fetch_one.await_args_list]
        assert len(ids) == 10
        assert all(11 <= i <= 20 for i in ids)

    @pytest.mark.asyncio
    async def test_indexed_query_cycles_ages(self) -> None:
        bench, pool = _postgres(FakeConnection(), _workload(), KeyRange(0, 0, 0))

        await bench.indexed_query()

        ages = [c.args[1] for c in pool.fetch_all.await_args_list]
        assert ages == [20, 21, 22, 23, 24, 25]

    @pytest.mark.asyncio
    async def test_failed_complex_query_is_one_error(self) -> None:
        bench, pool = _postgres(FakeConnection(), _workload(), KeyRange(0, 0, 0))
        pool.fetch_all.side_effect = asyncpg.PostgresError("statement timeout")

        result = await bench.complex_query()

        assert result.records_count == 1
        assert result.error_count == 1
        assert result.error_rate == 1.0

    @pytest.mark.asyncio
    async def test_concurrent_writes_count_unit_errors(self) -> None:
        bench, pool = _postgres(FakeConnection(), _workload(), KeyRange(0, 0, 0))
        calls = 0

        async def execute(*args: Any) -> str:
            nonlocal calls
            calls += 1
            if calls % 2 == 0:
                raise asyncpg.PostgresError("deadlock detected")
            return "INSERT 0 1"

        pool.execute_query.side_effect = execute

        result = await bench.concurrent_writes()

        assert result.records_count == 20
        assert result.error_count == 10
        assert result.metadata["workers"] == 4

    @pytest.mark.asyncio
    async def test_transactions_run_two_updates(self) -> None:
        conn = FakeConnection()
        bench, _ = _postgres(conn, _workload(), KeyRange(1, 20, 20))

        result = await bench.transaction_performance()

        assert result.records_count == 5
        assert result.error_count == 0
        assert conn.execute.await_count == 10

    @pytest.mark.asyncio
    async def test_unexpected_error_omits_operation(self) -> None:
        bench, pool = _postgres(FakeConnection(), _workload(), KeyRange(0, 0, 0))
        pool.fetch_all.side_effect = RuntimeError("pool closed")

        results = await bench.run()

        operations = [r.operation for r in results]
        assert "Indexed Query" not in operations
        assert "Complex Query" not in operations
        assert "Bulk Insert" in operations


def _snowflake(workload: WorkloadConfig, key_range: KeyRange):
    pool = MagicMock()
    pool.execute_many = AsyncMock(return_value=5)
    pool.execute_query = AsyncMock(return_value=[])
    pool.fetch_one = AsyncMock(return_value=None)
    pool.execute_transaction = AsyncMock(return_value=None)
    bench = SnowflakeBenchmark(pool, workload, generator=RecordGenerator(seed=1))
    bench.table = MagicMock()
    bench.table.get_key_range = AsyncMock(return_value=key_range)
    return bench, pool


class TestSnowflakeBenchmark:
    """Tests for SnowflakeBenchmark operations."""

    def test_catalog_has_no_indexed_query(self) -> None:
        bench, _ = _snowflake(_workload(), KeyRange(0, 0, 0))

        assert "Indexed Query" not in bench.catalog()
        assert len(bench.catalog()) == 8

    @pytest.mark.asyncio
    async def test_failed_batch_counts_every_row(self) -> None:
        bench, pool = _snowflake(_workload(), KeyRange(0, 0, 0))
        pool.execute_many.side_effect = [5, ProgrammingError("bad batch"), 5, 5]

        result = await bench.bulk_insert()

        assert pool.execute_many.await_count == 4
        assert result.error_count == 5
        assert result.error_rate == 0.25

    @pytest.mark.asyncio
    async def test_full_run_with_data(self) -> None:
        bench, pool = _snowflake(_workload(), KeyRange(1, 20, 20))

        results = await bench.run()

        assert [r.operation for r in results] == bench.catalog()
        assert pool.execute_transaction.await_count == 5
        statements = pool.execute_transaction.await_args_list[0].args[0]
        assert len(statements) == 2
        assert "balance - 10" in statements[0][0]

    @pytest.mark.asyncio
    async def test_stress_workers_beyond_pool_size_wait_for_connections(
        self,
    ) -> None:
        pool = SnowflakeConnectionPool(
            account="acct", user="bench", pool_size=2, max_overflow=2
        )
        pool._initialized = True

        def new_connection() -> MagicMock:
            conn = MagicMock()
            conn.is_closed.return_value = False
            return conn

        pool._create_connection = AsyncMock(side_effect=lambda: new_connection())
        workload = _workload(concurrent_workers=8, writes_per_worker=5)
        bench = SnowflakeBenchmark(pool, workload, generator=RecordGenerator(seed=1))

        result = await bench.concurrent_writes()
        await pool.close_all()

        assert result.records_count == 40
        assert result.error_count == 0
        assert "error_samples" not in result.metadata
        assert pool._create_connection.await_count <= pool.max_connections()
