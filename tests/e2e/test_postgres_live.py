"""
End-to-end run against a live Postgres.

Requires E2E_TEST=1 and a database reachable with the E2E_POSTGRES_* settings
(defaults: postgres:postgres@localhost:5432/dbcompare).
"""

from __future__ import annotations

import os

import pytest

from dbcompare.core.benchmarks.postgres import PostgresBenchmark
from dbcompare.core.runner import BenchmarkRunner
from dbcompare.models.benchmark_config import PostgresConfig, WorkloadConfig

pytestmark = [pytest.mark.e2e, pytest.mark.asyncio]


async def test_small_postgres_run() -> None:
    cfg = PostgresConfig(
        enabled=True,
        host=os.getenv("E2E_POSTGRES_HOST", "localhost"),
        port=int(os.getenv("E2E_POSTGRES_PORT", "5432")),
        user=os.getenv("E2E_POSTGRES_USER", "postgres"),
        password=os.getenv("E2E_POSTGRES_PASSWORD", "postgres"),
        database=os.getenv("E2E_POSTGRES_DATABASE", "dbcompare"),
        max_connections=5,
    )
    workload = WorkloadConfig(
        record_count=200,
        batch_size=50,
        random_reads=20,
        updates=20,
        transactions=10,
        concurrent_workers=3,
        indexed_queries=10,
        reads_per_worker=10,
        writes_per_worker=5,
        seed=7,
    )
    runner = BenchmarkRunner([PostgresBenchmark.from_config(cfg, workload)], workload)

    suite = await runner.run()

    assert suite.backends[0].status == "completed"
    assert len(suite.results) == 9
    assert suite.backends[0].stats["row_count"] >= 200
    for result in suite.results:
        assert result.completed
        assert result.error_count == 0
