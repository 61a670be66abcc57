"""
Backend benchmarks.

Concrete adapters are imported lazily by `create_benchmark` so that a run
with only one backend enabled never needs the other backend's driver.
"""

from __future__ import annotations

from dbcompare.core.benchmarks.base import BaseBenchmark, Benchmark
from dbcompare.core.errors import BackendConstructionError
from dbcompare.models.benchmark_config import BenchmarkConfig

__all__ = ["Benchmark", "BaseBenchmark", "create_benchmark"]


def create_benchmark(key: str, config: BenchmarkConfig) -> Benchmark:
    """
    Build the benchmark for one configured backend.

    Raises:
        BackendConstructionError: Unknown key, or the adapter could not be built
    """
    try:
        if key == "postgres":
            from dbcompare.core.benchmarks.postgres import PostgresBenchmark

            return PostgresBenchmark.from_config(
                config.databases.postgres, config.benchmark
            )
        if key == "snowflake":
            from dbcompare.core.benchmarks.snowflake import SnowflakeBenchmark

            return SnowflakeBenchmark.from_config(
                config.databases.snowflake, config.benchmark
            )
    except Exception as e:
        raise BackendConstructionError(key, str(e)) from e
    raise BackendConstructionError(key, "unknown backend")
