"""
Data models for dbcompare.

This package contains Pydantic models for:
- Synthetic benchmark records
- Run configuration (backends, workload sizing, output)
- Measurements and the suite that collects them
"""

from dbcompare.models.record import TestRecord

from dbcompare.models.benchmark_config import (
    OutputFormat,
    PostgresConfig,
    SnowflakeConfig,
    DatabasesConfig,
    WorkloadConfig,
    OutputConfig,
    BenchmarkConfig,
)

from dbcompare.models.result import (
    OperationType,
    BackendStatus,
    BenchmarkResult,
    BackendRun,
    BenchmarkSuite,
)

__all__ = [
    # record
    "TestRecord",
    # benchmark_config
    "OutputFormat",
    "PostgresConfig",
    "SnowflakeConfig",
    "DatabasesConfig",
    "WorkloadConfig",
    "OutputConfig",
    "BenchmarkConfig",
    # result
    "OperationType",
    "BackendStatus",
    "BenchmarkResult",
    "BackendRun",
    "BenchmarkSuite",
]
