"""Parquet report: typed columns, one row per result."""

from __future__ import annotations

import json
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from dbcompare.models.result import BenchmarkResult, BenchmarkSuite
from dbcompare.reporters.base import TabularReporter


class ParquetReporter(TabularReporter):
    extension = "parquet"

    @property
    def name(self) -> str:
        return "Parquet"

    def _build_schema(self) -> pa.Schema:
        return pa.schema(
            [
                ("database", pa.string()),
                ("operation", pa.string()),
                ("duration_seconds", pa.float64()),
                ("records_count", pa.int64()),
                ("throughput", pa.float64()),
                ("error_count", pa.int64()),
                ("error_rate", pa.float64()),
                ("start_time", pa.timestamp("us", tz="UTC")),
                ("end_time", pa.timestamp("us", tz="UTC")),
                # Adapter metadata is open-ended; stored as a JSON string.
                ("metadata", pa.string()),
            ]
        )

    def _transform_result(self, result: BenchmarkResult) -> dict[str, Any]:
        return {
            "database": result.database,
            "operation": result.operation,
            "duration_seconds": result.duration_seconds,
            "records_count": result.records_count,
            "throughput": result.throughput,
            "error_count": result.error_count,
            "error_rate": result.error_rate,
            "start_time": result.start_time,
            "end_time": result.end_time,
            "metadata": json.dumps(result.metadata, default=str),
        }

    def _write(self, suite: BenchmarkSuite) -> None:
        pq.write_table(self.build_table(suite), str(self.filename), compression="snappy")
