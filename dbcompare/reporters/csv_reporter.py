"""CSV report: one row per result, values pre-formatted for spreadsheets."""

from __future__ import annotations

from typing import Any

import pyarrow as pa
import pyarrow.csv as pacsv

from dbcompare.models.result import BenchmarkResult, BenchmarkSuite
from dbcompare.reporters.base import TabularReporter

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

COLUMNS = (
    "Database",
    "Operation",
    "Duration (ms)",
    "Records Count",
    "Throughput (ops/s)",
    "Error Count",
    "Error Rate (%)",
    "Start Time",
    "End Time",
)


class CSVReporter(TabularReporter):
    extension = "csv"

    @property
    def name(self) -> str:
        return "CSV"

    def _build_schema(self) -> pa.Schema:
        return pa.schema([(column, pa.string()) for column in COLUMNS])

    def _transform_result(self, result: BenchmarkResult) -> dict[str, Any]:
        return {
            "Database": result.database,
            "Operation": result.operation,
            "Duration (ms)": f"{result.duration_seconds * 1000:.2f}",
            "Records Count": str(result.records_count),
            "Throughput (ops/s)": f"{result.throughput or 0.0:.2f}",
            "Error Count": str(result.error_count),
            "Error Rate (%)": f"{result.error_percent:.4f}",
            "Start Time": result.start_time.strftime(TIME_FORMAT),
            "End Time": result.end_time.strftime(TIME_FORMAT) if result.end_time else "",
        }

    def _write(self, suite: BenchmarkSuite) -> None:
        pacsv.write_csv(self.build_table(suite), str(self.filename))
