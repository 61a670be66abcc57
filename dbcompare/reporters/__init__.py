"""
Report sinks for a finished BenchmarkSuite.

- console: formatted tables on stdout
- csv / json / parquet: one file per run under the output directory
"""

from __future__ import annotations

from typing import List

from dbcompare.models.benchmark_config import OutputConfig, OutputFormat
from dbcompare.reporters.base import FileReporter, Reporter, report_filename
from dbcompare.reporters.console import ConsoleReporter
from dbcompare.reporters.csv_reporter import CSVReporter
from dbcompare.reporters.json_reporter import JSONReporter
from dbcompare.reporters.parquet_reporter import ParquetReporter

FILE_REPORTERS: dict[OutputFormat, type[FileReporter]] = {
    OutputFormat.CSV: CSVReporter,
    OutputFormat.JSON: JSONReporter,
    OutputFormat.PARQUET: ParquetReporter,
}


def create_reporters(output: OutputConfig) -> List[Reporter]:
    """Reporters for the configured formats, in configuration order, deduplicated."""
    reporters: List[Reporter] = []
    for fmt in dict.fromkeys(OutputFormat(f) for f in output.format):
        if fmt == OutputFormat.CONSOLE:
            reporters.append(ConsoleReporter())
        else:
            reporters.append(
                FILE_REPORTERS[fmt].for_output(output.directory, output.filename_prefix)
            )
    return reporters


__all__ = [
    "Reporter",
    "FileReporter",
    "ConsoleReporter",
    "CSVReporter",
    "JSONReporter",
    "ParquetReporter",
    "create_reporters",
    "report_filename",
]
