"""
Report sinks.

A reporter renders a finished BenchmarkSuite somewhere: the terminal or a
file. `generate` raises on failure; the caller decides whether that matters.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import pyarrow as pa

from dbcompare.models.result import BenchmarkResult, BenchmarkSuite

logger = logging.getLogger(__name__)


def report_filename(
    directory: str | Path, prefix: str, extension: str, now: Optional[datetime] = None
) -> Path:
    """`<directory>/<prefix>_<YYYYmmdd_HHMMSS>.<extension>`, creating the directory."""
    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return path / f"{prefix}_{stamp}.{extension}"


class Reporter(ABC):
    """Renders a suite."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def generate(self, suite: BenchmarkSuite) -> None:
        """Render the suite. Must not modify it."""
        ...


class FileReporter(Reporter):
    """Reporter writing a single file per run."""

    extension: str = ""

    def __init__(self, filename: str | Path):
        self.filename = Path(filename)

    @classmethod
    def for_output(cls, directory: str | Path, prefix: str) -> "FileReporter":
        return cls(report_filename(directory, prefix, cls.extension))

    def generate(self, suite: BenchmarkSuite) -> None:
        self.filename.parent.mkdir(parents=True, exist_ok=True)
        self._write(suite)
        print(f"✓ {self.name} report saved to: {self.filename}")
        logger.info(f"{self.name} report written to {self.filename}")

    @abstractmethod
    def _write(self, suite: BenchmarkSuite) -> None:
        ...


class TabularReporter(FileReporter):
    """File reporter with one row per BenchmarkResult, built with pyarrow."""

    @abstractmethod
    def _build_schema(self) -> pa.Schema:
        """Build the PyArrow schema of the output table."""
        ...

    @abstractmethod
    def _transform_result(self, result: BenchmarkResult) -> dict[str, Any]:
        """Map one result to a dict keyed by schema field names."""
        ...

    def build_table(self, suite: BenchmarkSuite) -> pa.Table:
        rows = [self._transform_result(r) for r in suite.results]
        return pa.Table.from_pylist(rows, schema=self._build_schema())
