"""
Global pytest configuration and fixtures for dbcompare tests.

Unit tests use fake benchmarks and fake pools; nothing here needs a live
database. Tests marked `e2e` only run with E2E_TEST=1.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import Any, Callable, Optional

import pytest

from dbcompare.core.benchmarks.base import Benchmark
from dbcompare.models.result import BenchmarkResult


def is_e2e_test() -> bool:
    """Check if we're running E2E tests (vs unit tests)."""
    return os.getenv("E2E_TEST", "").lower() in ("1", "true", "yes")


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    if is_e2e_test():
        return
    skip_e2e = pytest.mark.skip(reason="set E2E_TEST=1 to run")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.fixture
def make_result() -> Callable[..., BenchmarkResult]:
    """Factory for completed results with known throughput."""

    def _make(
        operation: str,
        database: str,
        records_count: int = 1000,
        duration_seconds: float = 1.0,
        error_count: int = 0,
    ) -> BenchmarkResult:
        return BenchmarkResult.from_measurement(
            operation,
            database,
            records_count,
            duration_seconds,
            error_count=error_count,
            start_time=datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC),
        )

    return _make


class FakeBenchmark(Benchmark):
    """Scripted backend for runner tests."""

    def __init__(
        self,
        name: str,
        key: Optional[str] = None,
        results: Optional[list[BenchmarkResult]] = None,
        catalog: Optional[list[str]] = None,
        setup_error: Optional[BaseException] = None,
        run_error: Optional[BaseException] = None,
        teardown_error: Optional[BaseException] = None,
        events: Optional[list[str]] = None,
    ):
        self._name = name
        self.key = key or name.lower()
        self._results = results or []
        self._catalog = catalog if catalog is not None else [r.operation for r in self._results]
        self.setup_error = setup_error
        self.run_error = run_error
        self.teardown_error = teardown_error
        self.events = events if events is not None else []
        self.on_run: Optional[Callable[[], Any]] = None

    @property
    def name(self) -> str:
        return self._name

    def catalog(self) -> list[str]:
        return list(self._catalog)

    async def setup(self) -> None:
        self.events.append(f"{self.name}:setup")
        if self.setup_error:
            raise self.setup_error

    async def run(self) -> list[BenchmarkResult]:
        self.events.append(f"{self.name}:run")
        if self.on_run:
            self.on_run()
        if self.run_error:
            raise self.run_error
        return list(self._results)

    async def teardown(self) -> None:
        self.events.append(f"{self.name}:teardown")
        if self.teardown_error:
            raise self.teardown_error


@pytest.fixture
def fake_benchmark() -> type[FakeBenchmark]:
    return FakeBenchmark
