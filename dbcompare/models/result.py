"""
Benchmark Result Models

Defines Pydantic models for single operation measurements and the suite that
collects them across backends.
"""

import time
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from dbcompare.core.errors import ResultAlreadyCompletedError


class OperationType(str, Enum):
    """Benchmark operations, in the order every backend runs them."""

    BULK_INSERT = "Bulk Insert"
    SEQUENTIAL_READ = "Sequential Read"
    RANDOM_READ = "Random Read"
    INDEXED_QUERY = "Indexed Query"
    UPDATE = "Update Operations"
    COMPLEX_QUERY = "Complex Query"
    CONCURRENT_READS = "Concurrent Reads"
    CONCURRENT_WRITES = "Concurrent Writes"
    TRANSACTIONS = "Transaction Performance"


class BackendStatus(str, Enum):
    """Outcome of one backend's turn in a run."""

    COMPLETED = "completed"
    PARTIAL = "partial"
    EMPTY = "empty"
    SETUP_FAILED = "setup_failed"
    FAILED = "failed"
    SKIPPED = "skipped"


class FrozenMetadata(dict):
    """Read-only metadata of a completed result."""

    def _readonly(self, *args: Any, **kwargs: Any) -> None:
        raise ResultAlreadyCompletedError("metadata of a completed result is read-only")

    __setitem__ = __delitem__ = __ior__ = _readonly
    clear = pop = popitem = setdefault = update = _readonly

    def __reduce__(self):
        return (FrozenMetadata, (dict(self),))


class BenchmarkResult(BaseModel):
    """
    Measurement of one operation against one backend.

    Created when the operation starts and completed exactly once with the
    final error count. Derived fields (error_rate, throughput) stay None when
    records_count is 0. A completed result rejects further modification.
    """

    operation: str = Field(..., description="Operation label")
    database: str = Field(..., description="Backend label")
    records_count: int = Field(0, ge=0, description="Unit operations attempted")
    error_count: int = Field(0, ge=0, description="Unit operations that failed")
    error_rate: Optional[float] = Field(
        None, ge=0.0, le=1.0, description="error_count / records_count"
    )
    throughput: Optional[float] = Field(
        None, description="records_count / duration_seconds (ops/s)"
    )
    start_time: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Operation start"
    )
    end_time: Optional[datetime] = Field(None, description="Operation end")
    duration_seconds: float = Field(0.0, ge=0.0, description="Elapsed seconds")
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Adapter-specific advisory values"
    )

    model_config = ConfigDict(use_enum_values=True)

    _started_at: float = PrivateAttr(default_factory=time.perf_counter)
    _completed: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: Any) -> None:
        # Results loaded from a report are already complete.
        if self.end_time is not None:
            self.metadata = FrozenMetadata(self.metadata)
            self._completed = True

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith("_") and self._completed:
            raise ResultAlreadyCompletedError(
                f"{self.database}/{self.operation} is complete; cannot set {name}"
            )
        super().__setattr__(name, value)

    @classmethod
    def start(
        cls, operation: str | OperationType, database: str, records_count: int
    ) -> "BenchmarkResult":
        """Begin measuring an operation."""
        label = operation.value if isinstance(operation, OperationType) else operation
        return cls(operation=label, database=database, records_count=records_count)

    @classmethod
    def from_measurement(
        cls,
        operation: str | OperationType,
        database: str,
        records_count: int,
        duration_seconds: float,
        error_count: int = 0,
        start_time: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "BenchmarkResult":
        """Build a completed result from already-known figures."""
        result = cls.start(operation, database, records_count)
        if start_time is not None:
            result.start_time = start_time
        if metadata:
            result.metadata.update(metadata)
        result._finish(
            error_count,
            duration_seconds,
            result.start_time + timedelta(seconds=duration_seconds),
        )
        return result

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def error_percent(self) -> float:
        return (self.error_rate or 0.0) * 100

    def set_metadata(self, key: str, value: Any) -> None:
        if self._completed:
            raise ResultAlreadyCompletedError(
                f"{self.database}/{self.operation} is complete; cannot set metadata"
            )
        self.metadata[key] = value

    def complete(self, error_count: int) -> None:
        """Stamp the end time and compute throughput and error rate."""
        duration = time.perf_counter() - self._started_at
        self._finish(error_count, duration, datetime.now(UTC))

    def _finish(self, error_count: int, duration: float, end_time: datetime) -> None:
        if self._completed:
            raise ResultAlreadyCompletedError(
                f"{self.database}/{self.operation} was already completed"
            )

        errors = max(0, int(error_count))
        if self.records_count > 0:
            errors = min(errors, self.records_count)

        self.end_time = end_time
        self.duration_seconds = max(0.0, float(duration))
        self.error_count = errors

        if self.records_count > 0:
            self.error_rate = errors / self.records_count
            if self.duration_seconds > 0:
                self.throughput = self.records_count / self.duration_seconds

        self.metadata = FrozenMetadata(self.metadata)
        self._completed = True


class BackendRun(BaseModel):
    """What happened to one backend during a run."""

    key: str = Field(..., description="Configuration key (e.g. 'postgres')")
    name: str = Field(..., description="Display label (e.g. 'PostgreSQL')")
    status: BackendStatus = Field(..., description="Outcome of the backend's turn")
    completed_operations: List[str] = Field(default_factory=list)
    omitted_operations: List[str] = Field(default_factory=list)
    error: Optional[str] = Field(None, description="Setup or run failure message")
    stats: Dict[str, Any] = Field(default_factory=dict, description="Table stats")

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)


class BenchmarkSuite(BaseModel):
    """
    All measurements from one orchestrated run.

    Results are kept in completion order across backends.
    """

    results: List[BenchmarkResult] = Field(default_factory=list)
    backends: List[BackendRun] = Field(default_factory=list)
    start_time: datetime = Field(default_factory=lambda: datetime.now(UTC))
    end_time: Optional[datetime] = Field(None)
    duration_seconds: Optional[float] = Field(None)
    config: Dict[str, Any] = Field(default_factory=dict)

    _started_at: float = PrivateAttr(default_factory=time.perf_counter)

    def add_results(self, results: List[BenchmarkResult]) -> None:
        self.results.extend(results)

    def finish(self) -> None:
        """Stamp the end time and total duration."""
        self.end_time = datetime.now(UTC)
        self.duration_seconds = time.perf_counter() - self._started_at

    def databases(self) -> List[str]:
        """Backend labels in order of first appearance."""
        return list(dict.fromkeys(r.database for r in self.results))

    def operations(self) -> List[str]:
        """Operation labels in order of first appearance."""
        return list(dict.fromkeys(r.operation for r in self.results))

    def results_for(self, database: str) -> List[BenchmarkResult]:
        return [r for r in self.results if r.database == database]
