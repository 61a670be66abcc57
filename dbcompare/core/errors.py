"""
Exception hierarchy for dbcompare.

Fatal errors (configuration, runner construction) abort the process before any
measurement. Everything else is recovered inside the backend that raised it.
"""

from __future__ import annotations


class DBCompareError(Exception):
    """Base class for all dbcompare errors."""


class ConfigurationError(DBCompareError):
    """The run configuration could not be read or is invalid."""


class NoBackendsEnabledError(DBCompareError):
    """No backend is enabled in the configuration."""


class BackendConstructionError(DBCompareError):
    """An enabled backend could not be built from its configuration."""

    def __init__(self, backend: str, reason: str):
        super().__init__(f"Failed to initialize {backend}: {reason}")
        self.backend = backend
        self.reason = reason


class OperationStartError(DBCompareError):
    """A benchmark operation could not begin; it is omitted from the results."""


class EmptyDatasetError(OperationStartError):
    """The benchmark table holds no rows to read or update."""

    def __init__(self, operation: str):
        super().__init__(f"{operation}: benchmark table is empty")
        self.operation = operation


class ResultAlreadyCompletedError(DBCompareError):
    """A BenchmarkResult was completed or modified after completion."""


class PoolExhaustedError(DBCompareError):
    """A connection pool has no free connection and cannot grow."""
