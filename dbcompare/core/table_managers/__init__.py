"""
Table managers for the benchmark table on each backend.

Backend-specific managers live in their own modules so that importing the
base interface does not pull in every database driver.
"""

from dbcompare.core.table_managers.base import (
    BENCHMARK_TABLE,
    RECORD_COLUMNS,
    KeyRange,
    TableManager,
)

__all__ = [
    "BENCHMARK_TABLE",
    "RECORD_COLUMNS",
    "KeyRange",
    "TableManager",
]
